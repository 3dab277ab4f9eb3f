"""Shared test doubles for unit tests.

FakeBrowser is an in-memory browser implementing the BrowserConnection
protocol. It models the parts of a real browser that resets interact with:
cookies and web storage per domain, navigation, and slow asynchronous
requests whose responses land later on a fake clock. A response only lands
if the page that sent it is still loaded; navigating away aborts it.
"""

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse, urlsplit, urlunsplit

import pytest

from wdharness.backends.base import Cookie, CookieScope
from wdharness.exceptions import UnhandledAlertError, UnsupportedOperationError

BLANK = "about:blank"


class FakeClock:
    """Stands in for the ``time`` module; sleeping advances the clock."""

    def __init__(self) -> None:
        self.now = 0.0

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class _SlowRequest:
    lands_at: float
    page_id: int
    domain: str
    name: str
    value: str


class FakeBrowser:
    """In-memory browser implementing BrowserConnection."""

    BACKEND_TYPE = "fake"

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.url = BLANK
        self.page_id = 0
        self.cookies: dict[str, dict[str, str]] = {}
        self.local_storage: dict[str, dict[str, str]] = {}
        self.session_storage: dict[str, dict[str, str]] = {}
        self.requests: list[_SlowRequest] = []
        self.windows = ["main"]
        self.alert_pending = False
        self.hijacks = 0
        self.terminated = False
        self.terminate_error: Exception | None = None
        self.navigations: list[str] = []
        self.script_result: Any = None
        self.normalize_urls = False

    # Page-side helpers used by tests

    @property
    def domain(self) -> str:
        return urlparse(self.url).hostname or ""

    def set_cookie(self, name: str, value: str) -> None:
        self.cookies.setdefault(self.domain, {})[name] = value

    def set_storage(self, key: str, value: str) -> None:
        self.local_storage.setdefault(self.domain, {})[key] = value
        self.session_storage.setdefault(self.domain, {})[key] = value

    def fire_slow_request(self, name: str, value: str, delay: float) -> None:
        """Start a request whose response sets a cookie ``delay`` seconds from now."""
        self.requests.append(
            _SlowRequest(self.clock.now + delay, self.page_id, self.domain, name, value)
        )

    def requests_settled(self) -> bool:
        self._settle()
        return not self.requests

    def cookies_for(self, domain: str) -> dict[str, str]:
        self._settle()
        return dict(self.cookies.get(domain, {}))

    def _settle(self) -> None:
        remaining = []
        for request in self.requests:
            if request.page_id != self.page_id:
                continue
            if request.lands_at <= self.clock.now:
                self.cookies.setdefault(request.domain, {})[request.name] = request.value
            else:
                remaining.append(request)
        self.requests = remaining

    @staticmethod
    def _normalize(url: str) -> str:
        """Report URLs as browsers do: lowercase host, empty path as /."""
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https"):
            return url
        return urlunsplit(parts._replace(netloc=parts.netloc.lower(), path=parts.path or "/"))

    def _on_web_page(self) -> bool:
        return self.url.startswith(("http://", "https://"))

    # BrowserConnection protocol

    def terminate(self) -> None:
        if self.terminate_error is not None:
            raise self.terminate_error
        self.terminated = True

    def navigate(self, url: str) -> None:
        if self.alert_pending:
            raise UnhandledAlertError("Navigation blocked by an alert: unexpected alert open")
        self._settle()
        self.navigations.append(url)
        self.page_id += 1
        self.url = self._normalize(url) if self.normalize_urls else url
        if url == BLANK and self.hijacks > 0:
            self.hijacks -= 1
            self.page_id += 1
            self.url = "http://app.test/redirected"

    @property
    def current_url(self) -> str:
        self._settle()
        return self.url

    def clear_local_storage(self) -> None:
        if self._on_web_page():
            self.local_storage.pop(self.domain, None)

    def clear_session_storage(self) -> None:
        if self._on_web_page():
            self.session_storage.pop(self.domain, None)

    def clear_cookies(self, scope: CookieScope = CookieScope.CURRENT_DOMAIN) -> None:
        if scope is CookieScope.ALL_DOMAINS:
            raise UnsupportedOperationError("cannot delete cookies outside the current domain")
        self._settle()
        if self._on_web_page():
            self.cookies.pop(self.domain, None)

    def get_cookies(self) -> list[Cookie]:
        self._settle()
        return [
            {"name": name, "value": value, "domain": self.domain}
            for name, value in self.cookies.get(self.domain, {}).items()
        ]

    def page_is_empty(self) -> bool:
        return self.url == BLANK

    def accept_alert(self) -> None:
        self.alert_pending = False

    def close_extra_windows(self) -> None:
        self.windows = self.windows[:1]

    def execute_script(self, script: str, *args: Any) -> Any:
        return self.script_result

    @property
    def capabilities(self) -> dict[str, Any]:
        return {
            "browserName": "firefox",
            "browserVersion": "128.0",
            "moz:geckodriverVersion": "0.35.0",
        }


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    """Fake clock replacing ``time`` in the session module."""
    fake = FakeClock()
    monkeypatch.setattr("wdharness.session.time", fake)
    return fake


@pytest.fixture
def browser(clock: FakeClock) -> FakeBrowser:
    """Fresh in-memory browser sharing the fake clock."""
    return FakeBrowser(clock)
