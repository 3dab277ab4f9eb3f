"""Base protocols and types for browser connections.

This module defines the BrowserConnection protocol that the session core
drives. A connection is a live channel to an external browser automation
process; the core never talks to WebDriver directly.

Example:
    >>> from wdharness.backends import get_connection_factory
    >>> factory = get_connection_factory("selenium", browser="firefox")
    >>> connection = factory()
    >>> connection.navigate("https://example.com")
    >>> connection.clear_cookies()
    >>> connection.terminate()
"""

from collections.abc import Callable
from enum import StrEnum
from typing import Any, NotRequired, Protocol, Required, TypedDict, runtime_checkable


class CookieScope(StrEnum):
    """Which cookies a clear operation targets.

    - CURRENT_DOMAIN: cookies visible to the page currently loaded
    - ALL_DOMAINS: every cookie the browser holds, whatever its domain
    """

    CURRENT_DOMAIN = "current_domain"
    ALL_DOMAINS = "all_domains"


class Cookie(TypedDict, total=False):
    """Cookie dictionary as returned by WebDriver's get_cookies()."""

    name: Required[str]
    value: Required[str]
    domain: NotRequired[str]
    path: NotRequired[str]
    secure: NotRequired[bool]
    httpOnly: NotRequired[bool]
    sameSite: NotRequired[str]
    expiry: NotRequired[int]


@runtime_checkable
class BrowserConnection(Protocol):
    """Protocol defining a live connection to a browser automation backend.

    Every method may block until the backend answers. Apart from
    ``terminate()``, failures are raised as BackendOperationError carrying
    the backend's original message. ``terminate()`` raises the backend's own
    exception unchanged so callers can classify it.

    Note:
        Connections are NOT thread-safe. One session drives one connection.
    """

    BACKEND_TYPE: str

    def terminate(self) -> None:
        """Shut down the browser and its driver process."""
        ...

    def navigate(self, url: str) -> None:
        """Load ``url`` in the current browsing context.

        Raises:
            UnhandledAlertError: If a modal alert blocks navigation.
            BackendOperationError: If navigation fails.
        """
        ...

    @property
    def current_url(self) -> str:
        """URL of the page currently loaded."""
        ...

    def clear_local_storage(self) -> None:
        """Clear window.localStorage of the current page's origin."""
        ...

    def clear_session_storage(self) -> None:
        """Clear window.sessionStorage of the current page's origin."""
        ...

    def clear_cookies(self, scope: CookieScope = CookieScope.CURRENT_DOMAIN) -> None:
        """Delete cookies.

        Raises:
            UnsupportedOperationError: If the backend cannot honour ``scope``.
        """
        ...

    def get_cookies(self) -> list[Cookie]:
        """Cookies visible to the current page."""
        ...

    def page_is_empty(self) -> bool:
        """Whether the current document's body has no child elements."""
        ...

    def accept_alert(self) -> None:
        """Accept a pending modal alert, if any."""
        ...

    def close_extra_windows(self) -> None:
        """Close every window but the first one and switch to it."""
        ...

    def execute_script(self, script: str, *args: Any) -> Any:
        """Run JavaScript in the current page and return its result."""
        ...

    @property
    def capabilities(self) -> dict[str, Any]:
        """Capabilities negotiated for the session."""
        ...


ConnectionFactory = Callable[[], BrowserConnection]
"""Zero-argument callable creating (and starting) a new connection."""
