"""Session controller: reset and quit semantics over a ProcessHandle.

A reset restores a clean in-page state without restarting the browser:
stores selected by the StateResetPolicy are cleared and the browser is sent
to a neutral page (``about:blank`` by default).

Page scripts keep running while a reset happens. An asynchronous request
started before the reset may land its cookie after the stores were cleared.
Navigating away supersedes the page that issued it; for writes that must be
waited out, register them with ``track()`` and reset drains them first.
``delay_before_navigate()`` widens the window between clearing and
navigating so that race can be reproduced deterministically in tests; the
stores are cleared again at the end of the delay so writes landing inside
it are not kept.

Example:
    >>> from wdharness import create_session
    >>> session = create_session("selenium_firefox")
    >>> session.visit("http://localhost:3000/with_js")
    >>> session.reset()
    >>> session.quit()
"""

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Self
from urllib.parse import urlsplit, urlunsplit

from wdharness.backends import describe_browser
from wdharness.backends.base import BrowserConnection
from wdharness.exceptions import ResetTimeoutError, UnhandledAlertError
from wdharness.handle import ProcessHandle, TerminationOutcome
from wdharness.logging import get_logger
from wdharness.policy import StateResetPolicy

if TYPE_CHECKING:
    from wdharness.config import HarnessSettings

LOG = get_logger(__name__)

BLANK_PAGE = "about:blank"


def _normalize_url(url: str) -> str:
    parts = urlsplit(url)
    if parts.scheme in ("http", "https") and not parts.path:
        parts = parts._replace(path="/")
    return urlunsplit(parts._replace(netloc=parts.netloc.lower()))


def _same_url(left: str, right: str) -> bool:
    """Compare URLs the way browsers report them (``http://host`` is ``http://host/``)."""
    return _normalize_url(left) == _normalize_url(right)


# Test-only override of the pre-navigation delay, set by delay_before_navigate()
_navigate_delay_override: float | None = None


@contextmanager
def delay_before_navigate(seconds: float = 0.5) -> Iterator[None]:
    """Sleep between clearing state and navigating away in every reset.

    Applies to all sessions for the duration of the block. Meant for tests
    reproducing the race between a reset and slow asynchronous requests.

    Args:
        seconds: Delay inserted before the neutral navigation.
    """
    global _navigate_delay_override
    previous = _navigate_delay_override
    _navigate_delay_override = seconds
    try:
        yield
    finally:
        _navigate_delay_override = previous


class SessionState(StrEnum):
    """Lifecycle state of a session."""

    FRESH = "fresh"
    ACTIVE = "active"
    TERMINATED = "terminated"


@dataclass
class PendingAsyncEffect:
    """An in-flight page operation that may still mutate browser state.

    Attributes:
        description: Human-readable label used in logs and errors.
        is_settled: Returns True once the operation has finished.
        timeout: Seconds to wait for the operation before giving up.
    """

    description: str
    is_settled: Callable[[], bool]
    timeout: float = 10.0

    @classmethod
    def from_script(
        cls,
        connection: BrowserConnection,
        script: str,
        description: str | None = None,
        timeout: float = 10.0,
    ) -> Self:
        """Build an effect settled when ``script`` returns a truthy value.

        Example:
            >>> PendingAsyncEffect.from_script(conn, "return window.pendingRequests === 0")
        """
        return cls(
            description=description or script,
            is_settled=lambda: bool(connection.execute_script(script)),
            timeout=timeout,
        )

    def wait(self, poll_interval: float = 0.01) -> None:
        """Block until the effect has settled.

        Raises:
            ResetTimeoutError: If it does not settle within ``timeout``.
        """
        deadline = time.monotonic() + self.timeout
        while not self.is_settled():
            if time.monotonic() >= deadline:
                raise ResetTimeoutError(
                    f"Pending effect '{self.description}' did not settle within {self.timeout}s"
                )
            time.sleep(poll_interval)


class SessionController:
    """Drives one browser session: visits, resets and quits.

    The controller issues blocking calls and never runs threads of its own.
    Resetting never starts, stops or replaces the browser.
    """

    def __init__(
        self,
        handle: ProcessHandle,
        policy: StateResetPolicy | None = None,
        neutral_url: str = BLANK_PAGE,
        reset_timeout: float = 10.0,
        poll_interval: float = 0.01,
        pre_navigate_delay: float = 0.0,
        log_driver_version: bool = False,
    ) -> None:
        """Initialize the controller.

        Args:
            handle: Owner of the browser connection.
            policy: Stores cleared on reset. Defaults to clearing everything.
            neutral_url: Page loaded at the end of every reset.
            reset_timeout: Seconds allowed for the browser to settle on the
                neutral page.
            poll_interval: Seconds between polls while waiting.
            pre_navigate_delay: Seconds slept between clearing stores and
                navigating away. Zero disables the delay.
            log_driver_version: Log browser/driver versions once started.
        """
        self._handle = handle
        self._policy = policy or StateResetPolicy.clear_everything()
        self._neutral_url = neutral_url
        self._reset_timeout = reset_timeout
        self._poll_interval = poll_interval
        self._pre_navigate_delay = pre_navigate_delay
        self._log_driver_version = log_driver_version
        self._pending: list[PendingAsyncEffect] = []
        self._state = SessionState.FRESH

    @classmethod
    def from_settings(
        cls,
        handle: ProcessHandle,
        settings: "HarnessSettings",
        policy: StateResetPolicy | None = None,
    ) -> Self:
        """Build a controller configured from settings.

        Args:
            handle: Owner of the browser connection.
            settings: Source of timeouts, neutral page and delay toggle.
            policy: Overrides the policy derived from settings.
        """
        return cls(
            handle,
            policy=policy or StateResetPolicy.from_settings(settings),
            neutral_url=settings.neutral_url,
            reset_timeout=settings.reset_timeout,
            poll_interval=settings.poll_interval,
            pre_navigate_delay=(
                settings.pre_navigate_delay if settings.sleep_before_navigate else 0.0
            ),
            log_driver_version=settings.log_driver_version,
        )

    @property
    def state(self) -> SessionState:
        """Current session state."""
        return self._state

    @property
    def policy(self) -> StateResetPolicy:
        """Reset policy chosen for this session."""
        return self._policy

    @property
    def handle(self) -> ProcessHandle:
        """The handle owning the browser connection."""
        return self._handle

    @property
    def connection(self) -> BrowserConnection:
        """Live connection, starting the browser if needed."""
        starting = not self._handle.is_live
        connection = self._handle.get()
        if starting and self._log_driver_version:
            LOG.info("browser_started", **describe_browser(connection))
        return connection

    @property
    def pending_effects(self) -> tuple[PendingAsyncEffect, ...]:
        """Effects registered and not yet drained."""
        return tuple(self._pending)

    def visit(self, url: str) -> None:
        """Navigate to ``url``, starting the browser if needed.

        Raises:
            BackendOperationError: If the browser fails to start or navigate.
        """
        self.connection.navigate(url)
        self._state = SessionState.ACTIVE

    def track(self, effect: PendingAsyncEffect) -> None:
        """Register an in-flight effect that the next reset waits out."""
        LOG.debug("pending_effect_tracked", description=effect.description)
        self._pending.append(effect)

    def reset(self, drain: bool = True) -> None:
        """Restore a clean in-page state.

        Does nothing if the browser was never started. Otherwise waits for
        tracked effects (when ``drain`` is set), closes extra windows,
        clears the stores selected by the policy, and settles the browser on
        the neutral page. Alerts raised while leaving the page are accepted.

        Writes committed before the reset began are gone afterwards if their
        store is in policy, including writes that land during the
        pre-navigation delay. Writes still in flight at navigation are
        dropped with the page that issued them; tracked ones are drained
        first.

        Args:
            drain: Wait for tracked pending effects before clearing.

        Raises:
            ResetTimeoutError: If a tracked effect or the neutral page does
                not settle in time.
            BackendOperationError: If a backend operation fails.
        """
        if not self._handle.is_live:
            LOG.debug("session_reset_skipped", reason="browser_not_started")
            return

        connection = self._handle.get()
        pending, self._pending = self._pending, []
        if drain:
            for effect in pending:
                effect.wait(self._poll_interval)
        elif pending:
            LOG.debug("pending_effects_discarded", count=len(pending))

        deadline = time.monotonic() + self._reset_timeout
        navigated = False
        while True:
            try:
                # Navigate only once; repeating it can trigger endless unload modals
                if not navigated:
                    self._reset_browser_state(connection)
                    navigated = True
                self._wait_for_neutral_page(connection, deadline)
                break
            except UnhandledAlertError as exc:
                if time.monotonic() >= deadline:
                    raise ResetTimeoutError(
                        f"Timed out accepting alerts during session reset: {exc}"
                    ) from exc
                LOG.debug("session_reset_accepting_alert", error=str(exc))
                connection.accept_alert()

        self._state = SessionState.ACTIVE
        LOG.debug("session_reset", neutral_url=self._neutral_url)

    def _reset_browser_state(self, connection: BrowserConnection) -> None:
        connection.close_extra_windows()
        self._policy.apply(connection)
        delay = self._effective_delay()
        if delay > 0:
            LOG.debug("session_reset_delaying_navigation", seconds=delay)
            time.sleep(delay)
            # Writes landing during the delay belong to the old page too
            self._policy.apply(connection)
        connection.navigate(self._neutral_url)

    def _effective_delay(self) -> float:
        if _navigate_delay_override is not None:
            return _navigate_delay_override
        return self._pre_navigate_delay

    def _wait_for_neutral_page(self, connection: BrowserConnection, deadline: float) -> None:
        """Wait until the browser rests on an empty neutral page.

        Asynchronous page code can navigate away from the neutral page right
        after we arrive, so the navigation is repeated until it sticks.
        """
        while not self._on_neutral_page(connection):
            if time.monotonic() >= deadline:
                raise ResetTimeoutError("Timed out waiting for session reset")
            time.sleep(self._poll_interval)
            if not _same_url(connection.current_url, self._neutral_url):
                connection.navigate(self._neutral_url)

    def _on_neutral_page(self, connection: BrowserConnection) -> bool:
        if not _same_url(connection.current_url, self._neutral_url):
            return False
        if self._neutral_url == BLANK_PAGE:
            return connection.page_is_empty()
        return True

    def quit(self) -> TerminationOutcome:
        """Quit the browser. Never raises.

        Returns:
            Outcome of the termination attempt.
        """
        self._pending.clear()
        outcome = self._handle.quit()
        self._state = SessionState.TERMINATED
        return outcome

    def __enter__(self) -> Self:
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Context manager exit - quit the browser."""
        self.quit()

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<SessionController {self._state.value} handle={self._handle.state.value}>"
