"""Lazily created, exclusively owned handle to a browser connection.

A ProcessHandle starts its browser on first use and guarantees that after
``quit()`` the connection is gone, whatever happened while terminating it.

Example:
    >>> from wdharness.backends import get_connection_factory
    >>> from wdharness.handle import ProcessHandle
    >>> handle = ProcessHandle(get_connection_factory("selenium", headless=True))
    >>> handle.state
    <HandleState.UNSTARTED: 'unstarted'>
    >>> handle.get().navigate("https://example.com")
    >>> outcome = handle.quit()
    >>> outcome.status
    <TerminationStatus.CLEAN: 'clean'>
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Self

from wdharness.backends.base import BrowserConnection, ConnectionFactory
from wdharness.classifier import ErrorClassifier, ErrorKind, Verdict, error_message, kind_of
from wdharness.exceptions import BenignTerminationError, FatalTerminationError, TerminationError
from wdharness.logging import get_logger

LOG = get_logger(__name__)


class HandleState(StrEnum):
    """Lifecycle state of a ProcessHandle."""

    UNSTARTED = "unstarted"
    LIVE = "live"
    TERMINATED = "terminated"


class TerminationStatus(StrEnum):
    """How a quit attempt went."""

    CLEAN = "clean"
    BENIGN_ERROR = "benign_error"
    FATAL_ERROR = "fatal_error"


@dataclass(frozen=True)
class TerminationOutcome:
    """Result of a single quit attempt.

    Attributes:
        status: Clean, benign error (browser already gone) or fatal error.
        message: The backend's error message, empty for clean quits.
    """

    status: TerminationStatus
    message: str = ""

    @classmethod
    def clean(cls) -> Self:
        """Outcome of a quit that raised nothing (or had nothing to quit)."""
        return cls(TerminationStatus.CLEAN)

    @property
    def is_clean(self) -> bool:
        """Whether termination raised no error."""
        return self.status is TerminationStatus.CLEAN

    @property
    def error(self) -> TerminationError | None:
        """The classified error as an exception object, or None if clean."""
        if self.status is TerminationStatus.BENIGN_ERROR:
            return BenignTerminationError(self.message)
        if self.status is TerminationStatus.FATAL_ERROR:
            return FatalTerminationError(self.message)
        return None


class ProcessHandle:
    """Exclusive owner of one browser connection at a time.

    The connection is created on the first ``get()``. ``quit()`` never
    raises: termination errors are classified, reported errors are logged
    at warning level, and the handle always ends up TERMINATED.

    Note:
        Handles are NOT thread-safe. Calls are expected from a single thread.
    """

    def __init__(
        self,
        factory: ConnectionFactory,
        classifier: ErrorClassifier | None = None,
    ) -> None:
        """Initialize the handle without starting anything.

        Args:
            factory: Creates and starts a new connection when called.
            classifier: Decides which termination errors are reported.
                Defaults to the standard benign-pattern classifier.
        """
        self._factory = factory
        self._classifier = classifier or ErrorClassifier()
        self._connection: BrowserConnection | None = None
        self._state = HandleState.UNSTARTED

    @property
    def state(self) -> HandleState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_live(self) -> bool:
        """Whether a connection is currently held."""
        return self._state is HandleState.LIVE

    def get(self) -> BrowserConnection:
        """Get the live connection, creating it if needed.

        After ``quit()``, this creates a brand new connection through the
        factory; the terminated one is never reused.

        Returns:
            The live connection.

        Raises:
            BackendOperationError: If the connection cannot be created.
        """
        if self._state is HandleState.LIVE and self._connection is not None:
            return self._connection

        LOG.debug("process_handle_starting", previous_state=self._state.value)
        connection = self._factory()
        self._connection = connection
        self._state = HandleState.LIVE
        LOG.debug("process_handle_live")
        return connection

    def quit(self) -> TerminationOutcome:
        """Terminate the connection and invalidate the handle.

        The handle is terminated afterwards whatever state it was in. An
        unstarted handle is not started just to be quit, and quitting a
        terminated handle does nothing.

        Returns:
            Outcome of the termination attempt.
        """
        if self._state is HandleState.TERMINATED:
            return TerminationOutcome.clean()
        if self._state is HandleState.UNSTARTED:
            self._state = HandleState.TERMINATED
            LOG.debug("process_handle_terminated_unstarted")
            return TerminationOutcome.clean()

        connection = self._connection
        outcome = TerminationOutcome.clean()
        try:
            assert connection is not None  # Type narrowing for mypy
            connection.terminate()
        except Exception as exc:
            outcome = self._classify(exc)
        finally:
            self._connection = None
            self._state = HandleState.TERMINATED
            LOG.info("process_handle_terminated", status=outcome.status.value)
        return outcome

    def _classify(self, exc: Exception) -> TerminationOutcome:
        message = error_message(exc)
        if self._classifier.classify_exception(exc) is Verdict.SUPPRESS:
            LOG.debug("webdriver_quit_error_suppressed", error=message)
            return TerminationOutcome(TerminationStatus.BENIGN_ERROR, message)
        context = {"error_type": type(exc).__name__}
        if kind_of(exc) is ErrorKind.UNKNOWN:
            context["hint"] = "The browser is probably already gone"
        LOG.warning("webdriver_quit_error_ignored", error=message, **context)
        return TerminationOutcome(TerminationStatus.FATAL_ERROR, message)

    def __enter__(self) -> Self:
        """Context manager entry. The connection is still created lazily."""
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
        return f"<ProcessHandle {self._state.value}>"
