"""Custom exceptions for wdharness package."""


class HarnessError(Exception):
    """Base exception class for all wdharness errors."""


class BackendOperationError(HarnessError):
    """Raised when a browser backend operation (start, navigate, clear) fails.

    The original backend message is kept in the exception text so callers
    see exactly what the driver reported.
    """


class UnhandledAlertError(BackendOperationError):
    """Raised when a modal alert blocks a backend operation."""


class UnsupportedOperationError(BackendOperationError):
    """Raised when the backend has no primitive for the requested operation."""


class ResetTimeoutError(BackendOperationError):
    """Raised when a session reset does not settle within its timeout."""


class UnknownDriverError(HarnessError, ValueError):
    """Raised when a driver name is not present in the driver registry."""


class TerminationError(HarnessError):
    """Describes an error raised by the backend while terminating a browser.

    Termination errors are never raised out of ``ProcessHandle.quit()``;
    they are carried in the returned ``TerminationOutcome`` instead.

    Attributes:
        message: The backend's original error message.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BenignTerminationError(TerminationError):
    """The browser process was already gone when termination was requested."""


class FatalTerminationError(TerminationError):
    """Termination failed for a reason other than the browser already being gone."""
