"""Classification of errors raised while terminating a browser.

Terminating an external browser process is racy: the process may already
have exited by the time ``quit`` is sent. Drivers report that situation as
a generic "unknown error" whose message names the lost connection. This
module decides which of those errors are the expected race (suppress) and
which are real faults worth reporting.

Only the classification lives here. The benign message patterns are vendor
knowledge that changes with driver releases, so they are plain data that can
be extended without touching the lifecycle code in ``wdharness.handle``.

Example:
    >>> from wdharness.classifier import ErrorKind, Verdict, classify
    >>> classify(ErrorKind.UNKNOWN, "Error communicating with the remote browser")
    <Verdict.SUPPRESS: 'suppress'>
    >>> classify(ErrorKind.UNKNOWN, "random message")
    <Verdict.REPORT: 'report'>
"""

import re
from collections.abc import Iterable
from enum import StrEnum

import selenium.common.exceptions
import urllib3.exceptions


class ErrorKind(StrEnum):
    """Coarse kind of a termination error.

    - UNKNOWN: generic driver "unknown error" or lost connection to the driver
    - PROTOCOL: any specific WebDriver error (invalid session, timeout, ...)
    - PERMISSION: the OS refused an operation on the browser process
    - OTHER: anything else
    """

    UNKNOWN = "unknown"
    PROTOCOL = "protocol"
    PERMISSION = "permission"
    OTHER = "other"


class Verdict(StrEnum):
    """Whether a termination error should be reported to the operator."""

    SUPPRESS = "suppress"
    REPORT = "report"


# Messages meaning the browser is almost certainly gone already.
# Matched case-insensitively anywhere in the error message.
SILENCED_UNKNOWN_ERROR_PATTERNS: tuple[str, ...] = (
    r"error communicating with the remote browser",
    r"connection refused",
    r"failed to establish a new connection",
)


class ErrorClassifier:
    """Decides report vs suppress for termination errors.

    Instances are immutable and stateless apart from their compiled patterns,
    so the same (kind, message) pair always yields the same verdict.
    """

    def __init__(self, patterns: Iterable[str] = SILENCED_UNKNOWN_ERROR_PATTERNS) -> None:
        self._patterns: tuple[re.Pattern[str], ...] = tuple(
            re.compile(pattern, re.IGNORECASE) for pattern in patterns
        )

    @property
    def patterns(self) -> tuple[str, ...]:
        """Source text of the benign message patterns."""
        return tuple(pattern.pattern for pattern in self._patterns)

    def with_patterns(self, *extra: str) -> "ErrorClassifier":
        """Return a new classifier that also silences ``extra`` patterns."""
        return ErrorClassifier((*self.patterns, *extra))

    def is_silenced_message(self, message: str) -> bool:
        """Check whether ``message`` matches a known benign pattern."""
        return any(pattern.search(message) for pattern in self._patterns)

    def classify(self, kind: ErrorKind, message: str) -> Verdict:
        """Classify a termination error.

        Args:
            kind: Kind of the error.
            message: The error's message text.

        Returns:
            Verdict.SUPPRESS only for UNKNOWN errors with a benign message,
            Verdict.REPORT otherwise.
        """
        if kind is ErrorKind.UNKNOWN and self.is_silenced_message(message):
            return Verdict.SUPPRESS
        return Verdict.REPORT

    def classify_exception(self, exc: BaseException) -> Verdict:
        """Classify a raised exception by its kind and message."""
        return self.classify(kind_of(exc), error_message(exc))


def kind_of(exc: BaseException) -> ErrorKind:
    """Map an exception raised during termination to its ErrorKind."""
    # Remote "unknown error" responses surface as the base WebDriverException
    if type(exc) is selenium.common.exceptions.WebDriverException:
        return ErrorKind.UNKNOWN
    if isinstance(exc, selenium.common.exceptions.WebDriverException):
        return ErrorKind.PROTOCOL
    if isinstance(exc, PermissionError):
        return ErrorKind.PERMISSION
    if isinstance(exc, ConnectionError | urllib3.exceptions.HTTPError):
        return ErrorKind.UNKNOWN
    return ErrorKind.OTHER


def error_message(exc: BaseException) -> str:
    """Get the message text of an exception.

    WebDriverException's ``str()`` prefixes "Message: " and may append a
    stacktrace, so its ``msg`` attribute is preferred when present.
    """
    if isinstance(exc, selenium.common.exceptions.WebDriverException) and exc.msg:
        return exc.msg
    return str(exc)


_DEFAULT_CLASSIFIER = ErrorClassifier()


def classify(kind: ErrorKind, message: str) -> Verdict:
    """Classify with the default benign patterns."""
    return _DEFAULT_CLASSIFIER.classify(kind, message)


def classify_exception(exc: BaseException) -> Verdict:
    """Classify an exception with the default benign patterns."""
    return _DEFAULT_CLASSIFIER.classify_exception(exc)
