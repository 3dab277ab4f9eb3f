"""wdharness - keep a WebDriver browser under control in integration tests.

This package provides:
- Lazily started, exclusively owned browser handles with safe quit
- Classification of errors raised while quitting a browser that is already gone
- Session resets clearing cookies and web storage under a per-session policy
- Named driver configurations for shared cross-browser suites

Example:
    >>> from wdharness import create_session
    >>> session = create_session("selenium_firefox")
    >>> session.visit("http://localhost:3000/with_js")
    >>> session.reset()
    >>> outcome = session.quit()
"""

from wdharness.backends import (
    BrowserConnection,
    CookieScope,
    describe_browser,
    get_connection_factory,
    list_backends,
    register_backend,
)
from wdharness.classifier import ErrorClassifier, ErrorKind, Verdict, classify
from wdharness.config import HarnessSettings, get_settings
from wdharness.exceptions import (
    BackendOperationError,
    BenignTerminationError,
    FatalTerminationError,
    HarnessError,
    ResetTimeoutError,
    TerminationError,
    UnhandledAlertError,
    UnknownDriverError,
    UnsupportedOperationError,
)
from wdharness.handle import HandleState, ProcessHandle, TerminationOutcome, TerminationStatus
from wdharness.policy import StateResetPolicy
from wdharness.registry import create_session, default_driver, list_drivers, register_driver
from wdharness.session import (
    PendingAsyncEffect,
    SessionController,
    SessionState,
    delay_before_navigate,
)

__version__ = "0.3.0"

__all__ = [
    # Version
    "__version__",
    # Sessions
    "SessionController",
    "SessionState",
    "PendingAsyncEffect",
    "delay_before_navigate",
    "create_session",
    "default_driver",
    "list_drivers",
    "register_driver",
    # Handles
    "ProcessHandle",
    "HandleState",
    "TerminationOutcome",
    "TerminationStatus",
    # Reset policy
    "StateResetPolicy",
    # Classification
    "ErrorClassifier",
    "ErrorKind",
    "Verdict",
    "classify",
    # Backends
    "BrowserConnection",
    "CookieScope",
    "describe_browser",
    "get_connection_factory",
    "list_backends",
    "register_backend",
    # Configuration
    "HarnessSettings",
    "get_settings",
    # Exceptions
    "HarnessError",
    "BackendOperationError",
    "UnhandledAlertError",
    "UnsupportedOperationError",
    "ResetTimeoutError",
    "UnknownDriverError",
    "TerminationError",
    "BenignTerminationError",
    "FatalTerminationError",
]
