"""Named driver configurations.

Test suites refer to drivers by name ("selenium_firefox") and get a fresh
SessionController for each. The browser itself is only started when the
session first needs it.

Example:
    >>> from wdharness.registry import create_session, list_drivers
    >>> list_drivers()
    ['selenium_chrome', 'selenium_firefox', 'selenium_firefox_not_clear_storage']
    >>> session = create_session("selenium_firefox_not_clear_storage")
    >>> session.policy.clear_local_storage
    False
"""

from collections.abc import Callable
from dataclasses import replace

from wdharness.backends import get_connection_factory
from wdharness.config import HarnessSettings, get_settings
from wdharness.exceptions import UnknownDriverError
from wdharness.handle import ProcessHandle
from wdharness.logging import get_logger
from wdharness.policy import StateResetPolicy
from wdharness.session import SessionController

LOG = get_logger(__name__)

DriverFactory = Callable[[HarnessSettings], SessionController]


def default_driver(settings: HarnessSettings) -> str:
    """Name of the driver matching the configured browser."""
    return f"selenium_{settings.browser}"


def selenium_driver(browser: str, keep_storage: bool = False) -> DriverFactory:
    """Build a driver factory for a Selenium-controlled browser.

    Args:
        browser: "firefox" or "chrome".
        keep_storage: Keep local and session storage across resets
            (cookies are still governed by settings).

    Returns:
        Callable creating a SessionController from settings.
    """

    def build(settings: HarnessSettings) -> SessionController:
        factory = get_connection_factory(
            "selenium",
            browser=browser,
            headless=settings.headless,
            remote_url=settings.remote_url,
            read_timeout=settings.read_timeout,
            download_dir=settings.download_dir,
        )
        policy = StateResetPolicy.from_settings(settings)
        if keep_storage:
            policy = replace(policy, clear_local_storage=False, clear_session_storage=False)
        return SessionController.from_settings(ProcessHandle(factory), settings, policy=policy)

    return build


_DRIVER_REGISTRY: dict[str, DriverFactory] = {
    "selenium_firefox": selenium_driver("firefox"),
    "selenium_firefox_not_clear_storage": selenium_driver("firefox", keep_storage=True),
    "selenium_chrome": selenium_driver("chrome"),
}


def register_driver(name: str, factory: DriverFactory) -> None:
    """Register a named driver configuration.

    Args:
        name: Driver identifier.
        factory: Callable creating a SessionController from settings.

    Raises:
        ValueError: If name is already registered.
    """
    if name in _DRIVER_REGISTRY:
        raise ValueError(f"Driver '{name}' is already registered")
    _DRIVER_REGISTRY[name] = factory
    LOG.debug("driver_registered", name=name)


def list_drivers() -> list[str]:
    """List registered driver names, sorted."""
    return sorted(_DRIVER_REGISTRY.keys())


def create_session(
    name: str | None = None,
    settings: HarnessSettings | None = None,
) -> SessionController:
    """Create a session for a registered driver. The browser is not started.

    Args:
        name: Registered driver name. Defaults to the driver for the
            configured browser (``WDHARNESS_BROWSER``).
        settings: Settings to configure the session; the global settings
            when None.

    Raises:
        UnknownDriverError: If name is not registered.
    """
    settings = settings or get_settings()
    if name is None:
        name = default_driver(settings)
    if name not in _DRIVER_REGISTRY:
        available = ", ".join(list_drivers())
        raise UnknownDriverError(f"Unknown driver '{name}'. Available drivers: {available}")
    return _DRIVER_REGISTRY[name](settings)
