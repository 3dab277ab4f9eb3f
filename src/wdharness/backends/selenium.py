"""Selenium-based browser connection.

Starts a local geckodriver/chromedriver service (or targets an already
running WebDriver server) and drives it through ``webdriver.Remote`` so the
HTTP read timeout can be set through a ClientConfig.

Example:
    >>> from wdharness.backends.selenium import SeleniumConnection
    >>> connection = SeleniumConnection.create(browser="firefox", headless=True)
    >>> connection.navigate("https://example.com")
    >>> print(connection.current_url)
    >>> connection.terminate()
"""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Self

import selenium.common.exceptions
from selenium import webdriver
from selenium.webdriver.common.by import By
from selenium.webdriver.common.driver_finder import DriverFinder
from selenium.webdriver.remote.client_config import ClientConfig

from wdharness.backends.base import Cookie, CookieScope
from wdharness.exceptions import (
    BackendOperationError,
    UnhandledAlertError,
    UnsupportedOperationError,
)
from wdharness.logging import get_logger

if TYPE_CHECKING:
    from selenium.webdriver.common.service import Service
    from selenium.webdriver.remote.webdriver import WebDriver

LOG = get_logger(__name__)

SUPPORTED_BROWSERS: tuple[str, ...] = ("firefox", "chrome")

# Download handling the shared download specs rely on
FIREFOX_DOWNLOAD_PREFS: dict[str, Any] = {
    "browser.download.folderList": 2,
    "browser.helperApps.neverAsk.saveToDisk": "text/csv",
}


@contextmanager
def _backend_errors(action: str) -> Iterator[None]:
    """Translate WebDriver exceptions raised by ``action`` into harness errors."""
    try:
        yield
    except selenium.common.exceptions.UnexpectedAlertPresentException as exc:
        LOG.debug("selenium_unhandled_alert", action=action, error=str(exc))
        raise UnhandledAlertError(f"{action} blocked by an alert: {exc}") from exc
    except selenium.common.exceptions.WebDriverException as exc:
        LOG.error("selenium_operation_failed", action=action, error=str(exc))
        raise BackendOperationError(f"{action} failed: {exc}") from exc


def build_options(
    browser: str,
    headless: bool = False,
    download_dir: Path | None = None,
) -> Any:
    """Build browser options for ``browser``.

    Args:
        browser: "firefox" or "chrome".
        headless: Run without a visible window.
        download_dir: Where downloads are saved, if set.

    Returns:
        FirefoxOptions or ChromeOptions instance.

    Raises:
        ValueError: If browser is not supported.
    """
    if browser == "firefox":
        firefox_options = webdriver.FirefoxOptions()
        if headless:
            firefox_options.add_argument("-headless")
        if download_dir is not None:
            firefox_options.set_preference("browser.download.dir", str(download_dir))
            for name, value in FIREFOX_DOWNLOAD_PREFS.items():
                firefox_options.set_preference(name, value)
        return firefox_options

    if browser == "chrome":
        chrome_options = webdriver.ChromeOptions()
        if headless:
            chrome_options.add_argument("--headless=new")
        if download_dir is not None:
            chrome_options.add_experimental_option(
                "prefs", {"download.default_directory": str(download_dir)}
            )
        return chrome_options

    available = ", ".join(SUPPORTED_BROWSERS)
    raise ValueError(f"Unsupported browser '{browser}'. Supported: {available}")


def _build_service(browser: str, options: Any) -> "Service":
    """Create a driver service with its executable resolved by Selenium Manager."""
    if browser == "firefox":
        from selenium.webdriver.firefox.service import Service as FirefoxService

        service: Service = FirefoxService()
    else:
        from selenium.webdriver.chrome.service import Service as ChromeService

        service = ChromeService()
    service.path = DriverFinder(service, options).get_driver_path()
    return service


class SeleniumConnection:
    """BrowserConnection backed by a Selenium WebDriver session.

    Attributes:
        BACKEND_TYPE: Identifier for this backend type ("selenium").
    """

    BACKEND_TYPE: str = "selenium"

    def __init__(self, driver: "WebDriver", service: "Service | None" = None) -> None:
        """Wrap an existing WebDriver session.

        Args:
            driver: The WebDriver session to drive.
            service: Local driver service owned by this connection, stopped
                on terminate(). None when the server is managed elsewhere.
        """
        self._driver = driver
        self._service = service

    @classmethod
    def create(
        cls,
        browser: str = "firefox",
        headless: bool = False,
        remote_url: str | None = None,
        read_timeout: float = 31,
        download_dir: Path | None = None,
    ) -> Self:
        """Start a browser and return a connection to it.

        Args:
            browser: "firefox" or "chrome".
            headless: Run without a visible window.
            remote_url: WebDriver server to use. If None, a local driver
                service is started and owned by the connection.
            read_timeout: HTTP timeout in seconds for each WebDriver command.
            download_dir: Where downloads are saved, if set.

        Returns:
            A connection to the started browser.

        Raises:
            BackendOperationError: If the driver or browser fails to start.
        """
        options = build_options(browser, headless=headless, download_dir=download_dir)

        LOG.info(
            "selenium_connection_starting",
            browser=browser,
            headless=headless,
            remote_url=remote_url,
        )

        service: Service | None = None
        try:
            if remote_url is None:
                service = _build_service(browser, options)
                service.start()
                remote_url = service.service_url
            client_config = ClientConfig(remote_server_addr=remote_url, timeout=read_timeout)
            driver = webdriver.Remote(
                command_executor=remote_url,
                options=options,
                client_config=client_config,
            )
        except (selenium.common.exceptions.WebDriverException, OSError) as exc:
            LOG.error("selenium_connection_start_failed", browser=browser, error=str(exc))
            if service is not None:
                service.stop()
            raise BackendOperationError(f"Failed to start {browser} browser: {exc}") from exc

        LOG.info("selenium_connection_started", browser=browser)
        return cls(driver, service=service)

    @property
    def driver(self) -> "WebDriver":
        """Get the underlying WebDriver.

        Note:
            Using this directly couples code to Selenium.
            Prefer connection methods when possible.
        """
        return self._driver

    def terminate(self) -> None:
        """Quit the WebDriver session and stop the owned driver service.

        Errors from ``quit`` are raised unchanged; the service is stopped
        regardless.
        """
        try:
            self._driver.quit()
        finally:
            if self._service is not None:
                self._service.stop()
                self._service = None

    def navigate(self, url: str) -> None:
        """Navigate to a URL.

        Args:
            url: URL to navigate to.

        Raises:
            UnhandledAlertError: If an alert blocks navigation.
            BackendOperationError: If navigation fails.
        """
        LOG.debug("selenium_connection_navigating", url=url)
        with _backend_errors("Navigation"):
            self._driver.get(url)

    @property
    def current_url(self) -> str:
        """Get the current page URL."""
        with _backend_errors("Reading current URL"):
            return self._driver.current_url or ""

    def _on_web_page(self) -> bool:
        """Whether the current page has an http(s) origin.

        Storage and cookies only exist for web origins; on about:blank the
        browser rejects access to them.
        """
        return self.current_url.startswith(("http://", "https://"))

    def clear_local_storage(self) -> None:
        """Clear window.localStorage for the current origin."""
        if not self._on_web_page():
            LOG.debug("selenium_clear_storage_skipped", store="local")
            return
        with _backend_errors("Clearing local storage"):
            self._driver.execute_script("window.localStorage.clear();")

    def clear_session_storage(self) -> None:
        """Clear window.sessionStorage for the current origin."""
        if not self._on_web_page():
            LOG.debug("selenium_clear_storage_skipped", store="session")
            return
        with _backend_errors("Clearing session storage"):
            self._driver.execute_script("window.sessionStorage.clear();")

    def clear_cookies(self, scope: CookieScope = CookieScope.CURRENT_DOMAIN) -> None:
        """Delete cookies visible to the current page.

        WebDriver can only delete cookies of the domain currently loaded, so
        cookies set while visiting other domains survive.

        Raises:
            UnsupportedOperationError: If scope is ALL_DOMAINS.
        """
        if scope is CookieScope.ALL_DOMAINS:
            raise UnsupportedOperationError(
                "WebDriver cannot delete cookies outside the current domain"
            )
        if not self._on_web_page():
            LOG.debug("selenium_clear_cookies_skipped")
            return
        with _backend_errors("Deleting cookies"):
            self._driver.delete_all_cookies()

    def get_cookies(self) -> list[Cookie]:
        """Get cookies visible to the current page."""
        with _backend_errors("Reading cookies"):
            return self._driver.get_cookies() or []

    def page_is_empty(self) -> bool:
        """Whether the document body has no child elements."""
        with _backend_errors("Inspecting page"):
            return not self._driver.find_elements(By.XPATH, "/html/body/*")

    def accept_alert(self) -> None:
        """Accept the pending alert. A missing alert is not an error."""
        try:
            self._driver.switch_to.alert.accept()
        except selenium.common.exceptions.NoAlertPresentException:
            LOG.debug("selenium_no_alert_to_accept")
        except selenium.common.exceptions.WebDriverException as exc:
            raise BackendOperationError(f"Accepting alert failed: {exc}") from exc

    def close_extra_windows(self) -> None:
        """Close all windows except the first and switch to the first."""
        with _backend_errors("Closing windows"):
            handles = self._driver.window_handles
            if not handles:
                return
            for handle in handles[1:]:
                self._driver.switch_to.window(handle)
                self._driver.close()
            self._driver.switch_to.window(handles[0])

    def execute_script(self, script: str, *args: Any) -> Any:
        """Run JavaScript in the current page."""
        with _backend_errors("Executing script"):
            return self._driver.execute_script(script, *args)

    @property
    def capabilities(self) -> dict[str, Any]:
        """Capabilities negotiated for the session."""
        return dict(self._driver.capabilities or {})

    def __repr__(self) -> str:
        """Return string representation."""
        browser = self.capabilities.get("browserName", "unknown")
        mode = "local" if self._service is not None else "remote"
        return f"<SeleniumConnection {browser} {mode}>"
