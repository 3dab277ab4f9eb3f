"""Tests for named driver configurations."""

from unittest.mock import MagicMock

import pytest

from wdharness.config import HarnessSettings
from wdharness.exceptions import UnknownDriverError
from wdharness.handle import HandleState
from wdharness.policy import StateResetPolicy
from wdharness.registry import create_session, default_driver, list_drivers, register_driver
from wdharness.session import SessionController


class TestBuiltinDrivers:
    """Tests for the drivers registered out of the box."""

    def test_list_drivers(self) -> None:
        """Built-in drivers are listed in sorted order."""
        assert list_drivers() == [
            "selenium_chrome",
            "selenium_firefox",
            "selenium_firefox_not_clear_storage",
        ]

    def test_default_driver_does_not_start_browser(self) -> None:
        """Creating a session leaves the browser unstarted."""
        session = create_session()

        assert isinstance(session, SessionController)
        assert session.handle.state is HandleState.UNSTARTED
        assert session.policy == StateResetPolicy.clear_everything()

    def test_not_clear_storage_driver_keeps_storage(self) -> None:
        """The not-clear-storage driver keeps web storage but clears cookies."""
        session = create_session("selenium_firefox_not_clear_storage")

        assert session.policy == StateResetPolicy(
            clear_local_storage=False, clear_session_storage=False, clear_cookies=True
        )

    def test_settings_reach_connection_factory(self) -> None:
        """Browser options come from the settings passed in."""
        settings = HarnessSettings(headless=True, read_timeout=5, remote_url="http://grid:4444")
        session = create_session("selenium_chrome", settings=settings)

        keywords = session.handle._factory.keywords
        assert keywords["browser"] == "chrome"
        assert keywords["headless"] is True
        assert keywords["read_timeout"] == 5
        assert keywords["remote_url"] == "http://grid:4444"

    def test_global_settings_used_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Environment configuration applies when no settings are passed."""
        monkeypatch.setenv("WDHARNESS_READ_TIMEOUT", "12")
        session = create_session()
        assert session.handle._factory.keywords["read_timeout"] == 12

    def test_default_driver_follows_browser_setting(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Without a name, WDHARNESS_BROWSER picks the driver."""
        monkeypatch.setenv("WDHARNESS_BROWSER", "chrome")
        session = create_session()
        assert session.handle._factory.keywords["browser"] == "chrome"

    def test_default_driver_name(self) -> None:
        """default_driver maps the browser setting to a registered name."""
        assert default_driver(HarnessSettings()) == "selenium_firefox"
        assert default_driver(HarnessSettings(browser="chrome")) == "selenium_chrome"

    def test_unknown_driver(self) -> None:
        """Unknown names raise UnknownDriverError listing available drivers."""
        with pytest.raises(UnknownDriverError, match="selenium_firefox"):
            create_session("selenium_safari")


class TestRegisterDriver:
    """Tests for register_driver."""

    def test_register_and_create(self) -> None:
        """Registered drivers are created with the settings."""
        from wdharness.registry import _DRIVER_REGISTRY

        expected = MagicMock()
        factory = MagicMock(return_value=expected)
        register_driver("test_custom_driver", factory)
        try:
            settings = HarnessSettings()
            assert create_session("test_custom_driver", settings=settings) is expected
            factory.assert_called_once_with(settings)
            assert "test_custom_driver" in list_drivers()
        finally:
            del _DRIVER_REGISTRY["test_custom_driver"]

    def test_register_duplicate(self) -> None:
        """Registering an existing name raises ValueError."""
        with pytest.raises(ValueError, match="already registered"):
            register_driver("selenium_firefox", MagicMock())
