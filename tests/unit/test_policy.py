"""Tests for StateResetPolicy."""

import dataclasses
from unittest.mock import MagicMock, call

import pytest

from wdharness.backends.base import CookieScope
from wdharness.config import HarnessSettings
from wdharness.exceptions import BackendOperationError
from wdharness.policy import StateResetPolicy


class TestConfigurations:
    """Tests for the standard policies."""

    def test_default_clears_everything(self) -> None:
        """All flags default to True."""
        policy = StateResetPolicy()
        assert policy == StateResetPolicy.clear_everything()
        assert policy.clear_local_storage
        assert policy.clear_session_storage
        assert policy.clear_cookies

    def test_clear_nothing(self) -> None:
        """Opt-out policy disables every flag."""
        policy = StateResetPolicy.clear_nothing()
        assert not policy.clears_anything

    def test_policy_is_immutable(self) -> None:
        """Policies are frozen for the session's lifetime."""
        policy = StateResetPolicy()
        with pytest.raises(dataclasses.FrozenInstanceError):
            policy.clear_cookies = False  # type: ignore[misc]

    def test_from_settings(self) -> None:
        """Flags come from settings."""
        settings = HarnessSettings(clear_local_storage=False, clear_cookies=False)
        policy = StateResetPolicy.from_settings(settings)
        assert policy == StateResetPolicy(
            clear_local_storage=False, clear_session_storage=True, clear_cookies=False
        )


class TestApply:
    """Tests for apply()."""

    def test_clears_all_enabled_stores(self) -> None:
        """Every enabled store is cleared, cookies scoped to the current domain."""
        connection = MagicMock()
        StateResetPolicy().apply(connection)

        assert connection.mock_calls == [
            call.clear_cookies(CookieScope.CURRENT_DOMAIN),
            call.clear_session_storage(),
            call.clear_local_storage(),
        ]

    def test_clear_nothing_touches_nothing(self) -> None:
        """Disabled flags leave their store alone."""
        connection = MagicMock()
        StateResetPolicy.clear_nothing().apply(connection)
        assert connection.mock_calls == []

    def test_storage_only(self) -> None:
        """Cookies survive when only storage is cleared."""
        connection = MagicMock()
        StateResetPolicy(clear_cookies=False).apply(connection)

        connection.clear_cookies.assert_not_called()
        connection.clear_local_storage.assert_called_once()
        connection.clear_session_storage.assert_called_once()

    def test_backend_failure_propagates(self) -> None:
        """Clear failures reach the caller unchanged."""
        connection = MagicMock()
        connection.clear_cookies.side_effect = BackendOperationError(
            "Deleting cookies failed: no such window"
        )

        with pytest.raises(BackendOperationError, match="no such window"):
            StateResetPolicy().apply(connection)
