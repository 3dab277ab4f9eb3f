"""Tests for wdharness.exceptions module."""

from __future__ import annotations

import pytest

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


class TestBackendOperationErrors:
    """Tests for the backend error hierarchy."""

    @pytest.mark.parametrize(
        "exc_class",
        [UnhandledAlertError, UnsupportedOperationError, ResetTimeoutError],
    )
    def test_subclasses_backend_operation_error(self, exc_class: type[Exception]) -> None:
        """Backend failures can be caught as BackendOperationError."""
        with pytest.raises(BackendOperationError):
            raise exc_class("boom")

    def test_catchable_as_harness_error(self) -> None:
        """Every backend error is a HarnessError."""
        with pytest.raises(HarnessError, match="timed out"):
            raise ResetTimeoutError("timed out")


class TestUnknownDriverError:
    """Tests for UnknownDriverError."""

    def test_is_value_error(self) -> None:
        """Callers treating bad names as ValueError keep working."""
        assert issubclass(UnknownDriverError, ValueError)
        assert issubclass(UnknownDriverError, HarnessError)


class TestTerminationError:
    """Tests for termination errors."""

    def test_message_stored(self) -> None:
        """The backend message is kept verbatim."""
        err = FatalTerminationError("random message")
        assert err.message == "random message"
        assert str(err) == "random message"

    def test_benign_and_fatal_share_base(self) -> None:
        """Both outcomes can be handled as TerminationError."""
        assert issubclass(BenignTerminationError, TerminationError)
        assert issubclass(FatalTerminationError, TerminationError)
        assert not issubclass(BenignTerminationError, FatalTerminationError)
