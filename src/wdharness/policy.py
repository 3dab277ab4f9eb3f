"""Which session-local stores a reset clears."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Self

from wdharness.backends.base import BrowserConnection, CookieScope
from wdharness.logging import get_logger

if TYPE_CHECKING:
    from wdharness.config import HarnessSettings

LOG = get_logger(__name__)


@dataclass(frozen=True)
class StateResetPolicy:
    """Immutable selection of stores to clear on reset.

    Cookies are cleared only for the domain of the page loaded when the
    policy is applied. Cookies set by earlier visits to other domains
    survive a reset because WebDriver has no primitive to delete them.

    Attributes:
        clear_local_storage: Clear window.localStorage.
        clear_session_storage: Clear window.sessionStorage.
        clear_cookies: Delete cookies of the current domain.
    """

    clear_local_storage: bool = True
    clear_session_storage: bool = True
    clear_cookies: bool = True

    @classmethod
    def clear_everything(cls) -> Self:
        """Default policy: every store is cleared."""
        return cls()

    @classmethod
    def clear_nothing(cls) -> Self:
        """Opt-out policy: storage and cookies persist across resets."""
        return cls(clear_local_storage=False, clear_session_storage=False, clear_cookies=False)

    @classmethod
    def from_settings(cls, settings: "HarnessSettings") -> Self:
        """Build the policy from configured flags."""
        return cls(
            clear_local_storage=settings.clear_local_storage,
            clear_session_storage=settings.clear_session_storage,
            clear_cookies=settings.clear_cookies,
        )

    @property
    def clears_anything(self) -> bool:
        """Whether at least one store is cleared."""
        return self.clear_local_storage or self.clear_session_storage or self.clear_cookies

    def apply(self, connection: BrowserConnection) -> None:
        """Clear the enabled stores on ``connection``.

        Backend failures propagate unchanged.
        """
        if self.clear_cookies:
            connection.clear_cookies(CookieScope.CURRENT_DOMAIN)
        if self.clear_session_storage:
            connection.clear_session_storage()
        if self.clear_local_storage:
            connection.clear_local_storage()
        LOG.debug(
            "reset_policy_applied",
            cookies=self.clear_cookies,
            session_storage=self.clear_session_storage,
            local_storage=self.clear_local_storage,
        )
