"""
Session Context

Holds the active household and the signed-in user. One instance is created
at login and handed to every service, so nothing reads module-level state.

DESIGN DECISION: Asking for the household without an active session is an
error. The sentinel household is only returned when the degraded/offline
startup mode is explicitly enabled (LEDGER_ALLOW_FALLBACK_HOUSEHOLD), and
even then a warning is logged every time it is used.
"""

from typing import Optional

from pydantic import BaseModel, Field

from household_ledger.audit import get_logger
from household_ledger.config import get_settings
from household_ledger.errors import NoActiveSessionError


class SessionUser(BaseModel):
    """Identity stamped onto records the user creates."""

    id: str = Field(..., min_length=1)
    name: str
    email: Optional[str] = None
    color: Optional[str] = None


class SessionContext:
    """Mutable holder for the active household id and current user."""

    def __init__(
        self,
        household_id: Optional[str] = None,
        user: Optional[SessionUser] = None,
        allow_fallback: Optional[bool] = None,
        fallback_household_id: Optional[str] = None,
    ):
        settings = get_settings().ledger
        self._household_id = household_id
        self._user = user
        self._allow_fallback = (
            settings.allow_fallback_household if allow_fallback is None else allow_fallback
        )
        self._fallback_household_id = fallback_household_id or settings.fallback_household_id
        self._logger = get_logger("session")

    def set_household_id(self, household_id: Optional[str]) -> None:
        self._household_id = household_id

    @property
    def household_id(self) -> str:
        """
        The active household.

        Raises:
            NoActiveSessionError: If no household is set and fallback is disabled
        """
        if self._household_id:
            return self._household_id
        if not self._allow_fallback:
            raise NoActiveSessionError("No active household; call set_household_id() after login")
        self._logger.warning(
            "household_fallback_used",
            fallback_household_id=self._fallback_household_id,
        )
        return self._fallback_household_id

    @property
    def has_household(self) -> bool:
        return bool(self._household_id)

    def set_current_user(self, user: Optional[SessionUser]) -> None:
        self._user = user

    @property
    def current_user(self) -> Optional[SessionUser]:
        return self._user

    def clear(self) -> None:
        """Forget household and user (logout)."""
        self._household_id = None
        self._user = None
