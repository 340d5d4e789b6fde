"""Change notification package."""

from household_ledger.notifications.bus import ChangeBus, ChangeHandler, ChangeTopic

__all__ = ["ChangeBus", "ChangeHandler", "ChangeTopic"]
