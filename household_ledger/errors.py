"""
Domain exceptions.

Storage-level failures (conflicts, missing documents, backend outages) are
defined next to the storage interface; everything here is raised by the
services themselves and is meant to reach the caller unmodified.
"""


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class LedgerValidationError(LedgerError, ValueError):
    """Input violates a ledger rule (split mismatch, missing transfer target...)."""
    pass


class EntityNotFoundError(LedgerError):
    """An operation needed a record that does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class NoActiveSessionError(LedgerError):
    """No household is active and the fallback household is disabled."""
    pass
