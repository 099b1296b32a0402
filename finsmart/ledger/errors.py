"""
Ledger Errors

Every failed ledger operation raises one of these BEFORE anything is
mutated. Deletes of unknown ids are silent no-ops and raise nothing.
"""

from typing import Optional


class LedgerError(Exception):
    """Base exception for ledger operations."""

    code = "ledger_error"

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class ValidationError(LedgerError):
    """Malformed or out-of-range input (non-positive amount, empty text, ...)."""

    code = "validation_error"


class ConflictError(LedgerError):
    """The operation would break a uniqueness rule (budget category, record id)."""

    code = "conflict"


class NotFoundError(LedgerError):
    """An update referenced a record that doesn't exist."""

    code = "not_found"
