"""Ledger operations package."""

from finsmart.ledger.errors import (
    ConflictError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from finsmart.ledger.operations import Ledger

__all__ = [
    "ConflictError",
    "Ledger",
    "LedgerError",
    "NotFoundError",
    "ValidationError",
]
