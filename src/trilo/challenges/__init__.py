"""Challenge progress and rewards ledger."""

from trilo.challenges.errors import (
    InvariantViolation,
    LedgerError,
    NotFound,
    TransactionFailure,
    ValidationFailure,
)
from trilo.challenges.ledger import ChallengeLedger

__all__ = [
    "ChallengeLedger",
    "InvariantViolation",
    "LedgerError",
    "NotFound",
    "TransactionFailure",
    "ValidationFailure",
]
