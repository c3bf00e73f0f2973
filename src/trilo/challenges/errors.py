"""Ledger error taxonomy."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger errors."""


class NotFound(LedgerError):
    """An unknown template or challenge was referenced."""

    def __init__(self, entity: str, key: object) -> None:
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class ValidationFailure(LedgerError):
    """Malformed input: a bad snapshot, a non-positive target, an unknown type."""


class TransactionFailure(LedgerError):
    """The store failed during a unit of work. The original error is chained."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} failed: {detail}")


class InvariantViolation(LedgerError):
    """A ledger invariant would be broken (double completion, bad percentage)."""
