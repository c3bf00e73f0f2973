"""Progress calculators: one deterministic strategy per challenge type.

A calculator turns the resolved account deltas of one snapshot into a
progress change and folds that change into the challenge's running amount.
New challenge types only need a new calculator registered here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from decimal import Decimal

from trilo.challenges.balances import AccountDelta
from trilo.challenges.errors import ValidationFailure

ZERO = Decimal("0")

DEBT_ACCOUNT_TYPES = frozenset({"credit", "credit_card", "loan"})
SAVINGS_ACCOUNT_TYPES = frozenset({"savings"})
SAVINGS_SUBTYPES = frozenset({"savings", "money market", "money_market", "cd", "hsa"})


def is_debt_account(d: AccountDelta) -> bool:
    return d.account_type in DEBT_ACCOUNT_TYPES


def is_savings_account(d: AccountDelta) -> bool:
    if d.account_type in SAVINGS_ACCOUNT_TYPES:
        return True
    return d.account_type == "depository" and d.subtype in SAVINGS_SUBTYPES


class ProgressCalculator(ABC):
    """Strategy interface keyed by challenge type."""

    challenge_type: str

    @abstractmethod
    def progress_change(self, deltas: Sequence[AccountDelta]) -> Decimal:
        """Progress contributed by one snapshot."""

    def next_amount(self, current: Decimal, change: Decimal) -> Decimal:
        """Fold the change into the running amount. Accumulates by default."""
        return current + change


class DebtPaydownCalculator(ProgressCalculator):
    """Balance reduction across debt-bearing accounts."""

    challenge_type = "debt_paydown"

    def progress_change(self, deltas: Sequence[AccountDelta]) -> Decimal:
        # A payment lowers the balance owed, so the reduction is the negated delta.
        return ZERO - sum((d.delta for d in deltas if is_debt_account(d)), ZERO)

    def next_amount(self, current: Decimal, change: Decimal) -> Decimal:
        return max(ZERO, current + change)


class SavingsCalculator(ProgressCalculator):
    """Balance increase across savings-designated accounts."""

    challenge_type = "savings"

    def progress_change(self, deltas: Sequence[AccountDelta]) -> Decimal:
        return sum((d.delta for d in deltas if is_savings_account(d)), ZERO)


class EmergencyFundCalculator(SavingsCalculator):
    challenge_type = "emergency_fund"


class SpendingLimitCalculator(ProgressCalculator):
    """Spend total for the tracked period. Replaces rather than accumulates."""

    challenge_type = "spending_limit"

    def progress_change(self, deltas: Sequence[AccountDelta]) -> Decimal:
        return sum((d.spend for d in deltas), ZERO)

    def next_amount(self, current: Decimal, change: Decimal) -> Decimal:
        return change


class CalculatorRegistry:
    """Maps challenge types to calculators."""

    def __init__(self, calculators: Iterable[ProgressCalculator] = ()) -> None:
        self._calculators: dict[str, ProgressCalculator] = {}
        for calc in calculators:
            self.register(calc)

    def register(self, calculator: ProgressCalculator) -> None:
        self._calculators[calculator.challenge_type] = calculator

    def get(self, challenge_type: str) -> ProgressCalculator:
        try:
            return self._calculators[challenge_type]
        except KeyError:
            msg = f"No progress calculator registered for challenge type {challenge_type!r}"
            raise ValidationFailure(msg) from None

    def types(self) -> list[str]:
        return sorted(self._calculators)


def default_registry() -> CalculatorRegistry:
    """Registry with the four built-in challenge types."""
    return CalculatorRegistry([
        DebtPaydownCalculator(),
        SavingsCalculator(),
        EmergencyFundCalculator(),
        SpendingLimitCalculator(),
    ])
