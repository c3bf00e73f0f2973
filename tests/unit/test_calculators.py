"""Progress calculator tests: pure functions over resolved deltas."""

from decimal import Decimal

import pytest

from trilo.challenges.balances import AccountDelta
from trilo.challenges.calculators import (
    CalculatorRegistry,
    DebtPaydownCalculator,
    EmergencyFundCalculator,
    SavingsCalculator,
    SpendingLimitCalculator,
    default_registry,
)
from trilo.challenges.errors import ValidationFailure


def delta(account_type: str, amount: str = "0", subtype: str | None = None, spend: str = "0") -> AccountDelta:
    return AccountDelta(account_type=account_type, subtype=subtype, delta=Decimal(amount), spend=Decimal(spend))


class TestDebtPaydown:
    """Debt progress is the reduction of debt balances."""

    def test_payment_is_positive_progress(self):
        calc = DebtPaydownCalculator()
        change = calc.progress_change([delta("credit", "-150"), delta("loan", "-50")])
        assert change == Decimal("200")

    def test_ignores_non_debt_accounts(self):
        calc = DebtPaydownCalculator()
        assert calc.progress_change([delta("savings", "-500"), delta("credit_card", "-20")]) == Decimal("20")

    def test_new_charges_are_negative_progress(self):
        calc = DebtPaydownCalculator()
        assert calc.progress_change([delta("credit", "75")]) == Decimal("-75")

    def test_amount_never_below_zero(self):
        calc = DebtPaydownCalculator()
        assert calc.next_amount(Decimal("30"), Decimal("-100")) == Decimal("0")

    def test_no_debt_accounts_is_zero(self):
        change = DebtPaydownCalculator().progress_change([delta("depository", "10", subtype="checking")])
        assert change == Decimal("0")
        assert not change.is_signed()


class TestSavings:
    """Savings progress sums deltas on savings-designated accounts."""

    def test_sums_savings_accounts(self):
        calc = SavingsCalculator()
        deltas = [
            delta("savings", "100"),
            delta("depository", "50", subtype="money market"),
            delta("depository", "25", subtype="cd"),
        ]
        assert calc.progress_change(deltas) == Decimal("175")

    def test_checking_does_not_count(self):
        calc = SavingsCalculator()
        assert calc.progress_change([delta("depository", "400", subtype="checking")]) == Decimal("0")

    def test_withdrawal_reduces_amount(self):
        calc = SavingsCalculator()
        assert calc.next_amount(Decimal("300"), Decimal("-100")) == Decimal("200")

    def test_emergency_fund_uses_savings_rule(self):
        calc = EmergencyFundCalculator()
        assert calc.challenge_type == "emergency_fund"
        assert calc.progress_change([delta("depository", "80", subtype="hsa")]) == Decimal("80")


class TestSpendingLimit:
    """Spending progress is the period's spend total and replaces the amount."""

    def test_sums_spend(self):
        calc = SpendingLimitCalculator()
        change = calc.progress_change([delta("credit", spend="40"), delta("depository", spend="60")])
        assert change == Decimal("100")

    def test_replaces_rather_than_accumulates(self):
        calc = SpendingLimitCalculator()
        assert calc.next_amount(Decimal("300"), Decimal("120")) == Decimal("120")


class TestRegistry:
    def test_default_registry_covers_builtin_types(self):
        assert default_registry().types() == ["debt_paydown", "emergency_fund", "savings", "spending_limit"]

    def test_unknown_type_raises_validation_failure(self):
        with pytest.raises(ValidationFailure, match="crypto"):
            default_registry().get("crypto")

    def test_register_custom_calculator(self):
        class RoundUpCalculator(SavingsCalculator):
            challenge_type = "round_up"

        registry = CalculatorRegistry()
        registry.register(RoundUpCalculator())
        assert isinstance(registry.get("round_up"), RoundUpCalculator)
