"""Account snapshot validation tests."""

from decimal import Decimal

import pytest

from trilo.challenges.errors import ValidationFailure
from trilo.challenges.schemas import AccountSnapshotEntry, parse_snapshot


class TestParseSnapshot:
    """parse_snapshot rejects malformed input with ValidationFailure."""

    def test_parses_delta_entries(self):
        entries = parse_snapshot([{"type": "savings", "delta": "200.50"}])
        assert len(entries) == 1
        assert entries[0].delta == Decimal("200.50")

    def test_empty_list_is_valid(self):
        assert parse_snapshot([]) == []

    def test_none_is_rejected(self):
        with pytest.raises(ValidationFailure, match="required"):
            parse_snapshot(None)

    def test_single_dict_is_rejected(self):
        with pytest.raises(ValidationFailure, match="list"):
            parse_snapshot({"type": "savings", "delta": 10})

    def test_entry_without_amounts_is_rejected(self):
        with pytest.raises(ValidationFailure, match="entry 1"):
            parse_snapshot([{"type": "savings", "delta": 5}, {"type": "savings"}])

    def test_missing_type_is_rejected(self):
        with pytest.raises(ValidationFailure):
            parse_snapshot([{"delta": 5}])

    def test_non_numeric_amount_is_rejected(self):
        with pytest.raises(ValidationFailure):
            parse_snapshot([{"type": "savings", "delta": "lots"}])

    def test_negative_spend_is_rejected(self):
        with pytest.raises(ValidationFailure):
            parse_snapshot([{"type": "credit", "spend": -1}])

    def test_balance_needs_account_or_previous_balance(self):
        with pytest.raises(ValidationFailure):
            parse_snapshot([{"type": "savings", "balance": 1000}])

    def test_balance_with_account_id_is_valid(self):
        entries = parse_snapshot([{"account_id": "acc-1", "type": "savings", "balance": 1000}])
        assert entries[0].account_id == "acc-1"

    def test_unknown_fields_are_ignored(self):
        entries = parse_snapshot([{"type": "savings", "delta": 1, "institution": "Bank"}])
        assert entries[0].delta == Decimal("1")

    def test_model_instances_pass_through(self):
        entry = AccountSnapshotEntry(type="loan", delta=Decimal("-20"))
        assert parse_snapshot([entry]) == [entry]
