"""Pydantic records returned by the ledger and the account snapshot input model."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from trilo.challenges.errors import ValidationFailure


class _Record(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# --- Snapshot input ---


class AccountSnapshotEntry(BaseModel):
    """One account line supplied by the account-data provider.

    Carries either a balance change (``delta``), an absolute ``balance`` to
    diff against the previous one, or a ``spend`` total for the period.
    """

    model_config = ConfigDict(extra="ignore")

    account_id: str | None = None
    type: str
    subtype: str | None = None
    balance: Decimal | None = None
    previous_balance: Decimal | None = None
    delta: Decimal | None = None
    spend: Decimal | None = None

    @model_validator(mode="after")
    def _check_amounts(self) -> AccountSnapshotEntry:
        if self.balance is None and self.delta is None and self.spend is None:
            raise ValueError("entry needs one of balance, delta or spend")
        if self.spend is not None and self.spend < 0:
            raise ValueError("spend must be non-negative")
        if self.previous_balance is not None and self.balance is None:
            raise ValueError("previous_balance given without balance")
        if (
            self.balance is not None
            and self.delta is None
            and self.previous_balance is None
            and not self.account_id
        ):
            raise ValueError("balance without previous_balance requires account_id")
        return self


def parse_snapshot(raw: Iterable[AccountSnapshotEntry | dict[str, Any]] | None) -> list[AccountSnapshotEntry]:
    """Validate a raw snapshot. Raises ValidationFailure on malformed input."""
    if raw is None:
        raise ValidationFailure("account snapshot is required")
    if isinstance(raw, (str, bytes, dict)):
        raise ValidationFailure("account snapshot must be a list of entries")

    entries: list[AccountSnapshotEntry] = []
    for i, item in enumerate(raw):
        if isinstance(item, AccountSnapshotEntry):
            entries.append(item)
            continue
        try:
            entries.append(AccountSnapshotEntry.model_validate(item))
        except ValidationError as exc:
            msg = f"snapshot entry {i} is invalid: {exc.errors()[0]['msg']}"
            raise ValidationFailure(msg) from exc
    return entries


# --- Catalog ---


class TemplateRecord(_Record):
    id: uuid.UUID
    name: str
    description: str
    type: str
    difficulty: str
    duration_days: int
    target_amount: Decimal
    points_reward: int
    badge_reward: str | None = None
    is_active: bool


# --- Challenges ---


class ChallengeRecord(_Record):
    id: uuid.UUID
    user_id: str
    template_id: uuid.UUID
    challenge_name: str
    description: str
    type: str
    target_amount: Decimal
    current_amount: Decimal
    progress_percentage: Decimal
    status: str
    start_date: date
    end_date: date
    points_reward: int
    badge_reward: str | None = None
    template_name: str | None = None
    template_description: str | None = None


class ProgressUpdate(BaseModel):
    challenge_id: uuid.UUID
    progress_change: Decimal
    new_current_amount: Decimal
    progress_percentage: Decimal
    completed: bool = False


# --- Rewards ---


class BadgeRecord(_Record):
    id: uuid.UUID
    user_id: str
    badge_name: str
    badge_type: str
    badge_description: str
    rarity: str
    earned_date: date
    challenge_id: uuid.UUID | None = None
    points_earned: int


class ScoreRecord(_Record):
    user_id: str
    total_points: int
    debt_paydown_points: int
    savings_points: int
    consistency_points: int
    weekly_score: int
    monthly_score: int
    current_level: int
    level_name: str
    last_reset_date: date | None = None


class WeeklyResetRecord(_Record):
    user_id: str
    week_start: date
    week_end: date
    challenges_completed: int
    challenges_failed: int
    badges_earned: int
    total_points_earned: int
    reset_completed_at: datetime
    weekly_score_cleared: bool = False
