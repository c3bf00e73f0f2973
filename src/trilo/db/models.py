"""ORM models for the challenge ledger.

Users live in the auth service; ``user_id`` is an opaque string here and
carries no foreign key.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from trilo.db.base import Base

MONEY = Numeric(14, 2)
PERCENT = Numeric(5, 2)

CHALLENGE_TYPES = ("debt_paydown", "savings", "spending_limit", "emergency_fund")
DIFFICULTIES = ("easy", "medium", "hard")

STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class ChallengeTemplate(Base):
    """Reusable challenge definition. Maintained outside the ledger."""

    __tablename__ = "challenge_templates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False)
    target_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    points_reward: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    badge_reward: Mapped[str | None] = mapped_column(String(128), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


# ---------------------------------------------------------------------------
# Challenge instances
# ---------------------------------------------------------------------------


class UserChallenge(Base):
    """One user's instance of a template.

    Terminal once ``status`` is completed or failed.
    """

    __tablename__ = "user_challenges"
    __table_args__ = (Index("idx_user_challenges_user_status", "user_id", "status"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    template_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("challenge_templates.id"), nullable=False)
    challenge_name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    target_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    current_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    progress_percentage: Mapped[Decimal] = mapped_column(PERCENT, nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=STATUS_ACTIVE)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    points_reward: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    badge_reward: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ChallengeProgress(Base):
    """One day's progress snapshot, UNIQUE(challenge_id, progress_date)."""

    __tablename__ = "challenge_progress"
    __table_args__ = (
        UniqueConstraint("challenge_id", "progress_date", name="uq_challenge_progress_challenge_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    challenge_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("user_challenges.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    progress_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount_progress: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    percentage_complete: Mapped[Decimal] = mapped_column(PERCENT, nullable=False)
    daily_change: Mapped[Decimal] = mapped_column(MONEY, nullable=False)


class ChallengeCompletion(Base):
    """Audit record of a finished challenge, UNIQUE(challenge_id)."""

    __tablename__ = "challenge_completions"
    __table_args__ = (UniqueConstraint("challenge_id", name="uq_challenge_completions_challenge"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    challenge_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("user_challenges.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    completion_date: Mapped[date] = mapped_column(Date, nullable=False)
    final_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    completion_percentage: Mapped[Decimal] = mapped_column(PERCENT, nullable=False)
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


# ---------------------------------------------------------------------------
# Rewards
# ---------------------------------------------------------------------------


class UserBadge(Base):
    """Permanent badge grant. At most one badge per challenge."""

    __tablename__ = "user_badges"
    __table_args__ = (UniqueConstraint("challenge_id", name="uq_user_badges_challenge"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    badge_name: Mapped[str] = mapped_column(String(128), nullable=False)
    badge_type: Mapped[str] = mapped_column(String(32), nullable=False)
    badge_description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    rarity: Mapped[str] = mapped_column(String(16), nullable=False, default="common")
    earned_date: Mapped[date] = mapped_column(Date, nullable=False)
    challenge_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("user_challenges.id", ondelete="SET NULL"), nullable=True
    )
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class UserFinancialScore(Base):
    """Aggregate score, one row per user. Level is derived from total_points."""

    __tablename__ = "user_financial_scores"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    debt_paydown_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    savings_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    consistency_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    weekly_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    monthly_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    level_name: Mapped[str] = mapped_column(String(32), nullable=False, default="Novice")
    last_reset_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class WeeklyReset(Base):
    """Weekly rollup snapshot, UNIQUE(user_id, week_start)."""

    __tablename__ = "weekly_resets"
    __table_args__ = (UniqueConstraint("user_id", "week_start", name="uq_weekly_resets_user_week"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    week_start: Mapped[date] = mapped_column(Date, nullable=False)
    week_end: Mapped[date] = mapped_column(Date, nullable=False)
    challenges_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    challenges_failed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    badges_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_points_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reset_completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Balance history
# ---------------------------------------------------------------------------


class AccountBalance(Base):
    """Last observed balance per account, used to derive snapshot deltas."""

    __tablename__ = "account_balances"
    __table_args__ = (UniqueConstraint("user_id", "account_id", name="uq_account_balances_user_account"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    account_id: Mapped[str] = mapped_column(String(128), nullable=False)
    account_type: Mapped[str] = mapped_column(String(32), nullable=False)
    balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    observed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
