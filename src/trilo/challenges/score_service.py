"""Score ledger: point awards with level derivation."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trilo.challenges.errors import ValidationFailure
from trilo.challenges.levels import DEFAULT_POINTS_PER_LEVEL, compute_level
from trilo.db.dialect import upsert_insert
from trilo.db.models import UserFinancialScore

logger = logging.getLogger(__name__)

CATEGORY_COLUMNS = {
    "debt_paydown": "debt_paydown_points",
    "savings": "savings_points",
    "emergency_fund": "savings_points",
    "spending_limit": "consistency_points",
}


async def get_score(db: AsyncSession, user_id: str, for_update: bool = False) -> UserFinancialScore | None:
    """Fetch a user's score row, optionally row-locked."""
    stmt = (
        select(UserFinancialScore)
        .where(UserFinancialScore.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def award_points(
    db: AsyncSession,
    user_id: str,
    points: int,
    challenge_type: str | None = None,
    points_per_level: int = DEFAULT_POINTS_PER_LEVEL,
) -> tuple[UserFinancialScore, bool]:
    """Add points to a user's score. Returns (score, leveled_up).

    The first award creates the row; later awards increment total, weekly and
    monthly counters. Both paths go through one INSERT ... ON CONFLICT so two
    concurrent first awards cannot collide. Level and level name are then
    recomputed from total_points.
    """
    if points < 0:
        raise ValidationFailure(f"points must be non-negative, got {points}")

    now = datetime.now(timezone.utc)
    category = CATEGORY_COLUMNS.get(challenge_type or "")

    previous = await get_score(db, user_id, for_update=True)
    old_level = previous.current_level if previous is not None else 1

    values: dict = {
        "user_id": user_id,
        "total_points": points,
        "weekly_score": points,
        "monthly_score": points,
        "updated_at": now,
    }
    if category:
        values[category] = points

    stmt = upsert_insert(db, UserFinancialScore).values(**values)
    set_ = {
        "total_points": UserFinancialScore.total_points + points,
        "weekly_score": UserFinancialScore.weekly_score + points,
        "monthly_score": UserFinancialScore.monthly_score + points,
        "updated_at": now,
    }
    if category:
        set_[category] = getattr(UserFinancialScore, category) + points
    stmt = stmt.on_conflict_do_update(index_elements=["user_id"], set_=set_)
    await db.execute(stmt)

    score = await get_score(db, user_id, for_update=True)
    if score is None:
        msg = f"score row for {user_id} vanished after upsert"
        raise RuntimeError(msg)

    level_info = compute_level(score.total_points, points_per_level)
    score.current_level = level_info["level"]
    score.level_name = level_info["name"]
    await db.flush()

    leveled_up = score.current_level > old_level
    if leveled_up:
        logger.info("User %s leveled up: %d -> %d (%s)", user_id, old_level, score.current_level, score.level_name)
    return score, leveled_up
