"""Weekly rollup: snapshot the week's counts and clear the weekly score."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from trilo.challenges.score_service import get_score
from trilo.challenges.week_utils import SUNDAY, get_week_window, utc_today
from trilo.db.dialect import upsert_insert
from trilo.db.models import (
    STATUS_FAILED,
    ChallengeCompletion,
    UserBadge,
    UserChallenge,
    UserFinancialScore,
    WeeklyReset,
)

logger = logging.getLogger(__name__)


async def count_week_activity(
    db: AsyncSession,
    user_id: str,
    week_start: date,
    week_end: date,
) -> dict[str, int]:
    """Completions, failures, badges and completion points inside [week_start, week_end]."""
    completed = await db.execute(
        select(func.count(ChallengeCompletion.id), func.coalesce(func.sum(ChallengeCompletion.points_earned), 0))
        .where(
            ChallengeCompletion.user_id == user_id,
            ChallengeCompletion.completion_date.between(week_start, week_end),
        )
    )
    completed_count, points = completed.one()

    failed = await db.execute(
        select(func.count(UserChallenge.id)).where(
            UserChallenge.user_id == user_id,
            UserChallenge.status == STATUS_FAILED,
            UserChallenge.end_date.between(week_start, week_end),
        )
    )

    badges = await db.execute(
        select(func.count(UserBadge.id)).where(
            UserBadge.user_id == user_id,
            UserBadge.earned_date.between(week_start, week_end),
        )
    )

    return {
        "challenges_completed": int(completed_count),
        "challenges_failed": int(failed.scalar_one()),
        "badges_earned": int(badges.scalar_one()),
        "total_points_earned": int(points),
    }


async def perform_weekly_reset(
    db: AsyncSession,
    user_id: str,
    today: date | None = None,
    first_weekday: int = SUNDAY,
) -> tuple[WeeklyReset, bool]:
    """Upsert the week's rollup row and clear the weekly score.

    Every call zeroes the weekly score. A repeat call in the same window
    refreshes the counts and clears points earned since the previous reset,
    so the end-of-week run always starts the next week from zero.
    Returns (rollup row, whether the weekly score was cleared).
    """
    if today is None:
        today = utc_today()
    now = datetime.now(timezone.utc)
    week_start, week_end = get_week_window(today, first_weekday)

    counts = await count_week_activity(db, user_id, week_start, week_end)

    stmt = upsert_insert(db, WeeklyReset).values(
        user_id=user_id,
        week_start=week_start,
        week_end=week_end,
        reset_completed_at=now,
        **counts,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "week_start"],
        set_={
            "week_end": stmt.excluded.week_end,
            "challenges_completed": stmt.excluded.challenges_completed,
            "challenges_failed": stmt.excluded.challenges_failed,
            "badges_earned": stmt.excluded.badges_earned,
            "total_points_earned": stmt.excluded.total_points_earned,
            "reset_completed_at": stmt.excluded.reset_completed_at,
        },
    )
    await db.execute(stmt)

    cleared = False
    score = await get_score(db, user_id, for_update=True)
    if score is not None:
        score.weekly_score = 0
        score.last_reset_date = today
        score.updated_at = now
        cleared = True
    await db.flush()

    result = await db.execute(
        select(WeeklyReset)
        .where(WeeklyReset.user_id == user_id, WeeklyReset.week_start == week_start)
        .execution_options(populate_existing=True)
    )
    rollup = result.scalar_one()

    logger.info(
        "Weekly reset for user %s (%s..%s): %d completed, %d failed, %d badges, score cleared=%s",
        user_id, week_start, week_end,
        counts["challenges_completed"], counts["challenges_failed"], counts["badges_earned"], cleared,
    )
    return rollup, cleared


async def list_scored_users(db: AsyncSession) -> list[str]:
    """Users with a score row or any challenge: the population of a weekly sweep."""
    scored = select(UserFinancialScore.user_id)
    challenged = select(UserChallenge.user_id)
    result = await db.execute(scored.union(challenged))
    return sorted(row[0] for row in result)
