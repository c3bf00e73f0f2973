"""Completion and reward dispatch for challenges that reach 100%."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from trilo.challenges.errors import InvariantViolation
from trilo.challenges.events import BADGE_EARNED, CHALLENGE_COMPLETED, LEVEL_UP, EventBuffer
from trilo.challenges.levels import DEFAULT_POINTS_PER_LEVEL
from trilo.challenges.score_service import award_points
from trilo.challenges.week_utils import utc_today
from trilo.db.models import (
    DIFFICULTIES,
    STATUS_ACTIVE,
    STATUS_COMPLETED,
    ChallengeCompletion,
    ChallengeTemplate,
    UserBadge,
    UserChallenge,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")

RARITY_BY_DIFFICULTY = dict(zip(DIFFICULTIES, ("common", "rare", "epic")))


async def _badge_rarity(db: AsyncSession, challenge: UserChallenge) -> str:
    template = await db.get(ChallengeTemplate, challenge.template_id)
    if template is None:
        return "common"
    return RARITY_BY_DIFFICULTY.get(template.difficulty, "common")


async def complete_challenge(
    db: AsyncSession,
    challenge: UserChallenge,
    user_id: str,
    events: EventBuffer | None = None,
    today: date | None = None,
    points_per_level: int = DEFAULT_POINTS_PER_LEVEL,
) -> bool:
    """Mark a challenge completed and grant its rewards.

    Returns False without side effects when the challenge is no longer
    active. Handles:
    1. status -> completed
    2. challenge_completions row (UNIQUE challenge_id)
    3. user_badges row when the challenge names a badge
    4. score award with the challenge's points
    """
    if challenge.status != STATUS_ACTIVE:
        return False
    if challenge.progress_percentage < HUNDRED:
        msg = f"challenge {challenge.id} cannot complete at {challenge.progress_percentage}%"
        raise InvariantViolation(msg)
    if today is None:
        today = utc_today()

    challenge.status = STATUS_COMPLETED
    challenge.updated_at = datetime.now(timezone.utc)

    db.add(ChallengeCompletion(
        challenge_id=challenge.id,
        user_id=user_id,
        start_date=challenge.start_date,
        completion_date=today,
        final_amount=challenge.current_amount,
        completion_percentage=challenge.progress_percentage,
        points_earned=challenge.points_reward,
    ))
    try:
        await db.flush()
    except IntegrityError as exc:
        # Another transaction completed this challenge first.
        msg = f"challenge {challenge.id} was already completed"
        raise InvariantViolation(msg) from exc

    if challenge.badge_reward:
        rarity = await _badge_rarity(db, challenge)
        db.add(UserBadge(
            user_id=user_id,
            badge_name=challenge.badge_reward,
            badge_type=challenge.type,
            badge_description=f"Earned for completing: {challenge.challenge_name}",
            rarity=rarity,
            earned_date=today,
            challenge_id=challenge.id,
            points_earned=challenge.points_reward,
        ))
        await db.flush()
        if events is not None:
            events.emit(
                BADGE_EARNED, user_id,
                challenge_id=challenge.id,
                badge_name=challenge.badge_reward,
                badge_type=challenge.type,
                rarity=rarity,
                points_earned=challenge.points_reward,
            )

    score, leveled_up = await award_points(
        db, user_id, challenge.points_reward, challenge.type, points_per_level,
    )

    if events is not None:
        events.emit(
            CHALLENGE_COMPLETED, user_id,
            challenge_id=challenge.id,
            challenge_name=challenge.challenge_name,
            final_amount=challenge.current_amount,
            points_earned=challenge.points_reward,
        )
        if leveled_up:
            events.emit(LEVEL_UP, user_id, new_level=score.current_level, level_name=score.level_name)

    logger.info(
        "Challenge %s completed for user %s: +%d points", challenge.id, user_id, challenge.points_reward,
    )
    return True


async def list_badges(db: AsyncSession, user_id: str) -> list[UserBadge]:
    """A user's badges, most recent first."""
    result = await db.execute(
        select(UserBadge)
        .where(UserBadge.user_id == user_id)
        .order_by(UserBadge.earned_date.desc(), UserBadge.badge_name)
    )
    return list(result.scalars().all())
