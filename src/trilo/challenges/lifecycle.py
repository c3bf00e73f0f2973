"""Challenge lifecycle: instantiation from templates, active listing, expiry."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from trilo.challenges.catalog import get_template
from trilo.challenges.errors import NotFound, ValidationFailure
from trilo.challenges.week_utils import utc_today
from trilo.db.models import STATUS_ACTIVE, STATUS_FAILED, ChallengeTemplate, UserChallenge

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def coerce_id(value: uuid.UUID | str, entity: str) -> uuid.UUID:
    """Parse an identifier. A malformed id cannot match anything, so it is NotFound."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise NotFound(entity, value) from None


async def create_challenge(
    db: AsyncSession,
    user_id: str,
    template_id: uuid.UUID | str,
    custom_target: Decimal | int | float | str | None = None,
    today: date | None = None,
) -> UserChallenge:
    """Instantiate a template for a user.

    The target defaults to the template's; an explicit ``custom_target`` of
    any value (including zero) overrides it and must be positive.
    """
    if not user_id:
        raise ValidationFailure("user_id is required")
    if today is None:
        today = utc_today()

    template = await get_template(db, coerce_id(template_id, "challenge template"))
    if template is None:
        raise NotFound("challenge template", template_id)

    if custom_target is not None:
        try:
            target = Decimal(str(custom_target))
        except ArithmeticError:
            raise ValidationFailure(f"custom target is not a number: {custom_target!r}") from None
    else:
        target = Decimal(template.target_amount)
    if not target.is_finite() or target <= 0:
        raise ValidationFailure(f"target amount must be positive, got {target}")

    challenge = UserChallenge(
        user_id=user_id,
        template_id=template.id,
        challenge_name=template.name,
        description=template.description,
        type=template.type,
        target_amount=target,
        current_amount=Decimal("0"),
        progress_percentage=Decimal("0"),
        status=STATUS_ACTIVE,
        start_date=today,
        end_date=today + timedelta(days=template.duration_days),
        points_reward=template.points_reward,
        badge_reward=template.badge_reward,
    )
    db.add(challenge)
    await db.flush()
    return challenge


async def list_active_challenges(db: AsyncSession, user_id: str) -> list[dict]:
    """Active challenges joined with their template, soonest deadline first."""
    result = await db.execute(
        select(
            UserChallenge,
            ChallengeTemplate.name.label("template_name"),
            ChallengeTemplate.description.label("template_description"),
        )
        .join(ChallengeTemplate, UserChallenge.template_id == ChallengeTemplate.id)
        .where(
            UserChallenge.user_id == user_id,
            UserChallenge.status == STATUS_ACTIVE,
        )
        .order_by(UserChallenge.end_date.asc(), UserChallenge.id)
    )
    rows = []
    for challenge, template_name, template_description in result:
        rows.append({
            **{c.key: getattr(challenge, c.key) for c in UserChallenge.__table__.columns},
            "template_name": template_name,
            "template_description": template_description,
        })
    return rows


async def load_active_for_update(db: AsyncSession, user_id: str) -> list[UserChallenge]:
    """Row-lock the user's active challenges for evaluation, in id order."""
    result = await db.execute(
        select(UserChallenge)
        .where(
            UserChallenge.user_id == user_id,
            UserChallenge.status == STATUS_ACTIVE,
        )
        .order_by(UserChallenge.id)
        .with_for_update()
    )
    return list(result.scalars().all())


async def expire_challenges(
    db: AsyncSession,
    user_id: str | None = None,
    today: date | None = None,
) -> int:
    """Fail active challenges past their end date that never reached 100%.

    Scoped to one user when ``user_id`` is given. Returns the number failed.
    """
    if today is None:
        today = utc_today()

    stmt = (
        update(UserChallenge)
        .where(
            UserChallenge.status == STATUS_ACTIVE,
            UserChallenge.end_date < today,
            UserChallenge.progress_percentage < HUNDRED,
        )
        .values(status=STATUS_FAILED, updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    if user_id is not None:
        stmt = stmt.where(UserChallenge.user_id == user_id)

    result = await db.execute(stmt)
    failed = result.rowcount or 0
    if failed:
        logger.info("Expired %d challenges (user=%s, as of %s)", failed, user_id or "*", today)
    return failed
