"""Template catalog: read-only lookups of challenge definitions."""

from __future__ import annotations

import uuid

from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession

from trilo.db.models import ChallengeTemplate

DIFFICULTY_ORDER = case(
    {"easy": 0, "medium": 1, "hard": 2},
    value=ChallengeTemplate.difficulty,
    else_=3,
)


async def list_templates(db: AsyncSession) -> list[ChallengeTemplate]:
    """Active templates, easiest first, then by points reward."""
    result = await db.execute(
        select(ChallengeTemplate)
        .where(ChallengeTemplate.is_active.is_(True))
        .order_by(DIFFICULTY_ORDER, ChallengeTemplate.points_reward, ChallengeTemplate.name)
    )
    return list(result.scalars().all())


async def get_template(db: AsyncSession, template_id: uuid.UUID) -> ChallengeTemplate | None:
    """Fetch a template by id, active or not."""
    result = await db.execute(
        select(ChallengeTemplate).where(ChallengeTemplate.id == template_id)
    )
    return result.scalar_one_or_none()
