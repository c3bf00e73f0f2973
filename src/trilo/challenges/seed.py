"""Default challenge template catalog, upserted by name."""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trilo.db.models import ChallengeTemplate

logger = logging.getLogger(__name__)

TEMPLATE_SEED_DATA: list[dict] = [
    {
        "name": "Savings Starter",
        "description": "Move $100 into savings this week",
        "type": "savings",
        "difficulty": "easy",
        "duration_days": 7,
        "target_amount": Decimal("100"),
        "points_reward": 100,
        "badge_reward": None,
    },
    {
        "name": "Card Crusher",
        "description": "Pay down $250 of credit card or loan balances",
        "type": "debt_paydown",
        "difficulty": "easy",
        "duration_days": 14,
        "target_amount": Decimal("250"),
        "points_reward": 150,
        "badge_reward": "Debt Slayer",
    },
    {
        "name": "Spending Watch",
        "description": "Track $400 of spending against your weekly limit",
        "type": "spending_limit",
        "difficulty": "medium",
        "duration_days": 7,
        "target_amount": Decimal("400"),
        "points_reward": 200,
        "badge_reward": None,
    },
    {
        "name": "Monthly Saver",
        "description": "Grow your savings by $500 within 30 days",
        "type": "savings",
        "difficulty": "medium",
        "duration_days": 30,
        "target_amount": Decimal("500"),
        "points_reward": 500,
        "badge_reward": "Super Saver",
    },
    {
        "name": "Rainy Day Fund",
        "description": "Build a $1,000 emergency cushion",
        "type": "emergency_fund",
        "difficulty": "hard",
        "duration_days": 90,
        "target_amount": Decimal("1000"),
        "points_reward": 1000,
        "badge_reward": "Safety Net",
    },
]


async def seed_templates(db: AsyncSession) -> int:
    """Insert or refresh the default templates. Returns the number seeded.

    The caller commits.
    """
    result = await db.execute(select(ChallengeTemplate))
    by_name = {t.name: t for t in result.scalars()}

    seeded = 0
    for data in TEMPLATE_SEED_DATA:
        template = by_name.get(data["name"])
        if template is None:
            db.add(ChallengeTemplate(is_active=True, **data))
        else:
            for key, value in data.items():
                setattr(template, key, value)
        seeded += 1

    await db.flush()
    logger.info("Seeded %d challenge templates", seeded)
    return seeded
