"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from trilo.challenges.ledger import ChallengeLedger
from trilo.config import Settings
from trilo.database import create_db_engine, create_session_factory, dispose_engine, init_schema
from trilo.db.models import ChallengeTemplate


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        log_format="console",
        events_enabled=True,
    )


@pytest_asyncio.fixture
async def engine(settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Engine with the ledger schema created."""
    eng = create_db_engine(settings)
    await init_schema(eng)
    yield eng
    await dispose_engine(eng)


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
def ledger(session_factory, settings: Settings) -> ChallengeLedger:
    """Ledger with no Redis client (events dropped)."""
    return ChallengeLedger(session_factory, redis=None, settings=settings)


@pytest.fixture
def count_rows(session_factory):
    """Count rows of a model in a short-lived session."""

    async def _count(model, *where) -> int:
        async with session_factory() as db:
            return await db.scalar(select(func.count()).select_from(model).where(*where))

    return _count


@pytest.fixture
def fetch_all(session_factory):
    """Load rows of a model in a short-lived session."""

    async def _fetch(model, *where) -> list:
        async with session_factory() as db:
            result = await db.execute(select(model).where(*where))
            return list(result.scalars().all())

    return _fetch


async def _add_template(session_factory, **fields) -> ChallengeTemplate:
    data = {
        "name": "Template",
        "description": "",
        "type": "savings",
        "difficulty": "easy",
        "duration_days": 30,
        "target_amount": Decimal("500"),
        "points_reward": 500,
        "badge_reward": None,
        "is_active": True,
    }
    data.update(fields)
    async with session_factory() as db:
        template = ChallengeTemplate(**data)
        db.add(template)
        await db.commit()
        return template


@pytest.fixture
def add_template(session_factory):
    """Factory fixture: insert a template with overrides, return it."""

    async def _factory(**fields) -> ChallengeTemplate:
        return await _add_template(session_factory, **fields)

    return _factory


@pytest_asyncio.fixture
async def savings_template(add_template) -> ChallengeTemplate:
    """T1: savings, target 500, 30 days, 500 points."""
    return await add_template(name="Monthly Saver", type="savings", target_amount=Decimal("500"), points_reward=500)
