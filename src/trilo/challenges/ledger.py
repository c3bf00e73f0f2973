"""Challenge ledger facade: one unit of work per public operation.

The session factory (and through it the connection pool) is built by the
entry point and injected here; the ledger never creates or disposes of it.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from typing import Any

import structlog
from redis.asyncio import Redis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from trilo.challenges import catalog, completion_service, lifecycle, progress_service, score_service, weekly_reset
from trilo.challenges.calculators import CalculatorRegistry, default_registry
from trilo.challenges.errors import LedgerError, TransactionFailure
from trilo.challenges.events import EventBuffer, publish_events
from trilo.challenges.schemas import (
    AccountSnapshotEntry,
    BadgeRecord,
    ChallengeRecord,
    ProgressUpdate,
    ScoreRecord,
    TemplateRecord,
    WeeklyResetRecord,
    parse_snapshot,
)
from trilo.challenges.seed import seed_templates
from trilo.config import Settings, get_settings

logger = structlog.get_logger()


class ChallengeLedger:
    """Transactional challenge progress and rewards engine."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        redis: Redis | None = None,
        settings: Settings | None = None,
        calculators: CalculatorRegistry | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings or get_settings()
        self.redis = redis if self._settings.events_enabled else None
        self.calculators = calculators or default_registry()

    @asynccontextmanager
    async def _unit_of_work(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a session and transaction; commit on success, roll back on any error."""
        session = self._session_factory()
        try:
            await session.begin()
            yield session
            await session.commit()
        except LedgerError:
            await session.rollback()
            raise
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.error("ledger_transaction_failed", operation=operation, error=str(exc), exc_info=exc)
            raise TransactionFailure(operation, str(exc)) from exc
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def _publish(self, events: EventBuffer) -> None:
        if len(events):
            await publish_events(self.redis, events.drain())

    # ── Catalog ──

    async def list_templates(self) -> list[TemplateRecord]:
        async with self._unit_of_work("list_templates") as db:
            templates = await catalog.list_templates(db)
            return [TemplateRecord.model_validate(t) for t in templates]

    async def seed_templates(self) -> int:
        """Upsert the default template catalog."""
        async with self._unit_of_work("seed_templates") as db:
            return await seed_templates(db)

    # ── Lifecycle ──

    async def create_challenge(
        self,
        user_id: str,
        template_id: uuid.UUID | str,
        custom_target: Decimal | int | float | str | None = None,
        *,
        today: date | None = None,
    ) -> uuid.UUID:
        """Instantiate a template for a user. Returns the new challenge id."""
        async with self._unit_of_work("create_challenge") as db:
            challenge = await lifecycle.create_challenge(db, user_id, template_id, custom_target, today=today)
            challenge_id = challenge.id
            target = challenge.target_amount

        logger.info("challenge_created", user_id=user_id, challenge_id=str(challenge_id), target=str(target))
        return challenge_id

    async def list_active_challenges(self, user_id: str) -> list[ChallengeRecord]:
        async with self._unit_of_work("list_active_challenges") as db:
            rows = await lifecycle.list_active_challenges(db, user_id)
            return [ChallengeRecord.model_validate(row) for row in rows]

    async def expire_challenges(self, user_id: str | None = None, *, today: date | None = None) -> int:
        """Fail overdue, incomplete challenges. Triggered externally, never self-invoked."""
        async with self._unit_of_work("expire_challenges") as db:
            failed = await lifecycle.expire_challenges(db, user_id, today=today)

        if failed:
            logger.info("challenges_expired", user_id=user_id, failed=failed)
        return failed

    # ── Progress ──

    async def update_progress(
        self,
        user_id: str,
        snapshot: Iterable[AccountSnapshotEntry | dict[str, Any]],
        *,
        today: date | None = None,
    ) -> list[ProgressUpdate]:
        """Evaluate all of a user's active challenges against one snapshot, atomically."""
        entries = parse_snapshot(snapshot)
        events = EventBuffer()

        async with self._unit_of_work("update_progress") as db:
            updates = await progress_service.update_progress(
                db,
                user_id,
                entries,
                self.calculators,
                events=events,
                today=today,
                points_per_level=self._settings.points_per_level,
            )

        completed = [str(u.challenge_id) for u in updates if u.completed]
        logger.info("progress_updated", user_id=user_id, challenges=len(updates), completed=completed)
        await self._publish(events)
        return updates

    # ── Rewards ──

    async def list_badges(self, user_id: str) -> list[BadgeRecord]:
        async with self._unit_of_work("list_badges") as db:
            badges = await completion_service.list_badges(db, user_id)
            return [BadgeRecord.model_validate(b) for b in badges]

    async def get_score(self, user_id: str) -> ScoreRecord | None:
        async with self._unit_of_work("get_score") as db:
            score = await score_service.get_score(db, user_id)
            return ScoreRecord.model_validate(score) if score is not None else None

    # ── Weekly reset ──

    async def perform_weekly_reset(self, user_id: str, *, today: date | None = None) -> WeeklyResetRecord:
        """Snapshot this week's counts and clear the weekly score."""
        async with self._unit_of_work("perform_weekly_reset") as db:
            rollup, cleared = await weekly_reset.perform_weekly_reset(
                db, user_id, today=today, first_weekday=self._settings.week_start_day,
            )
            record = WeeklyResetRecord.model_validate(rollup).model_copy(update={"weekly_score_cleared": cleared})

        logger.info(
            "weekly_reset_performed",
            user_id=user_id,
            week_start=str(record.week_start),
            completed=record.challenges_completed,
            failed=record.challenges_failed,
            badges=record.badges_earned,
            cleared=cleared,
        )
        return record

    async def list_reset_population(self) -> list[str]:
        """Every user the weekly sweep should visit."""
        async with self._unit_of_work("list_reset_population") as db:
            return await weekly_reset.list_scored_users(db)
