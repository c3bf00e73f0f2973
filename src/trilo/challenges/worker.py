"""Challenge arq worker: the external trigger for ledger maintenance.

The ledger schedules nothing itself. This worker owns the engine and Redis
lifecycles, and runs:
- process_account_snapshot: enqueued by the account-data provider
- expire_challenges_job: cron, daily 23:50 UTC
- weekly_reset_all: cron, last day of each week at 23:55 UTC, so the
  rollup covers the week that is ending

Import path for arq CLI: arq trilo.challenges.worker.ChallengeWorkerSettings
"""

from __future__ import annotations

import logging
from typing import Any

from arq import cron
from arq.connections import RedisSettings

from trilo.challenges.ledger import ChallengeLedger
from trilo.config import get_settings
from trilo.database import create_db_engine, create_session_factory, dispose_engine
from trilo.logging_config import setup_logging
from trilo.redis_client import close_redis, create_redis

logger = logging.getLogger(__name__)

_settings = get_settings()


async def challenge_startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Build the store handle, Redis client and ledger."""
    settings = get_settings()
    setup_logging(settings)

    engine = create_db_engine(settings)
    redis_client = create_redis(settings.redis_url)

    ctx["engine"] = engine
    ctx["redis"] = redis_client
    ctx["ledger"] = ChallengeLedger(create_session_factory(engine), redis_client, settings)
    logger.info("Challenge worker started")


async def challenge_shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    """Close Redis and dispose of the engine pool."""
    await close_redis(ctx.get("redis"))
    await dispose_engine(ctx.get("engine"))
    logger.info("Challenge worker shut down")


async def process_account_snapshot(
    ctx: dict,  # type: ignore[type-arg]
    user_id: str,
    snapshot: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Evaluate a user's challenges against a provider snapshot.

    Errors propagate so arq records the job as failed; the provider retries.
    """
    ledger: ChallengeLedger = ctx["ledger"]
    updates = await ledger.update_progress(user_id, snapshot)
    return [u.model_dump(mode="json") for u in updates]


async def weekly_reset_all(ctx: dict) -> int:  # type: ignore[type-arg]
    """Run the weekly reset for every known user, one transaction each.

    Returns the number of users reset. A failing user is logged and skipped.
    """
    ledger: ChallengeLedger = ctx["ledger"]
    users = await ledger.list_reset_population()

    done = 0
    for user_id in users:
        try:
            await ledger.perform_weekly_reset(user_id)
            done += 1
        except Exception:
            logger.exception("Weekly reset failed for user %s", user_id)

    logger.info("Weekly reset complete: %d/%d users", done, len(users))
    return done


async def expire_challenges_job(ctx: dict) -> int:  # type: ignore[type-arg]
    """Fail every overdue, incomplete challenge."""
    ledger: ChallengeLedger = ctx["ledger"]
    failed = await ledger.expire_challenges()
    logger.info("Expiry sweep complete: %d challenges failed", failed)
    return failed


class ChallengeWorkerSettings:
    """arq worker settings for ledger maintenance."""

    functions = [process_account_snapshot, weekly_reset_all, expire_challenges_job]
    cron_jobs = [
        cron(expire_challenges_job, hour=23, minute=50),
        # arq weekday uses 0=Monday ... 6=Sunday, same as week_start_day
        cron(weekly_reset_all, weekday=(_settings.week_start_day - 1) % 7, hour=23, minute=55),
    ]
    on_startup = challenge_startup
    on_shutdown = challenge_shutdown
    redis_settings = RedisSettings.from_dsn(_settings.redis_url)
    max_jobs = _settings.worker_max_jobs
    job_timeout = _settings.worker_job_timeout_seconds
    allow_abort_jobs = True
