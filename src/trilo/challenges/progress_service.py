"""Progress evaluation of a user's active challenges against an account snapshot."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from trilo.challenges.balances import resolve_deltas
from trilo.challenges.calculators import CalculatorRegistry
from trilo.challenges.completion_service import complete_challenge
from trilo.challenges.errors import InvariantViolation
from trilo.challenges.events import EventBuffer
from trilo.challenges.levels import DEFAULT_POINTS_PER_LEVEL
from trilo.challenges.lifecycle import load_active_for_update
from trilo.challenges.schemas import AccountSnapshotEntry, ProgressUpdate
from trilo.challenges.week_utils import utc_today
from trilo.db.dialect import upsert_insert
from trilo.db.models import ChallengeProgress, UserChallenge

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def compute_percentage(amount: Decimal, target: Decimal) -> Decimal:
    """Progress as a percentage of target, clamped to [0, 100], two decimals."""
    if target <= 0:
        msg = f"target amount must be positive, got {target}"
        raise InvariantViolation(msg)
    pct = (amount / target * HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)
    return min(HUNDRED, max(ZERO, pct))


async def record_daily_progress(
    db: AsyncSession,
    challenge: UserChallenge,
    progress_date: date,
    progress_change: Decimal,
) -> None:
    """Upsert the day's progress row. Re-running on the same day overwrites it."""
    stmt = upsert_insert(db, ChallengeProgress).values(
        challenge_id=challenge.id,
        user_id=challenge.user_id,
        progress_date=progress_date,
        amount_progress=challenge.current_amount,
        percentage_complete=challenge.progress_percentage,
        daily_change=progress_change,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["challenge_id", "progress_date"],
        set_={
            "amount_progress": stmt.excluded.amount_progress,
            "percentage_complete": stmt.excluded.percentage_complete,
            "daily_change": stmt.excluded.daily_change,
        },
    )
    await db.execute(stmt)


async def update_progress(
    db: AsyncSession,
    user_id: str,
    entries: list[AccountSnapshotEntry],
    calculators: CalculatorRegistry,
    events: EventBuffer | None = None,
    today: date | None = None,
    points_per_level: int = DEFAULT_POINTS_PER_LEVEL,
) -> list[ProgressUpdate]:
    """Evaluate every active challenge of a user against one snapshot.

    The caller owns the transaction: all challenge updates, progress rows,
    completions and awards produced here commit or roll back together.
    """
    if today is None:
        today = utc_today()
    now = datetime.now(timezone.utc)

    challenges = await load_active_for_update(db, user_id)

    # Fail fast on unknown types before anything is written. Balances are
    # recorded even without active challenges so later diffs have a base.
    strategies = {c.id: calculators.get(c.type) for c in challenges}
    deltas = await resolve_deltas(db, user_id, entries, now)

    updates: list[ProgressUpdate] = []
    for challenge in challenges:
        calculator = strategies[challenge.id]
        progress_change = calculator.progress_change(deltas).quantize(CENT, rounding=ROUND_HALF_UP)
        new_amount = calculator.next_amount(Decimal(challenge.current_amount), progress_change)
        percentage = compute_percentage(new_amount, Decimal(challenge.target_amount))

        challenge.current_amount = new_amount
        challenge.progress_percentage = percentage
        challenge.updated_at = now
        await db.flush()

        await record_daily_progress(db, challenge, today, progress_change)

        completed = False
        if percentage >= HUNDRED:
            completed = await complete_challenge(
                db, challenge, user_id, events=events, today=today, points_per_level=points_per_level,
            )

        updates.append(ProgressUpdate(
            challenge_id=challenge.id,
            progress_change=progress_change,
            new_current_amount=new_amount,
            progress_percentage=percentage,
            completed=completed,
        ))

    logger.debug("Evaluated %d challenges for user %s", len(updates), user_id)
    return updates
