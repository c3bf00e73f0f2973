"""Snapshot delta resolution against the persisted balance history."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trilo.challenges.schemas import AccountSnapshotEntry
from trilo.db.dialect import upsert_insert
from trilo.db.models import AccountBalance

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class AccountDelta:
    """A snapshot entry reduced to the numbers calculators consume."""

    account_type: str
    subtype: str | None
    delta: Decimal
    spend: Decimal


async def load_balances(db: AsyncSession, user_id: str) -> dict[str, Decimal]:
    """Return the last observed balance per account for a user."""
    result = await db.execute(
        select(AccountBalance.account_id, AccountBalance.balance).where(AccountBalance.user_id == user_id)
    )
    return {row.account_id: Decimal(row.balance) for row in result}


async def record_balance(
    db: AsyncSession,
    user_id: str,
    account_id: str,
    account_type: str,
    balance: Decimal,
    now: datetime,
) -> None:
    """Upsert the latest observed balance for one account."""
    stmt = upsert_insert(db, AccountBalance).values(
        user_id=user_id,
        account_id=account_id,
        account_type=account_type,
        balance=balance,
        observed_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "account_id"],
        set_={
            "account_type": stmt.excluded.account_type,
            "balance": stmt.excluded.balance,
            "observed_at": stmt.excluded.observed_at,
        },
    )
    await db.execute(stmt)


async def resolve_deltas(
    db: AsyncSession,
    user_id: str,
    entries: list[AccountSnapshotEntry],
    now: datetime | None = None,
) -> list[AccountDelta]:
    """Turn snapshot entries into balance deltas and update the balance history.

    An explicit ``delta`` wins. Otherwise the change is ``balance`` minus the
    entry's ``previous_balance`` or, failing that, the stored balance for the
    account. An account seen for the first time contributes no change.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    known = await load_balances(db, user_id)
    deltas: list[AccountDelta] = []

    for entry in entries:
        delta = ZERO
        if entry.delta is not None:
            delta = entry.delta
        elif entry.balance is not None:
            if entry.previous_balance is not None:
                delta = entry.balance - entry.previous_balance
            elif entry.account_id in known:
                delta = entry.balance - known[entry.account_id]
            else:
                logger.debug("First balance for account %s, no change recorded", entry.account_id)

        if entry.balance is not None and entry.account_id:
            await record_balance(db, user_id, entry.account_id, entry.type, entry.balance, now)
            known[entry.account_id] = entry.balance

        deltas.append(AccountDelta(
            account_type=entry.type.lower(),
            subtype=entry.subtype.lower() if entry.subtype else None,
            delta=delta,
            spend=entry.spend if entry.spend is not None else ZERO,
        ))

    return deltas
