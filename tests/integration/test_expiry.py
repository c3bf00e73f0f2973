"""Expiry sweep tests."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from trilo.db.models import STATUS_ACTIVE, STATUS_COMPLETED, STATUS_FAILED, UserChallenge

START = date(2026, 10, 1)
USER = "user-1"


async def statuses(fetch_all) -> dict:
    return {c.id: c.status for c in await fetch_all(UserChallenge)}


class TestExpireChallenges:
    """Only overdue, incomplete, active challenges fail."""

    @pytest.mark.asyncio
    async def test_fails_overdue_challenge(self, ledger, add_template, fetch_all):
        template = await add_template(name="Week", duration_days=7)
        challenge_id = await ledger.create_challenge(USER, template.id, today=START)

        failed = await ledger.expire_challenges(today=START + timedelta(days=8))

        assert failed == 1
        assert (await statuses(fetch_all))[challenge_id] == STATUS_FAILED
        assert await ledger.list_active_challenges(USER) == []

    @pytest.mark.asyncio
    async def test_end_date_itself_is_not_overdue(self, ledger, add_template, fetch_all):
        template = await add_template(name="Week", duration_days=7)
        challenge_id = await ledger.create_challenge(USER, template.id, today=START)

        assert await ledger.expire_challenges(today=START + timedelta(days=7)) == 0
        assert (await statuses(fetch_all))[challenge_id] == STATUS_ACTIVE

    @pytest.mark.asyncio
    async def test_completed_challenges_untouched(self, ledger, add_template, fetch_all):
        template = await add_template(name="Quick", duration_days=7, target_amount=Decimal("50"))
        challenge_id = await ledger.create_challenge(USER, template.id, today=START)
        await ledger.update_progress(USER, [{"type": "savings", "delta": "50"}], today=START)

        assert await ledger.expire_challenges(today=START + timedelta(days=30)) == 0
        assert (await statuses(fetch_all))[challenge_id] == STATUS_COMPLETED

    @pytest.mark.asyncio
    async def test_scoped_to_one_user(self, ledger, add_template, fetch_all):
        template = await add_template(name="Week", duration_days=7)
        mine = await ledger.create_challenge(USER, template.id, today=START)
        theirs = await ledger.create_challenge("user-2", template.id, today=START)

        assert await ledger.expire_challenges(USER, today=START + timedelta(days=10)) == 1

        current = await statuses(fetch_all)
        assert current[mine] == STATUS_FAILED
        assert current[theirs] == STATUS_ACTIVE

    @pytest.mark.asyncio
    async def test_failed_challenge_no_longer_progresses(self, ledger, add_template):
        template = await add_template(name="Week", duration_days=7)
        await ledger.create_challenge(USER, template.id, today=START)
        await ledger.expire_challenges(today=START + timedelta(days=8))

        updates = await ledger.update_progress(
            USER, [{"type": "savings", "delta": "500"}], today=START + timedelta(days=9),
        )
        assert updates == []
        assert await ledger.get_score(USER) is None
