"""Template catalog tests."""

from decimal import Decimal

import pytest

from trilo.challenges.seed import TEMPLATE_SEED_DATA
from trilo.db.models import ChallengeTemplate


class TestListTemplates:
    """list_templates returns active templates, easiest first."""

    @pytest.mark.asyncio
    async def test_seeded_catalog_order(self, ledger):
        await ledger.seed_templates()
        templates = await ledger.list_templates()

        assert [t.name for t in templates] == [
            "Savings Starter",
            "Card Crusher",
            "Spending Watch",
            "Monthly Saver",
            "Rainy Day Fund",
        ]
        assert templates[0].target_amount == Decimal("100")

    @pytest.mark.asyncio
    async def test_inactive_templates_are_hidden(self, ledger, add_template):
        await add_template(name="Visible")
        await add_template(name="Retired", is_active=False)

        names = [t.name for t in await ledger.list_templates()]
        assert names == ["Visible"]

    @pytest.mark.asyncio
    async def test_empty_catalog(self, ledger):
        assert await ledger.list_templates() == []


class TestSeedTemplates:
    @pytest.mark.asyncio
    async def test_reseeding_does_not_duplicate(self, ledger, count_rows):
        assert await ledger.seed_templates() == len(TEMPLATE_SEED_DATA)
        await ledger.seed_templates()
        assert await count_rows(ChallengeTemplate) == len(TEMPLATE_SEED_DATA)
