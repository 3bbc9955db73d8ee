"""
Unit Tests for AllocationEngine
"""

from decimal import Decimal

import pytest

from card_advisor.domain.models import OpportunityAnalysis, RiskLevel
from card_advisor.domain.services.allocation_engine import AllocationEngine


def _opportunities(card_factory, n):
    return [
        OpportunityAnalysis(
            card=card_factory(f"c{i}"),
            score=0.9 - i * 0.01,
            factors={},
            risk=0.2,
            potential_return=0.2,
            time_to_maturity=90,
        )
        for i in range(n)
    ]


@pytest.fixture()
def engine(advice_config):
    return AllocationEngine(advice_config.risk_levels)


@pytest.mark.unit
class TestAllocationEngine:

    def test_no_opportunities(self, engine):
        assert engine.allocate(Decimal("1000"), RiskLevel.MODERATE, []) == []

    def test_single_opportunity_gets_everything(self, engine, card_factory):
        amounts = engine.allocate(Decimal("1000.00"), RiskLevel.MODERATE, _opportunities(card_factory, 1))
        assert amounts == [Decimal("1000.00")]

    def test_conservative_is_equal_split(self, engine, card_factory):
        amounts = engine.allocate(Decimal("900.00"), RiskLevel.CONSERVATIVE, _opportunities(card_factory, 3))
        assert amounts == [Decimal("300.00")] * 3

    def test_aggressive_tilts_toward_top_ranked(self, engine, card_factory):
        amounts = engine.allocate(Decimal("1000.00"), RiskLevel.AGGRESSIVE, _opportunities(card_factory, 3))
        # weights 1.4 / 1.2 / 1.0, remainder to the first
        assert amounts == [Decimal("388.90"), Decimal("333.33"), Decimal("277.77")]

    @pytest.mark.parametrize("level", list(RiskLevel))
    @pytest.mark.parametrize("total", ["100.00", "333.33", "1000.00", "9999.99"])
    @pytest.mark.parametrize("n", [1, 2, 3, 7, 10])
    def test_sums_exactly_to_total(self, engine, card_factory, level, total, n):
        amounts = engine.allocate(Decimal(total), level, _opportunities(card_factory, n))

        assert len(amounts) == n
        assert sum(amounts) == Decimal(total)
        assert all(a >= 0 for a in amounts)

    @pytest.mark.parametrize("level", [RiskLevel.MODERATE, RiskLevel.AGGRESSIVE])
    def test_earlier_ranks_get_more(self, engine, card_factory, level):
        amounts = engine.allocate(Decimal("5000.00"), level, _opportunities(card_factory, 5))
        assert all(earlier > later for earlier, later in zip(amounts, amounts[1:]))
