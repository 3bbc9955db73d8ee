"""
Unit Tests for RiskAggregator
"""

from decimal import Decimal

import pytest

from card_advisor.domain.models import (
    Action,
    Holding,
    MarketOverview,
    Recommendation,
    RiskCategory,
    RiskLevel,
    SignalName,
    SignalResult,
)
from card_advisor.domain.services.portfolio_engine import PortfolioEngine
from card_advisor.domain.services.risk_aggregator import (
    DEFAULT_RISK_BREAKDOWN,
    RiskAggregator,
    herfindahl_index,
)

OVERVIEW = MarketOverview(volatility={"overall": 0.25})


def _rec(card_factory, card_id="c1", amount="1000.00", risk=0.2, category="pokemon",
         volume=(1000.0, 1.0), volatility=0.0):
    return Recommendation(
        card=card_factory(card_id, category=category),
        recommended_amount=Decimal(amount),
        confidence=0.85,
        risk=risk,
        potential_return=0.2,
        time_to_maturity=90,
        reasoning=["test"],
        action=Action.STRONG_BUY,
        factors={
            SignalName.PRICE_TREND: SignalResult(
                SignalName.PRICE_TREND, 1.0, {"trend": 1.0, "volatility": volatility}
            ),
            SignalName.VOLUME: SignalResult(
                SignalName.VOLUME, 1.0, {"average": volume[0], "trend": volume[1]}
            ),
        },
    )


@pytest.fixture()
def aggregator(advice_config):
    return RiskAggregator(advice_config)


@pytest.fixture()
def empty_portfolio(advice_config):
    return PortfolioEngine(advice_config).default_portfolio()


@pytest.mark.unit
class TestHerfindahlIndex:

    def test_single_position(self):
        assert herfindahl_index([Decimal("500")]) == pytest.approx(1.0)

    @pytest.mark.parametrize("n", [2, 4, 10])
    def test_equal_positions(self, n):
        assert herfindahl_index([Decimal("100")] * n) == pytest.approx(1 / n)

    def test_zero_total_treated_as_equal_weights(self):
        assert herfindahl_index([Decimal("0"), Decimal("0")]) == pytest.approx(0.5)


@pytest.mark.unit
class TestAssess:

    def test_single_low_risk_recommendation(self, aggregator, card_factory, empty_portfolio):
        assessment = aggregator.assess([_rec(card_factory)], RiskLevel.MODERATE, empty_portfolio, OVERVIEW)

        breakdown = assessment.risk_breakdown
        assert breakdown[RiskCategory.MARKET] == pytest.approx((0.25 + 0.3) / 2)
        assert breakdown[RiskCategory.LIQUIDITY] == pytest.approx(0.0)
        assert breakdown[RiskCategory.CONCENTRATION] == pytest.approx(1.0)
        assert breakdown[RiskCategory.VOLATILITY] == pytest.approx(0.0)
        assert breakdown[RiskCategory.REGULATORY] == pytest.approx(0.2)
        assert assessment.overall_risk == pytest.approx(0.275 * 0.25 + 0.15 + 0.02)
        assert assessment.max_risk == pytest.approx(0.2)
        assert assessment.risk_tolerance == 0.4
        assert assessment.is_within_tolerance is True
        assert assessment.is_default is False
        assert "Portfolio is concentrated in few investments" in assessment.risk_factors

    def test_liquidity_uses_volume_factor(self, aggregator, card_factory, empty_portfolio):
        rec = _rec(card_factory, volume=(500.0, -1.0))

        assessment = aggregator.assess([rec], RiskLevel.MODERATE, empty_portfolio, OVERVIEW)

        # liquidity score (0.5 + 0) / 2
        assert assessment.risk_breakdown[RiskCategory.LIQUIDITY] == pytest.approx(0.75)

    def test_concentration_falls_with_diversification(self, aggregator, card_factory, empty_portfolio):
        recs = [_rec(card_factory, f"c{i}", amount="250.00") for i in range(4)]

        assessment = aggregator.assess(recs, RiskLevel.MODERATE, empty_portfolio, OVERVIEW)

        assert assessment.risk_breakdown[RiskCategory.CONCENTRATION] == pytest.approx(0.25)
        assert "Portfolio is concentrated in few investments" not in assessment.risk_factors

    @pytest.mark.parametrize("level", list(RiskLevel))
    def test_tolerance_flag_matches_overall_risk(self, aggregator, card_factory, empty_portfolio, level):
        recs = [_rec(card_factory, volatility=0.9, volume=(10.0, -1.0), category="yugioh")]

        assessment = aggregator.assess(recs, level, empty_portfolio, OVERVIEW)

        assert assessment.is_within_tolerance == (assessment.overall_risk <= assessment.risk_tolerance)
        assert all(0.0 <= v <= 1.0 for v in assessment.risk_breakdown.values())

    def test_mitigation_and_risk_factors(self, aggregator, card_factory, empty_portfolio):
        recs = [_rec(card_factory, volatility=0.9, volume=(0.0, -1.0), risk=0.85)]

        assessment = aggregator.assess(recs, RiskLevel.AGGRESSIVE, empty_portfolio, OVERVIEW)

        assert any("stop-loss" in m for m in assessment.risk_mitigation)
        assert any("actively traded" in m for m in assessment.risk_mitigation)
        assert "Overall risk is high" in assessment.risk_factors
        assert "Includes 1 high-risk investment(s)" in assessment.risk_factors

    def test_poorly_diversified_portfolio_adds_mitigation(self, advice_config, aggregator, card_factory):
        portfolio = PortfolioEngine(advice_config).build_portfolio([
            Holding(id="h1", name="Only card", current_price=Decimal("100")),
        ])

        assessment = aggregator.assess([_rec(card_factory)], RiskLevel.MODERATE, portfolio, OVERVIEW)

        assert any("poorly diversified" in m for m in assessment.risk_mitigation)

    def test_empty_recommendations(self, aggregator, empty_portfolio):
        assessment = aggregator.assess([], RiskLevel.MODERATE, empty_portfolio, OVERVIEW)

        assert assessment.overall_risk == 0.0
        assert assessment.is_within_tolerance is True
        assert set(assessment.risk_breakdown) == set(RiskCategory)
        assert assessment.risk_factors == ["No recommended investment opportunities"]

    @pytest.mark.parametrize("level", list(RiskLevel))
    def test_failure_falls_back_to_default(self, aggregator, card_factory, empty_portfolio, level):
        broken_overview = MarketOverview(volatility={"overall": "not-a-number"})

        assessment = aggregator.assess([_rec(card_factory)], level, empty_portfolio, broken_overview)

        assert assessment.is_default is True
        assert assessment.is_within_tolerance is True
        assert assessment.overall_risk <= assessment.risk_tolerance
        assert assessment.risk_breakdown == DEFAULT_RISK_BREAKDOWN
