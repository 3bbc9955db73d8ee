"""
RISK AGGREGATOR
Assess the risk of a recommendation set against the user's tolerance

RESPONSIBILITIES:
- Five sub-risks: market, liquidity, concentration, volatility, regulatory
- Weighted overall risk and tolerance check
- Mitigation advice and risk factors

RULES:
❌ Never fails the request (falls back to the default assessment)
✅ Every sub-risk clamped to [0, 1]
✅ is_within_tolerance == (overall_risk <= risk_tolerance)
"""

import logging
from decimal import Decimal
from statistics import fmean
from typing import Dict, List, Sequence

from card_advisor.domain.models import (
    MarketOverview,
    Portfolio,
    Recommendation,
    RiskAssessment,
    RiskCategory,
    RiskLevel,
    SignalName,
    clamp,
)
from card_advisor.domain.services.config_engine import AdviceConfig

logger = logging.getLogger(__name__)

# Documented fallback when the assessment itself cannot be computed
DEFAULT_RISK_BREAKDOWN = {
    RiskCategory.MARKET: 0.3,
    RiskCategory.LIQUIDITY: 0.4,
    RiskCategory.CONCENTRATION: 0.5,
    RiskCategory.VOLATILITY: 0.3,
    RiskCategory.REGULATORY: 0.2,
}
DEFAULT_OVERALL_RISK = 0.3

MITIGATION_ADVICE = {
    RiskCategory.MARKET: "Spread purchases over time to reduce exposure to market swings",
    RiskCategory.LIQUIDITY: "Prefer actively traded cards so positions can be exited quickly",
    RiskCategory.CONCENTRATION: "Diversify across more cards to reduce concentration",
    RiskCategory.VOLATILITY: "Set stop-loss levels to limit losses from price volatility",
    RiskCategory.REGULATORY: "Keep purchase records and follow marketplace policy changes",
}
LOW_DIVERSIFICATION_ADVICE = "Existing portfolio is poorly diversified; favor cards from other games"


def herfindahl_index(amounts: Sequence[Decimal]) -> float:
    """HHI over allocation weights; equal weights when the total is zero"""
    if not amounts:
        return 0.0
    total = sum(amounts, Decimal("0"))
    if total <= Decimal("0"):
        return 1.0 / len(amounts)
    return float(sum((amount / total) ** 2 for amount in amounts))


class RiskAggregator:
    """
    Risk Aggregator
    Combines recommendation risk with market and portfolio context
    """

    def __init__(self, config: AdviceConfig):
        self.config = config

    def assess(
        self,
        recommendations: Sequence[Recommendation],
        risk_level: RiskLevel,
        portfolio: Portfolio,
        market_overview: MarketOverview
    ) -> RiskAssessment:
        """
        Assess risk of the recommendation set

        Returns:
            RiskAssessment; the default assessment if computation fails
        """
        tolerance = self.config.risk_profile(risk_level).max_risk

        if not recommendations:
            return self._zero_exposure(risk_level, tolerance)

        try:
            breakdown = self._breakdown(recommendations, market_overview)
            overall = self._weighted(breakdown)
            max_risk = max(clamp(rec.risk) for rec in recommendations)
            return RiskAssessment(
                overall_risk=overall,
                max_risk=max_risk,
                risk_level=risk_level,
                risk_tolerance=tolerance,
                is_within_tolerance=overall <= tolerance,
                risk_breakdown=breakdown,
                risk_mitigation=self._mitigation(breakdown, portfolio),
                risk_factors=self._risk_factors(recommendations, overall),
            )
        except Exception:
            logger.exception("Risk assessment failed; using default assessment")
            return self.default_assessment(risk_level)

    def default_assessment(self, risk_level: RiskLevel) -> RiskAssessment:
        """Preset assessment; tolerance is treated as satisfied"""
        tolerance = self.config.risk_profile(risk_level).max_risk
        overall = min(DEFAULT_OVERALL_RISK, tolerance)
        return RiskAssessment(
            overall_risk=overall,
            max_risk=overall,
            risk_level=risk_level,
            risk_tolerance=tolerance,
            is_within_tolerance=True,
            risk_breakdown=dict(DEFAULT_RISK_BREAKDOWN),
            risk_mitigation=["Review the portfolio regularly"],
            risk_factors=["Risk assessment unavailable; default values applied"],
            is_default=True,
        )

    def _zero_exposure(self, risk_level: RiskLevel, tolerance: float) -> RiskAssessment:
        return RiskAssessment(
            overall_risk=0.0,
            max_risk=0.0,
            risk_level=risk_level,
            risk_tolerance=tolerance,
            is_within_tolerance=True,
            risk_breakdown={category: 0.0 for category in RiskCategory},
            risk_mitigation=[],
            risk_factors=["No recommended investment opportunities"],
        )

    def _breakdown(
        self,
        recommendations: Sequence[Recommendation],
        market_overview: MarketOverview
    ) -> Dict[RiskCategory, float]:
        return {
            RiskCategory.MARKET: self._market_risk(recommendations, market_overview),
            RiskCategory.LIQUIDITY: self._liquidity_risk(recommendations),
            RiskCategory.CONCENTRATION: clamp(
                herfindahl_index([rec.recommended_amount for rec in recommendations])
            ),
            RiskCategory.VOLATILITY: self._volatility_risk(recommendations),
            RiskCategory.REGULATORY: clamp(self.config.market.regulatory_risk),
        }

    def _weighted(self, breakdown: Dict[RiskCategory, float]) -> float:
        weights = self.config.risk_weights
        total_weight = sum(weights.values())
        if total_weight <= 0:
            raise ValueError("Risk weights must be positive")
        return clamp(sum(breakdown[c] * w for c, w in weights.items()) / total_weight)

    def _market_risk(self, recommendations: Sequence[Recommendation], overview: MarketOverview) -> float:
        market_volatility = overview.volatility.get(
            "overall", self.config.market.default_overview.overall_volatility
        )
        sector_risk = fmean(
            self.config.market.sector_risk_for(rec.card.category) for rec in recommendations
        )
        return clamp((clamp(market_volatility) + sector_risk) / 2)

    def _liquidity_risk(self, recommendations: Sequence[Recommendation]) -> float:
        reference = self.config.signals.reference_volume
        risks = []
        for rec in recommendations:
            volume = rec.factors.get(SignalName.VOLUME)
            if volume is None:
                average, trend = 500.0, 0.0
            else:
                average, trend = volume.metric("average", 500.0), volume.metric("trend")
            liquidity = (min(1.0, max(0.0, average) / reference) + (clamp(trend, -1.0, 1.0) + 1) / 2) / 2
            risks.append(1 - clamp(liquidity))
        return clamp(fmean(risks))

    def _volatility_risk(self, recommendations: Sequence[Recommendation]) -> float:
        volatilities = []
        for rec in recommendations:
            price = rec.factors.get(SignalName.PRICE_TREND)
            volatilities.append(clamp(price.metric("volatility", 0.5) if price else 0.5))
        return clamp(fmean(volatilities))

    def _mitigation(self, breakdown: Dict[RiskCategory, float], portfolio: Portfolio) -> List[str]:
        threshold = self.config.thresholds.mitigation
        advice = [
            MITIGATION_ADVICE[category]
            for category in RiskCategory
            if breakdown[category] > threshold
        ]
        if portfolio.holdings and portfolio.diversification < self.config.thresholds.low_diversification:
            advice.append(LOW_DIVERSIFICATION_ADVICE)
        return advice

    def _risk_factors(self, recommendations: Sequence[Recommendation], overall: float) -> List[str]:
        factors = []
        if overall > self.config.thresholds.high_risk:
            factors.append("Overall risk is high")
        if len(recommendations) < 3:
            factors.append("Portfolio is concentrated in few investments")

        very_high = self.config.thresholds.very_high_risk
        high_risk_count = sum(1 for rec in recommendations if rec.risk > very_high)
        if high_risk_count:
            factors.append(f"Includes {high_risk_count} high-risk investment(s)")
        return factors
