"""
RECOMMENDATION BUILDER
Turn scored, funded opportunities into user-facing recommendations

RESPONSIBILITIES:
- Decide which opportunities qualify for the user's risk profile
- Derive the action from the score
- Explain the recommendation in plain sentences

RULES:
❌ No re-scoring
✅ Action derives from score alone, through ordered thresholds
✅ Reasoning is never empty
"""

import logging
from decimal import Decimal
from typing import List, Sequence

from card_advisor.domain.models import (
    Action,
    OpportunityAnalysis,
    Recommendation,
    RiskLevel,
    SignalName,
)
from card_advisor.domain.services.config_engine import AdviceConfig

logger = logging.getLogger(__name__)

FACTOR_REASONS = {
    SignalName.PRICE_TREND: "Strong price trend shows upward momentum",
    SignalName.VOLUME: "Active trading volume shows strong market interest",
    SignalName.SENTIMENT: "Optimistic market sentiment and investor confidence",
    SignalName.TECHNICAL: "Technical indicators support further price gains",
    SignalName.FUNDAMENTAL: "Strong fundamentals with long-term collectible value",
}

GENERIC_REASON = "Combined signal analysis indicates investment value"


class RecommendationBuilder:
    """
    Recommendation Builder
    Filters opportunities and explains the ones that are recommended
    """

    def __init__(self, config: AdviceConfig):
        self.config = config

    def qualifies(self, opportunity: OpportunityAnalysis, risk_level: RiskLevel) -> bool:
        """Score above the recommendation threshold and risk within the profile limit"""
        max_risk = self.config.risk_profile(risk_level).max_risk
        return (
            opportunity.score > self.config.thresholds.recommendation_min_score
            and opportunity.risk <= max_risk
        )

    def determine_action(self, score: float) -> Action:
        thresholds = self.config.thresholds.action
        if score > thresholds.strong_buy:
            return Action.STRONG_BUY
        if score > thresholds.buy:
            return Action.BUY
        if score > thresholds.hold:
            return Action.HOLD
        return Action.WAIT

    def build_reasoning(self, opportunity: OpportunityAnalysis) -> List[str]:
        minimum = self.config.thresholds.reasoning_min_factor_score
        reasons = [
            FACTOR_REASONS[name]
            for name in SignalName
            if name in opportunity.factors and opportunity.factors[name].score > minimum
        ]
        return reasons or [GENERIC_REASON]

    def build(self, opportunity: OpportunityAnalysis, allocated_amount: Decimal) -> Recommendation:
        return Recommendation(
            card=opportunity.card,
            recommended_amount=allocated_amount,
            confidence=opportunity.score,
            risk=opportunity.risk,
            potential_return=opportunity.potential_return,
            time_to_maturity=opportunity.time_to_maturity,
            reasoning=self.build_reasoning(opportunity),
            action=self.determine_action(opportunity.score),
            factors=opportunity.factors,
        )

    def build_all(
        self,
        opportunities: Sequence[OpportunityAnalysis],
        allocation: Sequence[Decimal],
        risk_level: RiskLevel
    ) -> List[Recommendation]:
        """
        Build recommendations for qualifying opportunities

        Args:
            opportunities: Ranked opportunities
            allocation: Amount per opportunity (same order)
            risk_level: User risk profile

        Returns:
            Recommendations in rank order
        """
        if len(opportunities) != len(allocation):
            raise ValueError("Allocation must have one amount per opportunity")

        recommendations = [
            self.build(opportunity, amount)
            for opportunity, amount in zip(opportunities, allocation)
            if self.qualifies(opportunity, risk_level)
        ]

        skipped = len(opportunities) - len(recommendations)
        if skipped:
            logger.info(f"{skipped} opportunities did not qualify for {risk_level.value}")
        return recommendations
