"""
ALLOCATION ENGINE
Split the investment amount across ranked opportunities

RESPONSIBILITIES:
- One amount per opportunity, in input (rank) order
- Tilt toward higher-ranked opportunities per risk profile
- Amounts sum exactly to the total

RULES:
❌ No filtering (recommendation builder decides what is shown)
❌ No prices or units
✅ Amounts in cents, rounded down; remainder to the top-ranked opportunity
✅ Deterministic output
"""

from decimal import ROUND_DOWN, Decimal
from typing import List, Mapping, Sequence

from card_advisor.domain.models import OpportunityAnalysis, RiskLevel
from card_advisor.domain.services.config_engine import RiskProfile

CENT = Decimal('0.01')


class AllocationEngine:
    """
    Allocation Engine
    Distributes the investment amount across opportunities
    """

    def __init__(self, risk_profiles: Mapping[RiskLevel, RiskProfile]):
        """
        Initialize allocation engine

        Args:
            risk_profiles: Risk level -> profile (allocation tilt)
        """
        self.risk_profiles = risk_profiles

    def allocate(
        self,
        total_amount: Decimal,
        risk_level: RiskLevel,
        opportunities: Sequence[OpportunityAnalysis]
    ) -> List[Decimal]:
        """
        Allocate amount across opportunities

        Args:
            total_amount: Amount to allocate
            risk_level: User risk profile
            opportunities: Ranked opportunities (best first)

        Returns:
            Amount per opportunity, same order as input
        """
        n = len(opportunities)
        if n == 0 or total_amount <= Decimal('0'):
            return [Decimal('0.00')] * n

        weights = self._tilt_weights(n, self.risk_profiles[risk_level].allocation_tilt)
        weight_total = sum(weights)

        amounts = [
            (total_amount * weight / weight_total).quantize(CENT, rounding=ROUND_DOWN)
            for weight in weights
        ]

        # Rounding remainder goes to the top-ranked opportunity
        remainder = total_amount.quantize(CENT, rounding=ROUND_DOWN) - sum(amounts)
        amounts[0] += remainder
        return amounts

    @staticmethod
    def _tilt_weights(n: int, tilt: float) -> List[Decimal]:
        """
        Relative weight per rank

        Rank i (0 = best) gets 1 + tilt * (n - 1 - i), so with a positive
        tilt every earlier opportunity gets strictly more than the next.
        """
        tilt_dec = Decimal(str(tilt))
        return [Decimal('1') + tilt_dec * (n - 1 - i) for i in range(n)]
