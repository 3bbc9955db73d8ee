"""
PORTFOLIO ENGINE
Portfolio snapshot, plan-level advice, strategy and stress testing

RESPONSIBILITIES:
- Summarize the user's existing holdings
- Plan-level advice for a recommendation set (returns, diversification, rebalancing)
- Investment strategy with exit plans
- Scenario stress test
- Standalone portfolio risk review

RULES:
❌ No collaborator calls (inputs are already fetched)
✅ Currency in Decimal, quantized to cents
✅ Deterministic output
"""

from decimal import Decimal
from statistics import fmean
from typing import List, Optional, Sequence

from card_advisor.domain.models import (
    ExitPlan,
    ExpectedReturn,
    Holding,
    InvestmentStrategy,
    Portfolio,
    PortfolioAdvice,
    Recommendation,
    RiskAssessment,
    RiskLevel,
    SignalName,
    StressScenarioResult,
)
from card_advisor.domain.services.config_engine import AdviceConfig
from card_advisor.domain.services.risk_aggregator import herfindahl_index

CENT = Decimal('0.01')

DEFAULT_TIME_HORIZON = 180.0
DEFAULT_HOLDING_RISK = 0.5
POOR_PERFORMANCE_PCT = -10.0

TAKE_PROFIT_STEPS = (Decimal('1.10'), Decimal('1.20'), Decimal('1.30'))
STOP_LOSS_STEPS = (Decimal('0.95'), Decimal('0.90'), Decimal('0.85'))


def diversification_index(amounts: Sequence[Decimal]) -> float:
    """1 - HHI, floored at 0; 0 when there is nothing to diversify"""
    if not amounts:
        return 0.0
    return max(0.0, 1.0 - herfindahl_index(amounts))


def review_frequency(days: float) -> str:
    if days < 90:
        return "weekly"
    if days < 180:
        return "monthly"
    return "quarterly"


class PortfolioEngine:
    """
    Portfolio Engine
    Everything the advice response says about the plan as a whole
    """

    def __init__(self, config: AdviceConfig):
        self.config = config

    # ------------------------------------------------------------------
    # PORTFOLIO SNAPSHOT
    # ------------------------------------------------------------------

    def build_portfolio(self, holdings: Sequence[Holding]) -> Portfolio:
        """Summarize holdings into a Portfolio"""
        if not holdings:
            return self.default_portfolio()

        values = [holding.total_value for holding in holdings]
        mean_risk = fmean(
            holding.risk if holding.risk is not None else DEFAULT_HOLDING_RISK
            for holding in holdings
        )
        if mean_risk < 0.3:
            risk_level = RiskLevel.CONSERVATIVE
        elif mean_risk < 0.6:
            risk_level = RiskLevel.MODERATE
        else:
            risk_level = RiskLevel.AGGRESSIVE

        return Portfolio(
            total_value=sum(values, Decimal('0')).quantize(CENT),
            diversification=diversification_index(values),
            risk_level=risk_level,
            performance=fmean(holding.performance for holding in holdings),
            holdings=tuple(holdings),
        )

    @staticmethod
    def default_portfolio() -> Portfolio:
        return Portfolio(
            total_value=Decimal('0.00'),
            diversification=0.0,
            risk_level=RiskLevel.MODERATE,
            performance=0.0,
            holdings=(),
        )

    def risk_recommendations(self, portfolio: Portfolio) -> List[str]:
        """Review an existing portfolio"""
        advice = []
        if portfolio.diversification < self.config.thresholds.low_diversification:
            advice.append("Increase portfolio diversification")
        if portfolio.performance < POOR_PERFORMANCE_PCT:
            advice.append("Re-evaluate the investment strategy")
        if portfolio.risk_level == RiskLevel.AGGRESSIVE:
            advice.append("Control risk exposure; consider a lower risk level")
        return advice

    # ------------------------------------------------------------------
    # PLAN-LEVEL ADVICE
    # ------------------------------------------------------------------

    def portfolio_advice(
        self,
        recommendations: Sequence[Recommendation],
        total_amount: Decimal,
        portfolio: Portfolio,
        risk_level: RiskLevel = RiskLevel.MODERATE
    ) -> PortfolioAdvice:
        """
        Plan-level advice for a recommendation set

        Args:
            recommendations: Recommended investments
            total_amount: Requested investment amount
            portfolio: Existing portfolio
            risk_level: User risk profile (rebalance frequency)
        """
        amounts = [rec.recommended_amount for rec in recommendations]
        total_recommended = sum(amounts, Decimal('0'))

        allocation_pct = 0.0
        if total_amount > Decimal('0'):
            allocation_pct = float((total_recommended / total_amount * 100).quantize(CENT))

        holding_values = [holding.total_value for holding in portfolio.holdings]

        return PortfolioAdvice(
            total_recommended=total_recommended,
            allocation_percentage=allocation_pct,
            diversification=diversification_index(amounts),
            combined_diversification=diversification_index(holding_values + amounts),
            expected_return=self._expected_return(recommendations, total_recommended),
            average_time_horizon=self._average_time_horizon(recommendations),
            sharpe_ratio=self._sharpe_ratio(recommendations),
            rebalancing_advice=self._rebalancing_advice(recommendations, risk_level),
        )

    @staticmethod
    def _expected_return(recommendations: Sequence[Recommendation], total: Decimal) -> ExpectedReturn:
        if not recommendations or total <= Decimal('0'):
            return ExpectedReturn(annualized=0.0, monthly=0.0, quarterly=0.0, confidence=0.0)

        annualized = sum(
            rec.potential_return * float(rec.recommended_amount) for rec in recommendations
        ) / float(total)
        return ExpectedReturn(
            annualized=annualized,
            monthly=annualized / 12,
            quarterly=annualized / 4,
            confidence=fmean(rec.confidence for rec in recommendations),
        )

    @staticmethod
    def _average_time_horizon(recommendations: Sequence[Recommendation]) -> float:
        if not recommendations:
            return DEFAULT_TIME_HORIZON
        return fmean(rec.time_to_maturity for rec in recommendations)

    @staticmethod
    def _sharpe_ratio(recommendations: Sequence[Recommendation]) -> float:
        if not recommendations:
            return 0.0
        mean_risk = fmean(rec.risk for rec in recommendations)
        if mean_risk <= 0:
            return 0.0
        return fmean(rec.potential_return for rec in recommendations) / mean_risk

    def _rebalancing_advice(self, recommendations: Sequence[Recommendation], risk_level: RiskLevel) -> List[str]:
        if not recommendations:
            return ["Wait for better investment opportunities"]

        horizon = self._average_time_horizon(recommendations)
        rebalance_days = self.config.risk_profile(risk_level).rebalance_frequency_days
        advice = [
            f"Review portfolio performance {review_frequency(horizon)}",
            f"Rebalance every {rebalance_days} days",
        ]

        high_risk_count = sum(1 for rec in recommendations if rec.risk > self.config.thresholds.high_risk)
        if high_risk_count:
            advice.append(f"Monitor {high_risk_count} high-risk investment(s) closely")
        return advice

    # ------------------------------------------------------------------
    # STRATEGY
    # ------------------------------------------------------------------

    def investment_strategy(
        self,
        recommendations: Sequence[Recommendation],
        risk_assessment: RiskAssessment,
        time_horizon: int
    ) -> InvestmentStrategy:
        """Approach, entry timing, monitoring and exit plans"""
        if not recommendations:
            return InvestmentStrategy(
                approach="wait",
                timing="wait",
                monitoring_frequency=review_frequency(time_horizon),
                monitoring_metrics=("price", "volume"),
            )

        approach = self._approach(recommendations, time_horizon)
        metrics = ("price", "volume", "sentiment")
        if approach == "momentum":
            metrics += ("technical",)

        return InvestmentStrategy(
            approach=approach,
            timing=self._timing(risk_assessment),
            monitoring_frequency=review_frequency(time_horizon),
            monitoring_metrics=metrics,
            exit_plans=tuple(self._exit_plan(rec) for rec in recommendations),
        )

    @staticmethod
    def _approach(recommendations: Sequence[Recommendation], time_horizon: int) -> str:
        if time_horizon < 90:
            return "momentum"

        def mean_factor(name: SignalName) -> float:
            scores = [rec.factors[name].score for rec in recommendations if name in rec.factors]
            return fmean(scores) if scores else 0.5

        if mean_factor(SignalName.FUNDAMENTAL) >= mean_factor(SignalName.PRICE_TREND):
            return "value"
        return "growth"

    @staticmethod
    def _timing(risk_assessment: RiskAssessment) -> str:
        if risk_assessment.overall_risk < 0.3:
            return "immediate"
        if risk_assessment.is_within_tolerance:
            return "dollar_cost_averaging"
        return "gradual"

    @staticmethod
    def _exit_plan(rec: Recommendation) -> ExitPlan:
        price = rec.card.current_price
        return ExitPlan(
            card_id=rec.card.id,
            card_name=rec.card.name,
            take_profit=tuple((price * step).quantize(CENT) for step in TAKE_PROFIT_STEPS),
            stop_loss=tuple((price * step).quantize(CENT) for step in STOP_LOSS_STEPS),
        )

    # ------------------------------------------------------------------
    # STRESS TEST
    # ------------------------------------------------------------------

    def stress_test(
        self,
        recommendations: Sequence[Recommendation],
        portfolio: Optional[Portfolio] = None
    ) -> List[StressScenarioResult]:
        """Value of the combined position under each configured scenario"""
        existing = portfolio.total_value if portfolio else Decimal('0')
        total_recommended = sum((rec.recommended_amount for rec in recommendations), Decimal('0'))

        results = []
        for scenario, impact in self.config.stress_scenarios.items():
            factor = Decimal('1') + Decimal(str(impact))
            results.append(StressScenarioResult(
                scenario=scenario,
                impact=impact,
                portfolio_value=((existing + total_recommended) * factor).quantize(CENT),
                recommendation_impacts={
                    rec.card.id: (rec.recommended_amount * factor).quantize(CENT)
                    for rec in recommendations
                },
            ))
        return results
