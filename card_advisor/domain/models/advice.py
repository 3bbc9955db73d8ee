"""
Advice request and response models
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from card_advisor.utils.serialization import to_jsonable

from .entities import CardType, PriceRange, Recommendation, RiskCategory, RiskLevel
from .portfolio import MarketOverview


@dataclass(frozen=True)
class AdviceRequest:
    """
    Every recognized advice option with its default.
    Built once by the request validator; never mutated afterwards.
    """
    user_id: str
    investment_amount: Decimal
    risk_level: RiskLevel = RiskLevel.MODERATE
    time_horizon_days: int = 180
    price_range: PriceRange = PriceRange.ALL
    card_types: tuple[CardType, ...] = tuple(CardType)
    custom_min_price: Optional[Decimal] = None
    custom_max_price: Optional[Decimal] = None


@dataclass(frozen=True)
class RiskAssessment:
    overall_risk: float
    max_risk: float
    risk_level: RiskLevel
    risk_tolerance: float
    is_within_tolerance: bool
    risk_breakdown: Mapping[RiskCategory, float]
    risk_mitigation: list[str] = field(default_factory=list)
    risk_factors: list[str] = field(default_factory=list)
    is_default: bool = False


@dataclass(frozen=True)
class ExpectedReturn:
    annualized: float
    monthly: float
    quarterly: float
    confidence: float


@dataclass(frozen=True)
class PortfolioAdvice:
    total_recommended: Decimal
    allocation_percentage: float
    diversification: float
    combined_diversification: float
    expected_return: ExpectedReturn
    average_time_horizon: float
    sharpe_ratio: float
    rebalancing_advice: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ExitPlan:
    card_id: str
    card_name: str
    take_profit: tuple[Decimal, ...]
    stop_loss: tuple[Decimal, ...]


@dataclass(frozen=True)
class InvestmentStrategy:
    approach: str
    timing: str
    monitoring_frequency: str
    monitoring_metrics: tuple[str, ...]
    exit_plans: tuple[ExitPlan, ...] = ()


@dataclass(frozen=True)
class StressScenarioResult:
    scenario: str
    impact: float
    portfolio_value: Decimal
    recommendation_impacts: Mapping[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class PortfolioRiskReview:
    """Standalone review of a user's existing portfolio"""
    user_id: str
    portfolio_risk: RiskLevel
    diversification: float
    performance: float
    recommendations: list[str] = field(default_factory=list)
    portfolio_available: bool = True


@dataclass(frozen=True)
class AdviceResponse:
    request: AdviceRequest
    recommendations: list[Recommendation]
    risk_assessment: RiskAssessment
    portfolio_advice: PortfolioAdvice
    investment_strategy: InvestmentStrategy
    stress_test: list[StressScenarioResult]
    market_overview: MarketOverview
    confidence: float
    degraded_signal_ratio: float
    generated_at: datetime
    message: Optional[str] = None

    @property
    def total_recommended(self) -> Decimal:
        return sum((r.recommended_amount for r in self.recommendations), Decimal("0"))

    def to_dict(self) -> dict[str, Any]:
        return to_jsonable(self)
