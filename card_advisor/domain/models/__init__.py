"""
Domain Models Package
Export all domain entities
"""

from .entities import (
    # Enums
    Action,
    CardType,
    PriceRange,
    RiskCategory,
    RiskLevel,
    SignalName,

    # Entities
    CardCandidate,
    OpportunityAnalysis,
    PricePoint,
    Recommendation,
    SentimentSnapshot,
    SignalResult,
    TechnicalSnapshot,
    VolumeSnapshot,

    # Helpers
    clamp,
    to_decimal,
)
from .portfolio import Holding, MarketOverview, Portfolio
from .advice import (
    AdviceRequest,
    AdviceResponse,
    ExitPlan,
    ExpectedReturn,
    InvestmentStrategy,
    PortfolioAdvice,
    PortfolioRiskReview,
    RiskAssessment,
    StressScenarioResult,
)
from .results import FetchResult, Ok, Unavailable, value_or

__all__ = [
    # Enums
    "Action",
    "CardType",
    "PriceRange",
    "RiskCategory",
    "RiskLevel",
    "SignalName",

    # Entities
    "CardCandidate",
    "OpportunityAnalysis",
    "PricePoint",
    "Recommendation",
    "SentimentSnapshot",
    "SignalResult",
    "TechnicalSnapshot",
    "VolumeSnapshot",
    "Holding",
    "MarketOverview",
    "Portfolio",

    # Advice
    "AdviceRequest",
    "AdviceResponse",
    "ExitPlan",
    "ExpectedReturn",
    "InvestmentStrategy",
    "PortfolioAdvice",
    "PortfolioRiskReview",
    "RiskAssessment",
    "StressScenarioResult",

    # Results
    "FetchResult",
    "Ok",
    "Unavailable",
    "value_or",

    # Helpers
    "clamp",
    "to_decimal",
]
