"""
Domain Models - Entities
Pure domain objects with no infrastructure dependencies
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Optional


class RiskLevel(str, Enum):
    """User risk profile"""
    CONSERVATIVE = "CONSERVATIVE"
    MODERATE = "MODERATE"
    AGGRESSIVE = "AGGRESSIVE"


class PriceRange(str, Enum):
    """Candidate price band filter"""
    ALL = "ALL"
    BUDGET = "BUDGET"
    MID_RANGE = "MID_RANGE"
    PREMIUM = "PREMIUM"
    LUXURY = "LUXURY"
    CUSTOM = "CUSTOM"


class CardType(str, Enum):
    """Trading card game"""
    POKEMON = "pokemon"
    YUGIOH = "yugioh"
    MTG = "mtg"
    ONEPIECE = "onepiece"


class Action(str, Enum):
    """Recommended action, ordered from weakest to strongest"""
    WAIT = "WAIT"
    HOLD = "HOLD"
    BUY = "BUY"
    STRONG_BUY = "STRONG_BUY"

    @property
    def rank(self) -> int:
        return _ACTION_RANK[self]


_ACTION_RANK = {
    Action.WAIT: 0,
    Action.HOLD: 1,
    Action.BUY: 2,
    Action.STRONG_BUY: 3,
}


class SignalName(str, Enum):
    """Market signal feeding the opportunity score"""
    PRICE_TREND = "price_trend"
    VOLUME = "volume"
    SENTIMENT = "sentiment"
    TECHNICAL = "technical"
    FUNDAMENTAL = "fundamental"


class RiskCategory(str, Enum):
    """Portfolio risk sub-score"""
    MARKET = "market"
    LIQUIDITY = "liquidity"
    CONCENTRATION = "concentration"
    VOLATILITY = "volatility"
    REGULATORY = "regulatory"


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp to [low, high]; NaN collapses to low."""
    if value != value:
        return low
    return max(low, min(high, float(value)))


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    if value is None:
        return default
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


MAX_PRICE = Decimal("1000000000")


def check_price(value: Decimal, field_name: str = "price") -> Decimal:
    """Reject prices that cannot take part in cent arithmetic"""
    if not isinstance(value, Decimal) or not value.is_finite():
        raise ValueError(f"{field_name} must be a finite decimal, got {value!r}")
    if value < 0 or value > MAX_PRICE:
        raise ValueError(f"{field_name} must be within [0, {MAX_PRICE}], got {value}")
    return value


def _parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


@dataclass(frozen=True)
class CardCandidate:
    """Card snapshot from the market-data collaborator - Immutable"""
    id: str
    name: str
    category: str
    current_price: Decimal
    rarity: Optional[str] = None
    edition: Optional[str] = None
    condition: Optional[str] = None
    release_date: Optional[date] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("Card id cannot be empty")
        check_price(self.current_price, "current_price")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CardCandidate":
        """Build from the collaborator's JSON card record"""
        category = (
            payload.get("game_type")
            or payload.get("type")
            or payload.get("category")
            or "unknown"
        )
        price = payload.get("currentPrice", payload.get("current_price", payload.get("price")))
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name", payload["id"])),
            category=str(category).lower(),
            current_price=to_decimal(price),
            rarity=payload.get("rarity"),
            edition=payload.get("edition"),
            condition=payload.get("condition"),
            release_date=_parse_date(payload.get("releaseDate", payload.get("release_date"))),
        )


@dataclass(frozen=True)
class PricePoint:
    date: date
    price: float


@dataclass(frozen=True)
class VolumeSnapshot:
    average: float
    trend: float


@dataclass(frozen=True)
class SentimentSnapshot:
    sentiment: float
    sources: tuple[str, ...] = ()


@dataclass(frozen=True)
class TechnicalSnapshot:
    rsi: float
    macd: float
    ma50: float
    price: float


@dataclass(frozen=True)
class SignalResult:
    """One analyzer output. Produced fresh per request, never persisted."""
    name: SignalName
    score: float
    metrics: Mapping[str, Any] = field(default_factory=dict)
    degraded: bool = False

    def metric(self, key: str, default: float = 0.0) -> float:
        value = self.metrics.get(key)
        if value is None:
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            return default


@dataclass(frozen=True)
class OpportunityAnalysis:
    """Scored candidate card - Immutable"""
    card: CardCandidate
    score: float
    factors: Mapping[SignalName, SignalResult]
    risk: float
    potential_return: float
    time_to_maturity: int

    @property
    def degraded_signals(self) -> int:
        return sum(1 for result in self.factors.values() if result.degraded)


@dataclass(frozen=True)
class Recommendation:
    """User-facing recommendation for one card"""
    card: CardCandidate
    recommended_amount: Decimal
    confidence: float
    risk: float
    potential_return: float
    time_to_maturity: int
    reasoning: list[str]
    action: Action
    factors: Mapping[SignalName, SignalResult] = field(default_factory=dict)

    def __post_init__(self):
        if self.recommended_amount < Decimal("0"):
            raise ValueError("Recommended amount cannot be negative")
        if not self.reasoning:
            raise ValueError("Reasoning cannot be empty")
