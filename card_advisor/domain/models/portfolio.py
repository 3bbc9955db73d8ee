"""
Portfolio and market snapshots - read-only inputs of the advice pipeline
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from .entities import RiskLevel, check_price, to_decimal

MAX_QUANTITY = 1_000_000


@dataclass(frozen=True)
class Holding:
    """Card held by the user - Immutable"""
    id: str
    name: str
    current_price: Decimal
    quantity: int = 1
    purchase_price: Optional[Decimal] = None
    risk: Optional[float] = None

    def __post_init__(self):
        if not 0 <= self.quantity <= MAX_QUANTITY:
            raise ValueError(f"Quantity must be within [0, {MAX_QUANTITY}], got {self.quantity}")
        check_price(self.current_price, "current_price")
        if self.purchase_price is not None:
            check_price(self.purchase_price, "purchase_price")

    @property
    def total_value(self) -> Decimal:
        return self.current_price * self.quantity

    @property
    def performance(self) -> float:
        """Return since purchase, in percent"""
        if not self.purchase_price:
            return 0.0
        return float((self.current_price - self.purchase_price) / self.purchase_price * 100)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Holding":
        purchase = payload.get("purchasePrice", payload.get("purchase_price"))
        risk = payload.get("risk")
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name", payload["id"])),
            current_price=to_decimal(payload.get("currentPrice", payload.get("current_price"))),
            quantity=int(payload.get("quantity") or 1),
            purchase_price=to_decimal(purchase) if purchase is not None else None,
            risk=float(risk) if risk is not None else None,
        )


@dataclass(frozen=True)
class Portfolio:
    """User portfolio snapshot - Immutable"""
    total_value: Decimal
    diversification: float
    risk_level: RiskLevel
    performance: float
    holdings: tuple[Holding, ...] = ()


@dataclass(frozen=True)
class MarketOverview:
    """Market-wide trends, sentiment and volatility per game"""
    trends: Mapping[str, str] = field(default_factory=dict)
    sentiment: Mapping[str, float] = field(default_factory=dict)
    volatility: Mapping[str, float] = field(default_factory=dict)
    fetched_at: Optional[datetime] = None

    @property
    def overall_volatility(self) -> float:
        return float(self.volatility.get("overall", 0.0))
