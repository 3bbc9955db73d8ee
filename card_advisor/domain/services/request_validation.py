"""
Advice request validation.

Turns raw caller input into an AdviceRequest exactly once. Every rejection
raises ValidationError naming the offending field.
"""

from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from card_advisor.domain.errors import ValidationError
from card_advisor.domain.models import AdviceRequest, CardType, PriceRange, RiskLevel
from card_advisor.domain.services.config_engine import AdviceConfig

CENT = Decimal('0.01')


def _parse_enum(enum_type, value: Any, field: str):
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(str(value))
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValidationError(f"Invalid {field}: {value!r} (expected one of {allowed})", field=field)


def _parse_amount(value: Any, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}: {value!r}", field=field)
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {field}: {value!r}", field=field)
    if not amount.is_finite():
        raise ValidationError(f"Invalid {field}: {value!r}", field=field)
    return amount


def build_request(
    config: AdviceConfig,
    user_id: Any,
    investment_amount: Any,
    risk_level: Any = RiskLevel.MODERATE,
    time_horizon: Any = 180,
    price_range: Any = PriceRange.ALL,
    card_types: Optional[Iterable[Any]] = None,
    custom_min_price: Any = None,
    custom_max_price: Any = None,
) -> AdviceRequest:
    """
    Validate caller input and build an AdviceRequest

    Raises:
        ValidationError: on any invalid field
    """
    if user_id is None or str(user_id).strip() == "":
        raise ValidationError("User id is required", field="user_id")

    bounds = config.investment
    amount = _parse_amount(investment_amount, "investment_amount")
    if amount < bounds.min_amount or amount > bounds.max_amount:
        raise ValidationError(
            f"Investment amount must be between {bounds.min_amount} and {bounds.max_amount}",
            field="investment_amount",
        )

    level = _parse_enum(RiskLevel, risk_level, "risk_level")

    # int(str(...)) rejects fractional days such as 180.5
    try:
        if isinstance(time_horizon, bool):
            raise ValueError(time_horizon)
        horizon = int(str(time_horizon).strip())
    except ValueError:
        raise ValidationError(f"Invalid time_horizon: {time_horizon!r}", field="time_horizon")
    if horizon not in bounds.time_horizons:
        allowed = ", ".join(str(h) for h in bounds.time_horizons)
        raise ValidationError(f"Time horizon must be one of {allowed} days", field="time_horizon")

    band = _parse_enum(PriceRange, price_range, "price_range")

    if card_types is None:
        types = bounds.card_types
    else:
        if isinstance(card_types, (str, CardType)):
            card_types = [card_types]
        types = tuple(dict.fromkeys(_parse_enum(CardType, t, "card_types") for t in card_types))
        if not types:
            raise ValidationError("At least one card type is required", field="card_types")

    custom_min = custom_max = None
    if band == PriceRange.CUSTOM:
        if custom_min_price is None or custom_max_price is None:
            raise ValidationError("Custom price range requires min and max prices", field="price_range")
        custom_min = _parse_amount(custom_min_price, "custom_min_price")
        custom_max = _parse_amount(custom_max_price, "custom_max_price")
        if custom_min < 0 or custom_min > custom_max:
            raise ValidationError("Custom price range must satisfy 0 <= min <= max", field="price_range")

    return AdviceRequest(
        user_id=str(user_id),
        investment_amount=amount.quantize(CENT, rounding=ROUND_DOWN),
        risk_level=level,
        time_horizon_days=horizon,
        price_range=band,
        card_types=types,
        custom_min_price=custom_min,
        custom_max_price=custom_max,
    )
