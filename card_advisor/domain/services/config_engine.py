"""
CONFIG ENGINE
Load, validate, and expose advice configuration

RESPONSIBILITIES:
- Load the YAML advice configuration
- Validate configuration integrity
- Expose read-only typed objects

RULES:
- No defaults if config missing
- Fail fast on invalid config
- Deterministic output
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from card_advisor.domain.errors import ConfigError
from card_advisor.domain.models import (
    CardType,
    MarketOverview,
    PriceRange,
    RiskCategory,
    RiskLevel,
    SignalName,
)

logger = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 0.001


@dataclass(frozen=True)
class RiskProfile:
    """Per risk level limits and allocation tilt"""
    max_risk: float
    target_return: float
    max_concentration: float
    rebalance_frequency_days: int
    allocation_tilt: float


@dataclass(frozen=True)
class InvestmentBounds:
    min_amount: Decimal
    max_amount: Decimal
    time_horizons: tuple[int, ...]
    card_types: tuple[CardType, ...]


@dataclass(frozen=True)
class ActionThresholds:
    strong_buy: float
    buy: float
    hold: float


@dataclass(frozen=True)
class Thresholds:
    opportunity_min_score: float
    recommendation_min_score: float
    reasoning_min_factor_score: float
    action: ActionThresholds
    high_risk: float
    very_high_risk: float
    mitigation: float
    low_diversification: float


@dataclass(frozen=True)
class SignalSettings:
    lookback_days: int
    reference_volume: float
    max_annual_return: float
    rsi_oversold: float
    rsi_overbought: float


@dataclass(frozen=True)
class PipelineSettings:
    max_opportunities: int
    trending_limit: int
    undervalued_limit: int
    new_release_limit: int
    max_degraded_ratio: float
    market_data_fresh_hours: float
    stale_market_data_factor: float


@dataclass(frozen=True)
class FundamentalTables:
    rarity: Mapping[str, float]
    edition: Mapping[str, float]
    condition: Mapping[str, float]
    # (max age in years exclusive, score); None means no upper bound
    age: tuple[tuple[Optional[int], float], ...]
    unknown_score: float


@dataclass(frozen=True)
class MarketSettings:
    regulatory_risk: float
    sector_risk: Mapping[str, float]
    default_overview: MarketOverview

    def sector_risk_for(self, category: str) -> float:
        return self.sector_risk.get(category, self.sector_risk.get("general", 0.3))


@dataclass(frozen=True)
class AdviceConfig:
    """Complete, validated advice configuration"""
    investment: InvestmentBounds
    risk_levels: Mapping[RiskLevel, RiskProfile]
    signal_weights: Mapping[SignalName, float]
    risk_weights: Mapping[RiskCategory, float]
    thresholds: Thresholds
    signals: SignalSettings
    pipeline: PipelineSettings
    price_ranges: Mapping[PriceRange, tuple[Decimal, Optional[Decimal]]]
    fundamentals: FundamentalTables
    market: MarketSettings
    stress_scenarios: Mapping[str, float]

    def risk_profile(self, level: RiskLevel) -> RiskProfile:
        return self.risk_levels[level]


class ConfigEngine:
    """
    Configuration Engine
    Single source of truth for advice configuration
    """

    def __init__(self, config_path: Path):
        """Initialize with the YAML config path"""
        self.config_path = Path(config_path)
        self._config: Optional[AdviceConfig] = None

    @property
    def config(self) -> AdviceConfig:
        if self._config is None:
            raise ConfigError("Configuration not loaded; call load_all() first")
        return self._config

    def load_all(self) -> AdviceConfig:
        """Load and validate the advice configuration"""
        if not self.config_path.exists():
            raise ConfigError(f"Advice config not found: {self.config_path}")

        with open(self.config_path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigError(f"Invalid YAML in {self.config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError("Advice config must be a mapping")

        self._config = self.parse(data)
        logger.info("Advice configuration loaded from %s", self.config_path)
        return self._config

    @classmethod
    def parse(cls, data: Dict[str, Any]) -> AdviceConfig:
        """Build an AdviceConfig from already-loaded YAML data"""
        try:
            config = AdviceConfig(
                investment=cls._parse_investment(data["investment"]),
                risk_levels=cls._parse_risk_levels(data["risk_levels"]),
                signal_weights=cls._parse_weights(data["signal_weights"], SignalName, "signal_weights"),
                risk_weights=cls._parse_weights(data["risk_weights"], RiskCategory, "risk_weights"),
                thresholds=cls._parse_thresholds(data["thresholds"]),
                signals=SignalSettings(**data["signals"]),
                pipeline=PipelineSettings(**data["pipeline"]),
                price_ranges=cls._parse_price_ranges(data["price_ranges"]),
                fundamentals=cls._parse_fundamentals(data["fundamentals"]),
                market=cls._parse_market(data["market"]),
                stress_scenarios={str(k): float(v) for k, v in data["stress_scenarios"].items()},
            )
        except KeyError as exc:
            raise ConfigError(f"Missing configuration key: {exc}") from exc
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid configuration value: {exc}") from exc

        cls._validate_all(config)
        return config

    @staticmethod
    def _parse_investment(data: Dict[str, Any]) -> InvestmentBounds:
        return InvestmentBounds(
            min_amount=Decimal(str(data["min_amount"])),
            max_amount=Decimal(str(data["max_amount"])),
            time_horizons=tuple(int(h) for h in data["time_horizons"]),
            card_types=tuple(CardType(t) for t in data["card_types"]),
        )

    @staticmethod
    def _parse_risk_levels(data: Dict[str, Any]) -> Dict[RiskLevel, RiskProfile]:
        profiles = {}
        for name, values in data.items():
            try:
                level = RiskLevel(name)
            except ValueError:
                raise ConfigError(f"Unknown risk level: {name}")
            profiles[level] = RiskProfile(
                max_risk=float(values["max_risk"]),
                target_return=float(values["target_return"]),
                max_concentration=float(values["max_concentration"]),
                rebalance_frequency_days=int(values["rebalance_frequency_days"]),
                allocation_tilt=float(values["allocation_tilt"]),
            )
        return profiles

    @staticmethod
    def _parse_weights(data: Dict[str, Any], enum_type, section: str) -> Dict[Any, float]:
        weights = {}
        for key, value in data.items():
            try:
                weights[enum_type(key)] = float(value)
            except ValueError:
                raise ConfigError(f"Unknown key in {section}: {key}")
        return weights

    @staticmethod
    def _parse_thresholds(data: Dict[str, Any]) -> Thresholds:
        action = data["action"]
        return Thresholds(
            opportunity_min_score=float(data["opportunity_min_score"]),
            recommendation_min_score=float(data["recommendation_min_score"]),
            reasoning_min_factor_score=float(data["reasoning_min_factor_score"]),
            action=ActionThresholds(
                strong_buy=float(action["strong_buy"]),
                buy=float(action["buy"]),
                hold=float(action["hold"]),
            ),
            high_risk=float(data["high_risk"]),
            very_high_risk=float(data["very_high_risk"]),
            mitigation=float(data["mitigation"]),
            low_diversification=float(data["low_diversification"]),
        )

    @staticmethod
    def _parse_price_ranges(data: Dict[str, Any]) -> Dict[PriceRange, tuple[Decimal, Optional[Decimal]]]:
        ranges = {}
        for name, bounds in data.items():
            low, high = bounds
            ranges[PriceRange(name)] = (
                Decimal(str(low)),
                Decimal(str(high)) if high is not None else None,
            )
        return ranges

    @staticmethod
    def _parse_fundamentals(data: Dict[str, Any]) -> FundamentalTables:
        age = tuple(
            (int(limit) if limit is not None else None, float(score))
            for limit, score in data["age"]
        )
        return FundamentalTables(
            rarity={str(k): float(v) for k, v in data["rarity"].items()},
            edition={str(k): float(v) for k, v in data["edition"].items()},
            condition={str(k): float(v) for k, v in data["condition"].items()},
            age=age,
            unknown_score=float(data["unknown_score"]),
        )

    @staticmethod
    def _parse_market(data: Dict[str, Any]) -> MarketSettings:
        overview = data["default_overview"]
        return MarketSettings(
            regulatory_risk=float(data["regulatory_risk"]),
            sector_risk={str(k): float(v) for k, v in data["sector_risk"].items()},
            default_overview=MarketOverview(
                trends={str(k): str(v) for k, v in overview["trends"].items()},
                sentiment={str(k): float(v) for k, v in overview["sentiment"].items()},
                volatility={str(k): float(v) for k, v in overview["volatility"].items()},
                fetched_at=None,
            ),
        )

    @staticmethod
    def _validate_all(config: AdviceConfig) -> None:
        """Cross-field validation"""
        missing_levels = set(RiskLevel) - set(config.risk_levels)
        if missing_levels:
            raise ConfigError(f"Missing risk levels: {sorted(l.value for l in missing_levels)}")

        missing_signals = set(SignalName) - set(config.signal_weights)
        if missing_signals:
            raise ConfigError(f"Missing signal weights: {sorted(s.value for s in missing_signals)}")

        missing_risks = set(RiskCategory) - set(config.risk_weights)
        if missing_risks:
            raise ConfigError(f"Missing risk weights: {sorted(r.value for r in missing_risks)}")

        for section, weights in (
            ("signal_weights", config.signal_weights),
            ("risk_weights", config.risk_weights),
        ):
            total = sum(weights.values())
            if abs(total - 1.0) > WEIGHT_TOLERANCE:
                raise ConfigError(f"{section} must sum to 1.0, got {total:.4f}")

        action = config.thresholds.action
        if not action.strong_buy > action.buy > action.hold:
            raise ConfigError("Action thresholds must satisfy strong_buy > buy > hold")

        if config.investment.min_amount <= Decimal("0"):
            raise ConfigError("Minimum investment must be positive")
        if config.investment.min_amount > config.investment.max_amount:
            raise ConfigError("Minimum investment cannot exceed maximum investment")

        for level, profile in config.risk_levels.items():
            if not 0.0 <= profile.max_risk <= 1.0:
                raise ConfigError(f"max_risk for {level.value} must be within [0, 1]")
            if profile.allocation_tilt < 0:
                raise ConfigError(f"allocation_tilt for {level.value} cannot be negative")

        if config.pipeline.max_opportunities < 1:
            raise ConfigError("max_opportunities must be at least 1")
        if config.signals.reference_volume <= 0:
            raise ConfigError("reference_volume must be positive")
        if not config.fundamentals.age or config.fundamentals.age[-1][0] is not None:
            raise ConfigError("Age table must end with an open-ended bucket")


def load_advice_config(path: Path) -> AdviceConfig:
    """Convenience loader"""
    engine = ConfigEngine(path)
    return engine.load_all()
