"""
SIGNAL ANALYZERS
Score one card on one market signal

RESPONSIBILITIES:
- Fetch the signal's raw data through the guarded market-data provider
- Convert it into a score in [0, 1] plus diagnostic metrics
- Fall back to a neutral, degraded result when data is unavailable

RULES:
❌ No exceptions escape analyze()
❌ No randomness
✅ Scores clamped to [0, 1]
✅ Deterministic output for identical collaborator responses
"""

import logging
import math
from datetime import date
from typing import Any, Mapping, Optional

from card_advisor.domain.indicators.price_series import linear_trend, volatility
from card_advisor.domain.models import (
    CardCandidate,
    Ok,
    SignalName,
    SignalResult,
    clamp,
)
from card_advisor.domain.services.config_engine import FundamentalTables, SignalSettings
from card_advisor.utils.time import Clock, now_utc

logger = logging.getLogger(__name__)


class SignalAnalyzer:
    """Base analyzer: subclasses implement _compute() and declare a neutral default"""

    name: SignalName
    default_metrics: Mapping[str, Any] = {}

    def __init__(self, market_data, signals: SignalSettings):
        self.market_data = market_data
        self.signals = signals

    def neutral(self) -> SignalResult:
        return SignalResult(
            name=self.name,
            score=0.5,
            metrics=dict(self.default_metrics),
            degraded=True,
        )

    async def analyze(self, card: CardCandidate, lookback_days: Optional[int] = None) -> SignalResult:
        """
        Analyze one card

        Args:
            card: Candidate card
            lookback_days: History window; configured lookback when omitted

        Returns:
            SignalResult, neutral and degraded on any failure
        """
        days = lookback_days or self.signals.lookback_days
        try:
            result = await self._compute(card, days)
        except Exception as exc:
            logger.warning(f"{self.name.value} analysis failed for {card.id}: {exc}")
            return self.neutral()

        if result is None:
            return self.neutral()

        score = clamp(result.score)
        if score != result.score:
            result = SignalResult(result.name, score, result.metrics, result.degraded)
        return result

    async def _compute(self, card: CardCandidate, lookback_days: int) -> Optional[SignalResult]:
        raise NotImplementedError


class PriceTrendAnalyzer(SignalAnalyzer):
    name = SignalName.PRICE_TREND
    default_metrics = {"trend": 0.0, "volatility": 0.5}

    async def _compute(self, card: CardCandidate, lookback_days: int) -> Optional[SignalResult]:
        result = await self.market_data.get_card_price_history(card.id, lookback_days)
        if not isinstance(result, Ok):
            return None

        prices = [point.price for point in result.value]
        if any(not math.isfinite(p) for p in prices):
            logger.warning(f"Non-finite price in history for {card.id}")
            return None

        trend = linear_trend(prices)
        return SignalResult(
            name=self.name,
            score=clamp(trend),
            metrics={"trend": trend, "volatility": volatility(prices)},
        )


class VolumeAnalyzer(SignalAnalyzer):
    name = SignalName.VOLUME
    default_metrics = {"average": 500.0, "trend": 0.0}

    async def _compute(self, card: CardCandidate, lookback_days: int) -> Optional[SignalResult]:
        result = await self.market_data.get_card_volume(card.id)
        if not isinstance(result, Ok):
            return None

        volume = result.value
        average = max(0.0, volume.average)
        return SignalResult(
            name=self.name,
            score=min(1.0, average / self.signals.reference_volume),
            metrics={"average": average, "trend": volume.trend},
        )


class SentimentAnalyzer(SignalAnalyzer):
    name = SignalName.SENTIMENT
    default_metrics = {"sentiment": 0.0, "sources": ()}

    async def _compute(self, card: CardCandidate, lookback_days: int) -> Optional[SignalResult]:
        result = await self.market_data.get_market_sentiment(card.id)
        if not isinstance(result, Ok):
            return None

        sentiment = clamp(result.value.sentiment, -1.0, 1.0)
        return SignalResult(
            name=self.name,
            score=(sentiment + 1) / 2,
            metrics={"sentiment": sentiment, "sources": tuple(result.value.sources)},
        )


class TechnicalAnalyzer(SignalAnalyzer):
    name = SignalName.TECHNICAL
    default_metrics = {"rsi": 50.0, "macd": 0.0, "moving_average": 0.0, "ma_score": 0.0}

    async def _compute(self, card: CardCandidate, lookback_days: int) -> Optional[SignalResult]:
        result = await self.market_data.get_technical_indicators(card.id)
        if not isinstance(result, Ok):
            return None

        indicators = result.value
        if indicators.rsi < self.signals.rsi_oversold:
            rsi_score = 1.0
        elif indicators.rsi > self.signals.rsi_overbought:
            rsi_score = 0.0
        else:
            rsi_score = 0.5
        macd_score = 1.0 if indicators.macd > 0 else 0.0
        ma_score = 1.0 if indicators.price > indicators.ma50 else 0.0

        return SignalResult(
            name=self.name,
            score=(rsi_score + macd_score + ma_score) / 3,
            metrics={
                "rsi": indicators.rsi,
                "macd": indicators.macd,
                "moving_average": indicators.ma50,
                "ma_score": ma_score,
            },
        )


class FundamentalAnalyzer(SignalAnalyzer):
    """Pure table lookup on card attributes; never calls a collaborator"""

    name = SignalName.FUNDAMENTAL
    default_metrics = {"rarity": 0.5, "edition": 0.5, "condition": 0.5, "age": 0.5}

    def __init__(self, market_data, signals: SignalSettings, tables: FundamentalTables, clock: Clock = now_utc):
        super().__init__(market_data, signals)
        self.tables = tables
        self.clock = clock

    async def _compute(self, card: CardCandidate, lookback_days: int) -> Optional[SignalResult]:
        unknown = self.tables.unknown_score
        rarity = self.tables.rarity.get(card.rarity, unknown) if card.rarity else unknown
        edition = self.tables.edition.get(card.edition, unknown) if card.edition else unknown
        condition = self.tables.condition.get(card.condition, unknown) if card.condition else unknown
        age = self._age_score(card.release_date)

        return SignalResult(
            name=self.name,
            score=(rarity + edition + condition + age) / 4,
            metrics={"rarity": rarity, "edition": edition, "condition": condition, "age": age},
        )

    def _age_score(self, release_date: Optional[date]) -> float:
        if release_date is None:
            return self.tables.unknown_score

        today = self.clock().date()
        years = today.year - release_date.year
        for limit, score in self.tables.age:
            if limit is None or years < limit:
                return score
        return self.tables.unknown_score


def build_analyzers(market_data, signals: SignalSettings, tables: FundamentalTables, clock: Clock = now_utc):
    """Analyzers keyed by signal name, in weighting order"""
    return {
        SignalName.PRICE_TREND: PriceTrendAnalyzer(market_data, signals),
        SignalName.VOLUME: VolumeAnalyzer(market_data, signals),
        SignalName.SENTIMENT: SentimentAnalyzer(market_data, signals),
        SignalName.TECHNICAL: TechnicalAnalyzer(market_data, signals),
        SignalName.FUNDAMENTAL: FundamentalAnalyzer(market_data, signals, tables, clock),
    }
