import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional

import pytest

from card_advisor.config import DEFAULT_ADVICE_CONFIG
from card_advisor.domain.errors import CollaboratorUnavailable
from card_advisor.domain.models import (
    CardCandidate,
    Holding,
    MarketOverview,
    PricePoint,
    SentimentSnapshot,
    TechnicalSnapshot,
    VolumeSnapshot,
)
from card_advisor.domain.services.config_engine import ConfigEngine

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock"""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now = self.now + timedelta(**delta)


class MockMarketDataProvider:
    """In-memory market data collaborator; unknown card ids are unavailable"""

    def __init__(self):
        self.trending: List[CardCandidate] = []
        self.undervalued: List[CardCandidate] = []
        self.new_releases: List[CardCandidate] = []
        self.history: Dict[str, List[float]] = {}
        self.volume: Dict[str, VolumeSnapshot] = {}
        self.sentiment: Dict[str, SentimentSnapshot] = {}
        self.technical: Dict[str, TechnicalSnapshot] = {}
        self.overview: Optional[MarketOverview] = None
        self.failing: set = set()
        self.calls: List[str] = []

    def _record(self, method: str) -> None:
        self.calls.append(method)
        if method in self.failing:
            raise RuntimeError(f"{method} failed")

    def add_signals(
        self,
        card_id: str,
        history=(10.0, 30.0),
        volume=(1000.0, 1.0),
        sentiment=0.0,
        technical=(25.0, 1.0, 40.0, 50.0),
    ) -> None:
        """Register per-card signals (defaults give a strong, low-risk card)"""
        self.history[card_id] = list(history)
        self.volume[card_id] = VolumeSnapshot(average=volume[0], trend=volume[1])
        self.sentiment[card_id] = SentimentSnapshot(sentiment=sentiment, sources=("forum",))
        rsi, macd, ma50, price = technical
        self.technical[card_id] = TechnicalSnapshot(rsi=rsi, macd=macd, ma50=ma50, price=price)

    async def get_trending_cards(self, limit: int) -> List[CardCandidate]:
        self._record("get_trending_cards")
        return self.trending[:limit]

    async def get_undervalued_cards(self, limit: int) -> List[CardCandidate]:
        self._record("get_undervalued_cards")
        return self.undervalued[:limit]

    async def get_new_releases(self, limit: int) -> List[CardCandidate]:
        self._record("get_new_releases")
        return self.new_releases[:limit]

    async def get_card_price_history(self, card_id: str, days: int) -> List[PricePoint]:
        self._record("get_card_price_history")
        if card_id not in self.history:
            raise CollaboratorUnavailable("market_data", f"no history for {card_id}")
        return [
            PricePoint(date=date(2026, 1, 1 + i), price=price)
            for i, price in enumerate(self.history[card_id])
        ]

    async def get_card_volume(self, card_id: str) -> VolumeSnapshot:
        self._record("get_card_volume")
        if card_id not in self.volume:
            raise CollaboratorUnavailable("market_data", f"no volume for {card_id}")
        return self.volume[card_id]

    async def get_market_sentiment(self, card_id: str) -> SentimentSnapshot:
        self._record("get_market_sentiment")
        if card_id not in self.sentiment:
            raise CollaboratorUnavailable("market_data", f"no sentiment for {card_id}")
        return self.sentiment[card_id]

    async def get_technical_indicators(self, card_id: str) -> TechnicalSnapshot:
        self._record("get_technical_indicators")
        if card_id not in self.technical:
            raise CollaboratorUnavailable("market_data", f"no indicators for {card_id}")
        return self.technical[card_id]

    async def get_market_overview(self) -> MarketOverview:
        self._record("get_market_overview")
        if self.overview is None:
            raise CollaboratorUnavailable("market_data", "no overview")
        return self.overview


class MockPortfolioProvider:
    def __init__(self, holdings: Optional[List[Holding]] = None, fail: bool = False):
        self.holdings = holdings or []
        self.fail = fail

    async def get_user_portfolio(self, user_id: str) -> List[Holding]:
        if self.fail:
            raise CollaboratorUnavailable("portfolio", "service down")
        return list(self.holdings)


class RecordingNotificationSink:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.successes = []
        self.errors = []

    async def send_success_notification(self, user_id, summary):
        if self.fail:
            raise RuntimeError("webhook down")
        self.successes.append((user_id, summary))
        return True

    async def send_error_notification(self, user_id, error):
        if self.fail:
            raise RuntimeError("webhook down")
        self.errors.append((user_id, error))
        return True


def make_card(
    card_id: str,
    category: str = "pokemon",
    price: str = "25.00",
    rarity: Optional[str] = "Uncommon",
    edition: Optional[str] = "Unlimited",
    condition: Optional[str] = "Near Mint",
    release_date: Optional[date] = None,
) -> CardCandidate:
    """Default attributes give a fundamental score of 0.625"""
    return CardCandidate(
        id=card_id,
        name=f"Card {card_id}",
        category=category,
        current_price=Decimal(price),
        rarity=rarity,
        edition=edition,
        condition=condition,
        release_date=release_date,
    )


@pytest.fixture(scope="session")
def advice_config():
    return ConfigEngine(DEFAULT_ADVICE_CONFIG).load_all()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def market():
    provider = MockMarketDataProvider()
    provider.overview = MarketOverview(
        trends={"overall": "stable"},
        sentiment={"overall": 0.6},
        volatility={"overall": 0.25},
        fetched_at=FIXED_NOW,
    )
    return provider


@pytest.fixture()
def portfolio_provider():
    return MockPortfolioProvider()


@pytest.fixture()
def notifications():
    return RecordingNotificationSink()


@pytest.fixture()
def card_factory():
    return make_card


@pytest.fixture()
def guarded_market(market):
    from card_advisor.infrastructure.market_data.guarded import GuardedMarketDataProvider
    return GuardedMarketDataProvider(market, timeout_seconds=1.0)


@pytest.fixture()
def restore_root_logger():
    """Undo handlers and level changes made by setup_logging"""
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
