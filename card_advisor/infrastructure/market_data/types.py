"""
Collaborator protocols for type hints.
"""

from __future__ import annotations

from typing import List, Protocol

from card_advisor.domain.models import (
    CardCandidate,
    Holding,
    MarketOverview,
    PricePoint,
    SentimentSnapshot,
    TechnicalSnapshot,
    VolumeSnapshot,
)


class MarketDataProvider(Protocol):
    async def get_trending_cards(self, limit: int) -> List[CardCandidate]:
        ...

    async def get_undervalued_cards(self, limit: int) -> List[CardCandidate]:
        ...

    async def get_new_releases(self, limit: int) -> List[CardCandidate]:
        ...

    async def get_card_price_history(self, card_id: str, days: int) -> List[PricePoint]:
        ...

    async def get_card_volume(self, card_id: str) -> VolumeSnapshot:
        ...

    async def get_market_sentiment(self, card_id: str) -> SentimentSnapshot:
        ...

    async def get_technical_indicators(self, card_id: str) -> TechnicalSnapshot:
        ...

    async def get_market_overview(self) -> MarketOverview:
        ...


class PortfolioProvider(Protocol):
    async def get_user_portfolio(self, user_id: str) -> List[Holding]:
        ...
