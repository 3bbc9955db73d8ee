"""
Guarded collaborators - every call returns Ok(value) or Unavailable.

Applies a per-call timeout and converts any failure into the Unavailable
variant so the advice pipeline never sees collaborator exceptions.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, List, TypeVar

from card_advisor.domain.models import (
    CardCandidate,
    FetchResult,
    Holding,
    MarketOverview,
    Ok,
    PricePoint,
    SentimentSnapshot,
    TechnicalSnapshot,
    Unavailable,
    VolumeSnapshot,
)
from card_advisor.infrastructure.market_data.types import MarketDataProvider, PortfolioProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def guarded_call(source: str, operation: str, call: Awaitable[T], timeout_seconds: float) -> FetchResult[T]:
    """Await a collaborator call, mapping timeouts and errors to Unavailable"""
    try:
        value = await asyncio.wait_for(call, timeout=timeout_seconds)
    except asyncio.TimeoutError:
        reason = f"{operation} timed out after {timeout_seconds:.1f}s"
        logger.warning(f"{source} unavailable: {reason}")
        return Unavailable(source=source, reason=reason)
    except Exception as exc:
        reason = f"{operation} failed: {exc}"
        logger.warning(f"{source} unavailable: {reason}")
        return Unavailable(source=source, reason=reason)
    return Ok(value)


class GuardedMarketDataProvider:
    SOURCE = "market_data"

    def __init__(self, provider: MarketDataProvider, timeout_seconds: float = 10.0):
        self.provider = provider
        self.timeout_seconds = timeout_seconds

    async def _call(self, operation: str, call: Awaitable[T]) -> FetchResult[T]:
        return await guarded_call(self.SOURCE, operation, call, self.timeout_seconds)

    async def get_trending_cards(self, limit: int) -> FetchResult[List[CardCandidate]]:
        return await self._call("get_trending_cards", self.provider.get_trending_cards(limit))

    async def get_undervalued_cards(self, limit: int) -> FetchResult[List[CardCandidate]]:
        return await self._call("get_undervalued_cards", self.provider.get_undervalued_cards(limit))

    async def get_new_releases(self, limit: int) -> FetchResult[List[CardCandidate]]:
        return await self._call("get_new_releases", self.provider.get_new_releases(limit))

    async def get_card_price_history(self, card_id: str, days: int) -> FetchResult[List[PricePoint]]:
        return await self._call(
            f"get_card_price_history({card_id})",
            self.provider.get_card_price_history(card_id, days),
        )

    async def get_card_volume(self, card_id: str) -> FetchResult[VolumeSnapshot]:
        return await self._call(f"get_card_volume({card_id})", self.provider.get_card_volume(card_id))

    async def get_market_sentiment(self, card_id: str) -> FetchResult[SentimentSnapshot]:
        return await self._call(
            f"get_market_sentiment({card_id})",
            self.provider.get_market_sentiment(card_id),
        )

    async def get_technical_indicators(self, card_id: str) -> FetchResult[TechnicalSnapshot]:
        return await self._call(
            f"get_technical_indicators({card_id})",
            self.provider.get_technical_indicators(card_id),
        )

    async def get_market_overview(self) -> FetchResult[MarketOverview]:
        return await self._call("get_market_overview", self.provider.get_market_overview())


class GuardedPortfolioProvider:
    SOURCE = "portfolio"

    def __init__(self, provider: PortfolioProvider, timeout_seconds: float = 10.0):
        self.provider = provider
        self.timeout_seconds = timeout_seconds

    async def get_user_portfolio(self, user_id: str) -> FetchResult[List[Holding]]:
        return await guarded_call(
            self.SOURCE,
            f"get_user_portfolio({user_id})",
            self.provider.get_user_portfolio(user_id),
            self.timeout_seconds,
        )
