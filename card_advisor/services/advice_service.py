"""
ADVICE SERVICE

Wires HTTP collaborators, guards, cache and notifications into an
AdviceEngine, and owns the HTTP clients' lifetime.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from card_advisor.config import Settings
from card_advisor.domain.models import AdviceResponse, PortfolioRiskReview
from card_advisor.domain.services.advice_engine import AdviceEngine
from card_advisor.domain.services.config_engine import AdviceConfig, ConfigEngine
from card_advisor.infrastructure.cache.advice_cache import AdviceCache
from card_advisor.infrastructure.market_data.guarded import (
    GuardedMarketDataProvider,
    GuardedPortfolioProvider,
)
from card_advisor.infrastructure.market_data.http_provider import HttpMarketDataProvider
from card_advisor.infrastructure.portfolio.http_provider import HttpPortfolioProvider
from card_advisor.services.notification_service import NullNotificationSink, WebhookNotificationSink
from card_advisor.utils.time import Clock, now_utc

logger = logging.getLogger(__name__)


def build_notification_sink(settings: Settings):
    if settings.NOTIFICATIONS_ENABLED and settings.NOTIFICATION_WEBHOOK_URL:
        return WebhookNotificationSink(
            webhook_url=settings.NOTIFICATION_WEBHOOK_URL,
            timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
        )
    if settings.NOTIFICATIONS_ENABLED:
        logger.warning("Notifications enabled but NOTIFICATION_WEBHOOK_URL is not set")
    return NullNotificationSink()


def build_advice_engine(
    settings: Settings,
    config: Optional[AdviceConfig] = None,
    clock: Clock = now_utc,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AdviceEngine:
    """
    Build an AdviceEngine from environment settings

    Args:
        settings: Environment settings
        config: Advice configuration; loaded from settings.advice_config_path when omitted
        clock: Time source shared by the engine, cache and adapters
        transport: httpx transport for both collaborator clients (tests use MockTransport)
    """
    if config is None:
        config = ConfigEngine(settings.advice_config_path).load_all()

    market_data = HttpMarketDataProvider(
        api_base_url=settings.MARKET_API_BASE_URL,
        api_token=settings.API_TOKEN,
        timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
        transport=transport,
        clock=clock,
    )
    portfolio = HttpPortfolioProvider(
        api_base_url=settings.PORTFOLIO_API_BASE_URL,
        api_token=settings.API_TOKEN,
        timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
        transport=transport,
    )

    cache = None
    if settings.ADVICE_CACHE_ENABLED:
        cache = AdviceCache(
            clock=clock,
            ttl_seconds=settings.ADVICE_CACHE_TTL_SECONDS,
            max_entries=settings.ADVICE_CACHE_MAX_ENTRIES,
        )

    return AdviceEngine(
        config=config,
        market_data=GuardedMarketDataProvider(market_data, settings.COLLABORATOR_TIMEOUT_SECONDS),
        portfolio_provider=GuardedPortfolioProvider(portfolio, settings.COLLABORATOR_TIMEOUT_SECONDS),
        notifications=build_notification_sink(settings),
        cache=cache,
        clock=clock,
    )


class AdviceService:
    """
    Async context manager around an AdviceEngine

        async with AdviceService(settings) as service:
            advice = await service.generate_investment_advice("user-1", 1000)
    """

    def __init__(
        self,
        settings: Settings,
        config: Optional[AdviceConfig] = None,
        clock: Clock = now_utc,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.engine = build_advice_engine(settings, config, clock, transport)

    async def __aenter__(self) -> "AdviceService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close every HTTP client owned by the engine's collaborators"""
        for owner in (
            self.engine.market_data.provider,
            self.engine.portfolio_provider.provider,
            self.engine.notifications,
        ):
            await owner.aclose()

    async def generate_investment_advice(self, user_id: str, investment_amount: Any, **options: Any) -> AdviceResponse:
        return await self.engine.generate_investment_advice(user_id, investment_amount, **options)

    async def assess_portfolio_risk(self, user_id: str) -> PortfolioRiskReview:
        return await self.engine.assess_portfolio_risk(user_id)
