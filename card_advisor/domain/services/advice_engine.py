"""
ADVICE ENGINE (ORCHESTRATOR)
One investment-advice request, end to end

PIPELINE (single pass, no retries):
VALIDATE_INPUT → FETCH_PORTFOLIO → FETCH_OPPORTUNITIES → SCORE_EACH →
ALLOCATE → BUILD_RECOMMENDATIONS → ASSESS_RISK → ASSEMBLE_RESPONSE

RULES:
❌ Only ValidationError leaves the engine
❌ Collaborator failures never abort the request (Unavailable → defaults)
✅ sum(recommended amounts) <= investment amount
✅ Every valid request gets a well-formed AdviceResponse
"""

import asyncio
import logging
from statistics import fmean
from typing import Any, Iterable, List, Optional, Sequence

from card_advisor.domain.errors import ValidationError
from card_advisor.domain.models import (
    AdviceRequest,
    AdviceResponse,
    CardCandidate,
    MarketOverview,
    OpportunityAnalysis,
    Ok,
    Portfolio,
    PortfolioRiskReview,
    PriceRange,
    Recommendation,
    RiskAssessment,
    RiskLevel,
    clamp,
    value_or,
)
from card_advisor.domain.services.allocation_engine import AllocationEngine
from card_advisor.domain.services.config_engine import AdviceConfig
from card_advisor.domain.services.opportunity_scorer import OpportunityScorer
from card_advisor.domain.services.portfolio_engine import PortfolioEngine
from card_advisor.domain.services.recommendation_builder import RecommendationBuilder
from card_advisor.domain.services.request_validation import build_request
from card_advisor.domain.services.risk_aggregator import RiskAggregator
from card_advisor.domain.services.signal_analyzers import build_analyzers
from card_advisor.infrastructure.cache.advice_cache import AdviceCache, fingerprint
from card_advisor.services.notification_service import NullNotificationSink
from card_advisor.utils.time import Clock, hours_between, now_utc

logger = logging.getLogger(__name__)

NO_CANDIDATES_MESSAGE = "No candidate cards matched the selected card types and price range"
NO_QUALIFIED_MESSAGE = (
    "No opportunities met the recommendation criteria for the {level} risk profile; "
    "consider waiting for better market conditions"
)


class AdviceEngine:
    """
    Advice Engine
    Orchestrates scoring, allocation, recommendations and risk assessment
    """

    def __init__(
        self,
        config: AdviceConfig,
        market_data,
        portfolio_provider,
        notifications=None,
        cache: Optional[AdviceCache] = None,
        clock: Clock = now_utc,
    ):
        """
        Initialize advice engine

        Args:
            config: Validated advice configuration
            market_data: Guarded market-data provider (returns Ok | Unavailable)
            portfolio_provider: Guarded portfolio provider (returns Ok | Unavailable)
            notifications: Notification sink; disabled when omitted
            cache: Request-level advice cache; no caching when omitted
            clock: Time source
        """
        self.config = config
        self.market_data = market_data
        self.portfolio_provider = portfolio_provider
        self.notifications = notifications or NullNotificationSink()
        self.cache = cache
        self.clock = clock

        analyzers = build_analyzers(market_data, config.signals, config.fundamentals, clock)
        self.scorer = OpportunityScorer(analyzers, config)
        self.allocator = AllocationEngine(config.risk_levels)
        self.builder = RecommendationBuilder(config)
        self.risk_aggregator = RiskAggregator(config)
        self.portfolio_engine = PortfolioEngine(config)

    # ------------------------------------------------------------------
    # PUBLIC API
    # ------------------------------------------------------------------

    async def generate_investment_advice(
        self,
        user_id: str,
        investment_amount: Any,
        risk_level: Any = RiskLevel.MODERATE,
        time_horizon: Any = 180,
        price_range: Any = PriceRange.ALL,
        card_types: Optional[Iterable[Any]] = None,
        custom_min_price: Any = None,
        custom_max_price: Any = None,
    ) -> AdviceResponse:
        """
        Generate investment advice for one user request

        Raises:
            ValidationError: invalid input (the only error this method raises)
        """
        try:
            request = build_request(
                self.config,
                user_id=user_id,
                investment_amount=investment_amount,
                risk_level=risk_level,
                time_horizon=time_horizon,
                price_range=price_range,
                card_types=card_types,
                custom_min_price=custom_min_price,
                custom_max_price=custom_max_price,
            )
        except ValidationError as exc:
            logger.warning(f"Rejected advice request for {user_id}: {exc}")
            await self._notify_error(str(user_id), str(exc))
            raise

        if self.cache is None:
            return await self._run(request)
        return await self.cache.get_or_compute(fingerprint(request), lambda: self._run(request))

    async def assess_portfolio_risk(self, user_id: str) -> PortfolioRiskReview:
        """Standalone review of the user's existing portfolio"""
        if user_id is None or str(user_id).strip() == "":
            raise ValidationError("User id is required", field="user_id")

        portfolio, available = await self._fetch_portfolio(str(user_id))
        return PortfolioRiskReview(
            user_id=str(user_id),
            portfolio_risk=portfolio.risk_level,
            diversification=portfolio.diversification,
            performance=portfolio.performance,
            recommendations=self.portfolio_engine.risk_recommendations(portfolio),
            portfolio_available=available,
        )

    # ------------------------------------------------------------------
    # PIPELINE
    # ------------------------------------------------------------------

    async def _run(self, request: AdviceRequest) -> AdviceResponse:
        logger.info(
            f"Generating advice for {request.user_id}: amount={request.investment_amount} "
            f"risk={request.risk_level.value} horizon={request.time_horizon_days}d"
        )

        # FETCH_PORTFOLIO
        portfolio, _ = await self._fetch_portfolio(request.user_id)

        # FETCH_OPPORTUNITIES
        candidates, market_overview = await self._fetch_candidates(request)

        # SCORE_EACH
        opportunities = await self.scorer.score_many(candidates)

        # ALLOCATE
        allocation = self.allocator.allocate(
            request.investment_amount, request.risk_level, opportunities
        )

        # BUILD_RECOMMENDATIONS
        recommendations = self.builder.build_all(opportunities, allocation, request.risk_level)

        # ASSESS_RISK
        risk_assessment = self.risk_aggregator.assess(
            recommendations, request.risk_level, portfolio, market_overview
        )

        # ASSEMBLE_RESPONSE
        response = self._assemble(
            request, portfolio, market_overview, candidates, opportunities,
            recommendations, risk_assessment,
        )
        await self._notify_success(response)
        return response

    async def _fetch_portfolio(self, user_id: str) -> tuple[Portfolio, bool]:
        result = await self.portfolio_provider.get_user_portfolio(user_id)
        if isinstance(result, Ok):
            return self.portfolio_engine.build_portfolio(result.value), True

        logger.warning(f"Portfolio unavailable for {user_id} ({result.reason}); using default portfolio")
        return self.portfolio_engine.default_portfolio(), False

    async def _fetch_candidates(self, request: AdviceRequest) -> tuple[List[CardCandidate], MarketOverview]:
        limits = self.config.pipeline
        trending, undervalued, new_releases, overview = await asyncio.gather(
            self.market_data.get_trending_cards(limits.trending_limit),
            self.market_data.get_undervalued_cards(limits.undervalued_limit),
            self.market_data.get_new_releases(limits.new_release_limit),
            self.market_data.get_market_overview(),
        )

        merged = value_or(trending, []) + value_or(undervalued, []) + value_or(new_releases, [])
        seen = set()
        unique = []
        for card in merged:
            if card.id not in seen:
                seen.add(card.id)
                unique.append(card)
        candidates = [card for card in unique if self._matches_criteria(card, request)]

        logger.info(
            f"Fetched {len(merged)} cards ({len(unique)} unique), "
            f"{len(candidates)} match {request.price_range.value} filters"
        )
        return candidates, value_or(overview, self.config.market.default_overview)

    def _matches_criteria(self, card: CardCandidate, request: AdviceRequest) -> bool:
        if card.category not in {card_type.value for card_type in request.card_types}:
            return False

        # CardCandidate guarantees a finite price within [0, MAX_PRICE]
        price = card.current_price
        if request.price_range == PriceRange.ALL:
            return True
        if request.price_range == PriceRange.CUSTOM:
            return request.custom_min_price <= price <= request.custom_max_price

        low, high = self.config.price_ranges[request.price_range]
        return price >= low and (high is None or price <= high)

    def _assemble(
        self,
        request: AdviceRequest,
        portfolio: Portfolio,
        market_overview: MarketOverview,
        candidates: Sequence[CardCandidate],
        opportunities: Sequence[OpportunityAnalysis],
        recommendations: Sequence[Recommendation],
        risk_assessment: RiskAssessment,
    ) -> AdviceResponse:
        degraded_ratio = self._degraded_ratio(opportunities)
        message = None
        if not recommendations:
            if not candidates:
                message = NO_CANDIDATES_MESSAGE
            else:
                message = NO_QUALIFIED_MESSAGE.format(level=request.risk_level.value)

        response = AdviceResponse(
            request=request,
            recommendations=list(recommendations),
            risk_assessment=risk_assessment,
            portfolio_advice=self.portfolio_engine.portfolio_advice(
                recommendations, request.investment_amount, portfolio, request.risk_level
            ),
            investment_strategy=self.portfolio_engine.investment_strategy(
                recommendations, risk_assessment, request.time_horizon_days
            ),
            stress_test=self.portfolio_engine.stress_test(recommendations, portfolio),
            market_overview=market_overview,
            confidence=self._confidence(recommendations, market_overview, degraded_ratio),
            degraded_signal_ratio=degraded_ratio,
            generated_at=self.clock(),
            message=message,
        )

        logger.info(
            f"Advice ready for {request.user_id}: {len(recommendations)} recommendations, "
            f"total={response.total_recommended}, confidence={response.confidence:.2f}"
        )
        return response

    @staticmethod
    def _degraded_ratio(opportunities: Sequence[OpportunityAnalysis]) -> float:
        signal_count = sum(len(o.factors) for o in opportunities)
        if signal_count == 0:
            return 0.0
        return sum(o.degraded_signals for o in opportunities) / signal_count

    def _confidence(
        self,
        recommendations: Sequence[Recommendation],
        market_overview: MarketOverview,
        degraded_ratio: float
    ) -> float:
        if not recommendations:
            return 0.0

        pipeline = self.config.pipeline
        confidence = fmean(rec.confidence for rec in recommendations)

        fresh = (
            market_overview.fetched_at is not None
            and hours_between(market_overview.fetched_at, self.clock()) <= pipeline.market_data_fresh_hours
        )
        if not fresh:
            confidence *= pipeline.stale_market_data_factor

        if degraded_ratio > pipeline.max_degraded_ratio:
            confidence *= 1 - degraded_ratio
        return clamp(confidence)

    # ------------------------------------------------------------------
    # NOTIFICATIONS
    # ------------------------------------------------------------------

    async def _notify_success(self, response: AdviceResponse) -> None:
        summary = {
            "recommendations": len(response.recommendations),
            "total_recommended": str(response.total_recommended),
            "confidence": round(response.confidence, 4),
            "risk_level": response.request.risk_level.value,
            "within_tolerance": response.risk_assessment.is_within_tolerance,
            "top_actions": [
                {"card_id": rec.card.id, "action": rec.action.value}
                for rec in response.recommendations[:3]
            ],
        }
        try:
            await self.notifications.send_success_notification(response.request.user_id, summary)
        except Exception:
            logger.exception("Success notification failed")

    async def _notify_error(self, user_id: str, error: str) -> None:
        try:
            await self.notifications.send_error_notification(user_id, error)
        except Exception:
            logger.exception("Error notification failed")
