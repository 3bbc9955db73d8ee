"""
HTTP Market Data Provider
Card market data from the collaborator REST API.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from card_advisor.domain.errors import CollaboratorUnavailable
from card_advisor.domain.models import (
    CardCandidate,
    MarketOverview,
    PricePoint,
    SentimentSnapshot,
    TechnicalSnapshot,
    VolumeSnapshot,
)
from card_advisor.utils.time import Clock, now_utc

logger = logging.getLogger(__name__)


class HttpMarketDataProvider:
    SOURCE = "market_data"

    def __init__(
        self,
        api_base_url: str,
        api_token: Optional[str] = None,
        timeout_seconds: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Clock = now_utc,
    ):
        self.api_base_url = api_base_url.rstrip("/")
        self.api_token = (api_token or "").strip() or None
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._clock = clock
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self.api_token:
                headers["Authorization"] = f"Bearer {self.api_token}"
            self._client = httpx.AsyncClient(
                base_url=self.api_base_url,
                headers=headers,
                timeout=self.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request_json(self, path: str, params: Optional[dict] = None) -> Any:
        try:
            response = await self._get_client().get(path, params=params)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise CollaboratorUnavailable(self.SOURCE, f"{path}: {exc}") from exc

        # Collaborator wraps most payloads as {"success": true, "data": ...}
        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

    def _parse_cards(self, path: str, payload: Any) -> List[CardCandidate]:
        if isinstance(payload, dict):
            payload = payload.get("cards", [])
        if not isinstance(payload, list):
            raise CollaboratorUnavailable(self.SOURCE, f"{path}: expected a list of cards")

        cards = []
        for item in payload:
            try:
                cards.append(CardCandidate.from_payload(item))
            except (KeyError, TypeError, ValueError) as exc:
                logger.debug(f"Skipping malformed card record from {path}: {exc}")
        return cards

    # ------------------------------------------------------------------
    # CANDIDATES
    # ------------------------------------------------------------------

    async def get_trending_cards(self, limit: int) -> List[CardCandidate]:
        path = "/market/trending"
        return self._parse_cards(path, await self._request_json(path, {"limit": limit}))[:limit]

    async def get_undervalued_cards(self, limit: int) -> List[CardCandidate]:
        path = "/market/undervalued"
        return self._parse_cards(path, await self._request_json(path, {"limit": limit}))[:limit]

    async def get_new_releases(self, limit: int) -> List[CardCandidate]:
        path = "/market/new-releases"
        return self._parse_cards(path, await self._request_json(path, {"limit": limit}))[:limit]

    # ------------------------------------------------------------------
    # PER-CARD SIGNALS
    # ------------------------------------------------------------------

    async def get_card_price_history(self, card_id: str, days: int) -> List[PricePoint]:
        path = f"/market/price-history/{card_id}"
        payload = await self._request_json(path, {"days": days})
        if isinstance(payload, dict):
            payload = payload.get("history", payload.get("prices", []))
        if not isinstance(payload, list):
            raise CollaboratorUnavailable(self.SOURCE, f"{path}: expected a price list")

        points = []
        try:
            for item in payload:
                raw_date = item.get("date")
                points.append(PricePoint(
                    date=date.fromisoformat(str(raw_date)[:10]) if raw_date else None,
                    price=float(item["price"]),
                ))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise CollaboratorUnavailable(self.SOURCE, f"{path}: malformed price point ({exc})") from exc
        return points

    async def get_card_volume(self, card_id: str) -> VolumeSnapshot:
        path = f"/market/volume/{card_id}"
        payload = self._expect_mapping(path, await self._request_json(path))
        try:
            return VolumeSnapshot(
                average=float(payload["average"]),
                trend=float(payload.get("trend", 0.0)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise CollaboratorUnavailable(self.SOURCE, f"{path}: malformed volume ({exc})") from exc

    async def get_market_sentiment(self, card_id: str) -> SentimentSnapshot:
        path = f"/market/sentiment/{card_id}"
        payload = self._expect_mapping(path, await self._request_json(path))
        try:
            return SentimentSnapshot(
                sentiment=float(payload["sentiment"]),
                sources=tuple(str(s) for s in payload.get("sources") or ()),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise CollaboratorUnavailable(self.SOURCE, f"{path}: malformed sentiment ({exc})") from exc

    async def get_technical_indicators(self, card_id: str) -> TechnicalSnapshot:
        path = f"/market/technical/{card_id}"
        payload = self._expect_mapping(path, await self._request_json(path))
        try:
            return TechnicalSnapshot(
                rsi=float(payload["rsi"]),
                macd=float(payload["macd"]),
                ma50=float(payload["ma50"]),
                price=float(payload["price"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise CollaboratorUnavailable(self.SOURCE, f"{path}: malformed indicators ({exc})") from exc

    async def get_market_overview(self) -> MarketOverview:
        path = "/market/overview"
        payload = self._expect_mapping(path, await self._request_json(path))
        try:
            return MarketOverview(
                trends={str(k): str(v) for k, v in (payload.get("trends") or {}).items()},
                sentiment={str(k): float(v) for k, v in (payload.get("sentiment") or {}).items()},
                volatility={str(k): float(v) for k, v in (payload.get("volatility") or {}).items()},
                fetched_at=self._clock(),
            )
        except (AttributeError, TypeError, ValueError) as exc:
            raise CollaboratorUnavailable(self.SOURCE, f"{path}: malformed overview ({exc})") from exc

    def _expect_mapping(self, path: str, payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise CollaboratorUnavailable(self.SOURCE, f"{path}: expected an object")
        return payload
