"""
HTTP Portfolio Provider
User holdings from the collaborator REST API.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from card_advisor.domain.errors import CollaboratorUnavailable
from card_advisor.domain.models import Holding

logger = logging.getLogger(__name__)


class HttpPortfolioProvider:
    SOURCE = "portfolio"

    def __init__(
        self,
        api_base_url: str,
        api_token: Optional[str] = None,
        timeout_seconds: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_base_url = api_base_url.rstrip("/")
        self.api_token = (api_token or "").strip() or None
        self.timeout_seconds = timeout_seconds
        self._transport = transport
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

    async def get_user_portfolio(self, user_id: str) -> List[Holding]:
        path = f"/users/{user_id}/portfolio"
        try:
            response = await self._get_client().get(path)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise CollaboratorUnavailable(self.SOURCE, f"{path}: {exc}") from exc

        if isinstance(payload, dict):
            payload = payload.get("data", payload)
        if isinstance(payload, dict):
            payload = payload.get("cards", payload.get("holdings"))
        if not isinstance(payload, list):
            raise CollaboratorUnavailable(self.SOURCE, f"{path}: expected a list of holdings")

        try:
            holdings = [Holding.from_payload(item) for item in payload]
        except (KeyError, TypeError, ValueError) as exc:
            raise CollaboratorUnavailable(self.SOURCE, f"{path}: malformed holding ({exc})") from exc

        logger.debug(f"Fetched {len(holdings)} holdings for user {user_id}")
        return holdings
