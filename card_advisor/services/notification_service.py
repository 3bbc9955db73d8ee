"""
NOTIFICATION SERVICE

Thin webhook notification sender.
No business logic. Never raises: failures are logged and reported as False.
"""

import logging
from typing import Any, Mapping, Optional

import httpx

logger = logging.getLogger(__name__)


class NullNotificationSink:
    """Used when notifications are disabled"""

    async def send_success_notification(self, user_id: str, summary: Mapping[str, Any]) -> bool:
        logger.debug(f"Notifications disabled; skipping success notification for {user_id}")
        return False

    async def send_error_notification(self, user_id: str, error: str) -> bool:
        logger.debug(f"Notifications disabled; skipping error notification for {user_id}")
        return False

    async def aclose(self) -> None:
        return None


class WebhookNotificationSink:
    def __init__(
        self,
        webhook_url: str,
        timeout_seconds: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(self, payload: Mapping[str, Any]) -> bool:
        if not self.webhook_url:
            logger.info("Notification skipped (missing NOTIFICATION_WEBHOOK_URL)")
            return False
        try:
            resp = await self._get_client().post(self.webhook_url, json=dict(payload))
            resp.raise_for_status()
            return True
        except Exception as exc:
            logger.error(f"Notification failed: {exc}")
            return False

    async def send_success_notification(self, user_id: str, summary: Mapping[str, Any]) -> bool:
        return await self._post({
            "type": "investment_advice",
            "status": "success",
            "user_id": user_id,
            "title": "Investment advice ready",
            "summary": dict(summary),
        })

    async def send_error_notification(self, user_id: str, error: str) -> bool:
        return await self._post({
            "type": "investment_advice",
            "status": "error",
            "user_id": user_id,
            "title": "Investment advice failed",
            "error": error,
        })
