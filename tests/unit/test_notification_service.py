import json

import httpx
import pytest

from card_advisor.services.notification_service import NullNotificationSink, WebhookNotificationSink

WEBHOOK_URL = "http://hooks.test/advice"


@pytest.mark.unit
class TestWebhookNotificationSink:

    @pytest.mark.asyncio
    async def test_posts_success_payload(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(200)

        sink = WebhookNotificationSink(WEBHOOK_URL, transport=httpx.MockTransport(handler))

        sent = await sink.send_success_notification("user-1", {"recommendations": 2})
        await sink.aclose()

        assert sent is True
        assert seen[0]["status"] == "success"
        assert seen[0]["user_id"] == "user-1"
        assert seen[0]["summary"] == {"recommendations": 2}

    @pytest.mark.asyncio
    async def test_http_error_is_swallowed(self):
        sink = WebhookNotificationSink(
            WEBHOOK_URL, transport=httpx.MockTransport(lambda request: httpx.Response(503))
        )

        assert await sink.send_error_notification("user-1", "bad amount") is False

    @pytest.mark.asyncio
    async def test_transport_error_is_swallowed(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        sink = WebhookNotificationSink(WEBHOOK_URL, transport=httpx.MockTransport(handler))

        assert await sink.send_success_notification("user-1", {}) is False

    @pytest.mark.asyncio
    async def test_missing_url_skips(self):
        sink = WebhookNotificationSink("")
        assert await sink.send_success_notification("user-1", {}) is False


@pytest.mark.unit
@pytest.mark.asyncio
async def test_null_sink_does_nothing():
    sink = NullNotificationSink()
    assert await sink.send_success_notification("user-1", {}) is False
    assert await sink.send_error_notification("user-1", "error") is False
    await sink.aclose()
