"""
Component Tests for NotificationClient

HTTP calls are served by httpx.MockTransport.
"""

import json

import httpx
import pytest

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from core.config import DashboardConfig, ServiceConfig
from core.config_manager import ConfigManager
from microservices.dashboard_service.clients.notification_client import NotificationClient, SlackApiError


@pytest.fixture
def config_manager() -> ConfigManager:
    settings = DashboardConfig(service=ServiceConfig(
        slack_bot_token="xoxb-test",
        slack_admin_channel="#reviews",
        slack_api_url="https://slack.test/api/",
        http_retry_attempts=2,
    ))
    return ConfigManager("dashboard_service", settings=settings)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps the requests it served"""

    def __init__(self, handler):
        self.requests = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


class TestSlack:
    """Slack Web API"""

    @pytest.mark.asyncio
    async def test_post_message(self, config_manager):
        # Given
        transport = RecordingTransport(lambda request: httpx.Response(200, json={"ok": True, "ts": "1.2"}))
        client = NotificationClient(config_manager, transport=transport)

        # When
        body = await client.send_slack_message("New submission", blocks=[{"type": "divider"}])

        # Then
        assert body["ts"] == "1.2"
        [request] = transport.requests
        assert str(request.url) == "https://slack.test/api/chat.postMessage"
        assert request.headers["Authorization"] == "Bearer xoxb-test"
        payload = json.loads(request.content)
        assert payload == {"channel": "#reviews", "text": "New submission", "blocks": [{"type": "divider"}]}

    @pytest.mark.asyncio
    async def test_ok_false_raises(self, config_manager):
        transport = RecordingTransport(lambda request: httpx.Response(200, json={"ok": False, "error": "channel_not_found"}))
        client = NotificationClient(config_manager, transport=transport)

        with pytest.raises(SlackApiError, match="channel_not_found"):
            await client.send_slack_message("New submission")

        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_http_error_not_retried(self, config_manager):
        transport = RecordingTransport(lambda request: httpx.Response(500, text="boom"))
        client = NotificationClient(config_manager, transport=transport)

        with pytest.raises(httpx.HTTPStatusError):
            await client.send_slack_message("New submission")

        assert len(transport.requests) == 1


class TestEmail:
    """notification_service email delivery"""

    @pytest.mark.asyncio
    async def test_send_email(self, config_manager):
        # Given
        transport = RecordingTransport(lambda request: httpx.Response(200, json={"notification_id": "ntf_1"}))
        client = NotificationClient(config_manager, transport=transport)

        # When
        result = await client.send_email("ops@example.com", "Subject", "Body")

        # Then
        assert result == {"notification_id": "ntf_1"}
        [request] = transport.requests
        assert str(request.url) == f"{client.base_url}/api/v1/notifications"
        assert json.loads(request.content) == {
            "channel_type": "email",
            "recipient_email": "ops@example.com",
            "content": {"subject": "Subject", "body": "Body"},
        }

    @pytest.mark.asyncio
    async def test_transport_error_retried(self, config_manager):
        # Given
        attempts = []

        def flaky(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"notification_id": "ntf_2"})

        client = NotificationClient(config_manager, transport=httpx.MockTransport(flaky))

        # When
        result = await client.send_email("ops@example.com", "Subject", "Body")

        # Then
        assert result["notification_id"] == "ntf_2"
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, config_manager):
        def down(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = NotificationClient(config_manager, transport=httpx.MockTransport(down))

        with pytest.raises(httpx.ConnectError):
            await client.send_email("ops@example.com", "Subject", "Body")
