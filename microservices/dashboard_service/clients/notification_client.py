"""
Notification Client

Delivers admin notifications: Slack messages through the Slack Web API and
emails through notification_service.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from core.config_manager import ConfigManager

logger = logging.getLogger(__name__)


class SlackApiError(Exception):
    """Slack answered with ok=false"""
    pass


class NotificationClient:
    """Client for Slack and notification_service"""

    def __init__(
        self,
        config: Optional[ConfigManager] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if config is None:
            config = ConfigManager("dashboard_service")

        service_config = config.get_service_config()
        host, port = config.discover_service(
            service_name='notification_service',
            default_host=service_config.notification_service_host,
            default_port=service_config.notification_service_port,
            env_host_key='NOTIFICATION_SERVICE_HOST',
            env_port_key='NOTIFICATION_SERVICE_PORT'
        )

        self.base_url = f"http://{host}:{port}"
        self.slack_api_url = service_config.slack_api_url.rstrip("/")
        self.slack_token = service_config.slack_bot_token
        self.slack_channel = service_config.slack_admin_channel
        self.timeout = service_config.http_timeout
        self.retry_attempts = max(1, service_config.http_retry_attempts)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _post(self, url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        """POST with retries on transport errors"""

        @retry(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
        async def _send() -> httpx.Response:
            async with self._client() as client:
                response = await client.post(url, json=payload, headers=headers)
                response.raise_for_status()
                return response

        return await _send()

    async def send_slack_message(
        self,
        text: str,
        blocks: Optional[List[Dict[str, Any]]] = None,
        channel: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Post a message to the admin channel.

        Args:
            text: Fallback text shown in notifications
            blocks: Block Kit layout
            channel: Channel override (defaults to SLACK_ADMIN_CHANNEL)

        Returns:
            Slack API response
        """
        payload: Dict[str, Any] = {"channel": channel or self.slack_channel, "text": text}
        if blocks:
            payload["blocks"] = blocks

        try:
            response = await self._post(
                f"{self.slack_api_url}/chat.postMessage",
                payload,
                headers={"Authorization": f"Bearer {self.slack_token}"},
            )
            body = response.json()
            if not body.get("ok", False):
                raise SlackApiError(body.get("error", "unknown_error"))
            return body

        except httpx.HTTPStatusError as e:
            logger.error(f"Error sending Slack message: {e.response.text}")
            raise

        except Exception as e:
            logger.error(f"Error sending Slack message: {e}")
            raise

    async def send_email(
        self,
        recipient: str,
        subject: str,
        body: str,
        html: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send an email via notification_service.

        Args:
            recipient: Email address
            subject: Subject line
            body: Plain-text body
            html: Optional HTML body

        Returns:
            Notification response with notification_id
        """
        content: Dict[str, Any] = {"subject": subject, "body": body}
        if html:
            content["html"] = html
        request_data: Dict[str, Any] = {
            "channel_type": "email",
            "recipient_email": recipient,
            "content": content,
        }

        try:
            response = await self._post(f"{self.base_url}/api/v1/notifications", request_data)
            return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"Error sending email to {recipient}: {e.response.text}")
            raise

        except Exception as e:
            logger.error(f"Error sending email to {recipient}: {e}")
            raise


__all__ = ["NotificationClient", "SlackApiError"]
