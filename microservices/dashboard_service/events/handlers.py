"""
Dashboard Event Handlers

Notifies admins (Slack and email) when a dashboard is submitted for review.
Notification problems are logged here and never reach the submitter.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from core.config import ServiceConfig
from core.event_bus import Event

from ..models import ENTITY_DISPLAY_NAMES
from ..protocols import DashboardRepositoryProtocol, NotificationClientProtocol
from .models import DashboardEventType, DashboardItemSubmittedEventData

logger = logging.getLogger(__name__)

SLACK_HEADER = "🔔 New Offering Submission for Review"


def extract_event_data(event: Any) -> Dict[str, Any]:
    """Payload of an Event object or of a plain event dict"""
    if isinstance(event, dict):
        return event.get("data", event)
    return getattr(event, "data", {}) or {}


def _entity_names(data: DashboardItemSubmittedEventData) -> List[str]:
    return [ENTITY_DISPLAY_NAMES[entity_type] for entity_type in data.entity_types]


def build_slack_submission_message(
    data: DashboardItemSubmittedEventData,
    campaign_name: str,
    admin_dashboard_url: Optional[str] = None,
) -> Dict[str, Any]:
    """Slack Block Kit message announcing a submission"""
    names = _entity_names(data)
    epoch = int(data.timestamp.timestamp())

    blocks: List[Dict[str, Any]] = [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": SLACK_HEADER, "emoji": True},
        },
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": f"*{data.submitted_by}* has submitted the offering *{campaign_name}* for review.",
            },
        },
        {"type": "divider"},
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": "*Entities Submitted:*\n• " + "\n• ".join(names)},
        },
    ]
    if data.submission_note:
        blocks.append({
            "type": "section",
            "text": {"type": "mrkdwn", "text": f"*Note:*\n{data.submission_note}"},
        })
    blocks.extend([
        {"type": "divider"},
        {
            "type": "context",
            "elements": [{
                "type": "mrkdwn",
                "text": f"<!date^{epoch}^Submitted on {{date_pretty}} at {{time}}|{data.timestamp.isoformat()}>",
            }],
        },
    ])
    if admin_dashboard_url:
        blocks.append({
            "type": "actions",
            "elements": [{
                "type": "button",
                "text": {"type": "plain_text", "text": "📋 Review Submission", "emoji": True},
                "style": "primary",
                "url": f"{admin_dashboard_url.rstrip('/')}/dashboard/pending-approvals",
            }],
        })

    return {
        "text": f"New dashboard submission for campaign {campaign_name}: {', '.join(names)}",
        "blocks": blocks,
    }


def build_submission_email(
    data: DashboardItemSubmittedEventData,
    campaign_name: str,
    admin_dashboard_url: Optional[str] = None,
) -> Tuple[str, str]:
    """Subject and plain-text body of the admin email"""
    lines = [
        f"{data.submitted_by} submitted the offering {campaign_name} for review.",
        "",
        "Entities submitted:",
    ]
    lines.extend(f"  - {name}" for name in _entity_names(data))
    if data.submission_note:
        lines.extend(["", f"Note: {data.submission_note}"])
    lines.extend(["", f"Submitted at: {data.timestamp.isoformat()}"])
    if admin_dashboard_url:
        lines.append(f"Review: {admin_dashboard_url.rstrip('/')}/dashboard/pending-approvals")
    return f"Dashboard submission for review: {campaign_name}", "\n".join(lines)


class DashboardSubmissionNotifier:
    """Sends admin notifications for dashboard.item.submitted_for_review"""

    def __init__(
        self,
        repository: DashboardRepositoryProtocol,
        notification_client: Optional[NotificationClientProtocol],
        config: Optional[ServiceConfig] = None,
    ):
        self.repository = repository
        self.notification_client = notification_client
        self.config = config or ServiceConfig()

    async def handle_item_submitted_for_review(self, event: Event) -> None:
        try:
            data = DashboardItemSubmittedEventData(**extract_event_data(event))
        except Exception as e:
            logger.error(f"Invalid submitted-for-review payload: {e}")
            return

        if not self.config.notifications_enabled or not self.notification_client:
            logger.info(f"Admin notifications disabled, skipping campaign {data.campaign_id}")
            return

        try:
            campaign = await self.repository.get_campaign(data.campaign_id)
            campaign_name = (campaign.campaign_name if campaign else None) or data.campaign_id

            results = await asyncio.gather(
                self._notify_slack(data, campaign_name),
                self._notify_email(data, campaign_name),
                return_exceptions=True,
            )
            for channel, result in zip(("slack", "email"), results):
                if isinstance(result, Exception):
                    logger.error(f"{channel} notification failed for campaign {data.campaign_id}: {result}")

        except Exception as e:
            logger.error(f"Error handling submitted-for-review event for {data.campaign_id}: {e}", exc_info=True)

    async def _notify_slack(self, data: DashboardItemSubmittedEventData, campaign_name: str) -> None:
        if not self.config.slack_bot_token:
            logger.info("SLACK_BOT_TOKEN not set, Slack notification skipped")
            return
        message = build_slack_submission_message(data, campaign_name, self.config.admin_dashboard_url)
        await self.notification_client.send_slack_message(message["text"], blocks=message["blocks"])
        logger.info(f"Slack notification sent for campaign {data.campaign_id}")

    async def _notify_email(self, data: DashboardItemSubmittedEventData, campaign_name: str) -> None:
        recipients = self.config.admin_notification_emails
        if not recipients:
            logger.debug("No admin notification emails configured")
            return
        subject, body = build_submission_email(data, campaign_name, self.config.admin_dashboard_url)
        results = await asyncio.gather(
            *(self.notification_client.send_email(recipient, subject, body) for recipient in recipients),
            return_exceptions=True,
        )
        failed = [
            recipient for recipient, result in zip(recipients, results) if isinstance(result, Exception)
        ]
        if failed:
            raise RuntimeError(f"email delivery failed for {', '.join(failed)}")
        logger.info(f"Email notifications sent to {len(recipients)} admin(s) for campaign {data.campaign_id}")


def get_event_handlers(notifier: DashboardSubmissionNotifier) -> Dict[DashboardEventType, Any]:
    """Dispatch table of dashboard event handlers"""
    return {
        DashboardEventType.ITEM_SUBMITTED_FOR_REVIEW: notifier.handle_item_submitted_for_review,
    }


def register_event_handlers(event_bus, notifier: DashboardSubmissionNotifier) -> None:
    for event_type, handler in get_event_handlers(notifier).items():
        event_bus.subscribe_to_events(event_type, handler)


__all__ = [
    "DashboardSubmissionNotifier",
    "build_slack_submission_message",
    "build_submission_email",
    "extract_event_data",
    "get_event_handlers",
    "register_event_handlers",
]
