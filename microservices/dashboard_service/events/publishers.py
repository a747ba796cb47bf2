"""
Dashboard Event Publishers

Publishes dashboard events to the event bus. Publishing never raises; a
failed publish is logged and reported as False.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.event_bus import Event

from ..models import DashboardEntityType
from .models import DashboardEventType, DashboardItemSubmittedEventData

logger = logging.getLogger(__name__)


class DashboardEventPublisher:
    """Publisher for dashboard service events"""

    def __init__(self, event_bus=None):
        self.event_bus = event_bus
        self.source = "dashboard_service"

    async def publish(
        self,
        event_type: DashboardEventType,
        data: Dict[str, Any],
    ) -> bool:
        """
        Publish an event.

        Args:
            event_type: The event type enum
            data: Event data payload

        Returns:
            True if published successfully, False otherwise
        """
        if not self.event_bus:
            logger.debug(f"Event bus not configured, skipping publish: {event_type.value}")
            return False

        try:
            event = Event(event_type=event_type, source=self.source, data=data)
            published = await self.event_bus.publish_event(event)
            logger.debug(f"Published event: {event_type.value}")
            return published is not False

        except Exception as e:
            logger.error(f"Failed to publish event {event_type.value}: {e}")
            return False

    async def publish_item_submitted_for_review(
        self,
        campaign_id: str,
        submitted_by: str,
        entity_types: List[DashboardEntityType],
        timestamp: datetime,
        submission_id: Optional[str] = None,
        approval_id: Optional[str] = None,
        submission_note: Optional[str] = None,
    ) -> bool:
        payload = DashboardItemSubmittedEventData(
            campaign_id=campaign_id,
            submitted_by=submitted_by,
            entity_types=entity_types,
            timestamp=timestamp,
            submission_id=submission_id,
            approval_id=approval_id,
            submission_note=submission_note,
        )
        return await self.publish(
            DashboardEventType.ITEM_SUBMITTED_FOR_REVIEW,
            payload.model_dump(mode="json"),
        )


__all__ = ["DashboardEventPublisher"]
