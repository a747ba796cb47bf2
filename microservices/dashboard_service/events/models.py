"""
Dashboard Event Data Models

Event type definitions and payloads for dashboard service events.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models import DashboardEntityType


class DashboardEventType(str, Enum):
    """
    Events published by dashboard_service.

    Handlers are registered against these members, never raw strings.
    """
    ITEM_SUBMITTED_FOR_REVIEW = "dashboard.item.submitted_for_review"


class DashboardItemSubmittedEventData(BaseModel):
    """Payload of dashboard.item.submitted_for_review"""
    campaign_id: str = Field(..., description="Campaign whose dashboard was submitted")
    submitted_by: str = Field(..., description="Submitting user ID")
    entity_types: List[DashboardEntityType] = Field(..., description="Sections included in the submission")
    timestamp: datetime = Field(..., description="Submission time (UTC)")
    submission_id: Optional[str] = None
    approval_id: Optional[str] = None
    submission_note: Optional[str] = None


__all__ = ["DashboardEventType", "DashboardItemSubmittedEventData"]
