"""
Dashboard Service Data Models

Campaign dashboard drafts, the per-campaign approval ledger, the approval
history trail, submission tracking, the canonical records approved content
is promoted into, and the API request/response shapes.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


# ====================
# Enumerations
# ====================

class ApprovalStatus(str, Enum):
    """Lifecycle status of a dashboard draft"""
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class LedgerStatus(str, Enum):
    """Status of the current submission in the approval ledger"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DashboardEntityType(str, Enum):
    """Dashboard sections that go through review"""
    CAMPAIGN_INFO = "dashboard-campaign-info"
    CAMPAIGN_SUMMARY = "dashboard-campaign-summary"
    SOCIALS = "dashboard-socials"
    OWNERS = "dashboard-owners"


class ReviewAction(str, Enum):
    """Admin decision on a submission"""
    APPROVE = "approve"
    REJECT = "reject"


class SubmissionStatus(str, Enum):
    """Submission tracking status"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ErrorKind(str, Enum):
    """Failure categories reported by the workflow"""
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    INFRASTRUCTURE = "infrastructure"


# Entity type -> SubmittedItems flag
ENTITY_ITEM_FLAGS: Dict[DashboardEntityType, str] = {
    DashboardEntityType.CAMPAIGN_INFO: "campaign_info",
    DashboardEntityType.CAMPAIGN_SUMMARY: "campaign_summary",
    DashboardEntityType.SOCIALS: "socials",
    DashboardEntityType.OWNERS: "owners",
}

# Human readable section names used in messages and notifications
ENTITY_DISPLAY_NAMES: Dict[DashboardEntityType, str] = {
    DashboardEntityType.CAMPAIGN_INFO: "Dashboard Campaign Info",
    DashboardEntityType.CAMPAIGN_SUMMARY: "Dashboard Campaign Summary",
    DashboardEntityType.SOCIALS: "Dashboard Socials",
    DashboardEntityType.OWNERS: "Dashboard Owners",
}


class SubmittedItems(BaseModel):
    """Which dashboard sections a submission covers"""
    model_config = ConfigDict(extra="forbid")

    campaign_info: bool = Field(default=False, description="Campaign info section")
    campaign_summary: bool = Field(default=False, description="Campaign summary section")
    socials: bool = Field(default=False, description="Social links section")
    owners: bool = Field(default=False, description="Owners section")

    @classmethod
    def from_entity_types(cls, entity_types: List[DashboardEntityType]) -> "SubmittedItems":
        return cls(**{ENTITY_ITEM_FLAGS[entity_type]: True for entity_type in entity_types})

    def includes(self, entity_type: DashboardEntityType) -> bool:
        return getattr(self, ENTITY_ITEM_FLAGS[entity_type])

    def entity_types(self) -> List[DashboardEntityType]:
        """Selected entity types in catalogue order"""
        return [entity_type for entity_type in DashboardEntityType if self.includes(entity_type)]

    def has_selection(self) -> bool:
        return bool(self.entity_types())


# ====================
# Workflow Records
# ====================

class ApprovalLedgerEntry(BaseModel):
    """
    Current submission for a campaign.

    Exactly one row exists per campaign; a resubmission overwrites it.
    """
    id: str = Field(default_factory=new_id, description="Ledger row ID")
    campaign_id: str = Field(..., min_length=1, description="Campaign ID")
    submitted_items: SubmittedItems = Field(default_factory=SubmittedItems)
    status: LedgerStatus = Field(default=LedgerStatus.PENDING)
    submitted_at: Optional[datetime] = None
    submitted_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ApprovalHistoryRecord(BaseModel):
    """Append-only audit row, one per status transition"""
    id: str = Field(default_factory=new_id)
    entity_id: str = Field(..., min_length=1)
    entity_type: DashboardEntityType
    status: ApprovalStatus
    user_id: str = Field(..., min_length=1)
    comment: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


class SubmissionItemResult(BaseModel):
    """Outcome for one section of a submission"""
    success: bool
    entity_ids: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class DashboardSubmission(BaseModel):
    """Tracking record for one submit-for-review call"""
    id: str = Field(default_factory=new_id)
    campaign_id: str
    submitted_by: str
    submission_note: Optional[str] = None
    items: SubmittedItems
    status: SubmissionStatus = SubmissionStatus.PENDING
    results: Dict[str, SubmissionItemResult] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = None

    def start_processing(self) -> None:
        self.status = SubmissionStatus.PROCESSING
        self.updated_at = utc_now()

    def record_result(self, entity_type: DashboardEntityType, result: SubmissionItemResult) -> None:
        self.results[entity_type.value] = result
        self.updated_at = utc_now()

    def finish(self, success: bool) -> None:
        self.status = SubmissionStatus.COMPLETED if success else SubmissionStatus.FAILED
        self.completed_at = utc_now()
        self.updated_at = self.completed_at


# ====================
# Canonical Records
# ====================

class Campaign(BaseModel):
    """Live campaign record (only the fields this service reads or writes)"""
    campaign_id: str
    campaign_slug: Optional[str] = None
    campaign_name: Optional[str] = None
    issuer_id: Optional[str] = None
    summary: Optional[str] = None
    tag_line: Optional[str] = None
    updated_at: Optional[datetime] = None


class CampaignInfo(BaseModel):
    """Published campaign information"""
    campaign_info_id: str = Field(default_factory=new_id)
    campaign_id: str
    milestones: Optional[str] = None
    investor_pitch: Optional[str] = None
    is_show_pitch: bool = False
    investor_pitch_title: Optional[str] = None
    financial_history: str = ""
    competitors: str = ""
    risks: str = ""
    target: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Issuer(BaseModel):
    """Issuer linked to a campaign; owns the published social links"""
    issuer_id: str
    business_name: Optional[str] = None
    linked_in: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    facebook: Optional[str] = None
    tiktok: Optional[str] = None
    yelp: Optional[str] = None
    updated_at: Optional[datetime] = None


class Owner(BaseModel):
    """Published owner card"""
    id: str = Field(default_factory=new_id)
    campaign_id: str
    owner_id: Optional[str] = None
    title: Optional[str] = None
    sub_title: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None


# ====================
# Request Models
# ====================

class CampaignInfoDraftRequest(BaseModel):
    milestones: Optional[Any] = Field(None, description="Milestones as JSON text or a list")
    investor_pitch: Optional[str] = None
    is_show_pitch: Optional[bool] = None
    investor_pitch_title: Optional[str] = None


class CampaignSummaryDraftRequest(BaseModel):
    summary: Optional[str] = None
    tag_line: Optional[str] = None


class SocialsDraftRequest(BaseModel):
    linked_in: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    facebook: Optional[str] = None
    tiktok: Optional[str] = None
    yelp: Optional[str] = None


class OwnerDraftRequest(BaseModel):
    id: Optional[str] = Field(None, description="Existing draft owner ID; omit to add a new owner")
    name: Optional[str] = None
    position: Optional[str] = None
    description: Optional[str] = None
    owner_id: Optional[str] = None


class SaveDashboardChangesRequest(BaseModel):
    """Edit any subset of the dashboard sections in one call"""
    campaign_info: Optional[CampaignInfoDraftRequest] = None
    campaign_summary: Optional[CampaignSummaryDraftRequest] = None
    socials: Optional[SocialsDraftRequest] = None
    owners: Optional[List[OwnerDraftRequest]] = None


class SubmitForReviewRequest(BaseModel):
    items: Dict[str, bool] = Field(..., description="Section flags, e.g. {'socials': true}")
    submission_note: Optional[str] = Field(None, max_length=2000)


class ReviewSubmissionRequest(BaseModel):
    entity_types: List[DashboardEntityType] = Field(..., min_length=1)
    action: ReviewAction
    comment: Optional[str] = None


# ====================
# Response Models
# ====================

class SubmitForReviewResponse(BaseModel):
    """Result of a submit-for-review call"""
    submission_id: Optional[str] = None
    approval_id: Optional[str] = None
    status: SubmissionStatus
    submitted_items: SubmittedItems = Field(default_factory=SubmittedItems)
    transitioned_entity_ids: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    error_kind: Optional[ErrorKind] = None


class EntityReviewResult(BaseModel):
    """Outcome of reviewing one entity type"""
    entity_type: DashboardEntityType
    reviewed: bool = False
    skipped: bool = False
    entity_ids: List[str] = Field(default_factory=list)
    status: Optional[ApprovalStatus] = None
    promoted: bool = False
    promotion_error: Optional[str] = None


class ReviewSubmissionResponse(BaseModel):
    """Result of an admin review call"""
    success: bool
    campaign_id: str
    action: ReviewAction
    results: List[EntityReviewResult] = Field(default_factory=list)
    ledger_status: Optional[LedgerStatus] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


class ApprovalStatistics(BaseModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0


class HealthResponse(BaseModel):
    status: str
    service: str
    port: int
    version: str
    dependencies: Dict[str, str] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    detail: str
    error_kind: Optional[ErrorKind] = None
