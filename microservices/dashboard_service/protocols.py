"""
Dashboard Service Protocols

Defines interfaces for dependency injection and testing, and the error
hierarchy raised by the dashboard domain.
"""

from typing import TYPE_CHECKING, Any, AsyncContextManager, Dict, List, Optional, Protocol

from .models import (
    ApprovalHistoryRecord,
    ApprovalLedgerEntry,
    Campaign,
    CampaignInfo,
    DashboardEntityType,
    DashboardSubmission,
    ErrorKind,
    Issuer,
    LedgerStatus,
    Owner,
)

if TYPE_CHECKING:
    from .entities import SubmittableEntity


# ====================
# Repository Protocol
# ====================


class DashboardRepositoryProtocol(Protocol):
    """Persistence port for drafts, ledger, history and canonical records"""

    async def initialize(self) -> None:
        """Initialize repository connection"""
        ...

    async def close(self) -> None:
        """Close repository connection"""
        ...

    async def health_check(self) -> bool:
        """Check repository health"""
        ...

    def transaction(self) -> AsyncContextManager[Any]:
        """Group the enclosed calls into one atomic unit"""
        ...

    # Campaign lookup
    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        ...

    async def get_campaign_by_slug(self, slug: str) -> Optional[Campaign]:
        ...

    # Dashboard drafts
    async def get_entities(
        self,
        entity_type: DashboardEntityType,
        campaign_id: str,
        for_update: bool = False,
    ) -> List["SubmittableEntity"]:
        """Drafts of one type for a campaign (at most one except owners)"""
        ...

    async def save_entity(self, entity: "SubmittableEntity") -> "SubmittableEntity":
        """Insert or update a draft by ID"""
        ...

    # Approval ledger
    async def get_approval(
        self, campaign_id: str, for_update: bool = False
    ) -> Optional[ApprovalLedgerEntry]:
        ...

    async def upsert_approval(
        self, entry: ApprovalLedgerEntry, reject_if_pending: bool = False
    ) -> Optional[ApprovalLedgerEntry]:
        """
        Create or reset the ledger row for ``entry.campaign_id``.

        With ``reject_if_pending`` the write is skipped (returns None) when
        the stored row is pending; the check and the write are one atomic
        storage operation.
        """
        ...

    async def update_approval(self, entry: ApprovalLedgerEntry) -> ApprovalLedgerEntry:
        ...

    async def list_approvals(
        self,
        status: Optional[LedgerStatus] = None,
        submitted_by: Optional[str] = None,
    ) -> List[ApprovalLedgerEntry]:
        """Ledger rows ordered by submitted_at ascending"""
        ...

    async def count_approvals(
        self, entity_type: Optional[DashboardEntityType] = None
    ) -> Dict[str, int]:
        ...

    # Approval history
    async def save_history(self, record: ApprovalHistoryRecord) -> ApprovalHistoryRecord:
        ...

    async def list_history(
        self,
        entity_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> List[ApprovalHistoryRecord]:
        ...

    # Submission tracking
    async def save_submission(self, submission: DashboardSubmission) -> DashboardSubmission:
        ...

    # Canonical records
    async def get_campaign_info(self, campaign_id: str) -> Optional[CampaignInfo]:
        ...

    async def save_campaign_info(self, info: CampaignInfo) -> CampaignInfo:
        ...

    async def update_campaign(self, campaign_id: str, updates: Dict[str, Any]) -> Optional[Campaign]:
        ...

    async def get_issuer(self, issuer_id: str) -> Optional[Issuer]:
        ...

    async def update_issuer(self, issuer_id: str, updates: Dict[str, Any]) -> Optional[Issuer]:
        ...

    async def insert_owner(self, owner: Owner) -> Owner:
        ...


# ====================
# Event Bus Protocol
# ====================


class EventBusProtocol(Protocol):
    """Protocol for event bus operations"""

    async def publish_event(self, event: Any) -> bool:
        """Publish an event to the event bus"""
        ...

    def subscribe_to_events(self, event_type: Any, handler: Any) -> None:
        """Register a handler for an event type"""
        ...

    async def close(self) -> None:
        """Close event bus"""
        ...


# ====================
# Service Client Protocols
# ====================


class NotificationClientProtocol(Protocol):
    """Protocol for admin notification delivery"""

    async def send_slack_message(
        self, text: str, blocks: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        ...

    async def send_email(
        self, recipient: str, subject: str, body: str, html: Optional[str] = None
    ) -> Dict[str, Any]:
        ...


# ====================
# Exceptions
# ====================


class DashboardServiceError(Exception):
    """Base exception for dashboard service errors"""
    error_kind = ErrorKind.INFRASTRUCTURE


class DashboardValidationError(DashboardServiceError):
    """Raised when input or content validation fails"""
    error_kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.field = field
        self.errors = errors or [message]


class DashboardConflictError(DashboardServiceError):
    """Raised when an entity or ledger row is in the wrong state for an operation"""
    error_kind = ErrorKind.CONFLICT

    def __init__(self, message: str, current_status: Optional[Any] = None):
        super().__init__(message)
        self.current_status = current_status


class DashboardNotFoundError(DashboardServiceError):
    """Raised when a campaign, draft or ledger row does not exist"""
    error_kind = ErrorKind.NOT_FOUND


class PromotionError(DashboardServiceError):
    """Raised when approved content cannot be copied to the live records"""

    def __init__(self, message: str, entity_type: Optional[DashboardEntityType] = None):
        super().__init__(message)
        self.entity_type = entity_type


class DashboardPersistenceError(DashboardServiceError):
    """Raised when storage fails"""
    pass


__all__ = [
    "DashboardRepositoryProtocol",
    "EventBusProtocol",
    "NotificationClientProtocol",
    "DashboardServiceError",
    "DashboardValidationError",
    "DashboardConflictError",
    "DashboardNotFoundError",
    "PromotionError",
    "DashboardPersistenceError",
]
