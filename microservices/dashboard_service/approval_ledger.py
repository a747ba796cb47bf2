"""
Approval Ledger

One row per campaign describing its current (or most recent) submission.
The ledger answers "is something pending for this campaign" and is the
single synchronization point for resubmission.
"""

import logging
from typing import List, Optional, Union

from .models import (
    ApprovalLedgerEntry,
    ApprovalStatistics,
    DashboardEntityType,
    LedgerStatus,
    ReviewAction,
    SubmittedItems,
    utc_now,
)
from .protocols import (
    DashboardConflictError,
    DashboardNotFoundError,
    DashboardRepositoryProtocol,
)

logger = logging.getLogger(__name__)

PENDING_REVIEW_MESSAGE = (
    "This campaign already has a pending review. "
    "Please wait for the current review to complete before submitting again."
)

ACTION_TO_LEDGER_STATUS = {
    ReviewAction.APPROVE: LedgerStatus.APPROVED,
    ReviewAction.REJECT: LedgerStatus.REJECTED,
}


class ApprovalLedger:
    """Ledger operations on top of the repository"""

    def __init__(self, repository: DashboardRepositoryProtocol):
        self.repository = repository

    async def submit_for_approval(
        self,
        campaign_id: str,
        submitted_items: SubmittedItems,
        submitted_by: str,
        exclusive: bool = False,
    ) -> ApprovalLedgerEntry:
        """
        Create or reset the campaign's ledger row to pending.

        Any previous review outcome on the row is cleared. With ``exclusive``
        the reset is refused when the stored row is still pending; that check
        is made by the storage layer in the same statement as the write.
        """
        now = utc_now()
        entry = ApprovalLedgerEntry(
            campaign_id=campaign_id,
            submitted_items=submitted_items,
            status=LedgerStatus.PENDING,
            submitted_at=now,
            submitted_by=submitted_by,
            reviewed_at=None,
            reviewed_by=None,
            comment=None,
            created_at=now,
            updated_at=now,
        )

        saved = await self.repository.upsert_approval(entry, reject_if_pending=exclusive)
        if saved is None:
            logger.warning(f"Ledger reset refused, campaign {campaign_id} already pending")
            raise DashboardConflictError(PENDING_REVIEW_MESSAGE, current_status=LedgerStatus.PENDING)

        logger.info(f"Ledger row {saved.id} pending for campaign {campaign_id}")
        return saved

    async def has_pending_approval(self, campaign_id: str, lock: bool = False) -> bool:
        entry = await self.repository.get_approval(campaign_id, for_update=lock)
        return entry is not None and entry.status == LedgerStatus.PENDING

    async def get_approval(self, campaign_id: str) -> Optional[ApprovalLedgerEntry]:
        return await self.repository.get_approval(campaign_id)

    async def review_approval(
        self,
        campaign_id: str,
        action: Union[ReviewAction, str],
        reviewed_by: str,
        comment: Optional[str] = None,
    ) -> ApprovalLedgerEntry:
        action = ReviewAction(action)
        entry = await self.repository.get_approval(campaign_id, for_update=True)
        if entry is None:
            raise DashboardNotFoundError("Approval not found")
        if entry.status != LedgerStatus.PENDING:
            raise DashboardConflictError("Can only review pending approvals", current_status=entry.status)

        now = utc_now()
        entry.status = ACTION_TO_LEDGER_STATUS[action]
        entry.reviewed_by = reviewed_by
        entry.reviewed_at = now
        entry.comment = comment
        entry.updated_at = now

        saved = await self.repository.update_approval(entry)
        logger.info(f"Ledger row for campaign {campaign_id} {saved.status.value} by {reviewed_by}")
        return saved

    async def find_pending(self, submitted_by: Optional[str] = None) -> List[ApprovalLedgerEntry]:
        return await self.repository.list_approvals(status=LedgerStatus.PENDING, submitted_by=submitted_by)

    async def get_statistics(
        self, entity_type: Optional[DashboardEntityType] = None
    ) -> ApprovalStatistics:
        counts = await self.repository.count_approvals(entity_type)
        return ApprovalStatistics(
            pending=counts.get(LedgerStatus.PENDING.value, 0),
            approved=counts.get(LedgerStatus.APPROVED.value, 0),
            rejected=counts.get(LedgerStatus.REJECTED.value, 0),
        )


__all__ = ["ApprovalLedger", "PENDING_REVIEW_MESSAGE"]
