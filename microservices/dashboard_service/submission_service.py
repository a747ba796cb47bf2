"""
Dashboard Submission Service

Submits dashboard sections of a campaign for admin review: validates every
requested section, moves drafts to PENDING, opens the campaign's ledger row,
records history and notifies admins.
"""

import logging
from typing import Dict, List, Mapping, Optional, Union

from .approval_history import ApprovalHistoryLog
from .approval_ledger import PENDING_REVIEW_MESSAGE, ApprovalLedger
from .entities import MULTI_ENTITY_TYPES, SubmittableEntity
from .events.publishers import DashboardEventPublisher
from .models import (
    ApprovalLedgerEntry,
    ApprovalStatus,
    DashboardEntityType,
    DashboardSubmission,
    ENTITY_DISPLAY_NAMES,
    ErrorKind,
    LedgerStatus,
    SubmissionItemResult,
    SubmissionStatus,
    SubmitForReviewResponse,
    SubmittedItems,
)
from .protocols import (
    DashboardConflictError,
    DashboardNotFoundError,
    DashboardRepositoryProtocol,
    DashboardServiceError,
    DashboardValidationError,
)

logger = logging.getLogger(__name__)

ItemsInput = Union[SubmittedItems, Mapping[str, bool]]


class DashboardSubmissionService:
    """Submission coordinator"""

    # Draft states that a submission moves to PENDING
    SUBMITTABLE_STATUSES = (ApprovalStatus.DRAFT, ApprovalStatus.REJECTED)

    def __init__(
        self,
        repository: DashboardRepositoryProtocol,
        event_publisher: Optional[DashboardEventPublisher] = None,
    ):
        self.repository = repository
        self.ledger = ApprovalLedger(repository)
        self.history = ApprovalHistoryLog(repository)
        self.event_publisher = event_publisher

    @staticmethod
    def parse_items(items: ItemsInput) -> SubmittedItems:
        """Validate the requested section flags"""
        if isinstance(items, SubmittedItems):
            parsed = items
        else:
            unknown = sorted(set(items) - set(SubmittedItems.model_fields))
            if unknown:
                raise DashboardValidationError(f"Unknown dashboard items: {', '.join(unknown)}", field="items")
            parsed = SubmittedItems(**{key: bool(value) for key, value in items.items()})

        if not parsed.has_selection():
            raise DashboardValidationError("At least one dashboard item must be selected", field="items")
        return parsed

    async def submit_for_review(
        self,
        campaign_id: str,
        submitted_by: str,
        items: ItemsInput,
        submission_note: Optional[str] = None,
    ) -> SubmitForReviewResponse:
        """
        Submit the selected dashboard sections of a campaign for review.

        Never raises; failures come back as a response with status FAILED,
        the error messages and the error kind.
        """
        requested = SubmittedItems()
        submission: Optional[DashboardSubmission] = None

        try:
            requested = self.parse_items(items)
            if not submitted_by:
                raise DashboardValidationError("Submitter ID is required", field="submitted_by")

            campaign = await self.repository.get_campaign(campaign_id)
            if campaign is None:
                raise DashboardNotFoundError("Campaign not found")

            submission = DashboardSubmission(
                campaign_id=campaign_id,
                submitted_by=submitted_by,
                submission_note=submission_note,
                items=requested,
            )
            submission.start_processing()

            async with self.repository.transaction():
                if await self.ledger.has_pending_approval(campaign_id, lock=True):
                    raise DashboardConflictError(PENDING_REVIEW_MESSAGE, current_status=LedgerStatus.PENDING)

                drafts = await self._load_and_validate(campaign_id, requested)
                transitioned = await self._submit_drafts(drafts, submitted_by, submission)
                approval = await self.ledger.submit_for_approval(
                    campaign_id, requested, submitted_by, exclusive=True
                )
                for entity in transitioned:
                    await self.history.record(entity, submitted_by, submission_note)

            submission.finish(success=True)
            await self._save_submission(submission)

            logger.info(
                f"Campaign {campaign_id} submitted for review by {submitted_by}: "
                f"{[t.value for t in requested.entity_types()]}"
            )
            await self._publish_submitted(approval, submission)

            return SubmitForReviewResponse(
                submission_id=submission.id,
                approval_id=approval.id,
                status=SubmissionStatus.COMPLETED,
                submitted_items=requested,
                transitioned_entity_ids=[entity.id for entity in transitioned],
            )

        except DashboardServiceError as e:
            logger.warning(f"Submission for campaign {campaign_id} rejected: {e}")
            errors = e.errors if isinstance(e, DashboardValidationError) else [str(e)]
            return await self._failed(submission, requested, errors, e.error_kind)

        except Exception as e:
            logger.error(f"Error submitting campaign {campaign_id} for review: {e}", exc_info=True)
            return await self._failed(
                submission, requested, [f"Failed to submit dashboard items: {e}"], ErrorKind.INFRASTRUCTURE
            )

    async def _load_and_validate(
        self, campaign_id: str, requested: SubmittedItems
    ) -> Dict[DashboardEntityType, List[SubmittableEntity]]:
        """Load every requested section; report all problems at once"""
        drafts: Dict[DashboardEntityType, List[SubmittableEntity]] = {}
        errors: List[str] = []

        for entity_type in requested.entity_types():
            name = ENTITY_DISPLAY_NAMES[entity_type]
            entities = await self.repository.get_entities(entity_type, campaign_id, for_update=True)
            if not entities:
                errors.append(f"{name} not found for this campaign")
                continue

            candidates = [e for e in entities if e.status in self.SUBMITTABLE_STATUSES]
            if not candidates:
                if all(e.status == ApprovalStatus.APPROVED for e in entities):
                    errors.append(f"{name} has already been approved")
                else:
                    errors.append(f"{name} has no draft changes to submit")
                continue

            if entity_type in MULTI_ENTITY_TYPES:
                has_content = all(e.has_content() for e in candidates) and any(e.has_content() for e in entities)
            else:
                has_content = entities[0].has_content()
            if not has_content:
                errors.append(f"{name} has no content to submit")
                continue

            drafts[entity_type] = entities

        if errors:
            raise DashboardValidationError("; ".join(errors), errors=errors)
        return drafts

    async def _submit_drafts(
        self,
        drafts: Dict[DashboardEntityType, List[SubmittableEntity]],
        submitted_by: str,
        submission: DashboardSubmission,
    ) -> List[SubmittableEntity]:
        transitioned: List[SubmittableEntity] = []
        for entity_type, entities in drafts.items():
            ids = []
            for entity in entities:
                if entity.status not in self.SUBMITTABLE_STATUSES:
                    logger.debug(f"{entity_type.value} {entity.id} is {entity.status.value}, left unchanged")
                    continue
                entity.submit(submitted_by)
                await self.repository.save_entity(entity)
                transitioned.append(entity)
                ids.append(entity.id)
            submission.record_result(entity_type, SubmissionItemResult(success=True, entity_ids=ids))
        return transitioned

    async def _failed(
        self,
        submission: Optional[DashboardSubmission],
        requested: SubmittedItems,
        errors: List[str],
        error_kind: ErrorKind,
    ) -> SubmitForReviewResponse:
        if submission is not None:
            submission.finish(success=False)
            await self._save_submission(submission)
        return SubmitForReviewResponse(
            submission_id=submission.id if submission else None,
            status=SubmissionStatus.FAILED,
            submitted_items=requested,
            errors=errors,
            error_kind=error_kind,
        )

    async def _save_submission(self, submission: DashboardSubmission) -> None:
        try:
            await self.repository.save_submission(submission)
        except Exception as e:
            logger.warning(f"Failed to save submission record {submission.id}: {e}")

    async def _publish_submitted(self, approval: ApprovalLedgerEntry, submission: DashboardSubmission) -> None:
        """Notify admins; never affects the submission result"""
        if not self.event_publisher:
            logger.debug("Event publisher not configured, skipping submitted-for-review event")
            return

        try:
            await self.event_publisher.publish_item_submitted_for_review(
                campaign_id=approval.campaign_id,
                submitted_by=submission.submitted_by,
                entity_types=submission.items.entity_types(),
                timestamp=approval.submitted_at or submission.updated_at,
                submission_id=submission.id,
                approval_id=approval.id,
                submission_note=submission.submission_note,
            )
        except Exception as e:
            logger.error(f"Failed to publish submitted-for-review event for {approval.campaign_id}: {e}")


__all__ = ["DashboardSubmissionService"]
