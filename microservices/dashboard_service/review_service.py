"""
Dashboard Review Service

Applies an admin's approve or reject decision to the pending dashboard
sections of a campaign, closes the campaign's ledger row and publishes
approved content to the live records.
"""

import logging
from typing import Iterable, List, Optional, Tuple, Union

from .approval_history import ApprovalHistoryLog
from .approval_ledger import ApprovalLedger
from .entities import MULTI_ENTITY_TYPES, SubmittableEntity
from .models import (
    DashboardEntityType,
    ENTITY_DISPLAY_NAMES,
    EntityReviewResult,
    ErrorKind,
    LedgerStatus,
    ReviewAction,
    ReviewSubmissionResponse,
)
from .promotion import ContentPromoter
from .protocols import (
    DashboardConflictError,
    DashboardNotFoundError,
    DashboardRepositoryProtocol,
    DashboardServiceError,
    DashboardValidationError,
    PromotionError,
)

logger = logging.getLogger(__name__)


class DashboardReviewService:
    """Review coordinator"""

    def __init__(
        self,
        repository: DashboardRepositoryProtocol,
        promoter: Optional[ContentPromoter] = None,
    ):
        self.repository = repository
        self.ledger = ApprovalLedger(repository)
        self.history = ApprovalHistoryLog(repository)
        self.promoter = promoter or ContentPromoter(repository)

    @staticmethod
    def parse_entity_types(
        entity_types: Iterable[Union[DashboardEntityType, str]]
    ) -> List[DashboardEntityType]:
        """Entity types in caller order, duplicates dropped"""
        parsed: List[DashboardEntityType] = []
        for value in entity_types:
            try:
                entity_type = DashboardEntityType(value)
            except ValueError:
                raise DashboardValidationError(f"Unknown entity type: {value}", field="entity_types")
            if entity_type not in parsed:
                parsed.append(entity_type)
        if not parsed:
            raise DashboardValidationError("At least one entity type is required", field="entity_types")
        return parsed

    async def review_submission(
        self,
        campaign_id: str,
        admin_id: str,
        entity_types: Iterable[Union[DashboardEntityType, str]],
        action: Union[ReviewAction, str],
        comment: Optional[str] = None,
    ) -> ReviewSubmissionResponse:
        """
        Approve or reject the listed sections of a campaign.

        Sections without a draft are skipped. A draft that is not pending
        fails the whole call before anything is written. Approved content is
        promoted after the review commits; promotion failures are reported
        per section and do not undo the approval.
        """
        try:
            action = ReviewAction(action)
        except ValueError:
            return ReviewSubmissionResponse(
                success=False,
                campaign_id=campaign_id,
                action=ReviewAction.APPROVE,
                error=f"Invalid review action: {action}",
                error_kind=ErrorKind.VALIDATION,
            )

        try:
            types = self.parse_entity_types(entity_types)
            if not admin_id:
                raise DashboardValidationError("Reviewer ID is required", field="admin_id")
            if action == ReviewAction.REJECT and (not comment or not comment.strip()):
                raise DashboardValidationError("Comment is required when rejecting", field="comment")

            campaign = await self.repository.get_campaign(campaign_id)
            if campaign is None:
                raise DashboardNotFoundError("Campaign not found")

            results: List[EntityReviewResult] = []
            approved: List[Tuple[EntityReviewResult, SubmittableEntity]] = []
            ledger_status: Optional[LedgerStatus] = None

            async with self.repository.transaction():
                plan = await self._collect_pending(campaign_id, types)

                for result, entities in plan:
                    for entity in entities:
                        if action == ReviewAction.APPROVE:
                            entity.approve(admin_id, comment)
                        else:
                            entity.reject(admin_id, comment)
                        await self.repository.save_entity(entity)
                        await self.history.record(entity, admin_id, comment)
                        result.entity_ids.append(entity.id)
                        if action == ReviewAction.APPROVE:
                            approved.append((result, entity))
                    if entities:
                        result.reviewed = True
                        result.status = entities[0].status
                    results.append(result)

                if await self.ledger.has_pending_approval(campaign_id, lock=True):
                    entry = await self.ledger.review_approval(campaign_id, action, admin_id, comment)
                    ledger_status = entry.status
                else:
                    logger.warning(f"No pending ledger row for campaign {campaign_id}, ledger left unchanged")

            logger.info(
                f"Campaign {campaign_id} {action.value} by {admin_id}: "
                f"{[r.entity_type.value for r in results if r.reviewed]}"
            )

            for result, entity in approved:
                await self._promote(result, entity)

            return ReviewSubmissionResponse(
                success=True,
                campaign_id=campaign_id,
                action=action,
                results=results,
                ledger_status=ledger_status,
            )

        except DashboardServiceError as e:
            logger.warning(f"Review of campaign {campaign_id} refused: {e}")
            return ReviewSubmissionResponse(
                success=False,
                campaign_id=campaign_id,
                action=action,
                error=str(e),
                error_kind=e.error_kind,
            )

        except Exception as e:
            logger.error(f"Error reviewing campaign {campaign_id}: {e}", exc_info=True)
            return ReviewSubmissionResponse(
                success=False,
                campaign_id=campaign_id,
                action=action,
                error=f"Failed to review submission: {e}",
                error_kind=ErrorKind.INFRASTRUCTURE,
            )

    async def _collect_pending(
        self, campaign_id: str, types: List[DashboardEntityType]
    ) -> List[Tuple[EntityReviewResult, List[SubmittableEntity]]]:
        """Lock each section's drafts; refuse when a found draft is not pending"""
        plan = []
        for entity_type in types:
            result = EntityReviewResult(entity_type=entity_type)
            entities = await self.repository.get_entities(entity_type, campaign_id, for_update=True)
            if not entities:
                logger.warning(f"No {entity_type.value} draft for campaign {campaign_id}, skipping")
                result.skipped = True
                plan.append((result, []))
                continue

            if entity_type in MULTI_ENTITY_TYPES:
                reviewable = [e for e in entities if e.is_pending]
                current = entities[0].status
            else:
                reviewable = entities[:1] if entities[0].is_pending else []
                current = entities[0].status

            if not reviewable:
                raise DashboardConflictError(
                    f"{ENTITY_DISPLAY_NAMES[entity_type]} is not pending review (status: {current.value})",
                    current_status=current,
                )
            plan.append((result, reviewable))
        return plan

    async def _promote(self, result: EntityReviewResult, entity: SubmittableEntity) -> None:
        try:
            promoted = await self.promoter.promote(entity)
            result.promoted = result.promoted or promoted
        except PromotionError as e:
            logger.error(f"Approved {entity.entity_type.value} {entity.id} not published: {e}")
            result.promotion_error = str(e)


__all__ = ["DashboardReviewService"]
