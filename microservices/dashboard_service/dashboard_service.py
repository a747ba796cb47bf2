"""
Dashboard Content Service Business Logic

Submitter-side draft management for the campaign dashboard plus the read
queries used by the admin screens (pending approvals, statistics, history).
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .approval_history import ApprovalHistoryLog
from .approval_ledger import ApprovalLedger
from .entities import (
    DashboardCampaignInfo,
    DashboardCampaignSummary,
    DashboardOwner,
    DashboardSocials,
    SubmittableEntity,
    entity_class_for,
)
from .models import (
    ApprovalHistoryRecord,
    ApprovalLedgerEntry,
    ApprovalStatistics,
    ApprovalStatus,
    Campaign,
    CampaignInfoDraftRequest,
    CampaignSummaryDraftRequest,
    DashboardEntityType,
    OwnerDraftRequest,
    SaveDashboardChangesRequest,
    SocialsDraftRequest,
)
from .protocols import (
    DashboardConflictError,
    DashboardNotFoundError,
    DashboardRepositoryProtocol,
    DashboardValidationError,
)

logger = logging.getLogger(__name__)


class DashboardView(BaseModel):
    """All drafts of a campaign's dashboard and its current ledger row"""
    campaign: Campaign
    campaign_info: Optional[DashboardCampaignInfo] = None
    campaign_summary: Optional[DashboardCampaignSummary] = None
    socials: Optional[DashboardSocials] = None
    owners: List[DashboardOwner] = Field(default_factory=list)
    approval: Optional[ApprovalLedgerEntry] = None


class DashboardContentService:
    """Dashboard draft management"""

    def __init__(self, repository: DashboardRepositoryProtocol):
        self.repository = repository
        self.ledger = ApprovalLedger(repository)
        self.history = ApprovalHistoryLog(repository)

    # ====================
    # Campaign lookup
    # ====================

    async def get_campaign(self, campaign_id: str) -> Campaign:
        campaign = await self.repository.get_campaign(campaign_id)
        if not campaign:
            raise DashboardNotFoundError(f"Campaign not found: {campaign_id}")
        return campaign

    async def get_campaign_by_slug(self, slug: str) -> Campaign:
        campaign = await self.repository.get_campaign_by_slug(slug)
        if not campaign:
            raise DashboardNotFoundError(f"Campaign not found: {slug}")
        return campaign

    async def resolve_campaign(self, campaign_ref: str) -> Campaign:
        """Look a campaign up by ID, falling back to its slug"""
        campaign = await self.repository.get_campaign(campaign_ref)
        if campaign is None:
            campaign = await self.repository.get_campaign_by_slug(campaign_ref)
        if campaign is None:
            raise DashboardNotFoundError(f"Campaign not found: {campaign_ref}")
        return campaign

    # ====================
    # Drafts
    # ====================

    async def get_dashboard(self, campaign_id: str) -> DashboardView:
        campaign = await self.get_campaign(campaign_id)

        async def single(entity_type: DashboardEntityType) -> Optional[SubmittableEntity]:
            entities = await self.repository.get_entities(entity_type, campaign_id)
            return entities[0] if entities else None

        return DashboardView(
            campaign=campaign,
            campaign_info=await single(DashboardEntityType.CAMPAIGN_INFO),
            campaign_summary=await single(DashboardEntityType.CAMPAIGN_SUMMARY),
            socials=await single(DashboardEntityType.SOCIALS),
            owners=await self.repository.get_entities(DashboardEntityType.OWNERS, campaign_id),
            approval=await self.ledger.get_approval(campaign_id),
        )

    async def save_campaign_info(
        self, campaign_id: str, user_id: str, request: CampaignInfoDraftRequest
    ) -> DashboardCampaignInfo:
        return await self._save_single(
            DashboardEntityType.CAMPAIGN_INFO, campaign_id, user_id, request.model_dump(exclude_unset=True)
        )

    async def save_campaign_summary(
        self, campaign_id: str, user_id: str, request: CampaignSummaryDraftRequest
    ) -> DashboardCampaignSummary:
        return await self._save_single(
            DashboardEntityType.CAMPAIGN_SUMMARY, campaign_id, user_id, request.model_dump(exclude_unset=True)
        )

    async def save_socials(
        self, campaign_id: str, user_id: str, request: SocialsDraftRequest
    ) -> DashboardSocials:
        return await self._save_single(
            DashboardEntityType.SOCIALS, campaign_id, user_id, request.model_dump(exclude_unset=True)
        )

    async def save_owners(
        self, campaign_id: str, user_id: str, owners: List[OwnerDraftRequest]
    ) -> List[DashboardOwner]:
        """Update owners by draft ID; entries without an ID become new drafts"""
        await self.get_campaign(campaign_id)
        existing = {
            owner.id: owner
            for owner in await self.repository.get_entities(DashboardEntityType.OWNERS, campaign_id)
        }

        saved: List[DashboardOwner] = []
        for request in owners:
            changes = request.model_dump(exclude_unset=True, exclude={"id"})
            if request.id:
                owner = existing.get(request.id)
                if owner is None:
                    raise DashboardNotFoundError(f"Owner draft not found: {request.id}")
                self._check_editable(owner, user_id)
                owner.update(**changes)
            else:
                owner = DashboardOwner.create(campaign_id, **changes)
            saved.append(await self.repository.save_entity(owner))

        logger.info(f"Saved {len(saved)} owner drafts for campaign {campaign_id}")
        return saved

    async def save_dashboard_changes(
        self, campaign_id: str, user_id: str, request: SaveDashboardChangesRequest
    ) -> DashboardView:
        """Save every section present in the request in one transaction"""
        await self.get_campaign(campaign_id)

        async with self.repository.transaction():
            if request.campaign_info is not None:
                await self.save_campaign_info(campaign_id, user_id, request.campaign_info)
            if request.campaign_summary is not None:
                await self.save_campaign_summary(campaign_id, user_id, request.campaign_summary)
            if request.socials is not None:
                await self.save_socials(campaign_id, user_id, request.socials)
            if request.owners is not None:
                await self.save_owners(campaign_id, user_id, request.owners)

        return await self.get_dashboard(campaign_id)

    async def _save_single(
        self,
        entity_type: DashboardEntityType,
        campaign_id: str,
        user_id: str,
        changes: Dict[str, Any],
    ) -> SubmittableEntity:
        await self.get_campaign(campaign_id)
        entities = await self.repository.get_entities(entity_type, campaign_id)

        if entities:
            entity = entities[0]
            self._check_editable(entity, user_id)
            entity.update(**changes)
        else:
            entity = entity_class_for(entity_type).create(campaign_id, **changes)

        saved = await self.repository.save_entity(entity)
        logger.info(f"Saved {entity_type.value} draft {saved.id} for campaign {campaign_id}")
        return saved

    @staticmethod
    def _check_editable(entity: SubmittableEntity, user_id: str) -> None:
        if entity.status == ApprovalStatus.APPROVED:
            raise DashboardConflictError(
                f"Cannot update approved {entity.display_name.lower()}",
                current_status=entity.status,
            )
        if entity.is_pending and not entity.can_edit(user_id):
            raise DashboardConflictError(
                f"{entity.display_name} is pending review and can only be edited by its submitter",
                current_status=entity.status,
            )

    # ====================
    # Approval queries
    # ====================

    async def list_pending_approvals(self, submitted_by: Optional[str] = None) -> List[ApprovalLedgerEntry]:
        return await self.ledger.find_pending(submitted_by)

    async def get_statistics(self, entity_type: Optional[DashboardEntityType] = None) -> ApprovalStatistics:
        return await self.ledger.get_statistics(entity_type)

    async def get_history_for_entity(self, entity_id: str) -> List[ApprovalHistoryRecord]:
        if not entity_id:
            raise DashboardValidationError("Entity ID is required", field="entity_id")
        return await self.history.for_entity(entity_id)

    async def get_history_for_user(self, user_id: str) -> List[ApprovalHistoryRecord]:
        if not user_id:
            raise DashboardValidationError("User ID is required", field="user_id")
        return await self.history.for_user(user_id)


__all__ = ["DashboardContentService", "DashboardView"]
