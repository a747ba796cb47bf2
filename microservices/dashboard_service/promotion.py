"""
Approved Content Promotion

Copies approved drafts into the live records read by the public site.
The copy is one-way; edits made to live records are never synced back.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from .entities import (
    DashboardCampaignInfo,
    DashboardCampaignSummary,
    DashboardOwner,
    DashboardSocials,
    SubmittableEntity,
)
from .models import CampaignInfo, DashboardEntityType, Owner, utc_now
from .protocols import DashboardRepositoryProtocol, PromotionError

logger = logging.getLogger(__name__)

SOCIAL_FIELDS = ("linked_in", "twitter", "instagram", "facebook", "tiktok", "yelp")


# ====================
# Draft -> live mappings
# ====================

def to_campaign_info(draft: DashboardCampaignInfo, existing: Optional[CampaignInfo] = None) -> CampaignInfo:
    """Live campaign info carrying the draft content; keeps fields the draft does not own"""
    base = existing or CampaignInfo(campaign_id=draft.campaign_id, created_at=utc_now())
    return base.model_copy(update={
        "milestones": draft.milestones,
        "investor_pitch": draft.investor_pitch,
        "is_show_pitch": bool(draft.is_show_pitch),
        "investor_pitch_title": draft.investor_pitch_title,
        "updated_at": utc_now(),
    })


def to_campaign_updates(draft: DashboardCampaignSummary) -> Dict[str, Any]:
    return {"summary": draft.summary, "tag_line": draft.tag_line}


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


def to_issuer_updates(draft: DashboardSocials) -> Dict[str, Any]:
    # Blank links clear the published value
    return {name: _blank_to_none(getattr(draft, name)) for name in SOCIAL_FIELDS}


def to_owner(draft: DashboardOwner) -> Owner:
    return Owner(
        campaign_id=draft.campaign_id,
        owner_id=draft.owner_id,
        title=draft.name,
        sub_title=draft.position,
        description=draft.description,
        created_at=utc_now(),
    )


class ContentPromoter:
    """Dispatches an approved draft to the promotion routine for its type"""

    def __init__(self, repository: DashboardRepositoryProtocol):
        self.repository = repository
        self._handlers: Dict[DashboardEntityType, Callable[[Any], Awaitable[bool]]] = {
            DashboardEntityType.CAMPAIGN_INFO: self._promote_campaign_info,
            DashboardEntityType.CAMPAIGN_SUMMARY: self._promote_campaign_summary,
            DashboardEntityType.SOCIALS: self._promote_socials,
            DashboardEntityType.OWNERS: self._promote_owner,
        }

    async def promote(self, entity: SubmittableEntity) -> bool:
        """
        Copy an approved draft to the live tables.

        Returns False when there was nothing to write to (no linked issuer).
        Raises PromotionError on failure.
        """
        handler = self._handlers[entity.entity_type]
        logger.info(f"Moving approved {entity.entity_type.value} {entity.id} to live records")
        try:
            return await handler(entity)
        except PromotionError:
            raise
        except Exception as e:
            logger.error(f"Error moving approved data for {entity.id}: {e}", exc_info=True)
            raise PromotionError(f"Failed to move approved data: {e}", entity_type=entity.entity_type) from e

    async def _promote_campaign_info(self, draft: DashboardCampaignInfo) -> bool:
        existing = await self.repository.get_campaign_info(draft.campaign_id)
        info = to_campaign_info(draft, existing)
        await self.repository.save_campaign_info(info)
        action = "updated" if existing else "created"
        logger.info(f"Campaign info {info.campaign_info_id} {action} for campaign {draft.campaign_id}")
        return True

    async def _promote_campaign_summary(self, draft: DashboardCampaignSummary) -> bool:
        campaign = await self.repository.update_campaign(draft.campaign_id, to_campaign_updates(draft))
        if campaign is None:
            raise PromotionError(
                f"Campaign {draft.campaign_id} not found",
                entity_type=DashboardEntityType.CAMPAIGN_SUMMARY,
            )
        return True

    async def _promote_socials(self, draft: DashboardSocials) -> bool:
        campaign = await self.repository.get_campaign(draft.campaign_id)
        if campaign is None:
            raise PromotionError(f"Campaign {draft.campaign_id} not found", entity_type=DashboardEntityType.SOCIALS)
        if not campaign.issuer_id:
            logger.info(f"Campaign {draft.campaign_id} has no issuer, social links not published")
            return False

        issuer = await self.repository.update_issuer(campaign.issuer_id, to_issuer_updates(draft))
        if issuer is None:
            logger.warning(f"Issuer {campaign.issuer_id} for campaign {draft.campaign_id} not found")
            return False
        return True

    async def _promote_owner(self, draft: DashboardOwner) -> bool:
        owner = await self.repository.insert_owner(to_owner(draft))
        logger.info(f"Owner {owner.id} published for campaign {draft.campaign_id}")
        return True


__all__ = [
    "ContentPromoter",
    "to_campaign_info",
    "to_campaign_updates",
    "to_issuer_updates",
    "to_owner",
]
