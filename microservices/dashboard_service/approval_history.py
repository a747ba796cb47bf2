"""
Approval History Log

Append-only audit trail: one record per status transition of a draft.
"""

import logging
from typing import List, Optional

from .entities import SubmittableEntity
from .models import ApprovalHistoryRecord
from .protocols import DashboardRepositoryProtocol

logger = logging.getLogger(__name__)


class ApprovalHistoryLog:
    def __init__(self, repository: DashboardRepositoryProtocol):
        self.repository = repository

    async def record(
        self,
        entity: SubmittableEntity,
        user_id: str,
        comment: Optional[str] = None,
    ) -> ApprovalHistoryRecord:
        """Append the entity's current status"""
        record = ApprovalHistoryRecord(
            entity_id=entity.id,
            entity_type=entity.entity_type,
            status=entity.status,
            user_id=user_id,
            comment=comment or None,
        )
        saved = await self.repository.save_history(record)
        logger.debug(f"History {saved.entity_type.value}/{saved.entity_id} -> {saved.status.value}")
        return saved

    async def for_entity(self, entity_id: str) -> List[ApprovalHistoryRecord]:
        return await self.repository.list_history(entity_id=entity_id)

    async def for_user(self, user_id: str) -> List[ApprovalHistoryRecord]:
        return await self.repository.list_history(user_id=user_id)


__all__ = ["ApprovalHistoryLog"]
