"""
Dashboard Service Data Repository

Data access layer - PostgreSQL (Async, asyncpg)
"""

import json
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

import asyncpg

from core.config_manager import ConfigManager
from core.postgres_client import PostgresClientWrapper

from .entities import SubmittableEntity, entity_class_for
from .models import (
    ApprovalHistoryRecord,
    ApprovalLedgerEntry,
    Campaign,
    CampaignInfo,
    DashboardEntityType,
    DashboardSubmission,
    ENTITY_ITEM_FLAGS,
    Issuer,
    LedgerStatus,
    Owner,
    utc_now,
)
from .protocols import DashboardConflictError, DashboardPersistenceError

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


class ExtendedJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal and datetime types"""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


def json_dumps(obj):
    """JSON dumps with Decimal and datetime support"""
    return json.dumps(obj, cls=ExtendedJSONEncoder)


def _json_value(value: Any, default: Any) -> Any:
    if value is None:
        return default
    if isinstance(value, str):
        return json.loads(value)
    return value


# Draft columns shared by every section table
AUDIT_COLUMNS = (
    "status", "submitted_at", "submitted_by", "reviewed_at",
    "reviewed_by", "comment", "created_at", "updated_at",
)

CAMPAIGN_COLUMNS = ("campaign_id", "campaign_slug", "campaign_name", "issuer_id", "summary", "tag_line", "updated_at")
CAMPAIGN_UPDATABLE = frozenset({"summary", "tag_line"})
ISSUER_UPDATABLE = frozenset({"linked_in", "twitter", "instagram", "facebook", "tiktok", "yelp"})


class DashboardRepository:
    """Dashboard service data repository - PostgreSQL (Async)"""

    def __init__(
        self,
        config: Optional[ConfigManager] = None,
        db: Optional[PostgresClientWrapper] = None,
    ):
        if config is None:
            config = ConfigManager("dashboard_service")

        if db is None:
            infra = config.get_infra_config()
            host, port = config.discover_service(
                service_name='postgres_service',
                default_host=infra.postgres_host,
                default_port=infra.postgres_port,
                env_host_key='POSTGRES_HOST',
                env_port_key='POSTGRES_PORT'
            )
            logger.info(f"Connecting to PostgreSQL at {host}:{port}")
            db = PostgresClientWrapper("dashboard_service", host=host, port=port, infra_config=infra)

        self.db = db
        self.schema = "dashboard"
        self.live_schema = "campaign"

        # Table names
        self.entity_tables: Dict[DashboardEntityType, str] = {
            DashboardEntityType.CAMPAIGN_INFO: "dashboard_campaign_info",
            DashboardEntityType.CAMPAIGN_SUMMARY: "dashboard_campaign_summary",
            DashboardEntityType.SOCIALS: "dashboard_socials",
            DashboardEntityType.OWNERS: "dashboard_owners",
        }
        self.approvals_table = "dashboard_approvals"
        self.history_table = "approval_history"
        self.submissions_table = "dashboard_submissions"
        self.campaigns_table = "campaigns"
        self.campaign_info_table = "campaign_info"
        self.issuers_table = "issuers"
        self.owners_table = "owners"

    async def initialize(self, run_migrations: bool = False):
        """Initialize database connection"""
        await self.db.connect()
        if run_migrations:
            await self.apply_migrations()
        logger.info("Dashboard repository initialized with PostgreSQL")

    async def apply_migrations(self) -> None:
        """Run the SQL files in migrations/ in name order"""
        for path in sorted(MIGRATIONS_DIR.glob("*.sql")):
            async with self.db:
                await self.db.execute(path.read_text())
            logger.info(f"Applied migration {path.name}")

    async def close(self):
        """Close database connection"""
        await self.db.close()
        logger.info("Dashboard repository database connection closed")

    async def health_check(self) -> bool:
        """Check repository health"""
        try:
            async with self.db:
                result = await self.db.query_row("SELECT 1 as healthy")
                return result is not None
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return False

    def transaction(self):
        """Atomic unit spanning all repository calls made inside it"""
        return self.db.transaction()

    # ====================
    # Campaign lookup
    # ====================

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        """Get live campaign by ID"""
        try:
            query = f'''
                SELECT {", ".join(CAMPAIGN_COLUMNS)}
                FROM {self.live_schema}.{self.campaigns_table}
                WHERE campaign_id = $1
            '''
            async with self.db:
                result = await self.db.query_row(query, params=[campaign_id])
            return Campaign(**result) if result else None

        except Exception as e:
            logger.error(f"Error getting campaign {campaign_id}: {e}")
            raise DashboardPersistenceError(f"Error getting campaign {campaign_id}: {e}") from e

    async def get_campaign_by_slug(self, slug: str) -> Optional[Campaign]:
        """Get live campaign by slug"""
        try:
            query = f'''
                SELECT {", ".join(CAMPAIGN_COLUMNS)}
                FROM {self.live_schema}.{self.campaigns_table}
                WHERE campaign_slug = $1
            '''
            async with self.db:
                result = await self.db.query_row(query, params=[slug])
            return Campaign(**result) if result else None

        except Exception as e:
            logger.error(f"Error getting campaign by slug {slug}: {e}")
            raise DashboardPersistenceError(f"Error getting campaign by slug {slug}: {e}") from e

    # ====================
    # Dashboard drafts
    # ====================

    def _entity_table(self, entity_type: DashboardEntityType) -> str:
        return f"{self.schema}.{self.entity_tables[entity_type]}"

    async def get_entities(
        self,
        entity_type: DashboardEntityType,
        campaign_id: str,
        for_update: bool = False,
    ) -> List[SubmittableEntity]:
        """Drafts of one section for a campaign"""
        try:
            query = f'''
                SELECT * FROM {self._entity_table(entity_type)}
                WHERE campaign_id = $1
                ORDER BY created_at ASC
                {"FOR UPDATE" if for_update else ""}
            '''
            async with self.db:
                results = await self.db.query(query, params=[campaign_id])
            return [self._row_to_entity(entity_type, row) for row in results]

        except Exception as e:
            logger.error(f"Error getting {entity_type.value} for campaign {campaign_id}: {e}")
            raise DashboardPersistenceError(f"Error getting {entity_type.value} for campaign {campaign_id}: {e}") from e

    async def save_entity(self, entity: SubmittableEntity) -> SubmittableEntity:
        """Insert or update a draft by ID"""
        columns = ["id", "campaign_id", *entity.content_fields, *AUDIT_COLUMNS]
        now = utc_now()
        values = {
            **entity.model_dump(include=set(columns)),
            "status": entity.status.value,
            "created_at": entity.created_at or now,
            "updated_at": entity.updated_at or now,
        }
        params = [values[column] for column in columns]
        placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
        updates = ",\n                    ".join(
            f"{column} = EXCLUDED.{column}" for column in columns if column not in ("id", "created_at")
        )

        try:
            query = f'''
                INSERT INTO {self._entity_table(entity.entity_type)} ({", ".join(columns)})
                VALUES ({placeholders})
                ON CONFLICT (id) DO UPDATE SET
                    {updates}
                RETURNING *
            '''
            async with self.db:
                result = await self.db.query_row(query, params=params)
            return self._row_to_entity(entity.entity_type, result) if result else entity

        except asyncpg.UniqueViolationError as e:
            logger.warning(f"Duplicate {entity.entity_type.value} for campaign {entity.campaign_id}: {e}")
            raise DashboardConflictError(f"{entity.display_name} already exists for this campaign") from e

        except Exception as e:
            logger.error(f"Error saving {entity.entity_type.value} {entity.id}: {e}", exc_info=True)
            raise DashboardPersistenceError(f"Error saving {entity.entity_type.value} {entity.id}: {e}") from e


    # ====================
    # Approval ledger
    # ====================

    async def get_approval(
        self, campaign_id: str, for_update: bool = False
    ) -> Optional[ApprovalLedgerEntry]:
        try:
            query = f'''
                SELECT * FROM {self.schema}.{self.approvals_table}
                WHERE campaign_id = $1
                {"FOR UPDATE" if for_update else ""}
            '''
            async with self.db:
                result = await self.db.query_row(query, params=[campaign_id])
            return self._row_to_approval(result) if result else None

        except Exception as e:
            logger.error(f"Error getting approval for campaign {campaign_id}: {e}")
            raise DashboardPersistenceError(f"Error getting approval for campaign {campaign_id}: {e}") from e

    async def upsert_approval(
        self, entry: ApprovalLedgerEntry, reject_if_pending: bool = False
    ) -> Optional[ApprovalLedgerEntry]:
        """Create or reset the campaign's ledger row; see protocol for reject_if_pending"""
        pending_guard = (
            f"WHERE {self.approvals_table}.status <> '{LedgerStatus.PENDING.value}'"
            if reject_if_pending else ""
        )
        try:
            query = f'''
                INSERT INTO {self.schema}.{self.approvals_table} (
                    id, campaign_id, submitted_items, status,
                    submitted_at, submitted_by, reviewed_at, reviewed_by,
                    comment, created_at, updated_at
                ) VALUES ($1, $2, $3::jsonb, $4, $5, $6, NULL, NULL, NULL, $7, $8)
                ON CONFLICT (campaign_id) DO UPDATE SET
                    submitted_items = EXCLUDED.submitted_items,
                    status = EXCLUDED.status,
                    submitted_at = EXCLUDED.submitted_at,
                    submitted_by = EXCLUDED.submitted_by,
                    reviewed_at = NULL,
                    reviewed_by = NULL,
                    comment = NULL,
                    updated_at = EXCLUDED.updated_at
                {pending_guard}
                RETURNING *
            '''
            now = utc_now()
            params = [
                entry.id,
                entry.campaign_id,
                json_dumps(entry.submitted_items.model_dump()),
                entry.status.value,
                entry.submitted_at or now,
                entry.submitted_by,
                entry.created_at or now,
                entry.updated_at or now,
            ]
            async with self.db:
                result = await self.db.query_row(query, params=params)
            return self._row_to_approval(result) if result else None

        except Exception as e:
            logger.error(f"Error upserting approval for campaign {entry.campaign_id}: {e}", exc_info=True)
            raise DashboardPersistenceError(f"Error upserting approval for campaign {entry.campaign_id}: {e}") from e

    async def update_approval(self, entry: ApprovalLedgerEntry) -> ApprovalLedgerEntry:
        try:
            query = f'''
                UPDATE {self.schema}.{self.approvals_table}
                SET status = $2,
                    reviewed_at = $3,
                    reviewed_by = $4,
                    comment = $5,
                    updated_at = $6
                WHERE campaign_id = $1
                RETURNING *
            '''
            params = [
                entry.campaign_id,
                entry.status.value,
                entry.reviewed_at,
                entry.reviewed_by,
                entry.comment,
                entry.updated_at or utc_now(),
            ]
            async with self.db:
                result = await self.db.query_row(query, params=params)
            return self._row_to_approval(result) if result else entry

        except Exception as e:
            logger.error(f"Error updating approval for campaign {entry.campaign_id}: {e}")
            raise DashboardPersistenceError(f"Error updating approval for campaign {entry.campaign_id}: {e}") from e

    async def list_approvals(
        self,
        status: Optional[LedgerStatus] = None,
        submitted_by: Optional[str] = None,
    ) -> List[ApprovalLedgerEntry]:
        try:
            conditions = []
            params: List[Any] = []
            if status:
                params.append(status.value)
                conditions.append(f"status = ${len(params)}")
            if submitted_by:
                params.append(submitted_by)
                conditions.append(f"submitted_by = ${len(params)}")
            where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

            query = f'''
                SELECT * FROM {self.schema}.{self.approvals_table}
                {where}
                ORDER BY submitted_at ASC
            '''
            async with self.db:
                results = await self.db.query(query, params=params)
            return [self._row_to_approval(row) for row in results]

        except Exception as e:
            logger.error(f"Error listing approvals: {e}")
            raise DashboardPersistenceError(f"Error listing approvals: {e}") from e

    async def count_approvals(
        self, entity_type: Optional[DashboardEntityType] = None
    ) -> Dict[str, int]:
        try:
            params: List[Any] = []
            where = ""
            if entity_type:
                params.append(ENTITY_ITEM_FLAGS[entity_type])
                where = "WHERE COALESCE((submitted_items ->> $1)::boolean, FALSE)"

            query = f'''
                SELECT status, COUNT(*) AS count
                FROM {self.schema}.{self.approvals_table}
                {where}
                GROUP BY status
            '''
            async with self.db:
                results = await self.db.query(query, params=params)
            return {row["status"]: int(row["count"]) for row in results}

        except Exception as e:
            logger.error(f"Error counting approvals: {e}")
            raise DashboardPersistenceError(f"Error counting approvals: {e}") from e

    # ====================
    # Approval history
    # ====================

    async def save_history(self, record: ApprovalHistoryRecord) -> ApprovalHistoryRecord:
        try:
            query = f'''
                INSERT INTO {self.schema}.{self.history_table} (
                    id, entity_id, entity_type, status, user_id, comment, created_at
                ) VALUES ($1, $2, $3, $4, $5, $6, $7)
                RETURNING *
            '''
            params = [
                record.id,
                record.entity_id,
                record.entity_type.value,
                record.status.value,
                record.user_id,
                record.comment,
                record.created_at,
            ]
            async with self.db:
                result = await self.db.query_row(query, params=params)
            return ApprovalHistoryRecord(**result) if result else record

        except Exception as e:
            logger.error(f"Error saving approval history for {record.entity_id}: {e}")
            raise DashboardPersistenceError(f"Error saving approval history for {record.entity_id}: {e}") from e

    async def list_history(
        self,
        entity_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> List[ApprovalHistoryRecord]:
        try:
            conditions = []
            params: List[Any] = []
            if entity_id:
                params.append(entity_id)
                conditions.append(f"entity_id = ${len(params)}")
            if user_id:
                params.append(user_id)
                conditions.append(f"user_id = ${len(params)}")
            where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

            query = f'''
                SELECT * FROM {self.schema}.{self.history_table}
                {where}
                ORDER BY created_at ASC
            '''
            async with self.db:
                results = await self.db.query(query, params=params)
            return [ApprovalHistoryRecord(**row) for row in results]

        except Exception as e:
            logger.error(f"Error listing approval history: {e}")
            raise DashboardPersistenceError(f"Error listing approval history: {e}") from e

    # ====================
    # Submission tracking
    # ====================

    async def save_submission(self, submission: DashboardSubmission) -> DashboardSubmission:
        try:
            query = f'''
                INSERT INTO {self.schema}.{self.submissions_table} (
                    id, campaign_id, submitted_by, submission_note, items,
                    status, results, created_at, updated_at, completed_at
                ) VALUES ($1, $2, $3, $4, $5::jsonb, $6, $7::jsonb, $8, $9, $10)
                ON CONFLICT (id) DO UPDATE SET
                    status = EXCLUDED.status,
                    results = EXCLUDED.results,
                    updated_at = EXCLUDED.updated_at,
                    completed_at = EXCLUDED.completed_at
            '''
            params = [
                submission.id,
                submission.campaign_id,
                submission.submitted_by,
                submission.submission_note,
                json_dumps(submission.items.model_dump()),
                submission.status.value,
                json_dumps({key: result.model_dump() for key, result in submission.results.items()}),
                submission.created_at,
                submission.updated_at,
                submission.completed_at,
            ]
            async with self.db:
                await self.db.execute(query, params=params)
            return submission

        except Exception as e:
            logger.error(f"Error saving submission {submission.id}: {e}")
            raise DashboardPersistenceError(f"Error saving submission {submission.id}: {e}") from e

    # ====================
    # Live records
    # ====================

    async def get_campaign_info(self, campaign_id: str) -> Optional[CampaignInfo]:
        try:
            query = f'''
                SELECT * FROM {self.live_schema}.{self.campaign_info_table}
                WHERE campaign_id = $1
            '''
            async with self.db:
                result = await self.db.query_row(query, params=[campaign_id])
            return CampaignInfo(**result) if result else None

        except Exception as e:
            logger.error(f"Error getting campaign info for {campaign_id}: {e}")
            raise DashboardPersistenceError(f"Error getting campaign info for {campaign_id}: {e}") from e

    async def save_campaign_info(self, info: CampaignInfo) -> CampaignInfo:
        try:
            query = f'''
                INSERT INTO {self.live_schema}.{self.campaign_info_table} (
                    campaign_info_id, campaign_id, milestones, investor_pitch,
                    is_show_pitch, investor_pitch_title, financial_history,
                    competitors, risks, target, created_at, updated_at
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
                ON CONFLICT (campaign_info_id) DO UPDATE SET
                    milestones = EXCLUDED.milestones,
                    investor_pitch = EXCLUDED.investor_pitch,
                    is_show_pitch = EXCLUDED.is_show_pitch,
                    investor_pitch_title = EXCLUDED.investor_pitch_title,
                    updated_at = EXCLUDED.updated_at
                RETURNING *
            '''
            now = utc_now()
            params = [
                info.campaign_info_id,
                info.campaign_id,
                info.milestones,
                info.investor_pitch,
                info.is_show_pitch,
                info.investor_pitch_title,
                info.financial_history,
                info.competitors,
                info.risks,
                info.target,
                info.created_at or now,
                info.updated_at or now,
            ]
            async with self.db:
                result = await self.db.query_row(query, params=params)
            return CampaignInfo(**result) if result else info

        except Exception as e:
            logger.error(f"Error saving campaign info for {info.campaign_id}: {e}", exc_info=True)
            raise DashboardPersistenceError(f"Error saving campaign info for {info.campaign_id}: {e}") from e

    async def update_campaign(self, campaign_id: str, updates: Dict[str, Any]) -> Optional[Campaign]:
        fields = {key: value for key, value in updates.items() if key in CAMPAIGN_UPDATABLE}
        if not fields:
            return await self.get_campaign(campaign_id)
        try:
            assignments = [f"{column} = ${i}" for i, column in enumerate(fields, start=2)]
            params = [campaign_id, *fields.values(), utc_now()]
            assignments.append(f"updated_at = ${len(params)}")
            query = f'''
                UPDATE {self.live_schema}.{self.campaigns_table}
                SET {", ".join(assignments)}
                WHERE campaign_id = $1
                RETURNING {", ".join(CAMPAIGN_COLUMNS)}
            '''
            async with self.db:
                result = await self.db.query_row(query, params=params)
            return Campaign(**result) if result else None

        except Exception as e:
            logger.error(f"Error updating campaign {campaign_id}: {e}")
            raise DashboardPersistenceError(f"Error updating campaign {campaign_id}: {e}") from e

    async def get_issuer(self, issuer_id: str) -> Optional[Issuer]:
        try:
            query = f'SELECT * FROM {self.live_schema}.{self.issuers_table} WHERE issuer_id = $1'
            async with self.db:
                result = await self.db.query_row(query, params=[issuer_id])
            return Issuer(**result) if result else None

        except Exception as e:
            logger.error(f"Error getting issuer {issuer_id}: {e}")
            raise DashboardPersistenceError(f"Error getting issuer {issuer_id}: {e}") from e

    async def update_issuer(self, issuer_id: str, updates: Dict[str, Any]) -> Optional[Issuer]:
        fields = {key: value for key, value in updates.items() if key in ISSUER_UPDATABLE}
        if not fields:
            return await self.get_issuer(issuer_id)
        try:
            assignments = [f"{column} = ${i}" for i, column in enumerate(fields, start=2)]
            params = [issuer_id, *fields.values(), utc_now()]
            assignments.append(f"updated_at = ${len(params)}")
            query = f'''
                UPDATE {self.live_schema}.{self.issuers_table}
                SET {", ".join(assignments)}
                WHERE issuer_id = $1
                RETURNING *
            '''
            async with self.db:
                result = await self.db.query_row(query, params=params)
            return Issuer(**result) if result else None

        except Exception as e:
            logger.error(f"Error updating issuer {issuer_id}: {e}")
            raise DashboardPersistenceError(f"Error updating issuer {issuer_id}: {e}") from e

    async def insert_owner(self, owner: Owner) -> Owner:
        try:
            query = f'''
                INSERT INTO {self.live_schema}.{self.owners_table} (
                    id, campaign_id, owner_id, title, sub_title, description, created_at
                ) VALUES ($1, $2, $3, $4, $5, $6, $7)
                RETURNING *
            '''
            params = [
                owner.id,
                owner.campaign_id,
                owner.owner_id,
                owner.title,
                owner.sub_title,
                owner.description,
                owner.created_at or utc_now(),
            ]
            async with self.db:
                result = await self.db.query_row(query, params=params)
            return Owner(**result) if result else owner

        except Exception as e:
            logger.error(f"Error inserting owner for campaign {owner.campaign_id}: {e}")
            raise DashboardPersistenceError(f"Error inserting owner for campaign {owner.campaign_id}: {e}") from e

    # ====================
    # Row mappers
    # ====================

    def _row_to_entity(self, entity_type: DashboardEntityType, row: Dict[str, Any]) -> SubmittableEntity:
        return entity_class_for(entity_type).model_validate(row)

    def _row_to_approval(self, row: Dict[str, Any]) -> ApprovalLedgerEntry:
        return ApprovalLedgerEntry(
            **{
                **row,
                "submitted_items": _json_value(row.get("submitted_items"), {}),
            }
        )


__all__ = ["DashboardRepository"]
