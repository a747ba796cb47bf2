"""
Integration Test Fixtures for Dashboard Service

Repository wired to the database in DASHBOARD_TEST_DATABASE with the
migrations applied.
"""

import os
import sys
from urllib.parse import urlsplit

import pytest
import pytest_asyncio

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from core.config import InfraConfig
from core.postgres_client import PostgresClientWrapper
from microservices.dashboard_service.dashboard_repository import DashboardRepository
from tests.contracts.dashboard.data_contract import DashboardTestDataFactory


def infra_from_dsn(dsn: str) -> InfraConfig:
    parts = urlsplit(dsn)
    return InfraConfig(
        postgres_host=parts.hostname or "localhost",
        postgres_port=parts.port or 5432,
        postgres_db=parts.path.lstrip("/") or "postgres",
        postgres_user=parts.username or "postgres",
        postgres_password=parts.password or "",
        postgres_max_pool_size=4,
    )


@pytest.fixture
def factory() -> DashboardTestDataFactory:
    return DashboardTestDataFactory()


@pytest_asyncio.fixture
async def repository():
    """Repository on the test database; migrations applied on connect"""
    infra = infra_from_dsn(os.environ["DASHBOARD_TEST_DATABASE"])
    db = PostgresClientWrapper("dashboard_service_test", infra_config=infra)
    repo = DashboardRepository(db=db)
    await repo.initialize(run_migrations=True)
    yield repo
    await repo.close()


@pytest_asyncio.fixture
async def campaign(repository, factory):
    """Live issuer and campaign rows, removed with everything hanging off them"""
    issuer = factory.make_issuer()
    campaign = factory.make_campaign(issuer_id=issuer.issuer_id)

    async with repository.db:
        await repository.db.execute(
            "INSERT INTO campaign.issuers (issuer_id, business_name, linked_in) VALUES ($1, $2, $3)",
            [issuer.issuer_id, issuer.business_name, issuer.linked_in],
        )
        await repository.db.execute(
            "INSERT INTO campaign.campaigns (campaign_id, campaign_slug, campaign_name, issuer_id) "
            "VALUES ($1, $2, $3, $4)",
            [campaign.campaign_id, campaign.campaign_slug, campaign.campaign_name, issuer.issuer_id],
        )

    yield campaign

    async with repository.db:
        for table in (
            "dashboard.dashboard_campaign_info",
            "dashboard.dashboard_campaign_summary",
            "dashboard.dashboard_socials",
            "dashboard.dashboard_owners",
            "dashboard.dashboard_approvals",
            "dashboard.dashboard_submissions",
            "campaign.campaign_info",
            "campaign.owners",
        ):
            await repository.db.execute(f"DELETE FROM {table} WHERE campaign_id = $1", [campaign.campaign_id])
        await repository.db.execute("DELETE FROM campaign.campaigns WHERE campaign_id = $1", [campaign.campaign_id])
        await repository.db.execute("DELETE FROM campaign.issuers WHERE issuer_id = $1", [issuer.issuer_id])
