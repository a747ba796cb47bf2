"""
API Test Fixtures for Dashboard Service

Runs the FastAPI app in-process with the in-memory repository and admin
notifications switched off.
"""

import os
import sys
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from core.config import DashboardConfig, ServiceConfig
from core.config_manager import ConfigManager
from microservices.dashboard_service import main
from microservices.dashboard_service.factory import DashboardServiceFactory
from tests.component.dashboard.mocks import MockDashboardRepository
from tests.contracts.dashboard.data_contract import DashboardTestDataFactory


@pytest.fixture
def factory() -> DashboardTestDataFactory:
    return DashboardTestDataFactory()


@pytest.fixture
def repository() -> MockDashboardRepository:
    return MockDashboardRepository()


@pytest.fixture
def client(repository):
    """TestClient whose service factory is wired to the in-memory repository"""
    config = ConfigManager(
        "dashboard_service",
        settings=DashboardConfig(service=ServiceConfig(notifications_enabled=False)),
    )

    def build_factory(_config_manager):
        return DashboardServiceFactory(config, repository=repository, run_migrations=False)

    with patch.object(main, "DashboardServiceFactory", side_effect=build_factory):
        with TestClient(main.app) as test_client:
            yield test_client


@pytest.fixture
def campaign(repository, factory):
    issuer = repository.add_issuer(factory.make_issuer())
    return repository.add_campaign(factory.make_campaign(issuer_id=issuer.issuer_id))


@pytest.fixture
def submitter_headers():
    return {"X-User-ID": "usr_api_submitter"}


@pytest.fixture
def admin_headers():
    return {"X-User-ID": "adm_api_reviewer"}
