"""
Component Test Fixtures for Dashboard Service

Coordinators and services wired to the in-memory repository and the mock
event bus.
"""

import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from microservices.dashboard_service.approval_ledger import ApprovalLedger
from microservices.dashboard_service.dashboard_service import DashboardContentService
from microservices.dashboard_service.events.publishers import DashboardEventPublisher
from microservices.dashboard_service.promotion import ContentPromoter
from microservices.dashboard_service.review_service import DashboardReviewService
from microservices.dashboard_service.submission_service import DashboardSubmissionService
from tests.component.dashboard.mocks import MockDashboardRepository
from tests.contracts.dashboard.data_contract import DashboardTestDataFactory


@pytest.fixture
def factory() -> DashboardTestDataFactory:
    return DashboardTestDataFactory()


@pytest.fixture
def repository() -> MockDashboardRepository:
    """Fresh in-memory repository for each test"""
    return MockDashboardRepository()


@pytest.fixture
def event_publisher(mock_event_bus) -> DashboardEventPublisher:
    return DashboardEventPublisher(mock_event_bus)


@pytest.fixture
def ledger(repository) -> ApprovalLedger:
    return ApprovalLedger(repository)


@pytest.fixture
def submission_service(repository, event_publisher) -> DashboardSubmissionService:
    return DashboardSubmissionService(repository=repository, event_publisher=event_publisher)


@pytest.fixture
def review_service(repository) -> DashboardReviewService:
    return DashboardReviewService(repository=repository, promoter=ContentPromoter(repository))


@pytest.fixture
def content_service(repository) -> DashboardContentService:
    return DashboardContentService(repository)


@pytest.fixture
def issuer(repository, factory):
    return repository.add_issuer(factory.make_issuer())


@pytest.fixture
def campaign(repository, factory, issuer):
    """Live campaign linked to an issuer"""
    return repository.add_campaign(factory.make_campaign(issuer_id=issuer.issuer_id))


@pytest.fixture
def submitter_id(factory) -> str:
    return factory.make_user_id()


@pytest.fixture
def admin_id(factory) -> str:
    return factory.make_admin_id()
