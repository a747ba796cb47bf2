"""
Unit Test Fixtures for Dashboard Service

Uses DashboardTestDataFactory from the data contract.
"""

import pytest

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.dashboard.data_contract import DashboardTestDataFactory


@pytest.fixture
def factory() -> DashboardTestDataFactory:
    return DashboardTestDataFactory()
