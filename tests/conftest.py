"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers (Top-Down TDD):
    - integration/: Repository against a real PostgreSQL
    - component/  : Component tests (mocked dependencies)
    - api/        : HTTP contract tests (in-process app)
    - unit/       : Unit tests (pure functions, no I/O)
"""
import os
import sys

import pytest

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

os.environ.setdefault("ENV", "testing")


# =============================================================================
# Test Configuration
# =============================================================================

class TestConfig:
    """Centralized test configuration"""

    DATABASE_DSN = os.getenv("DASHBOARD_TEST_DATABASE")

    @classmethod
    def has_database(cls) -> bool:
        return bool(cls.DATABASE_DSN)


# =============================================================================
# Skip Markers Based on Environment
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers and skip logic"""
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "component: Component tests")
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: In-process HTTP contract tests")
    config.addinivalue_line("markers", "requires_db: Needs DASHBOARD_TEST_DATABASE")


def pytest_collection_modifyitems(config, items):
    """Modify test collection based on markers and environment"""
    skip_db = pytest.mark.skip(reason="DASHBOARD_TEST_DATABASE not set")

    for item in items:
        if "requires_db" in item.keywords and not TestConfig.has_database():
            item.add_marker(skip_db)
