"""
API Test Layer Configuration

Layer 1: API Contract Tests
- The FastAPI app runs in-process through TestClient
- Storage is the in-memory repository; routing, validation and status
  codes are real

Usage:
    pytest tests/api -v
    pytest tests/api -v --tb=short
"""

import os
import sys

import pytest

# Add project root
sys.path.insert(
    0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
)

os.environ.setdefault("ENV", "testing")


def pytest_collection_modifyitems(config, items):
    """Mark everything in this layer as an API test"""
    layer_dir = os.path.dirname(os.path.abspath(__file__))
    for item in items:
        if str(item.path).startswith(layer_dir):
            item.add_marker(pytest.mark.api)
