"""
Component Test Mocks

Shared mock implementations for component testing.
Service-specific mocks live beside their tests (tests/component/{service}/mocks.py).
"""

from .event_bus_mock import MockEventBus

__all__ = [
    'MockEventBus',
]
