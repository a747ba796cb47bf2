#!/usr/bin/env python3
"""
Core Module

Shared infrastructure for the dashboard service.

COMPONENTS:
    - config/: Layered configuration (infra, logging, service)
    - config_manager.py: Configuration access and dependency discovery
    - postgres_client.py: asyncpg pool wrapper with task-bound transactions
    - event_bus.py: In-process event bus
    - logger.py: Service logger setup

USAGE:
    from core.config_manager import ConfigManager

    config = ConfigManager("dashboard_service")
"""

from .config_manager import ConfigManager
from .event_bus import Event, LocalEventBus

__all__ = [
    "ConfigManager",
    "Event",
    "LocalEventBus",
]

__version__ = "2.0.0"
