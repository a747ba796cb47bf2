#!/usr/bin/env python3
"""Modular configuration system for the dashboard service

Configuration hierarchy:
- infra_config: Infrastructure services (PostgreSQL)
- service_config: Service runtime, peer services and admin notification channels
- logging_config: Logging configuration
- dashboard_config: Combined settings
"""
import os
from dotenv import load_dotenv
from .logging_config import LoggingConfig
from .infra_config import InfraConfig
from .service_config import ServiceConfig
from .dashboard_config import DashboardConfig

# Load environment file based on ENV
env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
env_files = {
    "development": "deployment/environments/dev.env",
    "dev": "deployment/environments/dev.env",
    "testing": "deployment/environments/test.env",
    "test": "deployment/environments/test.env",
    "staging": "deployment/environments/staging.env",
    "production": "deployment/environments/production.env",
}
env_file = env_files.get(env, "deployment/environments/dev.env")
load_dotenv(env_file, override=False)

# Create global settings instance
settings = DashboardConfig.from_env()


def get_settings() -> DashboardConfig:
    """Get global settings instance"""
    return settings


def reload_settings() -> DashboardConfig:
    """Reload settings from environment"""
    global settings
    settings = DashboardConfig.from_env()
    return settings


__all__ = [
    'DashboardConfig',
    'get_settings',
    'reload_settings',
    'settings',
    'InfraConfig',
    'LoggingConfig',
    'ServiceConfig',
]
