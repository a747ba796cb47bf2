"""
Centralized Configuration Manager

Single entry point services use to read their configuration and to locate
the peer services they depend on.

Usage:
    from core.config_manager import ConfigManager

    config_manager = ConfigManager("dashboard_service")
    config = config_manager.get_service_config()
    host, port = config_manager.discover_service(
        service_name="notification_service",
        default_host="localhost",
        default_port=8206,
        env_host_key="NOTIFICATION_SERVICE_HOST",
        env_port_key="NOTIFICATION_SERVICE_PORT",
    )
"""

import logging
import os
from typing import Optional, Tuple

from core.config import DashboardConfig, InfraConfig, ServiceConfig, get_settings

logger = logging.getLogger(__name__)


class ConfigManager:
    """Configuration access for one service"""

    def __init__(self, service_name: str, settings: Optional[DashboardConfig] = None):
        self.service_name = service_name
        self.settings = settings or get_settings()

    def get_service_config(self) -> ServiceConfig:
        """Get runtime configuration for this service"""
        return self.settings.service

    def get_infra_config(self) -> InfraConfig:
        """Get infrastructure configuration"""
        return self.settings.infra

    def discover_service(
        self,
        service_name: str,
        default_host: str,
        default_port: int,
        env_host_key: Optional[str] = None,
        env_port_key: Optional[str] = None,
    ) -> Tuple[str, int]:
        """
        Resolve host and port of a dependency.

        Environment variables win over defaults; a malformed port falls back
        to the default.
        """
        host = os.getenv(env_host_key) if env_host_key else None
        port_value = os.getenv(env_port_key) if env_port_key else None

        port = default_port
        if port_value:
            try:
                port = int(port_value)
            except ValueError:
                logger.warning(f"Invalid port '{port_value}' for {service_name}, using {default_port}")

        resolved_host = host or default_host
        logger.debug(f"{self.service_name} resolved {service_name} at {resolved_host}:{port}")
        return resolved_host, port

    def print_config_summary(self, show_secrets: bool = False) -> None:
        """Log the effective configuration"""
        service = self.settings.service
        infra = self.settings.infra

        def _mask(value: str) -> str:
            if show_secrets or not value:
                return value
            return value[:4] + "****"

        logger.info(f"Configuration for {self.service_name} ({self.settings.environment})")
        logger.info(f"  port: {service.service_port}, log level: {service.log_level}")
        logger.info(f"  postgres: {infra.postgres_host}:{infra.postgres_port}/{infra.postgres_db}")
        logger.info(f"  notifications enabled: {service.notifications_enabled}")
        logger.info(f"  slack channel: {service.slack_admin_channel}, token: {_mask(service.slack_bot_token)}")
        logger.info(f"  admin emails: {len(service.admin_notification_emails)}")


__all__ = ["ConfigManager"]
