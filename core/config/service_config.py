#!/usr/bin/env python3
"""Service configuration for the dashboard service

Runtime settings of the service itself and of the peer services and
notification channels it calls.
"""
import os
from dataclasses import dataclass, field
from typing import List


def _bool(val: str) -> bool:
    return val.lower() == "true"


def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


def _list(val: str) -> List[str]:
    return [item.strip() for item in val.split(",") if item.strip()]


@dataclass
class ServiceConfig:
    """Dashboard service runtime and notification settings"""

    # ===========================================
    # Service runtime
    # ===========================================
    service_name: str = "dashboard_service"
    service_host: str = "0.0.0.0"
    service_port: int = 8260
    debug: bool = False
    log_level: str = "INFO"
    # Apply migrations/ at startup
    auto_migrate: bool = False

    # ===========================================
    # Peer services
    # ===========================================
    notification_service_host: str = "localhost"
    notification_service_port: int = 8206

    # ===========================================
    # Admin notifications
    # ===========================================
    notifications_enabled: bool = True
    slack_bot_token: str = ""
    slack_admin_channel: str = "#dashboard-submissions"
    slack_api_url: str = "https://slack.com/api"
    admin_dashboard_url: str = ""
    admin_notification_emails: List[str] = field(default_factory=list)
    http_timeout: float = 10.0
    http_retry_attempts: int = 3

    @classmethod
    def from_env(cls) -> 'ServiceConfig':
        """Load service configuration from environment variables"""
        return cls(
            service_name=os.getenv("SERVICE_NAME", "dashboard_service"),
            service_host=os.getenv("SERVICE_HOST", "0.0.0.0"),
            service_port=_int(os.getenv("SERVICE_PORT", "8260"), 8260),
            debug=_bool(os.getenv("DEBUG", "false")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            auto_migrate=_bool(os.getenv("DB_AUTO_MIGRATE", "false")),
            notification_service_host=os.getenv("NOTIFICATION_SERVICE_HOST", "localhost"),
            notification_service_port=_int(os.getenv("NOTIFICATION_SERVICE_PORT", "8206"), 8206),
            notifications_enabled=_bool(os.getenv("NOTIFICATIONS_ENABLED", "true")),
            slack_bot_token=os.getenv("SLACK_BOT_TOKEN", ""),
            slack_admin_channel=os.getenv("SLACK_ADMIN_CHANNEL", "#dashboard-submissions"),
            slack_api_url=os.getenv("SLACK_API_URL", "https://slack.com/api"),
            admin_dashboard_url=os.getenv("ADMIN_DASHBOARD_URL", ""),
            admin_notification_emails=_list(os.getenv("ADMIN_NOTIFICATION_EMAILS", "")),
            http_timeout=float(os.getenv("HTTP_TIMEOUT", "10") or 10),
            http_retry_attempts=_int(os.getenv("HTTP_RETRY_ATTEMPTS", "3"), 3),
        )
