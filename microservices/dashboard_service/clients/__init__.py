"""
Dashboard Service Clients

Clients for the external channels dashboard_service talks to.
"""

from .notification_client import NotificationClient, SlackApiError

__all__ = ["NotificationClient", "SlackApiError"]
