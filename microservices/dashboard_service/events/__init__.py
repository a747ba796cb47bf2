"""
Dashboard Service Events

Event models, publisher and handlers for dashboard_service.
"""

from .models import DashboardEventType, DashboardItemSubmittedEventData
from .publishers import DashboardEventPublisher
from .handlers import DashboardSubmissionNotifier, get_event_handlers, register_event_handlers

__all__ = [
    "DashboardEventType",
    "DashboardItemSubmittedEventData",
    "DashboardEventPublisher",
    "DashboardSubmissionNotifier",
    "get_event_handlers",
    "register_event_handlers",
]
