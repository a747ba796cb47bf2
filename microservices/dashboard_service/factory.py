"""
Dashboard Service Factory

Factory for creating dashboard service instances with proper dependency injection.
"""

import logging
from typing import Optional

from core.config_manager import ConfigManager
from core.event_bus import LocalEventBus

from .clients.notification_client import NotificationClient
from .dashboard_repository import DashboardRepository
from .dashboard_service import DashboardContentService
from .events.handlers import DashboardSubmissionNotifier, register_event_handlers
from .events.publishers import DashboardEventPublisher
from .promotion import ContentPromoter
from .review_service import DashboardReviewService
from .submission_service import DashboardSubmissionService

logger = logging.getLogger(__name__)


class DashboardServiceFactory:
    """Factory for creating dashboard service components"""

    def __init__(
        self,
        config: Optional[ConfigManager] = None,
        repository: Optional[DashboardRepository] = None,
        run_migrations: Optional[bool] = None,
    ):
        self.config = config or ConfigManager("dashboard_service")
        if run_migrations is None:
            run_migrations = self.config.get_service_config().auto_migrate
        self.run_migrations = run_migrations
        self._repository: Optional[DashboardRepository] = repository
        self._event_bus: Optional[LocalEventBus] = None
        self._event_publisher: Optional[DashboardEventPublisher] = None
        self._notification_client: Optional[NotificationClient] = None
        self._notifier: Optional[DashboardSubmissionNotifier] = None
        self._content_service: Optional[DashboardContentService] = None
        self._submission_service: Optional[DashboardSubmissionService] = None
        self._review_service: Optional[DashboardReviewService] = None

    async def initialize(self) -> None:
        """Initialize all components"""
        logger.info("Initializing Dashboard Service components...")

        # Initialize repository
        if self._repository is None:
            self._repository = DashboardRepository(self.config)
        await self._repository.initialize(run_migrations=self.run_migrations)

        # Initialize event bus and notifications
        self._event_bus = LocalEventBus(service_name="dashboard_service")
        self._event_publisher = DashboardEventPublisher(self._event_bus)

        service_config = self.config.get_service_config()
        if service_config.notifications_enabled:
            self._notification_client = NotificationClient(self.config)
        else:
            logger.info("Admin notifications disabled")

        self._notifier = DashboardSubmissionNotifier(
            repository=self._repository,
            notification_client=self._notification_client,
            config=service_config,
        )
        register_event_handlers(self._event_bus, self._notifier)

        # Initialize services
        self._content_service = DashboardContentService(self._repository)
        self._submission_service = DashboardSubmissionService(
            repository=self._repository,
            event_publisher=self._event_publisher,
        )
        self._review_service = DashboardReviewService(
            repository=self._repository,
            promoter=ContentPromoter(self._repository),
        )

        logger.info("Dashboard Service components initialized")

    async def close(self) -> None:
        """Close all components"""
        logger.info("Closing Dashboard Service components...")

        if self._event_bus:
            await self._event_bus.close()

        if self._repository:
            await self._repository.close()

        logger.info("Dashboard Service components closed")

    @property
    def repository(self) -> DashboardRepository:
        """Get dashboard repository"""
        if not self._repository:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._repository

    @property
    def event_bus(self) -> Optional[LocalEventBus]:
        """Get event bus"""
        return self._event_bus

    @property
    def event_publisher(self) -> Optional[DashboardEventPublisher]:
        """Get event publisher"""
        return self._event_publisher

    @property
    def notification_client(self) -> Optional[NotificationClient]:
        """Get notification client (None when notifications are disabled)"""
        return self._notification_client

    @property
    def content_service(self) -> DashboardContentService:
        """Get draft content service"""
        if not self._content_service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._content_service

    @property
    def submission_service(self) -> DashboardSubmissionService:
        """Get submission coordinator"""
        if not self._submission_service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._submission_service

    @property
    def review_service(self) -> DashboardReviewService:
        """Get review coordinator"""
        if not self._review_service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._review_service


__all__ = ["DashboardServiceFactory"]
