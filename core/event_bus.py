"""
In-Process Event Bus

Typed, fire-and-forget event delivery inside one service process.

Handlers are registered per event type enum member; publishing schedules
every registered handler as its own task and returns without waiting for
them. Handler failures are logged and never reach the publisher.
"""

import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

logger = logging.getLogger(__name__)

EventHandler = Callable[["Event"], Awaitable[None]]


class DecimalEncoder(json.JSONEncoder):
    """Custom JSON encoder that handles Decimal and datetime types"""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


class Event:
    """Event model"""

    def __init__(
        self,
        event_type: Enum,
        source: str,
        data: Dict[str, Any],
        subject: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ):
        self.id = str(uuid.uuid4())
        self.event_type = event_type
        self.type = event_type.value
        self.source = source
        self.data = data
        self.subject = subject
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.metadata = metadata or {}
        self.version = "1.0.0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "source": self.source,
            "subject": self.subject,
            "timestamp": self.timestamp,
            "data": self.data,
            "metadata": self.metadata,
            "version": self.version,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), cls=DecimalEncoder)


class LocalEventBus:
    """
    Event bus dispatching to handlers registered in this process.

    The dispatch table is keyed by the event type enum member, so a handler
    can only be bound to an event type that exists.
    """

    def __init__(self, service_name: str):
        self.service_name = service_name
        self._handlers: Dict[Enum, List[EventHandler]] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._is_connected = True

        logger.info(f"Local event bus initialized for {service_name}")

    def subscribe_to_events(self, event_type: Enum, handler: EventHandler) -> None:
        """Register a handler for one event type"""
        self._handlers.setdefault(event_type, []).append(handler)
        logger.info(f"Subscribed {getattr(handler, '__qualname__', handler)} to {event_type.value}")

    def handlers_for(self, event_type: Enum) -> List[EventHandler]:
        return list(self._handlers.get(event_type, []))

    async def publish_event(self, event: Event) -> bool:
        """
        Schedule every handler of the event's type and return immediately.

        Returns False when the bus is closed or nobody listens.
        """
        if not self._is_connected:
            logger.error(f"Event bus closed, dropping event {event.type} [{event.id}]")
            return False

        handlers = self.handlers_for(event.event_type)
        if not handlers:
            logger.debug(f"No handlers for event {event.type} [{event.id}]")
            return False

        for handler in handlers:
            task = asyncio.create_task(self._run_handler(handler, event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        logger.info(f"Dispatched event {event.type} [{event.id}] to {len(handlers)} handler(s)")
        return True

    async def _run_handler(self, handler: EventHandler, event: Event) -> None:
        try:
            await handler(event)
        except Exception as e:
            logger.error(f"Handler failed for event {event.type} [{event.id}]: {e}", exc_info=True)

    async def drain(self) -> None:
        """Wait for all in-flight handler tasks"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self):
        """Stop accepting events and wait for in-flight handlers"""
        self._is_connected = False
        await self.drain()
        logger.info(f"Local event bus closed for {self.service_name}")

    @property
    def is_connected(self) -> bool:
        return self._is_connected
