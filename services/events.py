"""
Immutable events published by the core.

The core keeps no presentation state. It publishes what happened and
subscribers (the API layer, alert notifications) react.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Type

from schemas.attendance import LogEntry
from schemas.records import ChatMessage, ReportEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    pass


@dataclass(frozen=True)
class LogCreated(Event):
    entry: LogEntry


@dataclass(frozen=True)
class LogConfirmed(Event):
    entry: LogEntry


@dataclass(frozen=True)
class LogUnconfirmed(Event):
    entry: LogEntry
    reason: str


@dataclass(frozen=True)
class ReportCreated(Event):
    report: ReportEntry


@dataclass(frozen=True)
class MessageSent(Event):
    message: ChatMessage


Handler = Callable[[Event], Awaitable[None]]


class EventBus:
    def __init__(self):
        self._handlers: List[tuple] = []

    def subscribe(self, handler: Handler, event_type: Optional[Type[Event]] = None) -> None:
        self._handlers.append((event_type or Event, handler))

    async def publish(self, event: Event) -> None:
        """Deliver ``event`` to every matching handler. A failing handler is logged and skipped."""
        for event_type, handler in list(self._handlers):
            if not isinstance(event, event_type):
                continue
            try:
                await handler(event)
            except Exception as e:
                logger.error(f"❌ {type(event).__name__} handler failed: {e!r}")
