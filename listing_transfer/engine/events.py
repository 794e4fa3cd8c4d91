"""Best-effort fan-out of log and progress events to live observers."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Protocol

logger = logging.getLogger(__name__)

EVENT_TYPES = ("log", "progress")


class EventSubscriber(Protocol):
    """Anything that can take an event without blocking the publisher."""

    @property
    def is_ready(self) -> bool: ...

    def deliver(self, event: dict[str, Any]) -> None: ...


class QueueSubscriber:
    """Bounded queue subscriber; drops events when the consumer falls behind."""

    def __init__(self, maxsize: int = 256):
        self.queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=maxsize)
        self.closed = False
        self.dropped = 0

    @property
    def is_ready(self) -> bool:
        return not self.closed

    def deliver(self, event: dict[str, Any]) -> None:
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1

    async def get(self) -> dict[str, Any]:
        return await self.queue.get()

    def close(self) -> None:
        self.closed = True


class EventBroadcaster:
    """Publish/subscribe channel. `publish` never awaits and never raises."""

    def __init__(self) -> None:
        self._subscribers: list[EventSubscriber] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, subscriber: EventSubscriber) -> EventSubscriber:
        self._subscribers.append(subscriber)
        logger.debug("Subscriber added (%d total)", len(self._subscribers))
        return subscriber

    def unsubscribe(self, subscriber: EventSubscriber) -> None:
        try:
            self._subscribers.remove(subscriber)
        except ValueError:
            return
        logger.debug("Subscriber removed (%d total)", len(self._subscribers))

    def publish(self, event_type: str, data: dict[str, Any]) -> dict[str, Any]:
        """Send `{type, data, timestamp}` to every ready subscriber."""
        event = {
            "type": event_type,
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        # snapshot: subscribers may unsubscribe while we iterate
        for subscriber in list(self._subscribers):
            try:
                if not subscriber.is_ready:
                    continue
                subscriber.deliver(event)
            except Exception:
                logger.exception("Event subscriber %r failed; skipping", subscriber)
        return event
