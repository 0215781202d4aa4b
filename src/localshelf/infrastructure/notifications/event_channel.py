"""In-process fire-and-forget event channel.

Hey future me - this replaces the desktop IPC "window.send(channel, payload)"!
The scanner calls send() from the event loop after every processed file, so send()
must be CHEAP and must NEVER block or await. Each subscriber (e.g. one SSE stream
per browser tab) gets its own bounded queue. When a slow consumer lets its queue fill
up, we drop that subscriber's OLDEST event - progress ticks are superseded by newer
ticks anyway, and the final "local-files" event is always the newest one.

No subscriber? Events are dropped on the floor. That's fine - there is no ack.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

from localshelf.domain.ports import INotificationSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    """One published event."""

    channel: str
    payload: Any


class Subscription:
    """A consumer's view of the channel. Iterate it with ``async for``."""

    def __init__(self, channel: "EventChannel", maxsize: int) -> None:
        self._channel = channel
        self.queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def offer(self, event: Event) -> None:
        """Enqueue without blocking, evicting the oldest event when full."""
        while True:
            try:
                self.queue.put_nowait(event)
                return
            except asyncio.QueueFull:
                try:
                    self.queue.get_nowait()
                    self.dropped += 1
                except asyncio.QueueEmpty:
                    pass

    async def get(self) -> Event:
        return await self.queue.get()

    def close(self) -> None:
        self._channel.unsubscribe(self)

    def __aiter__(self) -> AsyncIterator[Event]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Event]:
        try:
            while True:
                yield await self.queue.get()
        finally:
            self.close()


class EventChannel(INotificationSink):
    """Broadcasts events to every current subscriber."""

    def __init__(self, queue_size: int = 256) -> None:
        self._queue_size = queue_size
        self._subscribers: set[Subscription] = set()

    def send(self, channel: str, payload: Any) -> None:
        """Publish an event to all subscribers. Never blocks."""
        event = Event(channel=channel, payload=payload)
        for subscription in list(self._subscribers):
            subscription.offer(event)
        logger.debug(
            "Event %s sent to %d subscriber(s)", channel, len(self._subscribers)
        )

    def subscribe(self) -> Subscription:
        """Register a new subscriber. Call ``close()`` (or finish iterating) when done."""
        subscription = Subscription(self, self._queue_size)
        self._subscribers.add(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        self._subscribers.discard(subscription)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
