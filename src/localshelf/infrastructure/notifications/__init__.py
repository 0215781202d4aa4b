"""Notification infrastructure."""

from localshelf.infrastructure.notifications.event_channel import (
    Event,
    EventChannel,
    Subscription,
)

__all__ = ["Event", "EventChannel", "Subscription"]
