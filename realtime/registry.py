"""
Per-consumer subscription surface over the update channel.
"""

from __future__ import annotations
import logging
from typing import Any, Callable

from bus.event_bus import UPDATE_EVENT, UpdateChannel
from models.events import now_ms

log = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]


class SubscriptionRegistry:
    """
    Built once per process around the shared UpdateChannel and handed to
    every coordinator.

    Every subscription returns its own unsubscribe callable; calling it more
    than once is harmless.
    """

    def __init__(self, channel: UpdateChannel, event_name: str = UPDATE_EVENT) -> None:
        self._channel = channel
        self._event_name = event_name
        self._active = 0
        self._last_update_ms = now_ms()
        channel.register(event_name, self._touch)

    @property
    def last_update(self) -> int:
        """Epoch ms of the most recent update seen on the channel."""
        return self._last_update_ms

    @property
    def active_subscriptions(self) -> int:
        return self._active

    def subscribe_to_updates(self, callback: Callable[[Any], None]) -> Unsubscribe:
        self._channel.register(self._event_name, callback)
        self._active += 1
        done = False

        def unsubscribe() -> None:
            nonlocal done
            if done:
                return
            done = True
            self._channel.unregister(self._event_name, callback)
            self._active -= 1

        return unsubscribe

    def _touch(self, event: Any) -> None:
        self._last_update_ms = now_ms()
