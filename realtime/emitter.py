"""
Write-path entry point.

Call sites invoke trigger_update() (or emit()) once, right after the remote
store confirmed a mutation, for the primary entity only.
"""

from __future__ import annotations
import logging
from typing import Any

from bus.event_bus import UPDATE_EVENT, UpdateChannel
from models.events import UpdateEvent

log = logging.getLogger(__name__)


class UpdateEmitter:
    def __init__(self, channel: UpdateChannel, event_name: str = UPDATE_EVENT) -> None:
        self._channel = channel
        self._event_name = event_name

    def trigger_update(self, event: UpdateEvent) -> None:
        """Publish synchronously. Subscriber failures are isolated by the channel and never reach the caller."""
        delivered = self._channel.publish(self._event_name, event)
        log.info(
            "Update %s.%s published id=%s to %d listener(s)",
            event.type, event.action, event.event_id, delivered,
        )

    def emit(self, type: str, action: str, data: Any = None) -> UpdateEvent:
        event = UpdateEvent.make(type, action, data)
        self.trigger_update(event)
        return event
