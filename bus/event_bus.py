"""
In-process update channel.

Every view in the process subscribes here; every admin write publishes here.
Delivery is synchronous: publish() returns only after every registered
callback has run, in registration order. Callbacks must therefore stay cheap
(schedule work and return).

Transports extend the channel to other execution contexts (other event loops,
other processes). An event that comes back through a transport after it was
already delivered locally is recognised by its event_id and dropped.
"""

from __future__ import annotations
import logging
from collections import OrderedDict
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from bus.transport import Transport

log = logging.getLogger(__name__)

# Single topic; all entity types are multiplexed onto it
UPDATE_EVENT = "dreamlive-update"

Listener = Callable[[Any], None]


class UpdateChannel:
    """
    Process-wide listener registry. Construct once at startup and inject it;
    nothing in this package reaches for a global instance.
    """

    def __init__(self, seen_capacity: int = 1024) -> None:
        self._listeners: dict[str, list[Listener]] = {}
        self._transports: list[Transport] = []
        self._seen: OrderedDict[tuple[str, str], None] = OrderedDict()
        self._seen_capacity = seen_capacity

    def register(self, event_name: str, callback: Listener) -> None:
        """Append callback. Registering the same callback twice means two deliveries."""
        self._listeners.setdefault(event_name, []).append(callback)

    def unregister(self, event_name: str, callback: Listener) -> None:
        """Remove the first registration of callback (by identity). Unknown callbacks are ignored."""
        listeners = self._listeners.get(event_name)
        if not listeners:
            return
        for i, registered in enumerate(listeners):
            if registered is callback:
                del listeners[i]
                break
        if not listeners:
            del self._listeners[event_name]

    def listener_count(self, event_name: str) -> int:
        return len(self._listeners.get(event_name, ()))

    def publish(self, event_name: str, payload: Any) -> int:
        """
        Deliver payload to every local listener, then hand it to every transport.
        Returns the number of local callbacks invoked. Never raises.
        """
        self._remember(event_name, payload)
        delivered = self._deliver(event_name, payload)
        for transport in list(self._transports):
            try:
                transport.send(event_name, payload)
            except Exception:
                log.exception("Transport %s failed to send %s", transport.name, event_name)
        return delivered

    # ------------------------------------------------------------------
    # Transports
    # ------------------------------------------------------------------

    def add_transport(self, transport: "Transport") -> None:
        transport.attach(self._receive)
        self._transports.append(transport)
        log.info("Update channel transport attached: %s", transport.name)

    def remove_transport(self, transport: "Transport") -> None:
        if transport not in self._transports:
            return
        self._transports.remove(transport)
        transport.detach()
        log.info("Update channel transport detached: %s", transport.name)

    def _receive(self, event_name: str, payload: Any) -> None:
        """Entry point for events arriving through a transport."""
        if self._already_seen(event_name, payload):
            log.debug("Dropping %s already delivered in this context", event_name)
            return
        self._remember(event_name, payload)
        self._deliver(event_name, payload)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _deliver(self, event_name: str, payload: Any) -> int:
        # Snapshot: callbacks may (un)register while we iterate
        listeners = list(self._listeners.get(event_name, ()))
        for callback in listeners:
            try:
                callback(payload)
            except Exception:
                log.exception("Update listener %r failed on %s", callback, event_name)
        return len(listeners)

    def _already_seen(self, event_name: str, payload: Any) -> bool:
        event_id = getattr(payload, "event_id", None)
        return event_id is not None and (event_name, event_id) in self._seen

    def _remember(self, event_name: str, payload: Any) -> None:
        event_id = getattr(payload, "event_id", None)
        if event_id is None:
            return
        self._seen[(event_name, event_id)] = None
        while len(self._seen) > self._seen_capacity:
            self._seen.popitem(last=False)
