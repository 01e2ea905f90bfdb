"""
Transports carry published events to execution contexts the in-process
channel cannot reach on its own.

Only contexts that actually need it install a transport. The channel
deduplicates by event_id, so a transport may freely echo an event back to
the context that published it.
"""

from __future__ import annotations
import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable

log = logging.getLogger(__name__)

# Channel-side receive hook: (event_name, payload) -> None
Deliver = Callable[[str, Any], None]


class Transport(ABC):
    @abstractmethod
    def attach(self, deliver: Deliver) -> None:
        """Start handing inbound events to deliver. Called by UpdateChannel.add_transport()."""
        ...

    @abstractmethod
    def detach(self) -> None:
        """Stop delivering inbound events."""
        ...

    @abstractmethod
    def send(self, event_name: str, payload: Any) -> None:
        """Forward a locally published event. Must not block."""
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        ...


class BroadcastHub:
    """
    Process-wide meeting point for LoopBridgeTransports.
    Members may live on different threads, each with its own event loop.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._members: list[LoopBridgeTransport] = []

    def join(self, member: "LoopBridgeTransport") -> None:
        with self._lock:
            self._members.append(member)

    def leave(self, member: "LoopBridgeTransport") -> None:
        with self._lock:
            if member in self._members:
                self._members.remove(member)

    def broadcast(self, event_name: str, payload: Any) -> None:
        with self._lock:
            members = list(self._members)
        for member in members:
            member.post(event_name, payload)

    @property
    def member_count(self) -> int:
        with self._lock:
            return len(self._members)


class LoopBridgeTransport(Transport):
    """
    Bridges channels that live on different event loops of one process.
    Inbound delivery is always marshalled onto this member's own loop.
    """

    def __init__(self, hub: BroadcastHub, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._hub = hub
        self._loop = loop
        self._deliver: Deliver | None = None

    @property
    def name(self) -> str:
        return f"loop-bridge:{id(self):x}"

    def attach(self, deliver: Deliver) -> None:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._deliver = deliver
        self._hub.join(self)

    def detach(self) -> None:
        self._hub.leave(self)
        self._deliver = None

    def send(self, event_name: str, payload: Any) -> None:
        self._hub.broadcast(event_name, payload)

    def post(self, event_name: str, payload: Any) -> None:
        """Called by the hub from any thread."""
        loop = self._loop
        if self._deliver is None or loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(self._deliver_now, event_name, payload)
        except RuntimeError:
            # Loop closed between the check and the call
            log.debug("%s: loop closed, dropping %s", self.name, event_name)

    def _deliver_now(self, event_name: str, payload: Any) -> None:
        if self._deliver is not None:
            self._deliver(event_name, payload)
