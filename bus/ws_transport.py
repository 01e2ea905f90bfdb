"""
Cross-process transport over a WebSocket relay.

Connects to an UpdateRelay, forwards locally published UpdateEvents to it
and delivers events published by other processes into the local channel.

Features:
- Persistent connection with exponential backoff reconnect
- Bounded outbox: events published while disconnected are flushed on reconnect
- A message whose send fails is held and sent first on the next connection;
  the receiving channel drops the copy if the first send did land
- Malformed inbound messages are logged and skipped
"""

from __future__ import annotations
import asyncio
import json
import logging
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed

from bus.transport import Deliver, Transport
from models.events import UpdateEvent

log = logging.getLogger(__name__)


class WebSocketTransport(Transport):
    """
    Usage:
        transport = WebSocketTransport("ws://127.0.0.1:8765")
        channel.add_transport(transport)
        task = asyncio.create_task(transport.run())
        ...
        await transport.shutdown()
    """

    PING_INTERVAL_S = 20
    MAX_BACKOFF_S = 5.0

    def __init__(self, url: str, outbox_size: int = 100) -> None:
        self._url = url
        self._deliver: Deliver | None = None
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=outbox_size)
        self._shutdown_event = asyncio.Event()
        self._connected = asyncio.Event()
        self._live_ws = None
        # Taken off the outbox but not yet confirmed sent.
        self._held: str | None = None

    @property
    def name(self) -> str:
        return f"websocket:{self._url}"

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()

    def attach(self, deliver: Deliver) -> None:
        self._deliver = deliver

    def detach(self) -> None:
        self._deliver = None

    def send(self, event_name: str, payload: Any) -> None:
        if not isinstance(payload, UpdateEvent):
            log.debug("%s: not forwarding non-UpdateEvent payload on %s", self.name, event_name)
            return
        message = json.dumps({"event": event_name, "payload": payload.to_dict()})
        try:
            self._outbox.put_nowait(message)
        except asyncio.QueueFull:
            log.warning("%s outbox full, dropping event %s", self.name, payload.event_id)

    async def wait_connected(self, timeout: float | None = None) -> None:
        await asyncio.wait_for(self._connected.wait(), timeout)

    async def shutdown(self) -> None:
        self._shutdown_event.set()
        if self._live_ws is not None:
            await self._live_ws.close()

    async def run(self) -> None:
        """Main loop. Reconnects automatically until shutdown()."""
        backoff = 0.5
        while not self._shutdown_event.is_set():
            try:
                await self._connect_and_consume()
                backoff = 0.5
            except ConnectionClosed as exc:
                log.warning("Relay connection closed: %s, reconnecting in %.1fs", exc, backoff)
            except OSError as exc:
                log.warning("Relay unreachable at %s: %s, retrying in %.1fs", self._url, exc, backoff)
            except Exception as exc:
                log.error("Relay transport error: %s, reconnecting in %.1fs", exc, backoff)
            if self._shutdown_event.is_set():
                break
            await asyncio.sleep(backoff)
            backoff = min(backoff * 2, self.MAX_BACKOFF_S)

    async def _connect_and_consume(self) -> None:
        async with websockets.connect(
            self._url,
            ping_interval=self.PING_INTERVAL_S,
            ping_timeout=10,
        ) as ws:
            self._live_ws = ws
            self._connected.set()
            log.info("Connected to update relay %s", self._url)
            sender = asyncio.create_task(self._pump_outbox(ws), name="relay-outbox")
            try:
                async for raw in ws:
                    self._handle_message(raw)
            finally:
                sender.cancel()
                self._connected.clear()
                self._live_ws = None

    async def _pump_outbox(self, ws) -> None:
        while True:
            if self._held is None:
                self._held = await self._outbox.get()
            try:
                await ws.send(self._held)
            except ConnectionClosed:
                log.warning("Relay connection lost while sending; holding event for the next connection")
                return
            self._held = None

    def _handle_message(self, raw: str | bytes) -> None:
        try:
            msg = json.loads(raw)
            event_name = msg["event"]
            event = UpdateEvent.from_dict(msg["payload"])
        except (ValueError, KeyError, TypeError) as exc:
            log.warning("Malformed relay message (%s): %.80r", exc, raw)
            return
        if self._deliver is None:
            return
        self._deliver(event_name, event)
