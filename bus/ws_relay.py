"""
Minimal update relay.

Every message received from one connected process is forwarded verbatim to
every other connected process. The relay does not parse or store events.

Usage:
    python -m bus.ws_relay
"""

from __future__ import annotations
import asyncio
import logging
import signal

from websockets.asyncio.server import ServerConnection, broadcast, serve
from websockets.exceptions import ConnectionClosed

log = logging.getLogger(__name__)


class UpdateRelay:
    def __init__(self, host: str = "127.0.0.1", port: int = 8765) -> None:
        self._host = host
        self._port = port
        self._clients: set[ServerConnection] = set()
        self._server = None
        self.relayed = 0

    @property
    def port(self) -> int:
        """Bound port; differs from the requested one when started with port=0."""
        assert self._server, "Call start() first"
        return self._server.sockets[0].getsockname()[1]

    @property
    def url(self) -> str:
        return f"ws://{self._host}:{self.port}"

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def start(self) -> None:
        self._server = await serve(self._handler, self._host, self._port)
        log.info("Update relay listening on %s", self.url)

    async def stop(self) -> None:
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        log.info("Update relay stopped (%d messages relayed)", self.relayed)

    async def _handler(self, connection: ServerConnection) -> None:
        self._clients.add(connection)
        log.info("Relay peer connected: %s (%d total)", connection.remote_address, len(self._clients))
        try:
            async for message in connection:
                peers = [c for c in self._clients if c is not connection]
                broadcast(peers, message)
                self.relayed += 1
        except ConnectionClosed:
            pass
        finally:
            self._clients.discard(connection)
            log.info("Relay peer left: %s (%d total)", connection.remote_address, len(self._clients))


async def _serve_forever() -> None:
    from config.settings import settings
    from utils.logger import setup_logging

    setup_logging(settings.log_level)
    relay = UpdateRelay(settings.relay_host, settings.relay_port)
    await relay.start()

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)
    await stop.wait()
    await relay.stop()


if __name__ == "__main__":
    from dotenv import load_dotenv

    load_dotenv()
    asyncio.run(_serve_forever())
