"""
DreamLive: main entrypoint

Boots the asyncio event loop, wires the update channel, the content API
client and the configured screens together, and runs until SIGINT/SIGTERM.

Startup sequence:
  1. Load settings from environment
  2. Build the update channel (+ relay transport when configured) and registry
  3. Start the content API client
  4. Mount every enabled screen: initial load, then auto-refresh
  5. Wait for shutdown signal

Shutdown sequence:
  1. Unmount screens (cancel pending refreshes, unsubscribe)
  2. Stop the relay transport
  3. Close network connections
"""

from __future__ import annotations
import asyncio
import logging
import signal

import yaml
from dotenv import load_dotenv

# Load .env before importing settings (settings reads env vars at import time)
load_dotenv()

from bus.event_bus import UpdateChannel
from bus.ws_transport import WebSocketTransport
from config.settings import settings
from content_api.rest_client import ContentApiClient
from realtime.registry import SubscriptionRegistry
from screens.catalog import build_screens
from utils.logger import setup_logging

log = logging.getLogger(__name__)


def _load_screens_config(path: str) -> dict:
    with open(path) as f:
        return yaml.safe_load(f) or {}


async def run() -> None:
    setup_logging(settings.log_level)
    log.info("DreamLive client starting (api=%s)", settings.api_base_url)

    screens_cfg = _load_screens_config(settings.screens_config_path)

    # -----------------------------------------------------------------------
    # Update propagation
    # -----------------------------------------------------------------------
    channel = UpdateChannel()
    transport: WebSocketTransport | None = None
    if settings.realtime_relay_url:
        transport = WebSocketTransport(settings.realtime_relay_url)
        channel.add_transport(transport)
    registry = SubscriptionRegistry(channel)

    # -----------------------------------------------------------------------
    # Remote store
    # -----------------------------------------------------------------------
    client = ContentApiClient(
        base_url=settings.api_base_url,
        request_timeout_s=settings.request_timeout_s,
        max_retries=settings.max_retries,
        retry_backoff_s=settings.retry_backoff_s,
    )
    await client.startup()

    health = await client.health_check()
    if not health.ok:
        log.warning("Content API health check failed: %s", health.error)

    # -----------------------------------------------------------------------
    # Screens
    # -----------------------------------------------------------------------
    screens = build_screens(
        screens_cfg.get("screens", {}),
        client=client,
        registry=registry,
        debounce_s=settings.refresh_debounce_s,
        timeout_s=settings.refresh_timeout_s,
    )
    for screen in screens:
        await screen.mount()

    # -----------------------------------------------------------------------
    # Run until signaled
    # -----------------------------------------------------------------------
    shutdown_event = asyncio.Event()

    def _handle_signal(sig: signal.Signals) -> None:
        log.info("Received %s, initiating graceful shutdown", sig.name)
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _handle_signal, sig)

    tasks = []
    if transport is not None:
        tasks.append(asyncio.create_task(transport.run(), name="relay-transport"))
    log.info(
        "%d screen(s) live with %d subscription(s)",
        len(screens), registry.active_subscriptions,
    )

    await shutdown_event.wait()

    # -----------------------------------------------------------------------
    # Graceful shutdown
    # -----------------------------------------------------------------------
    log.info("Shutting down...")
    for screen in screens:
        screen.unmount()
    if transport is not None:
        await transport.shutdown()
        channel.remove_transport(transport)
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    await client.shutdown()
    log.info("DreamLive client stopped cleanly.")


def main() -> None:
    try:
        import uvloop  # type: ignore
        uvloop.run(run())
    except ImportError:
        asyncio.run(run())


if __name__ == "__main__":
    main()
