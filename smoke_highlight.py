"""
Smoke test: create one highlight on the configured backend and watch the
highlights screen pick it up through the update channel.

Usage:
    python smoke_highlight.py

Mounts a HighlightsScreen, creates a highlight through ContentAdmin (which
emits the update), waits for the debounced refresh and checks that the new
highlight is in the refreshed list. Point DREAMLIVE_API_URL at a development
backend; this writes real data.
"""

from __future__ import annotations
import asyncio
import sys
import time

from dotenv import load_dotenv
load_dotenv()

from bus.event_bus import UpdateChannel
from config.settings import settings
from content_api.admin import ContentAdmin
from content_api.rest_client import ContentApiClient
from realtime.emitter import UpdateEmitter
from realtime.registry import SubscriptionRegistry
from screens.catalog import HighlightsScreen


async def main() -> None:
    print(f"API base: {settings.api_base_url}\n")

    channel = UpdateChannel()
    registry = SubscriptionRegistry(channel)
    client = ContentApiClient(
        base_url=settings.api_base_url,
        request_timeout_s=settings.request_timeout_s,
        max_retries=settings.max_retries,
        retry_backoff_s=settings.retry_backoff_s,
    )
    await client.startup()
    admin = ContentAdmin(client, UpdateEmitter(channel))
    screen = HighlightsScreen(
        client, registry,
        debounce_s=settings.refresh_debounce_s,
        timeout_s=settings.refresh_timeout_s,
    )

    try:
        await screen.mount()
        if screen.error:
            print(f"Initial load failed: {screen.error}")
            sys.exit(1)
        print(f"Highlights on screen: {len(screen.items)}")

        title = f"Smoke highlight {int(time.time())}"
        confirm = input(f'Create highlight "{title}"? [y/N] ').strip().lower()
        if confirm != "y":
            print("Aborted.")
            return

        loads_before = screen.load_count
        resp = await admin.create_highlight({
            "title": title,
            "youtubeUrl": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "videoId": "dQw4w9WgXcQ",
            "category": "Sports",
            "sport": "Football",
        })
        if not resp.ok:
            print(f"Create FAILED: {resp.error} (status={resp.status})")
            sys.exit(1)
        print("Highlight created, waiting for auto-refresh...")

        deadline = time.monotonic() + settings.refresh_debounce_s + settings.refresh_timeout_s + 1
        while screen.load_count == loads_before and time.monotonic() < deadline:
            await asyncio.sleep(0.1)

        titles = [h.get("title") for h in screen.items]
        if title in titles:
            print(f"Auto-refresh OK: {len(screen.items)} highlights, new one included")
        else:
            print(f"Auto-refresh did NOT show the new highlight (error={screen.error})")
            sys.exit(1)
    finally:
        screen.unmount()
        await client.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
