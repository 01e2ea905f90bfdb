"""
Admin write -> update event -> debounced reload -> screen shows new state,
against the in-memory backend over real HTTP.
"""

import asyncio

import pytest

from content_api.admin import ContentAdmin
from screens.catalog import AdminDashboardScreen, HighlightsScreen, HomeScreen, build_screens

DEBOUNCE = 0.05
TIMEOUT = 1.0


async def test_created_highlight_reaches_the_highlights_screen(client, registry, emitter, store):
    store.add("highlights", {"title": "Old"})
    screen = HighlightsScreen(client, registry, debounce_s=DEBOUNCE, timeout_s=TIMEOUT)
    await screen.mount()
    assert [h["title"] for h in screen.items] == ["Old"]
    assert store.hits[("GET", "/api/highlights")] == 1

    admin = ContentAdmin(client, emitter)
    resp = await admin.create_highlight({"title": "X", "videoId": "dQw4w9WgXcQ", "sport": "Football"})
    assert resp.ok

    await asyncio.sleep(DEBOUNCE + 0.2)
    assert store.hits[("GET", "/api/highlights")] == 2
    assert [h["title"] for h in screen.items] == ["Old", "X"]
    assert screen.error is None
    screen.unmount()


async def test_every_mounted_screen_reloads_once_per_burst(client, registry, emitter, store):
    # wide window: both writes must land inside one debounce period
    debounce = 0.3
    home = HomeScreen(client, registry, debounce_s=debounce, timeout_s=TIMEOUT)
    highlights = HighlightsScreen(client, registry, debounce_s=debounce, timeout_s=TIMEOUT)
    await home.mount()
    await highlights.mount()

    admin = ContentAdmin(client, emitter)
    await admin.create_match({"team1": "A", "team2": "B", "status": "live"})
    await admin.create_match({"team1": "C", "team2": "D", "status": "upcoming"})

    await asyncio.sleep(debounce + 0.3)
    assert store.hits[("GET", "/api/matches")] == 2      # mount + one coalesced reload
    assert store.hits[("GET", "/api/highlights")] == 2   # irrelevant change, reloaded anyway
    assert [m["team1"] for m in home.live_matches] == ["A"]
    assert [m["team1"] for m in home.upcoming_matches] == ["C"]

    home.unmount()
    highlights.unmount()
    assert registry.active_subscriptions == 0


async def test_write_during_first_load_triggers_a_reload(client, registry, emitter, store):
    store.list_delay_s = 0.1
    screen = HighlightsScreen(client, registry, debounce_s=DEBOUNCE, timeout_s=TIMEOUT)
    mounting = asyncio.create_task(screen.mount())

    await asyncio.sleep(0.03)
    admin = ContentAdmin(client, emitter)
    assert (await admin.create_highlight({"title": "X"})).ok

    await mounting
    await asyncio.sleep(0.3)
    assert store.hits[("GET", "/api/highlights")] == 2
    assert [h["title"] for h in screen.items] == ["X"]
    screen.unmount()


async def test_unmounted_screen_does_not_reload(client, registry, emitter, store):
    screen = HighlightsScreen(client, registry, debounce_s=DEBOUNCE, timeout_s=TIMEOUT)
    await screen.mount()

    emitter.emit("highlight", "delete", {"id": "1"})
    screen.unmount()
    await asyncio.sleep(DEBOUNCE * 4)

    assert store.hits[("GET", "/api/highlights")] == 1


async def test_failed_reload_keeps_previous_data(client, registry, emitter, store):
    store.add("highlights", {"title": "Kept"})
    screen = HighlightsScreen(client, registry, debounce_s=DEBOUNCE, timeout_s=TIMEOUT)
    await screen.mount()

    store.fail_next = 10
    emitter.emit("highlight", "update", {"_id": "1"})
    await asyncio.sleep(DEBOUNCE + 0.3)

    assert [h["title"] for h in screen.items] == ["Kept"]
    assert screen.error.startswith("HTTP 503")
    assert screen.coordinator.stats.failed == 1
    screen.unmount()


async def test_admin_dashboard_refreshes_only_while_authenticated(client, registry, emitter, store):
    dashboard = AdminDashboardScreen(client, registry, debounce_s=DEBOUNCE, timeout_s=TIMEOUT)
    await dashboard.mount()
    assert dashboard.is_mounted
    assert not dashboard.coordinator.is_active
    assert store.hits[("GET", "/api/admin/stats")] == 0

    await dashboard.set_authenticated(True)
    assert dashboard.coordinator.is_active
    assert dashboard.stats["totalVideos"] == 0

    store.add("videos", {"title": "Recap"})
    emitter.emit("video", "create", {"title": "Recap"})
    await asyncio.sleep(DEBOUNCE + 0.2)
    assert dashboard.stats["totalVideos"] == 1

    await dashboard.set_authenticated(False)
    assert not dashboard.coordinator.is_active
    assert dashboard.stats == {}


async def test_dashboard_login_after_unmount_does_not_subscribe(client, registry, emitter, store):
    dashboard = AdminDashboardScreen(client, registry, debounce_s=DEBOUNCE, timeout_s=TIMEOUT)
    await dashboard.mount()
    dashboard.unmount()

    await dashboard.set_authenticated(True)
    assert not dashboard.is_mounted
    assert not dashboard.coordinator.is_active
    assert registry.active_subscriptions == 0

    emitter.emit("video", "create", {"title": "Recap"})
    await asyncio.sleep(DEBOUNCE + 0.1)
    assert store.hits[("GET", "/api/admin/stats")] == 0


async def test_build_screens_honours_config(client, registry):
    screens = build_screens(
        {
            "home": {"enabled": True},
            "leagues": {"enabled": False},
            "highlights": {"debounce_s": 0.5},
            "admin": {"authenticated": True},
        },
        client=client,
        registry=registry,
    )
    assert [s.name for s in screens] == ["home", "highlights", "admin"]
    assert screens[2].authenticated is True


async def test_build_screens_rejects_unknown_screen(client, registry):
    with pytest.raises(ValueError):
        build_screens({"standings": None}, client=client, registry=registry)
