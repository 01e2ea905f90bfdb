"""
Shared fixtures: a fresh update channel per test and an in-memory content
backend served over real HTTP by aiohttp's TestServer.
"""

from __future__ import annotations
import asyncio
from collections import Counter

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from bus.event_bus import UpdateChannel
from content_api.rest_client import ContentApiClient
from realtime.emitter import UpdateEmitter
from realtime.registry import SubscriptionRegistry

COLLECTIONS = ("matches", "leagues", "videos", "highlights", "featured-images")


class FakeContentStore:
    """In-memory stand-in for the content backend."""

    def __init__(self) -> None:
        self.collections: dict[str, list[dict]] = {name: [] for name in COLLECTIONS}
        self.featured_video: dict | None = None
        self.hits: Counter[tuple[str, str]] = Counter()
        self.fail_next = 0  # number of upcoming requests answered with 503
        self.list_delay_s = 0.0  # list responses are snapshotted, then held this long
        self._next_id = 1

    def add(self, collection: str, item: dict) -> dict:
        saved = {**item, "_id": str(self._next_id)}
        self._next_id += 1
        self.collections[collection].append(saved)
        return saved

    def find(self, collection: str, item_id: str) -> dict | None:
        for item in self.collections[collection]:
            if item["_id"] == item_id:
                return item
        return None


def make_app(store: FakeContentStore) -> web.Application:
    @web.middleware
    async def track(request: web.Request, handler):
        store.hits[(request.method, request.path)] += 1
        if store.fail_next > 0:
            store.fail_next -= 1
            return web.Response(status=503, text="upstream down")
        return await handler(request)

    def _collection(request: web.Request) -> str:
        name = request.match_info["collection"]
        if name not in store.collections:
            raise web.HTTPNotFound(text=f"Unknown collection {name}")
        return name

    def _item(request: web.Request) -> tuple[str, dict]:
        name = _collection(request)
        item = store.find(name, request.match_info["item_id"])
        if item is None:
            raise web.HTTPNotFound(text="Not found")
        return name, item

    async def health(request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})

    async def get_featured(request: web.Request) -> web.Response:
        return web.json_response(store.featured_video)

    async def set_featured(request: web.Request) -> web.Response:
        store.featured_video = await request.json()
        return web.json_response(store.featured_video)

    async def stats(request: web.Request) -> web.Response:
        matches = store.collections["matches"]
        return web.json_response({
            "totalMatches": len(matches),
            "liveMatches": sum(1 for m in matches if m.get("status") == "live"),
            "totalLeagues": len(store.collections["leagues"]),
            "totalVideos": len(store.collections["videos"]),
            "totalHighlights": len(store.collections["highlights"]),
        })

    async def list_items(request: web.Request) -> web.Response:
        items = list(store.collections[_collection(request)])
        if store.list_delay_s:
            await asyncio.sleep(store.list_delay_s)
        return web.json_response(items)

    async def create_item(request: web.Request) -> web.Response:
        name = _collection(request)
        body = await request.json()
        if not body:
            return web.Response(status=400, text="Missing request body")
        return web.json_response(store.add(name, body), status=201)

    async def get_item(request: web.Request) -> web.Response:
        _, item = _item(request)
        return web.json_response(item)

    async def update_item(request: web.Request) -> web.Response:
        _, item = _item(request)
        item.update(await request.json())
        return web.json_response(item)

    async def delete_item(request: web.Request) -> web.Response:
        name, item = _item(request)
        store.collections[name].remove(item)
        return web.json_response({"message": "deleted"})

    app = web.Application(middlewares=[track])
    app.router.add_get("/api/health", health)
    app.router.add_get("/api/featured-video", get_featured)
    app.router.add_post("/api/featured-video", set_featured)
    app.router.add_get("/api/admin/stats", stats)
    app.router.add_get("/api/{collection}", list_items)
    app.router.add_post("/api/{collection}", create_item)
    app.router.add_get("/api/{collection}/{item_id}", get_item)
    app.router.add_put("/api/{collection}/{item_id}", update_item)
    app.router.add_delete("/api/{collection}/{item_id}", delete_item)
    return app


@pytest.fixture
def store() -> FakeContentStore:
    return FakeContentStore()


@pytest_asyncio.fixture
async def api_server(store):
    server = TestServer(make_app(store))
    await server.start_server()
    yield server
    await server.close()


@pytest_asyncio.fixture
async def client(api_server):
    api = ContentApiClient(
        str(api_server.make_url("/api")),
        request_timeout_s=2,
        max_retries=2,
        retry_backoff_s=0,
    )
    await api.startup()
    yield api
    await api.shutdown()


@pytest.fixture
def channel() -> UpdateChannel:
    return UpdateChannel()


@pytest.fixture
def registry(channel) -> SubscriptionRegistry:
    return SubscriptionRegistry(channel)


@pytest.fixture
def emitter(channel) -> UpdateEmitter:
    return UpdateEmitter(channel)
