"""
Concrete screens of the app: home feed, leagues, videos, highlights and the
admin dashboard.
"""

from __future__ import annotations
import asyncio
import logging
from abc import abstractmethod
from typing import Any, Mapping

from content_api.rest_client import ContentApiClient
from models.responses import ApiResponse
from realtime.coordinator import DEFAULT_DEBOUNCE_S, DEFAULT_TIMEOUT_S
from realtime.registry import SubscriptionRegistry
from screens.base import Screen

log = logging.getLogger(__name__)


def _first_failure(*responses: ApiResponse) -> ApiResponse:
    for resp in responses:
        if not resp.ok:
            return resp
    return responses[-1]


class HomeScreen(Screen):
    """Featured video, latest videos and matches grouped by status."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.featured_video: dict | None = None
        self.videos: list[dict] = []
        self.matches: list[dict] = []

    @property
    def name(self) -> str:
        return "home"

    @property
    def live_matches(self) -> list[dict]:
        return [m for m in self.matches if m.get("status") == "live"]

    @property
    def upcoming_matches(self) -> list[dict]:
        return [m for m in self.matches if m.get("status") == "upcoming"]

    @property
    def completed_matches(self) -> list[dict]:
        return [m for m in self.matches if m.get("status") == "completed"]

    async def load(self) -> ApiResponse:
        featured, videos, matches = await asyncio.gather(
            self._client.get_featured_video(),
            self._client.get_videos(),
            self._client.get_matches(),
        )
        if featured.ok:
            self.featured_video = featured.data
        if videos.ok:
            self.videos = list(videos.data or [])
        if matches.ok:
            self.matches = list(matches.data or [])
        resp = _first_failure(featured, videos, matches)
        self._loaded(resp)
        return resp


class _ListScreen(Screen):
    """Screen backed by a single list endpoint."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.items: list[dict] = []

    @abstractmethod
    async def _fetch(self) -> ApiResponse:
        ...

    async def load(self) -> ApiResponse:
        resp = await self._fetch()
        if resp.ok:
            self.items = list(resp.data or [])
        self._loaded(resp)
        return resp


class LeaguesScreen(_ListScreen):
    @property
    def name(self) -> str:
        return "leagues"

    async def _fetch(self) -> ApiResponse:
        return await self._client.get_leagues()


class VideosScreen(_ListScreen):
    @property
    def name(self) -> str:
        return "videos"

    async def _fetch(self) -> ApiResponse:
        return await self._client.get_videos()


class HighlightsScreen(_ListScreen):
    @property
    def name(self) -> str:
        return "highlights"

    async def _fetch(self) -> ApiResponse:
        return await self._client.get_highlights()


class AdminDashboardScreen(Screen):
    """
    Content counters for the admin. Auto-refresh is wired only while an admin
    session is active; flipping the session re-subscribes (stop, then start).
    """

    def __init__(self, *args: Any, authenticated: bool = False, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.authenticated = authenticated
        self.stats: dict = {}

    @property
    def name(self) -> str:
        return "admin"

    async def load(self) -> ApiResponse:
        resp = await self._client.get_admin_stats()
        if resp.ok:
            self.stats = dict(resp.data or {})
        self._loaded(resp)
        return resp

    async def mount(self) -> None:
        if not self.authenticated:
            self._mounted = True
            log.info("Skipping %s auto-refresh setup: not authenticated", self.name)
            return
        await super().mount()

    async def set_authenticated(self, authenticated: bool) -> None:
        """Flip the admin session. Only a mounted dashboard (re)subscribes."""
        if authenticated == self.authenticated:
            return
        self.authenticated = authenticated
        self.coordinator.stop()
        if not authenticated:
            self.stats = {}
            return
        if self._mounted:
            self.coordinator.start(self.load)
            await self.load()


SCREENS: dict[str, type[Screen]] = {
    "home": HomeScreen,
    "leagues": LeaguesScreen,
    "videos": VideosScreen,
    "highlights": HighlightsScreen,
    "admin": AdminDashboardScreen,
}


def build_screens(
    config: Mapping[str, Mapping[str, Any] | None],
    client: ContentApiClient,
    registry: SubscriptionRegistry,
    debounce_s: float = DEFAULT_DEBOUNCE_S,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> list[Screen]:
    """
    Build the enabled screens from the `screens:` section of the screens
    config. Per-screen debounce_s/timeout_s override the defaults.
    """
    screens: list[Screen] = []
    for name, options in config.items():
        options = dict(options or {})
        if not options.get("enabled", True):
            continue
        try:
            screen_cls = SCREENS[name]
        except KeyError:
            raise ValueError(f"Unknown screen {name!r}; expected one of {sorted(SCREENS)}") from None
        kwargs: dict[str, Any] = {
            "debounce_s": float(options.get("debounce_s", debounce_s)),
            "timeout_s": float(options.get("timeout_s", timeout_s)),
        }
        if screen_cls is AdminDashboardScreen:
            kwargs["authenticated"] = bool(options.get("authenticated", False))
        screens.append(screen_cls(client, registry, **kwargs))
    return screens
