"""
Abstract interface for headless views.

A Screen owns the data one UI unit displays and the AutoRefreshCoordinator
that keeps it current. Rendering is someone else's job; a screen only
exposes the last successfully loaded state.
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod

from content_api.rest_client import ContentApiClient
from models.events import now_ms
from models.responses import ApiResponse
from realtime.coordinator import DEFAULT_DEBOUNCE_S, DEFAULT_TIMEOUT_S, AutoRefreshCoordinator
from realtime.registry import SubscriptionRegistry

log = logging.getLogger(__name__)


class Screen(ABC):
    """
    Base class for all screens.

    Concrete implementations:
        - HomeScreen, LeaguesScreen, VideosScreen, HighlightsScreen
        - AdminDashboardScreen (refreshes only while authenticated)
    """

    def __init__(
        self,
        client: ContentApiClient,
        registry: SubscriptionRegistry,
        debounce_s: float = DEFAULT_DEBOUNCE_S,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self._client = client
        self.coordinator = AutoRefreshCoordinator(
            registry, name=self.name, debounce_s=debounce_s, timeout_s=timeout_s,
        )
        self.error: str | None = None
        self.loaded_at_ms: int | None = None
        self.load_count = 0
        self._mounted = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable screen name for logging."""
        ...

    @abstractmethod
    async def load(self) -> ApiResponse | None:
        """
        Fetch this screen's data from the remote store.
        On failure keep the previous data, set self.error and return the
        failing response so the coordinator can log it.
        """
        ...

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    async def mount(self) -> None:
        # Subscribe before the first fetch so a write landing mid-load still
        # schedules a reload.
        self._mounted = True
        self.coordinator.start(self.load)
        await self.load()
        log.info("%s mounted", self.name)

    def unmount(self) -> None:
        self._mounted = False
        self.coordinator.stop()
        log.info("%s unmounted (refresh stats: %s)", self.name, self.coordinator.stats.as_dict())

    def _loaded(self, resp: ApiResponse) -> None:
        self.load_count += 1
        if resp.ok:
            self.error = None
            self.loaded_at_ms = now_ms()
        else:
            self.error = resp.error
