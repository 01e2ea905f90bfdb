"""
Auto-refresh coordinator.

Turns update events into reloads of one view's data:

    IDLE --event--> SCHEDULED --debounce--> RUNNING --settle/timeout--> IDLE

- Events arriving while SCHEDULED restart the debounce timer, so a burst
  produces a single reload.
- Events arriving while RUNNING are dropped. The reload in flight fetches
  current remote state, but a write that landed after its request went out
  stays invisible until the next event.
- A reload that outlives timeout_s is abandoned, not cancelled: its late
  result is discarded and the coordinator goes back to IDLE.
- Reload failures are logged and counted. Nothing is retried; the next event
  starts over from IDLE.
"""

from __future__ import annotations
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable

from models.responses import ApiResponse
from models.state import RefreshPhase, RefreshStats
from realtime.registry import SubscriptionRegistry, Unsubscribe
from utils.logger import current_view

log = logging.getLogger(__name__)

ReloadFn = Callable[[], Awaitable[Any]]

DEFAULT_DEBOUNCE_S = 0.3
DEFAULT_TIMEOUT_S = 8.0


class AutoRefreshCoordinator:
    """
    One per view. Usage:

        coordinator = AutoRefreshCoordinator(registry, name="highlights")
        coordinator.start(screen.load)     # on mount
        ...
        coordinator.stop()                 # on unmount

    When the meaning of "reload" changes, call start() again with the new
    function; it tears the old subscription down first.
    """

    def __init__(
        self,
        registry: SubscriptionRegistry,
        name: str = "view",
        debounce_s: float = DEFAULT_DEBOUNCE_S,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self._registry = registry
        self.name = name
        self._debounce_s = debounce_s
        self._timeout_s = timeout_s
        self._reload: ReloadFn | None = None
        self._unsubscribe: Unsubscribe | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._current: asyncio.Task | None = None
        self._is_refreshing = False
        # Bumped on every start()/stop(); a reload from an older generation
        # must not touch the current state.
        self._generation = 0
        self.stats = RefreshStats()

    @property
    def is_refreshing(self) -> bool:
        return self._is_refreshing

    @property
    def is_active(self) -> bool:
        return self._unsubscribe is not None

    @property
    def phase(self) -> RefreshPhase:
        if self._is_refreshing:
            return RefreshPhase.RUNNING
        if self._timer is not None:
            return RefreshPhase.SCHEDULED
        return RefreshPhase.IDLE

    def start(self, reload: ReloadFn) -> None:
        """Subscribe against reload. Must be called from the running event loop."""
        if self._unsubscribe is not None:
            self.stop()
        self._loop = asyncio.get_running_loop()
        self._reload = reload
        self._generation += 1
        self._unsubscribe = self._registry.subscribe_to_updates(self._handle_update)
        log.debug("%s auto-refresh started (debounce=%.2fs timeout=%.1fs)",
                  self.name, self._debounce_s, self._timeout_s)

    def stop(self) -> None:
        """Cancel the pending reload, then unsubscribe. An in-flight reload is left to finish unobserved."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._current is not None and not self._current.done():
            log.debug("%s stopped with a reload in flight; its result will be discarded", self.name)
        self._reload = None
        self._current = None
        self._is_refreshing = False
        self._generation += 1

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    def _handle_update(self, event: Any) -> None:
        """Channel callback. Only schedules; never awaits."""
        if self._reload is None or self._loop is None:
            return
        kind = f"{getattr(event, 'type', '?')}.{getattr(event, 'action', '?')}"
        if self._is_refreshing:
            self.stats.dropped += 1
            log.info("%s refresh already running, dropping %s", self.name, kind)
            return
        if self._timer is not None:
            self._timer.cancel()
            self.stats.coalesced += 1
        log.debug("%s scheduling refresh in %.2fs due to %s", self.name, self._debounce_s, kind)
        self._timer = self._loop.call_later(self._debounce_s, self._fire, self._generation)

    def _fire(self, generation: int) -> None:
        self._timer = None
        reload = self._reload
        if generation != self._generation or reload is None or self._loop is None:
            return
        self._is_refreshing = True
        self._current = self._loop.create_task(
            self._refresh(reload, generation), name=f"refresh-{self.name}",
        )

    async def _refresh(self, reload: ReloadFn, generation: int) -> None:
        # Task-local; the reload task inherits it, so its API logs carry the view name.
        current_view.set(self.name)
        self.stats.runs += 1
        started = time.monotonic()
        try:
            try:
                reload_task = asyncio.ensure_future(reload())
            except Exception:
                self.stats.failed += 1
                log.exception("%s auto-refresh could not start", self.name)
                return

            done, _ = await asyncio.wait({reload_task}, timeout=self._timeout_s)
            if not done:
                self.stats.timed_out += 1
                log.warning("%s auto-refresh timed out after %.1fs; abandoning it", self.name, self._timeout_s)
                reload_task.add_done_callback(self._discard_late_result)
                return
            self._record_outcome(reload_task, time.monotonic() - started)
        finally:
            if generation == self._generation:
                self._is_refreshing = False
                self._current = None

    def _record_outcome(self, task: asyncio.Future, elapsed_s: float) -> None:
        if task.cancelled():
            self.stats.failed += 1
            log.warning("%s auto-refresh was cancelled", self.name)
            return
        exc = task.exception()
        if exc is not None:
            self.stats.failed += 1
            log.error("Error during %s auto-refresh: %s", self.name, exc, exc_info=exc)
            return
        result = task.result()
        if isinstance(result, ApiResponse) and not result.ok:
            self.stats.failed += 1
            log.warning("%s auto-refresh failed: %s (status=%d)", self.name, result.error, result.status)
            return
        self.stats.succeeded += 1
        log.info("%s auto-refreshed in %.0fms", self.name, elapsed_s * 1000)

    def _discard_late_result(self, task: asyncio.Future) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        log.debug("%s abandoned refresh settled late (%s); result discarded",
                  self.name, "error" if exc else "ok")
