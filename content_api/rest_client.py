"""
DreamLive content REST client.

Single aiohttp.ClientSession shared for all requests.
Every call returns an ApiResponse; connectivity problems come back as an
error string, never as an exception, so callers (and the auto-refresh
coordinator) always have a clean value to inspect and log.

Retry policy:
  - 4xx: returned immediately, never retried
  - 5xx, timeouts, connection errors: retried max_retries times with
    exponential backoff (retry_backoff_s * 2**attempt)
"""

from __future__ import annotations
import asyncio
import logging
import time
from typing import Any

import aiohttp

from models.responses import ApiResponse

log = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Request timed out. Please check your internet connection."
CONNECT_MESSAGE = "Unable to connect to server. Please check your internet connection."
GENERIC_MESSAGE = "Network error occurred"


class _ServerError(Exception):
    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"HTTP {status}: {body}")
        self.status = status


class ContentApiClient:
    """
    Async REST client for the content backend.

    Call startup() before use and shutdown() when done.
    """

    def __init__(
        self,
        base_url: str,
        request_timeout_s: float = 10,
        max_retries: int = 2,
        retry_backoff_s: float = 1.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._request_timeout_s = request_timeout_s
        self._max_retries = max_retries
        self._retry_backoff_s = retry_backoff_s
        self._session: aiohttp.ClientSession | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def startup(self) -> None:
        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self._request_timeout_s),
            connector=aiohttp.TCPConnector(limit=10, keepalive_timeout=30),
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )
        log.info("Content API client ready for %s", self._base_url)

    async def shutdown(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    async def _request(self, method: str, path: str, json_body: Any = None) -> ApiResponse:
        assert self._session, "Call startup() first"
        url = self._url(path)
        last_exc: BaseException | None = None

        for attempt in range(self._max_retries + 1):
            sent_at = time.monotonic_ns()
            try:
                async with self._session.request(method, url, json=json_body) as resp:
                    if resp.status >= 400:
                        body = await resp.text()
                        if resp.status < 500:
                            log.warning("API %s %s -> %d: %.200s", method, path, resp.status, body)
                            return ApiResponse(status=resp.status, error=body or f"HTTP {resp.status}")
                        raise _ServerError(resp.status, body)
                    data = await resp.json(content_type=None)
                latency_ms = (time.monotonic_ns() - sent_at) / 1_000_000
                log.debug("API %s %s -> %d in %.1fms", method, path, resp.status, latency_ms)
                return ApiResponse(status=resp.status, data=data)
            except (aiohttp.ClientError, asyncio.TimeoutError, _ServerError, ValueError) as exc:
                last_exc = exc
                log.warning(
                    "API %s %s attempt %d/%d failed: %s",
                    method, path, attempt + 1, self._max_retries + 1, str(exc) or type(exc).__name__,
                )
                if attempt == self._max_retries:
                    break
                await asyncio.sleep(self._retry_backoff_s * 2 ** attempt)

        log.error("All API attempts failed for %s %s: %s", method, path, last_exc)
        return self._failure(last_exc)

    @staticmethod
    def _failure(exc: BaseException | None) -> ApiResponse:
        if isinstance(exc, _ServerError):
            return ApiResponse(status=exc.status, error=str(exc))
        if isinstance(exc, asyncio.TimeoutError):
            return ApiResponse(status=0, error=TIMEOUT_MESSAGE)
        if isinstance(exc, aiohttp.ClientConnectionError):
            return ApiResponse(status=0, error=CONNECT_MESSAGE)
        return ApiResponse(status=0, error=GENERIC_MESSAGE)

    # ------------------------------------------------------------------
    # Public API methods
    # ------------------------------------------------------------------

    async def health_check(self) -> ApiResponse:
        return await self._request("GET", "/health")

    # Matches

    async def get_matches(self) -> ApiResponse:
        return await self._request("GET", "/matches")

    async def get_match(self, match_id: str) -> ApiResponse:
        return await self._request("GET", f"/matches/{match_id}")

    async def create_match(self, data: dict) -> ApiResponse:
        return await self._request("POST", "/matches", json_body=data)

    async def update_match(self, match_id: str, data: dict) -> ApiResponse:
        return await self._request("PUT", f"/matches/{match_id}", json_body=data)

    async def delete_match(self, match_id: str) -> ApiResponse:
        return await self._request("DELETE", f"/matches/{match_id}")

    # Leagues

    async def get_leagues(self) -> ApiResponse:
        return await self._request("GET", "/leagues")

    async def get_league(self, league_id: str) -> ApiResponse:
        return await self._request("GET", f"/leagues/{league_id}")

    async def get_league_matches(self, league_id: str) -> ApiResponse:
        return await self._request("GET", f"/leagues/{league_id}/matches")

    async def create_league(self, data: dict) -> ApiResponse:
        return await self._request("POST", "/leagues", json_body=data)

    async def update_league(self, league_id: str, data: dict) -> ApiResponse:
        return await self._request("PUT", f"/leagues/{league_id}", json_body=data)

    async def delete_league(self, league_id: str) -> ApiResponse:
        return await self._request("DELETE", f"/leagues/{league_id}")

    # Videos

    async def get_videos(self) -> ApiResponse:
        return await self._request("GET", "/videos")

    async def get_video(self, video_id: str) -> ApiResponse:
        return await self._request("GET", f"/videos/{video_id}")

    async def create_video(self, data: dict) -> ApiResponse:
        return await self._request("POST", "/videos", json_body=data)

    async def update_video(self, video_id: str, data: dict) -> ApiResponse:
        return await self._request("PUT", f"/videos/{video_id}", json_body=data)

    async def delete_video(self, video_id: str) -> ApiResponse:
        return await self._request("DELETE", f"/videos/{video_id}")

    # Highlights

    async def get_highlights(self) -> ApiResponse:
        return await self._request("GET", "/highlights")

    async def get_highlight(self, highlight_id: str) -> ApiResponse:
        return await self._request("GET", f"/highlights/{highlight_id}")

    async def create_highlight(self, data: dict) -> ApiResponse:
        return await self._request("POST", "/highlights", json_body=data)

    async def update_highlight(self, highlight_id: str, data: dict) -> ApiResponse:
        return await self._request("PUT", f"/highlights/{highlight_id}", json_body=data)

    async def delete_highlight(self, highlight_id: str) -> ApiResponse:
        return await self._request("DELETE", f"/highlights/{highlight_id}")

    # Featured content

    async def get_featured_video(self) -> ApiResponse:
        return await self._request("GET", "/featured-video")

    async def update_featured_video(self, data: dict) -> ApiResponse:
        return await self._request("POST", "/featured-video", json_body=data)

    async def get_featured_images(self) -> ApiResponse:
        return await self._request("GET", "/featured-images")

    async def create_featured_image(self, data: dict) -> ApiResponse:
        return await self._request("POST", "/featured-images", json_body=data)

    async def update_featured_image(self, image_id: str, data: dict) -> ApiResponse:
        return await self._request("PUT", f"/featured-images/{image_id}", json_body=data)

    async def delete_featured_image(self, image_id: str) -> ApiResponse:
        return await self._request("DELETE", f"/featured-images/{image_id}")

    # Admin

    async def get_admin_stats(self) -> ApiResponse:
        return await self._request("GET", "/admin/stats")
