"""
Admin write path.

Each mutation is exactly one REST call followed, only if the remote store
accepted it, by exactly one update event for the primary entity. Secondary
effects (e.g. a league's match count changing after a match delete) are not
announced separately.
"""

from __future__ import annotations
import logging
from typing import Any, Awaitable

from content_api.rest_client import ContentApiClient
from models.responses import ApiResponse
from realtime.emitter import UpdateEmitter

log = logging.getLogger(__name__)


class ContentAdmin:
    def __init__(self, client: ContentApiClient, emitter: UpdateEmitter) -> None:
        self._client = client
        self._emitter = emitter

    async def _commit(
        self,
        entity: str,
        action: str,
        call: Awaitable[ApiResponse],
        deleted_id: str | None = None,
    ) -> ApiResponse:
        resp = await call
        if not resp.ok:
            log.warning("Admin %s %s rejected: %s (status=%d)", action, entity, resp.error, resp.status)
            return resp
        data: Any = {"id": deleted_id} if action == "delete" else resp.data
        self._emitter.emit(entity, action, data)
        return resp

    # Matches

    async def create_match(self, data: dict) -> ApiResponse:
        return await self._commit("match", "create", self._client.create_match(data))

    async def update_match(self, match_id: str, data: dict) -> ApiResponse:
        return await self._commit("match", "update", self._client.update_match(match_id, data))

    async def delete_match(self, match_id: str) -> ApiResponse:
        return await self._commit("match", "delete", self._client.delete_match(match_id), match_id)

    # Leagues

    async def create_league(self, data: dict) -> ApiResponse:
        return await self._commit("league", "create", self._client.create_league(data))

    async def update_league(self, league_id: str, data: dict) -> ApiResponse:
        return await self._commit("league", "update", self._client.update_league(league_id, data))

    async def delete_league(self, league_id: str) -> ApiResponse:
        return await self._commit("league", "delete", self._client.delete_league(league_id), league_id)

    # Videos

    async def create_video(self, data: dict) -> ApiResponse:
        return await self._commit("video", "create", self._client.create_video(data))

    async def update_video(self, video_id: str, data: dict) -> ApiResponse:
        return await self._commit("video", "update", self._client.update_video(video_id, data))

    async def delete_video(self, video_id: str) -> ApiResponse:
        return await self._commit("video", "delete", self._client.delete_video(video_id), video_id)

    # Highlights

    async def create_highlight(self, data: dict) -> ApiResponse:
        return await self._commit("highlight", "create", self._client.create_highlight(data))

    async def update_highlight(self, highlight_id: str, data: dict) -> ApiResponse:
        return await self._commit(
            "highlight", "update", self._client.update_highlight(highlight_id, data),
        )

    async def delete_highlight(self, highlight_id: str) -> ApiResponse:
        return await self._commit(
            "highlight", "delete", self._client.delete_highlight(highlight_id), highlight_id,
        )

    # Featured content: the video slot and the image carousel share one event type

    async def update_featured_video(self, data: dict) -> ApiResponse:
        return await self._commit("featured", "update", self._client.update_featured_video(data))

    async def create_featured_image(self, data: dict) -> ApiResponse:
        return await self._commit("featured", "create", self._client.create_featured_image(data))

    async def update_featured_image(self, image_id: str, data: dict) -> ApiResponse:
        return await self._commit(
            "featured", "update", self._client.update_featured_image(image_id, data),
        )

    async def delete_featured_image(self, image_id: str) -> ApiResponse:
        return await self._commit(
            "featured", "delete", self._client.delete_featured_image(image_id), image_id,
        )
