"""Spotify Web API implementation of the playback source port."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from party_queue.application.interfaces.playback_source import (
    PlaybackSnapshot,
    PlaybackSource,
    UpcomingQueue,
)
from party_queue.domain.queue.entities import Album, AlbumImage, Artist, Device, TrackInfo
from party_queue.domain.shared.constants import SpotifyEndpoints
from party_queue.domain.shared.datetime_utils import UtcDateTime
from party_queue.domain.shared.exceptions import PlaybackSourceError
from party_queue.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ...config.settings import SpotifySettings

logger = logging.getLogger(__name__)


class SpotifyPlaybackSource(PlaybackSource):
    """Reads the active player and upcoming queue of a Spotify account."""

    def __init__(
        self,
        settings: SpotifySettings,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.timeout_seconds,
        )

    async def get_now_playing(self) -> PlaybackSnapshot | None:
        payload = await self._request("GET", SpotifyEndpoints.PLAYER)
        if payload is None:
            logger.debug(LogTemplates.SPOTIFY_NOTHING_PLAYING)
            return None

        item = payload.get("item")
        if not item or item.get("type", "track") != "track":
            # Podcasts and ads have no track to reconcile against.
            logger.debug(LogTemplates.SPOTIFY_NOTHING_PLAYING)
            return None

        try:
            return PlaybackSnapshot(
                track=parse_track(item),
                progress_ms=payload.get("progress_ms") or 0,
                is_playing=bool(payload.get("is_playing")),
                timestamp=self._parse_timestamp(payload.get("timestamp")),
                device=parse_device(payload.get("device") or {}),
                shuffle_state=payload.get("shuffle_state"),
                repeat_state=payload.get("repeat_state"),
            )
        except (PydanticValidationError, KeyError, TypeError) as e:
            raise PlaybackSourceError(
                ErrorMessages.PLAYBACK_SOURCE_BAD_PAYLOAD.format(path=SpotifyEndpoints.PLAYER)
            ) from e

    async def get_upcoming_queue(self) -> UpcomingQueue:
        payload = await self._request("GET", SpotifyEndpoints.QUEUE)
        if payload is None:
            return UpcomingQueue()

        try:
            current = payload.get("currently_playing")
            return UpcomingQueue(
                currently_playing=parse_track(current) if _is_track(current) else None,
                queue=tuple(
                    parse_track(item) for item in payload.get("queue") or [] if _is_track(item)
                ),
            )
        except (PydanticValidationError, KeyError, TypeError) as e:
            raise PlaybackSourceError(
                ErrorMessages.PLAYBACK_SOURCE_BAD_PAYLOAD.format(path=SpotifyEndpoints.QUEUE)
            ) from e

    async def enqueue(self, track_uri: str) -> bool:
        try:
            await self._request("POST", SpotifyEndpoints.QUEUE, params={"uri": track_uri})
        except PlaybackSourceError as e:
            # 404 means there is no active device to queue onto.
            if e.status_code == 404:
                return False
            raise
        return True

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any] | None:
        headers = {"Authorization": f"Bearer {self._settings.access_token.get_secret_value()}"}

        try:
            response = await self._client.request(method, path, headers=headers, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(LogTemplates.SPOTIFY_REQUEST_FAILED, method, path, f"HTTP {status}")
            raise PlaybackSourceError(
                ErrorMessages.PLAYBACK_SOURCE_HTTP_ERROR.format(status=status, path=path),
                status_code=status,
            ) from e
        except httpx.HTTPError as e:
            logger.error(LogTemplates.SPOTIFY_REQUEST_FAILED, method, path, e)
            raise PlaybackSourceError(
                ErrorMessages.PLAYBACK_SOURCE_UNREACHABLE.format(path=path, error=e)
            ) from e

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise PlaybackSourceError(
                ErrorMessages.PLAYBACK_SOURCE_BAD_PAYLOAD.format(path=path),
                status_code=response.status_code,
            ) from e

    @staticmethod
    def _parse_timestamp(value: Any) -> datetime:
        if value is None:
            return UtcDateTime.now().dt
        return UtcDateTime.from_unix_millis(int(value)).dt


def _is_track(item: Any) -> bool:
    return isinstance(item, dict) and item.get("type", "track") == "track" and bool(item.get("id"))


def _external_url(obj: dict[str, Any]) -> str:
    return (obj.get("external_urls") or {}).get("spotify", "")


def parse_artist(data: dict[str, Any]) -> Artist:
    return Artist(
        id=data.get("id") or "",
        name=data.get("name") or "",
        uri=data.get("uri") or "",
        href=data.get("href") or "",
        external_url=_external_url(data),
    )


def parse_album(data: dict[str, Any]) -> Album:
    return Album(
        id=data.get("id") or "",
        name=data.get("name") or "",
        album_type=data.get("album_type") or "album",
        uri=data.get("uri") or "",
        href=data.get("href") or "",
        external_url=_external_url(data),
        release_date=data.get("release_date") or "",
        total_tracks=data.get("total_tracks") or 0,
        images=tuple(
            AlbumImage(url=img["url"], height=img.get("height"), width=img.get("width"))
            for img in data.get("images") or []
        ),
    )


def parse_track(data: dict[str, Any]) -> TrackInfo:
    """Map a Spotify track object to ``TrackInfo``."""
    album = data.get("album")
    return TrackInfo(
        spotify_id=data["id"],
        name=data["name"],
        uri=data["uri"],
        href=data.get("href") or "",
        external_url=_external_url(data),
        duration_ms=data.get("duration_ms") or 0,
        explicit=bool(data.get("explicit")),
        popularity=data.get("popularity"),
        preview_url=data.get("preview_url"),
        track_number=data.get("track_number"),
        disc_number=data.get("disc_number"),
        is_local=data.get("is_local"),
        is_playable=data.get("is_playable"),
        artists=tuple(parse_artist(a) for a in data.get("artists") or []),
        album=parse_album(album) if album else None,
    )


def parse_device(data: dict[str, Any]) -> Device:
    return Device(
        id=data.get("id") or "",
        name=data.get("name") or "",
        type=data.get("type") or "",
        is_active=bool(data.get("is_active")),
        volume_percent=data.get("volume_percent") or 0,
    )
