"""Tests for the Spotify playback source adapter."""

from __future__ import annotations

import httpx
import pytest
from pydantic import SecretStr

from party_queue.config.settings import SpotifySettings
from party_queue.domain.shared.exceptions import PlaybackSourceError
from party_queue.infrastructure.spotify.playback_source import (
    SpotifyPlaybackSource,
    parse_track,
)

BASE_URL = "https://api.spotify.test/v1"


def _track_json(spotify_id: str = "4uLU6hMCjMI75M1A2tKUQC", **overrides) -> dict:
    data = {
        "id": spotify_id,
        "type": "track",
        "name": "Never Gonna Give You Up",
        "uri": f"spotify:track:{spotify_id}",
        "href": f"{BASE_URL}/tracks/{spotify_id}",
        "external_urls": {"spotify": f"https://open.spotify.com/track/{spotify_id}"},
        "duration_ms": 213_573,
        "explicit": False,
        "popularity": 77,
        "track_number": 1,
        "disc_number": 1,
        "artists": [{"id": "0gxyHStUsqpMadRV0Di1Qt", "name": "Rick Astley"}],
        "album": {
            "id": "6XhjNHCyCDyyGJRM5mg40G",
            "name": "Whenever You Need Somebody",
            "album_type": "album",
            "images": [{"url": "https://i.scdn.co/image/abc", "height": 640, "width": 640}],
            "total_tracks": 10,
        },
    }
    data.update(overrides)
    return data


def _source(handler) -> tuple[SpotifyPlaybackSource, httpx.AsyncClient]:
    settings = SpotifySettings(access_token=SecretStr("token-123"), api_base_url=BASE_URL)
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    return SpotifyPlaybackSource(settings, client=client), client


class TestParseTrack:
    def test_maps_catalog_fields(self):
        track = parse_track(_track_json())

        assert track.spotify_id == "4uLU6hMCjMI75M1A2tKUQC"
        assert track.duration_ms == 213_573
        assert track.artist_names == "Rick Astley"
        assert track.album.images[0].height == 640
        assert track.external_url.startswith("https://open.spotify.com/")

    def test_missing_required_field(self):
        data = _track_json()
        del data["uri"]

        with pytest.raises(KeyError):
            parse_track(data)


class TestGetNowPlaying:
    async def test_nothing_playing_returns_none(self):
        source, client = _source(lambda request: httpx.Response(204))
        async with client:
            assert await source.get_now_playing() is None

    async def test_sends_bearer_token(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        source, client = _source(handler)
        async with client:
            await source.get_now_playing()

        assert seen[0].headers["Authorization"] == "Bearer token-123"
        assert seen[0].url.path == "/v1/me/player"

    async def test_parses_snapshot(self):
        payload = {
            "item": _track_json(),
            "progress_ms": 42_000,
            "is_playing": True,
            "timestamp": 1_700_000_000_000,
            "shuffle_state": False,
            "repeat_state": "off",
            "device": {"id": "d1", "name": "Kitchen", "type": "Speaker", "is_active": True,
                       "volume_percent": 65},
        }
        source, client = _source(lambda request: httpx.Response(200, json=payload))

        async with client:
            snapshot = await source.get_now_playing()

        assert snapshot.track.name == "Never Gonna Give You Up"
        assert snapshot.progress_ms == 42_000
        assert snapshot.is_playing is True
        assert snapshot.device.name == "Kitchen"
        assert snapshot.repeat_state == "off"
        assert int(snapshot.timestamp.timestamp() * 1000) == 1_700_000_000_000

    async def test_podcast_episode_is_ignored(self):
        payload = {"item": {"id": "ep1", "type": "episode", "name": "Pod", "uri": "x"}}
        source, client = _source(lambda request: httpx.Response(200, json=payload))

        async with client:
            assert await source.get_now_playing() is None

    async def test_http_error_raises(self):
        source, client = _source(lambda request: httpx.Response(401, json={"error": "expired"}))

        async with client:
            with pytest.raises(PlaybackSourceError) as exc_info:
                await source.get_now_playing()

        assert exc_info.value.status_code == 401

    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        source, client = _source(handler)
        async with client:
            with pytest.raises(PlaybackSourceError) as exc_info:
                await source.get_now_playing()

        assert exc_info.value.status_code is None

    async def test_malformed_payload_raises(self):
        payload = {"item": {"id": "x", "type": "track"}}
        source, client = _source(lambda request: httpx.Response(200, json=payload))

        async with client:
            with pytest.raises(PlaybackSourceError):
                await source.get_now_playing()


class TestGetUpcomingQueue:
    async def test_parses_queue_and_skips_episodes(self):
        payload = {
            "currently_playing": _track_json("now"),
            "queue": [
                _track_json("next1"),
                {"id": "ep", "type": "episode", "name": "Pod", "uri": "spotify:episode:ep"},
                _track_json("next2"),
            ],
        }
        source, client = _source(lambda request: httpx.Response(200, json=payload))

        async with client:
            upcoming = await source.get_upcoming_queue()

        assert upcoming.currently_playing.spotify_id == "now"
        assert [t.spotify_id for t in upcoming.queue] == ["next1", "next2"]
        assert upcoming.spotify_ids == {"next1", "next2"}

    async def test_empty_body(self):
        source, client = _source(lambda request: httpx.Response(204))

        async with client:
            upcoming = await source.get_upcoming_queue()

        assert upcoming.queue == ()
        assert upcoming.currently_playing is None


class TestEnqueue:
    async def test_posts_track_uri(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        source, client = _source(handler)
        async with client:
            assert await source.enqueue("spotify:track:abc") is True

        assert seen[0].method == "POST"
        assert seen[0].url.params["uri"] == "spotify:track:abc"

    async def test_no_active_device_returns_false(self):
        source, client = _source(lambda request: httpx.Response(404))

        async with client:
            assert await source.enqueue("spotify:track:abc") is False

    async def test_other_errors_propagate(self):
        source, client = _source(lambda request: httpx.Response(503))

        async with client:
            with pytest.raises(PlaybackSourceError):
                await source.enqueue("spotify:track:abc")


class TestClose:
    async def test_does_not_close_injected_client(self):
        source, client = _source(lambda request: httpx.Response(204))

        await source.close()

        assert not client.is_closed
        await client.aclose()

    async def test_closes_own_client(self):
        source = SpotifyPlaybackSource(SpotifySettings(access_token=SecretStr("t")))

        await source.close()

        assert source._client.is_closed
