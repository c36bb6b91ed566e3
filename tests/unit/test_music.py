"""
Tests for the /music proxy and streaming stats.
"""
import httpx
import pytest
from httpx import AsyncClient
from unittest.mock import patch

from app.models.user import LinkedAccount, StreamingProvider
from app.services import streaming_stats_service
from tests.utils.factories import StreamingAccountFactory
from tests.utils.mocks import MockDBConnection, MockHTTPClient


def spotify_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/v1/me/top/artists":
        return httpx.Response(200, json={"items": [{"name": "Artist A"}, {"name": "Artist B"}]})
    if request.url.path == "/v1/me/top/tracks":
        return httpx.Response(200, json={"items": [{"name": "Track A"}]})
    if request.url.path == "/v1/me":
        return httpx.Response(200, json={"id": "spotify-user-1"})
    return httpx.Response(404, json={"error": {"status": 404, "message": "Not found"}})


class TestSpotifyProxy:

    @pytest.mark.asyncio
    async def test_requires_session(self, client: AsyncClient):
        response = await client.get("/music/spotify/me")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_requires_linked_account(self, client: AsyncClient, auth_context, mock_db: MockDBConnection):
        mock_db.set_fetch_return("FROM streaming_accounts", [])

        response = await client.get("/music/spotify/me")

        assert response.status_code == 404
        assert response.json()["message"] == "No Spotify account linked"

    @pytest.mark.asyncio
    async def test_proxies_profile(self, client: AsyncClient, auth_context, mock_db: MockDBConnection):
        mock_db.set_fetch_return("FROM streaming_accounts", [StreamingAccountFactory.create(access_token="sp-token")])
        mock = MockHTTPClient(spotify_handler)

        with patch("app.services.spotify_service.http_client", mock.client):
            response = await client.get("/music/spotify/me")

        assert response.status_code == 200
        assert response.json() == {"id": "spotify-user-1"}
        assert mock.requests[0].headers["Authorization"] == "Bearer sp-token"

        _, _, args = mock_db.calls("fetch", "FROM streaming_accounts")[0]
        assert args == (auth_context.user_id, "Spotify")

    @pytest.mark.asyncio
    async def test_unknown_top_type(self, client: AsyncClient, auth_context, mock_db: MockDBConnection):
        mock_db.set_fetch_return("FROM streaming_accounts", [StreamingAccountFactory.create()])

        response = await client.get("/music/spotify/top/podcasts")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_upstream_error(self, client: AsyncClient, auth_context, mock_db: MockDBConnection):
        mock_db.set_fetch_return("FROM streaming_accounts", [StreamingAccountFactory.create()])
        mock = MockHTTPClient(spotify_handler)

        with patch("app.services.spotify_service.http_client", mock.client):
            response = await client.get("/music/spotify/albums/missing")

        assert response.status_code == 500
        assert response.json()["message"] == "Spotify API error: Not found"

    @pytest.mark.asyncio
    async def test_saved_tracks_every_page(self, client: AsyncClient, auth_context, mock_db: MockDBConnection):
        mock_db.set_fetch_return("FROM streaming_accounts", [StreamingAccountFactory.create()])
        next_page = "https://api.spotify.com/v1/me/tracks?offset=50&limit=50"
        pages = {
            None: {"items": [{"track": {"id": "t1"}}], "next": next_page},
            "50": {"items": [{"track": {"id": "t2"}}], "next": None},
        }
        mock = MockHTTPClient(lambda request: httpx.Response(200, json=pages[request.url.params.get("offset")]))

        with patch("app.services.spotify_service.http_client", mock.client):
            response = await client.get("/music/spotify/tracks", params={"all": "true"})

        assert response.status_code == 200
        assert [i["track"]["id"] for i in response.json()["items"]] == ["t1", "t2"]
        assert len(mock.requests) == 2
        assert mock.requests[0].url.params["limit"] == "50"

    @pytest.mark.asyncio
    async def test_playlists_every_page(self, client: AsyncClient, auth_context, mock_db: MockDBConnection):
        mock_db.set_fetch_return("FROM streaming_accounts", [StreamingAccountFactory.create()])
        mock = MockHTTPClient(lambda request: httpx.Response(200, json={"items": [{"id": "p1"}], "next": None}))

        with patch("app.services.spotify_service.http_client", mock.client):
            response = await client.get("/music/spotify/playlists", params={"all": "true"})

        assert response.status_code == 200
        assert response.json() == {"items": [{"id": "p1"}]}
        assert mock.requests[0].url.path == "/v1/me/playlists"


class TestStreamingStats:

    @pytest.mark.asyncio
    async def test_stats_for_each_linked_account(self, client: AsyncClient, auth_context, mock_db: MockDBConnection):
        mock_db.set_fetch_return("FROM streaming_accounts", [
            StreamingAccountFactory.create("Spotify"),
            StreamingAccountFactory.create("YouTube", access_token=None),
        ])
        mock = MockHTTPClient(spotify_handler)

        with patch("app.services.spotify_service.http_client", mock.client):
            response = await client.get("/music/stats")

        assert response.status_code == 200
        spotify, youtube = response.json()["stats"]
        assert spotify["provider"] == "Spotify"
        assert spotify["topArtists"] == ["Artist A", "Artist B"]
        assert spotify["topTracks"] == ["Track A"]
        assert youtube == {
            "provider": "YouTube",
            "available": False,
            "topArtists": [],
            "topTracks": [],
            "topPlaylists": []
        }

    @pytest.mark.asyncio
    async def test_no_linked_accounts(self, client: AsyncClient, auth_context, mock_db: MockDBConnection):
        mock_db.set_fetch_return("FROM streaming_accounts", [])

        response = await client.get("/music/stats")

        assert response.status_code == 200
        assert response.json() == {"stats": [], "message": "No streaming accounts linked"}

    @pytest.mark.asyncio
    async def test_apple_music_failure_returns_none(self):
        mock = MockHTTPClient(lambda request: httpx.Response(401, json={"errors": []}))

        with patch("app.services.spotify_service.http_client", mock.client):
            stats = await streaming_stats_service.fetch_apple_music_stats("bad-token")

        assert stats is None

    @pytest.mark.asyncio
    async def test_youtube_playlist_titles(self):
        payload = {"items": [{"snippet": {"title": "Road trip"}}, {"snippet": {"title": "Focus"}}]}
        mock = MockHTTPClient(lambda request: httpx.Response(200, json=payload))

        with patch("app.services.spotify_service.http_client", mock.client):
            stats = await streaming_stats_service.get_stats_for_account(
                LinkedAccount(provider=StreamingProvider.YOUTUBE, accountId="yt-1", accessToken="yt-token")
            )

        assert stats.available is True
        assert stats.topPlaylists == ["Road trip", "Focus"]
        assert mock.requests[0].url.params["mine"] == "true"
