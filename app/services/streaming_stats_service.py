import logging
from typing import Optional, List

import httpx

from app.core.exceptions import ProviderError
from app.models.music import StreamingStats
from app.models.user import LinkedAccount, StreamingProvider
from app.services import spotify_service, users_service

logger = logging.getLogger(__name__)

APPLE_MUSIC_RECENT_URL = "https://api.music.apple.com/v1/me/recent/played"
YOUTUBE_PLAYLISTS_URL = "https://www.googleapis.com/youtube/v3/playlists"


def _names(items, *path) -> List[str]:
    names = []
    for item in items or []:
        value = item
        for key in path:
            value = (value or {}).get(key)
        if value:
            names.append(value)
    return names


async def fetch_spotify_stats(access_token: str) -> Optional[StreamingStats]:
    try:
        artists = await spotify_service.get_top_items("artists", access_token)
        tracks = await spotify_service.get_top_items("tracks", access_token)
    except ProviderError as e:
        logger.error(f"Error fetching Spotify stats: {e.message}")
        return None

    return StreamingStats(
        provider=StreamingProvider.SPOTIFY,
        topArtists=_names(artists.get("items"), "name"),
        topTracks=_names(tracks.get("items"), "name")
    )


async def fetch_apple_music_stats(access_token: str) -> Optional[StreamingStats]:
    try:
        async with spotify_service.http_client() as client:
            response = await client.get(
                APPLE_MUSIC_RECENT_URL,
                headers={"Authorization": f"Bearer {access_token}"}
            )
        response.raise_for_status()
        played = response.json().get("data") or []
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Error fetching Apple Music stats: {e}")
        return None

    return StreamingStats(
        provider=StreamingProvider.APPLE_MUSIC,
        topArtists=_names(played, "attributes", "artistName"),
        topTracks=_names(played, "attributes", "name")
    )


async def fetch_youtube_stats(access_token: str) -> Optional[StreamingStats]:
    try:
        async with spotify_service.http_client() as client:
            response = await client.get(
                YOUTUBE_PLAYLISTS_URL,
                headers={"Authorization": f"Bearer {access_token}"},
                params={"part": "snippet,contentDetails", "mine": "true"}
            )
        response.raise_for_status()
        playlists = response.json().get("items") or []
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Error fetching YouTube Music stats: {e}")
        return None

    return StreamingStats(
        provider=StreamingProvider.YOUTUBE,
        topPlaylists=_names(playlists, "snippet", "title")
    )


FETCHERS = {
    StreamingProvider.SPOTIFY: fetch_spotify_stats,
    StreamingProvider.APPLE_MUSIC: fetch_apple_music_stats,
    StreamingProvider.YOUTUBE: fetch_youtube_stats,
}


async def get_stats_for_account(account: LinkedAccount) -> StreamingStats:
    stats = None
    if account.accessToken:
        stats = await FETCHERS[account.provider](account.accessToken)
    return stats or StreamingStats(provider=account.provider, available=False)


async def get_user_stats(user_id: str) -> List[StreamingStats]:
    """Listening stats for every account the user has linked"""
    accounts = await users_service.get_linked_accounts(user_id)
    return [await get_stats_for_account(account) for account in accounts]
