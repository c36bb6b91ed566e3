"""
Spotify Web API client

Bearer-token GET requests with:
- a per (url, token) TTL cache
- retry after Retry-After (seconds or HTTP date, capped) on HTTP 429
- ProviderError for every other failure

Also wraps the Accounts service token exchange used by account linking.
"""
import logging
import math
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Dict, Any, List, Optional
from urllib.parse import urlencode

import httpx
from cachetools import TTLCache
from tenacity import retry, retry_if_exception_type, stop_after_attempt

from app.config import settings
from app.core.exceptions import ProviderError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30.0

# Retry-After handling on HTTP 429
DEFAULT_RETRY_AFTER = 1.0
MAX_RETRY_AFTER = 30.0

_cache: TTLCache = TTLCache(maxsize=2048, ttl=settings.spotify_cache_ttl)


class SpotifyRateLimited(Exception):
    """Raised on HTTP 429 so the retry policy can wait and try again"""

    def __init__(self, retry_after: float):
        self.retry_after = retry_after
        super().__init__(f"Rate limited, retry after {retry_after}s")


def parse_retry_after(value: Optional[str]) -> float:
    """
    Seconds to wait from a Retry-After header, either delta-seconds or an
    HTTP date. Unparseable values fall back to one second and every wait
    is capped at MAX_RETRY_AFTER.
    """
    if not value:
        return DEFAULT_RETRY_AFTER
    try:
        seconds = float(value)
    except ValueError:
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return DEFAULT_RETRY_AFTER
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        seconds = (when - datetime.now(timezone.utc)).total_seconds()
    if math.isnan(seconds):
        return DEFAULT_RETRY_AFTER
    return min(max(seconds, 0.0), MAX_RETRY_AFTER)


def _wait_retry_after(retry_state) -> float:
    exc = retry_state.outcome.exception()
    return getattr(exc, "retry_after", DEFAULT_RETRY_AFTER)


def http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=REQUEST_TIMEOUT)


def build_url(endpoint: str, params: Optional[Dict[str, Any]] = None) -> str:
    url = f"{settings.spotify_api_base_url}/{endpoint.lstrip('/')}"
    if params:
        url = f"{url}?{urlencode(params)}"
    return url


def clear_cache():
    _cache.clear()


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if not isinstance(payload, dict):
        return response.reason_phrase
    error = payload.get("error")
    if isinstance(error, dict):
        return error.get("message") or response.reason_phrase
    return payload.get("error_description") or str(error or response.reason_phrase)


@retry(
    retry=retry_if_exception_type(SpotifyRateLimited),
    wait=_wait_retry_after,
    stop=stop_after_attempt(settings.spotify_max_retries),
    reraise=True
)
async def _get(url: str, access_token: str) -> Dict[str, Any]:
    async with http_client() as client:
        response = await client.get(url, headers={"Authorization": f"Bearer {access_token}"})

    if response.status_code == 429:
        retry_after = parse_retry_after(response.headers.get("retry-after"))
        logger.warning(f"Rate limit exceeded. Retrying after {retry_after} seconds...")
        raise SpotifyRateLimited(retry_after)

    response.raise_for_status()
    return response.json()


async def _fetch(url: str, access_token: str) -> Dict[str, Any]:
    """GET with error translation, no caching"""
    try:
        return await _get(url, access_token)
    except SpotifyRateLimited as e:
        raise ProviderError("Spotify API rate limit exceeded", {"retry_after": e.retry_after})
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        message = _error_message(e.response)
        logger.error(f"Spotify API error (status: {status}): {message}")
        raise ProviderError(f"Spotify API error: {message}", {"status": status})
    except httpx.HTTPError as e:
        logger.error(f"Network or other error: {e}")
        raise ProviderError("An unexpected error occurred while making the API request.", {"error": str(e)})


async def make_request(endpoint: str, access_token: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Cached GET against the Web API"""
    url = build_url(endpoint, params)
    cache_key = (url, access_token)

    cached = _cache.get(cache_key)
    if cached is not None:
        logger.debug(f"Cache hit for {url}")
        return cached

    data = await _fetch(url, access_token)
    _cache[cache_key] = data
    return data


async def fetch_all_paginated(endpoint: str, access_token: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    """Follow `next` links and collect every item"""
    items: List[Dict[str, Any]] = []
    next_url = build_url(endpoint, params)

    while next_url:
        page = await _fetch(next_url, access_token)
        items.extend(page.get("items") or [])
        next_url = page.get("next")

    return items


# Web API helpers

async def get_current_user_profile(access_token: str):
    return await make_request("me", access_token)


async def get_followed_artists(access_token: str):
    return await make_request("me/following", access_token, {"type": "artist"})


async def get_user_saved_tracks(access_token: str):
    return await make_request("me/tracks", access_token)


async def get_all_user_saved_tracks(access_token: str):
    return await fetch_all_paginated("me/tracks", access_token, {"limit": 50})


async def get_user_saved_albums(access_token: str):
    return await make_request("me/albums", access_token)


async def get_current_user_playlists(access_token: str):
    return await make_request("me/playlists", access_token)


async def get_all_current_user_playlists(access_token: str):
    return await fetch_all_paginated("me/playlists", access_token, {"limit": 50})


async def get_top_items(item_type: str, access_token: str):
    """item_type is 'artists' or 'tracks'"""
    if item_type not in ("artists", "tracks"):
        raise ValueError(f"Unknown top item type: {item_type}")
    return await make_request(f"me/top/{item_type}", access_token)


async def get_tracks(track_ids: List[str], access_token: str):
    return await make_request("tracks", access_token, {"ids": ",".join(track_ids)})


async def get_playlist(playlist_id: str, access_token: str):
    return await make_request(f"playlists/{playlist_id}", access_token)


async def get_playlist_items(playlist_id: str, access_token: str):
    return await make_request(f"playlists/{playlist_id}/tracks", access_token)


async def get_artist(artist_id: str, access_token: str):
    return await make_request(f"artists/{artist_id}", access_token)


async def get_artist_top_tracks(artist_id: str, country: str, access_token: str):
    return await make_request(f"artists/{artist_id}/top-tracks", access_token, {"country": country})


async def get_artist_albums(artist_id: str, access_token: str):
    return await make_request(f"artists/{artist_id}/albums", access_token)


async def get_artist_related_artists(artist_id: str, access_token: str):
    return await make_request(f"artists/{artist_id}/related-artists", access_token)


async def get_album(album_id: str, access_token: str):
    return await make_request(f"albums/{album_id}", access_token)


async def get_several_albums(album_ids: List[str], access_token: str):
    return await make_request("albums", access_token, {"ids": ",".join(album_ids)})


async def get_album_tracks(album_id: str, access_token: str):
    return await make_request(f"albums/{album_id}/tracks", access_token)


# Accounts service

def authorize_url(state: str, scopes: List[str]) -> str:
    query = urlencode({
        "client_id": settings.spotify_client_id or "",
        "response_type": "code",
        "redirect_uri": settings.spotify_callback_url,
        "scope": " ".join(scopes),
        "state": state,
    })
    return f"{settings.spotify_accounts_url}/authorize?{query}"


async def exchange_code(code: str) -> Dict[str, Any]:
    """Trade an authorization code for access/refresh tokens"""
    if not settings.spotify_configured:
        raise ProviderError("Spotify OAuth is not configured")

    try:
        async with http_client() as client:
            response = await client.post(
                f"{settings.spotify_accounts_url}/api/token",
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": settings.spotify_callback_url,
                },
                auth=(settings.spotify_client_id, settings.spotify_client_secret)
            )
    except httpx.HTTPError as e:
        logger.error(f"Spotify token exchange failed: {e}")
        raise ProviderError("Spotify token exchange failed", {"error": str(e)})

    if response.status_code != 200:
        message = _error_message(response)
        logger.error(f"Spotify token exchange error (status: {response.status_code}): {message}")
        raise ProviderError(f"Spotify token exchange failed: {message}", {"status": response.status_code})

    return response.json()
