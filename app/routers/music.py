from fastapi import APIRouter, Depends, Query
from typing import Optional, Dict, Any
from app.core.dependencies import RequestContext, require_authenticated_context
from app.core.exceptions import NotFoundError
from app.models.music import MusicStatsResponse
from app.models.user import StreamingProvider
from app.services import spotify_service, streaming_stats_service, users_service

router = APIRouter()


def _split_ids(ids: Optional[str]):
    return [i for i in (ids or "").split(",") if i]


async def get_spotify_token(ctx: RequestContext = Depends(require_authenticated_context)) -> str:
    """Dependency returning the access token of the user's linked Spotify account"""
    accounts = await users_service.get_linked_accounts(ctx.user_id, StreamingProvider.SPOTIFY)
    if not accounts or not accounts[0].accessToken:
        raise NotFoundError("No Spotify account linked")
    return accounts[0].accessToken


@router.get("/stats", response_model=MusicStatsResponse)
async def get_music_stats(ctx: RequestContext = Depends(require_authenticated_context)):
    """
    Listening stats across every linked streaming account.
    """
    stats = await streaming_stats_service.get_user_stats(ctx.user_id)
    if not stats:
        return MusicStatsResponse(message="No streaming accounts linked")
    return MusicStatsResponse(stats=stats)


@router.get("/spotify/me")
async def spotify_profile(token: str = Depends(get_spotify_token)) -> Dict[str, Any]:
    return await spotify_service.get_current_user_profile(token)


@router.get("/spotify/top/{item_type}")
async def spotify_top_items(item_type: str, token: str = Depends(get_spotify_token)) -> Dict[str, Any]:
    """Top artists or tracks"""
    if item_type not in ("artists", "tracks"):
        raise NotFoundError(f"Unknown top item type: {item_type}")
    return await spotify_service.get_top_items(item_type, token)


@router.get("/spotify/following")
async def spotify_followed_artists(token: str = Depends(get_spotify_token)) -> Dict[str, Any]:
    return await spotify_service.get_followed_artists(token)


@router.get("/spotify/playlists")
async def spotify_playlists(
    all_pages: bool = Query(False, alias="all", description="Follow paging and return every playlist"),
    token: str = Depends(get_spotify_token)
) -> Dict[str, Any]:
    if all_pages:
        return {"items": await spotify_service.get_all_current_user_playlists(token)}
    return await spotify_service.get_current_user_playlists(token)


@router.get("/spotify/playlists/{playlist_id}")
async def spotify_playlist(playlist_id: str, token: str = Depends(get_spotify_token)) -> Dict[str, Any]:
    return await spotify_service.get_playlist(playlist_id, token)


@router.get("/spotify/playlists/{playlist_id}/tracks")
async def spotify_playlist_items(playlist_id: str, token: str = Depends(get_spotify_token)) -> Dict[str, Any]:
    return await spotify_service.get_playlist_items(playlist_id, token)


@router.get("/spotify/tracks")
async def spotify_tracks(
    ids: Optional[str] = Query(None, description="Comma separated track ids; omit for saved tracks"),
    all_pages: bool = Query(False, alias="all", description="Every saved track instead of the first page"),
    token: str = Depends(get_spotify_token)
) -> Dict[str, Any]:
    track_ids = _split_ids(ids)
    if track_ids:
        return await spotify_service.get_tracks(track_ids, token)
    if all_pages:
        return {"items": await spotify_service.get_all_user_saved_tracks(token)}
    return await spotify_service.get_user_saved_tracks(token)


@router.get("/spotify/albums")
async def spotify_albums(
    ids: Optional[str] = Query(None, description="Comma separated album ids; omit for saved albums"),
    token: str = Depends(get_spotify_token)
) -> Dict[str, Any]:
    album_ids = _split_ids(ids)
    if album_ids:
        return await spotify_service.get_several_albums(album_ids, token)
    return await spotify_service.get_user_saved_albums(token)


@router.get("/spotify/albums/{album_id}")
async def spotify_album(album_id: str, token: str = Depends(get_spotify_token)) -> Dict[str, Any]:
    return await spotify_service.get_album(album_id, token)


@router.get("/spotify/albums/{album_id}/tracks")
async def spotify_album_tracks(album_id: str, token: str = Depends(get_spotify_token)) -> Dict[str, Any]:
    return await spotify_service.get_album_tracks(album_id, token)


@router.get("/spotify/artists/{artist_id}")
async def spotify_artist(artist_id: str, token: str = Depends(get_spotify_token)) -> Dict[str, Any]:
    return await spotify_service.get_artist(artist_id, token)


@router.get("/spotify/artists/{artist_id}/top-tracks")
async def spotify_artist_top_tracks(
    artist_id: str,
    country: str = Query("US", min_length=2, max_length=2),
    token: str = Depends(get_spotify_token)
) -> Dict[str, Any]:
    return await spotify_service.get_artist_top_tracks(artist_id, country, token)


@router.get("/spotify/artists/{artist_id}/albums")
async def spotify_artist_albums(artist_id: str, token: str = Depends(get_spotify_token)) -> Dict[str, Any]:
    return await spotify_service.get_artist_albums(artist_id, token)


@router.get("/spotify/artists/{artist_id}/related-artists")
async def spotify_related_artists(artist_id: str, token: str = Depends(get_spotify_token)) -> Dict[str, Any]:
    return await spotify_service.get_artist_related_artists(artist_id, token)
