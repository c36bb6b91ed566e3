from fastapi import APIRouter, Depends, Query
from typing import Optional
from pydantic import BaseModel
from app.core.dependencies import RequestContext, require_authenticated_context
from app.core.exceptions import NotFoundError
from app.models.user import StreamingProvider, UserResponse
from app.services import users_service
from app.services.auth import SpotifyAuthProvider, get_spotify_provider
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


class AuthorizationURL(BaseModel):
    url: str


@router.post("/spotify", response_model=AuthorizationURL)
async def start_spotify_link(
    ctx: RequestContext = Depends(require_authenticated_context),
    provider: SpotifyAuthProvider = Depends(get_spotify_provider)
):
    """
    Get the Spotify authorize URL for the signed-in user.

    The frontend redirects the browser there; Spotify comes back to
    /oauth/spotify/callback.
    """
    return AuthorizationURL(url=provider.authorization_url(ctx.user_id))


@router.get("/spotify/callback", response_model=UserResponse)
async def spotify_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    ctx: RequestContext = Depends(require_authenticated_context),
    provider: SpotifyAuthProvider = Depends(get_spotify_provider)
):
    """
    Finish linking: verify state, exchange the code and store the account.
    """
    await provider.link_account(
        ctx.user_id,
        StreamingProvider.SPOTIFY,
        {"code": code, "state": state, "error": error}
    )

    user = await users_service.get_user(ctx.user_id)
    if not user:
        raise NotFoundError("User not found")

    logger.info(f"Spotify account linked for user {ctx.user_id}")
    return UserResponse(message="Spotify account linked", user=user)
