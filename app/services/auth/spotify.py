"""
Spotify account linking

1. POST /oauth/spotify builds the authorize URL with a signed state token
   bound to the signed-in user
2. Spotify redirects back to /oauth/spotify/callback with code + state
3. link_account checks the state, exchanges the code and stores the tokens
"""
import logging
from typing import Dict, Any, List

from app.core.exceptions import AuthenticationError, ValidationError
from app.core.security import create_state_token, verify_state_token
from app.models.user import LinkedAccount, StreamingProvider
from app.services import spotify_service, users_service
from app.services.auth.base import AuthProvider

logger = logging.getLogger(__name__)

SPOTIFY_SCOPES = ["user-read-email", "user-read-private"]


class SpotifyAuthProvider(AuthProvider):

    def __init__(self, scopes: List[str] = None):
        self.scopes = scopes or SPOTIFY_SCOPES

    @property
    def name(self) -> str:
        return "spotify"

    def authorization_url(self, user_id: str) -> str:
        state = create_state_token(user_id, self.name)
        return spotify_service.authorize_url(state, self.scopes)

    async def link_account(
        self,
        user_id: str,
        provider: StreamingProvider,
        callback_payload: Dict[str, Any]
    ) -> LinkedAccount:
        if provider != StreamingProvider.SPOTIFY:
            raise ValidationError(f"Cannot link {provider.value} through Spotify")

        if callback_payload.get("error"):
            raise AuthenticationError(f"Spotify authorization failed: {callback_payload['error']}")

        state = verify_state_token(callback_payload.get("state") or "")
        if not state or state["provider"] != self.name or state["user_id"] != user_id:
            logger.warning(f"Rejected Spotify callback with bad state for user {user_id}")
            raise AuthenticationError("Invalid OAuth state")

        code = callback_payload.get("code")
        if not code:
            raise ValidationError("Missing authorization code")

        tokens = await spotify_service.exchange_code(code)
        profile = await spotify_service.get_current_user_profile(tokens["access_token"])

        account = LinkedAccount(
            provider=StreamingProvider.SPOTIFY,
            accountId=profile["id"],
            accessToken=tokens["access_token"],
            refreshToken=tokens.get("refresh_token"),
            expiresIn=tokens.get("expires_in"),
            scope=tokens.get("scope")
        )

        await users_service.link_streaming_account(user_id, account)
        return account
