import logging
from typing import Dict, Any

from app.core.exceptions import AuthenticationError
from app.core.security import verify_password
from app.services import users_service
from app.services.auth.base import AuthProvider

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class PasswordAuthProvider(AuthProvider):
    """Email + password sign-in against the stored bcrypt hash"""

    @property
    def name(self) -> str:
        return "local"

    async def authenticate(self, credentials: Dict[str, Any]) -> str:
        email = (credentials.get("email") or "").strip()
        password = credentials.get("password") or ""

        if not email or not password:
            raise AuthenticationError(INVALID_CREDENTIALS)

        user = await users_service.get_user_credentials(email)
        if not user:
            logger.warning(f"Login attempt for unknown email: {email}")
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not verify_password(password, user['password_hash']):
            logger.warning(f"Incorrect password for {email}")
            raise AuthenticationError(INVALID_CREDENTIALS)

        return str(user['id'])
