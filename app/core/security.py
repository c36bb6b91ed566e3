import jwt
import bcrypt
import secrets
import logging
from datetime import datetime, timedelta, timezone
from fastapi import Request, Response
from app.config import settings
from typing import Optional

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session-token"

BCRYPT_ROUNDS = 10

# bcrypt only reads this many bytes of a password
MAX_PASSWORD_BYTES = 72

# OAuth state tokens only need to survive the provider round trip
STATE_TOKEN_MINUTES = 10


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Salted bcrypt hash of a password"""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash"""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except (AttributeError, ValueError):
        return False


def get_session_token(request: Request) -> Optional[str]:
    """Extract session-token from cookies"""
    return request.cookies.get(SESSION_COOKIE)


def set_session_cookie(response: Response, session_token: str):
    """Set the session cookie on a response"""
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session_token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.session_max_age_days * 24 * 60 * 60,
        path="/"
    )


def clear_session_cookie(response: Response):
    response.delete_cookie(SESSION_COOKIE, path="/")


def create_state_token(user_id: str, provider: str) -> str:
    """Create a signed OAuth state token bound to a user"""
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user_id,
        "provider": provider,
        "nonce": secrets.token_urlsafe(8),
        "iat": now,
        "exp": now + timedelta(minutes=STATE_TOKEN_MINUTES)
    }
    return jwt.encode(payload, settings.session_secret, algorithm="HS256")


def verify_state_token(token: str) -> Optional[dict]:
    """Verify an OAuth state token and return payload"""
    try:
        payload = jwt.decode(token, settings.session_secret, algorithms=["HS256"])
        return {
            "user_id": payload.get("user_id"),
            "provider": payload.get("provider")
        }
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


async def get_session_from_request(request: Request) -> Optional[dict]:
    """
    Get session data from request using the session cookie.
    Returns session data with session_id, user_id, email and name, or None.
    """
    from app.services import sessions_service

    session_token = get_session_token(request)
    if not session_token:
        return None

    try:
        return await sessions_service.get_active_session(session_token)
    except Exception as e:
        logger.error(f"Error in get_session_from_request: {e}", exc_info=True)
        return None
