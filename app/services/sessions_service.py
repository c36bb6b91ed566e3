import logging
import uuid
from typing import Optional
from datetime import datetime, timedelta, timezone
from app.database import get_db_connection
from app.config import settings

logger = logging.getLogger(__name__)


async def start_session(user_id: str, conn=None) -> str:
    """Create a session row and return its id (the cookie value)"""
    session_id = str(uuid.uuid4())
    expires_at = datetime.now(timezone.utc) + timedelta(days=settings.session_max_age_days)
    query = """
        INSERT INTO sessions (id, user_id, expires_at, is_active, created_at)
        VALUES ($1, $2, $3, true, NOW())
    """

    if conn is not None:
        await conn.execute(query, session_id, user_id, expires_at)
    else:
        async with get_db_connection() as conn:
            await conn.execute(query, session_id, user_id, expires_at)

    logger.info(f"Session started for user {user_id}")
    return session_id


async def end_session(session_id: str, reason: str = "logout") -> bool:
    async with get_db_connection() as conn:
        result = await conn.execute("""
            UPDATE sessions
            SET is_active = false, ended_at = NOW(), end_reason = $2
            WHERE id = $1 AND is_active = true
        """, session_id, reason)
    return result == "UPDATE 1"


async def get_active_session(session_id: str) -> Optional[dict]:
    """Look up a live session joined with its user"""
    async with get_db_connection() as conn:
        row = await conn.fetchrow("""
            SELECT s.id AS session_id, s.user_id, s.expires_at, u.email, u.name
            FROM sessions s
            JOIN users u ON s.user_id = u.id
            WHERE s.id = $1 AND s.is_active = true AND s.expires_at > NOW()
            LIMIT 1
        """, session_id)

        if not row:
            return None

        await conn.execute(
            "UPDATE sessions SET last_activity_at = NOW() WHERE id = $1",
            session_id
        )

        return {
            'session_id': row['session_id'],
            'user_id': row['user_id'],
            'email': row['email'],
            'name': row['name'],
            'expires_at': row['expires_at']
        }
