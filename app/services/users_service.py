import logging
import uuid
from typing import Optional, List, Tuple
import asyncpg
from app.database import get_db_connection
from app.models.user import (
    User, SignupRequest, LinkedAccount, StreamingAccount, StreamingProvider
)
from app.models.event import GeoLocation
from app.core.exceptions import ConflictError, NotFoundError
from app.core.security import hash_password
from app.services import sessions_service

logger = logging.getLogger(__name__)


def _location_from_row(row) -> Optional[GeoLocation]:
    if row['longitude'] is None or row['latitude'] is None:
        return None
    return GeoLocation(coordinates=[row['longitude'], row['latitude']])


def _linked_account_from_row(row) -> LinkedAccount:
    return LinkedAccount(
        provider=row['provider'],
        accountId=row['account_id'],
        accessToken=row['access_token'],
        refreshToken=row['refresh_token'],
        expiresIn=row['expires_in'],
        scope=row['scope'],
        lastSynced=row['last_synced']
    )


async def _build_user(conn, row) -> User:
    """Assemble the public user view: accounts and ticket references"""
    accounts = await conn.fetch("""
        SELECT provider, account_id, access_token, refresh_token, expires_in, scope, last_synced
        FROM streaming_accounts
        WHERE user_id = $1
        ORDER BY provider
    """, row['id'])

    ticket_ids = await conn.fetch(
        "SELECT id FROM tickets WHERE user_id = $1 ORDER BY created_at",
        row['id']
    )

    return User(
        id=row['id'],
        name=row['name'],
        email=row['email'],
        streamingAccounts=[
            StreamingAccount(**_linked_account_from_row(a).model_dump(exclude={'accessToken', 'refreshToken'}))
            for a in accounts
        ],
        engagementScore=row['engagement_score'] or 0,
        ticketsPurchased=[t['id'] for t in ticket_ids],
        isVerified=row['is_verified'] or False,
        location=_location_from_row(row),
        createdAt=row['created_at']
    )


async def get_user_credentials(email: str) -> Optional[dict]:
    """Return id and password hash for an email, or None"""
    async with get_db_connection(use_transaction=False) as conn:
        row = await conn.fetchrow(
            "SELECT id, password_hash FROM users WHERE lower(email) = $1",
            email.lower()
        )
        return dict(row) if row else None


async def get_user(user_id: str) -> Optional[User]:
    async with get_db_connection(use_transaction=False) as conn:
        row = await conn.fetchrow("SELECT * FROM users WHERE id = $1", user_id)
        if not row:
            return None
        return await _build_user(conn, row)


async def create_user(data: SignupRequest) -> Tuple[User, str]:
    """
    Register a user and open a session for them.

    Returns the user and the new session id. Raises ConflictError if the
    email is already registered; no row is written in that case.
    """
    email = data.email.lower()

    async with get_db_connection() as conn:
        existing = await conn.fetchrow(
            "SELECT id FROM users WHERE lower(email) = $1",
            email
        )
        if existing:
            raise ConflictError("User already exists")

        user_id = str(uuid.uuid4())
        try:
            row = await conn.fetchrow("""
                INSERT INTO users (id, name, email, password_hash, created_at, updated_at)
                VALUES ($1, $2, $3, $4, NOW(), NOW())
                RETURNING *
            """, user_id, data.name, email, hash_password(data.password))
        except asyncpg.UniqueViolationError:
            # Lost a race with a concurrent signup for the same email
            raise ConflictError("User already exists")

        session_id = await sessions_service.start_session(user_id, conn=conn)
        user = await _build_user(conn, row)

    logger.info(f"User created: {email}")
    return user, session_id


async def link_streaming_account(user_id: str, account: LinkedAccount) -> User:
    """Attach (or refresh) a provider account on the user"""
    async with get_db_connection() as conn:
        row = await conn.fetchrow("SELECT * FROM users WHERE id = $1", user_id)
        if not row:
            raise NotFoundError("User not found")

        await conn.execute("""
            INSERT INTO streaming_accounts (
                id, user_id, provider, account_id, access_token, refresh_token,
                expires_in, scope, last_synced
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, NOW())
            ON CONFLICT (user_id, provider) DO UPDATE SET
                account_id = EXCLUDED.account_id,
                access_token = EXCLUDED.access_token,
                refresh_token = COALESCE(EXCLUDED.refresh_token, streaming_accounts.refresh_token),
                expires_in = EXCLUDED.expires_in,
                scope = EXCLUDED.scope,
                last_synced = NOW()
        """,
            str(uuid.uuid4()),
            user_id,
            account.provider.value,
            account.accountId,
            account.accessToken,
            account.refreshToken,
            account.expiresIn,
            account.scope
        )

        logger.info(f"Linked {account.provider.value} account {account.accountId} to user {user_id}")
        return await _build_user(conn, row)


async def get_linked_accounts(user_id: str, provider: Optional[StreamingProvider] = None) -> List[LinkedAccount]:
    """Linked accounts including tokens, for outbound provider calls"""
    async with get_db_connection(use_transaction=False) as conn:
        query = """
            SELECT provider, account_id, access_token, refresh_token, expires_in, scope, last_synced
            FROM streaming_accounts
            WHERE user_id = $1
        """
        params = [user_id]

        if provider is not None:
            query += " AND provider = $2"
            params.append(provider.value)

        rows = await conn.fetch(query + " ORDER BY provider", *params)
        return [_linked_account_from_row(r) for r in rows]
