import asyncpg
from contextlib import asynccontextmanager
from app.config import settings
import logging

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT NOT NULL,
    password_hash TEXT NOT NULL,
    engagement_score INTEGER NOT NULL DEFAULT 0,
    is_verified BOOLEAN NOT NULL DEFAULT false,
    longitude DOUBLE PRECISION,
    latitude DOUBLE PRECISION,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE UNIQUE INDEX IF NOT EXISTS users_email_key ON users (lower(email));
CREATE INDEX IF NOT EXISTS users_location_idx ON users USING gist (point(longitude, latitude));

CREATE TABLE IF NOT EXISTS streaming_accounts (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    provider TEXT NOT NULL CHECK (provider IN ('Spotify', 'AppleMusic', 'YouTube')),
    account_id TEXT NOT NULL,
    access_token TEXT,
    refresh_token TEXT,
    expires_in INTEGER,
    scope TEXT,
    last_synced TIMESTAMPTZ,
    UNIQUE (user_id, provider)
);

CREATE TABLE IF NOT EXISTS sessions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    expires_at TIMESTAMPTZ NOT NULL,
    is_active BOOLEAN NOT NULL DEFAULT true,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    last_activity_at TIMESTAMPTZ,
    ended_at TIMESTAMPTZ,
    end_reason TEXT
);

CREATE TABLE IF NOT EXISTS events (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    date TIMESTAMPTZ NOT NULL,
    venue TEXT,
    artist TEXT,
    description TEXT,
    total_tickets INTEGER NOT NULL CHECK (total_tickets >= 0),
    general_tickets INTEGER NOT NULL CHECK (general_tickets >= 0),
    sold_tickets INTEGER NOT NULL DEFAULT 0,
    priority_price NUMERIC(12, 2),
    general_price NUMERIC(12, 2),
    sales_open BOOLEAN NOT NULL DEFAULT false,
    longitude DOUBLE PRECISION,
    latitude DOUBLE PRECISION,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS events_location_idx ON events USING gist (point(longitude, latitude));

CREATE TABLE IF NOT EXISTS purchases (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    event_id TEXT NOT NULL,
    total_amount NUMERIC(12, 2) NOT NULL,
    currency TEXT NOT NULL DEFAULT 'USD',
    status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'completed', 'failed')),
    transaction_date TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    payment_reference TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS purchases_user_idx ON purchases (user_id);

CREATE TABLE IF NOT EXISTS tickets (
    id TEXT PRIMARY KEY,
    user_id TEXT,
    event_id TEXT NOT NULL,
    purchase_id TEXT REFERENCES purchases(id),
    type TEXT NOT NULL CHECK (type IN ('priority', 'general')),
    price NUMERIC(12, 2) NOT NULL,
    is_redeemed BOOLEAN NOT NULL DEFAULT false,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS tickets_user_idx ON tickets (user_id);
CREATE INDEX IF NOT EXISTS tickets_purchase_idx ON tickets (purchase_id);
"""

class DatabasePool:
    _pool = None

    @classmethod
    async def create_pool(cls):
        if cls._pool is None:
            try:
                cls._pool = await asyncpg.create_pool(
                    **settings.db_pool_params,
                    max_inactive_connection_lifetime=300,
                    command_timeout=60,
                    timeout=30
                )
                logger.info("Database pool created")
            except Exception as e:
                logger.error(f"Failed to create database pool: {e}")
                raise
        return cls._pool

    @classmethod
    async def close_pool(cls):
        if cls._pool:
            await cls._pool.close()
            cls._pool = None
            logger.info("Database pool closed")

@asynccontextmanager
async def get_db_connection(use_transaction: bool = True):
    """
    Get database connection from pool.

    Args:
        use_transaction: If True, wraps operations in a transaction.
                        Set to False for read-only operations.

    Usage:
    async with get_db_connection() as conn:
        result = await conn.fetchrow("SELECT * FROM events WHERE id = $1", id)
    """
    pool = await DatabasePool.create_pool()
    async with pool.acquire() as connection:
        if use_transaction:
            async with connection.transaction():
                yield connection
        else:
            yield connection

async def init_schema():
    """Create tables and indexes if they do not exist yet"""
    async with get_db_connection() as conn:
        await conn.execute(SCHEMA_SQL)
    logger.info("Database schema ready")
