"""Async SQLite database management."""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiosqlite

from marketplace.config import get_settings

logger = logging.getLogger(__name__)


class Database:
    """Async SQLite database manager.

    Handles connection management, schema creation and transactions.
    Writers and readers share one connection and one lock, so a read never
    observes a transaction that has not committed yet.

    Attributes:
        db_path: Path to the SQLite database file.
        connection: Active database connection.
    """

    def __init__(self, db_url: Optional[str] = None) -> None:
        """Initialize the database manager.

        Args:
            db_url: Database URL (default: from settings).
        """
        url = db_url or get_settings().database_url
        # Extract path from sqlite:/// URL
        if url.startswith("sqlite:///"):
            self.db_path = Path(url[10:])
        else:
            self.db_path = Path(url)
        self.connection: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Initialize the database connection and schema.

        Creates the database directory if needed and sets up tables.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.connection = await aiosqlite.connect(str(self.db_path))
        self.connection.row_factory = aiosqlite.Row

        await self.connection.execute("PRAGMA foreign_keys = ON")

        await self._create_schema()

        logger.info(f"Database initialized at {self.db_path}")

    async def close(self) -> None:
        """Close the database connection."""
        if self.connection:
            await self.connection.close()
            self.connection = None
            logger.info("Database connection closed")

    async def _create_schema(self) -> None:
        """Create database tables if they don't exist."""
        schema = """
        -- Schema version tracking
        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        -- Users table
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            username TEXT UNIQUE NOT NULL,
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            is_admin BOOLEAN DEFAULT 0,
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL
        );

        -- Plugins table
        CREATE TABLE IF NOT EXISTS plugins (
            id TEXT PRIMARY KEY,
            author_id TEXT NOT NULL REFERENCES users(id),
            name TEXT NOT NULL,
            description TEXT NOT NULL,
            category TEXT NOT NULL,
            price REAL NOT NULL DEFAULT 0 CHECK (price >= 0),
            features TEXT DEFAULT '[]',
            requirements TEXT,
            thumbnail_url TEXT,
            average_rating REAL DEFAULT 0,
            download_count INTEGER DEFAULT 0,
            featured BOOLEAN DEFAULT 0,
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL
        );

        -- Plugin versions, ordered by position (last = latest)
        CREATE TABLE IF NOT EXISTS plugin_versions (
            plugin_id TEXT NOT NULL REFERENCES plugins(id) ON DELETE CASCADE,
            position INTEGER NOT NULL,
            version_number TEXT NOT NULL,
            file_path TEXT NOT NULL,
            minecraft_version TEXT NOT NULL,
            changelog TEXT,
            checksum_sha256 TEXT,
            size_bytes INTEGER,
            release_date TIMESTAMP NOT NULL,
            download_count INTEGER DEFAULT 0,
            PRIMARY KEY (plugin_id, position)
        );

        -- Plugin reviews, one per user and plugin
        CREATE TABLE IF NOT EXISTS plugin_reviews (
            plugin_id TEXT NOT NULL REFERENCES plugins(id) ON DELETE CASCADE,
            position INTEGER NOT NULL,
            user_id TEXT NOT NULL REFERENCES users(id),
            rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
            comment TEXT NOT NULL,
            helpful_count INTEGER DEFAULT 0,
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL,
            PRIMARY KEY (plugin_id, position),
            UNIQUE (plugin_id, user_id)
        );

        -- Purchase ledger, one per user and plugin
        CREATE TABLE IF NOT EXISTS purchases (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id),
            plugin_id TEXT NOT NULL REFERENCES plugins(id),
            price REAL NOT NULL,
            transaction_id TEXT UNIQUE NOT NULL,
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL,
            UNIQUE (user_id, plugin_id)
        );

        -- Create indexes for performance
        CREATE INDEX IF NOT EXISTS idx_plugins_author ON plugins(author_id);
        CREATE INDEX IF NOT EXISTS idx_plugins_category ON plugins(category);
        CREATE INDEX IF NOT EXISTS idx_plugins_created ON plugins(created_at);
        CREATE INDEX IF NOT EXISTS idx_purchases_user ON purchases(user_id);
        """
        await self.connection.executescript(schema)
        await self.connection.commit()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Run a group of writes as one transaction.

        Commits when the block exits normally and rolls back when it raises.
        No read runs on the connection while the block is open.

        Yields:
            The active connection.
        """
        async with self._lock:
            try:
                yield self.connection
            except BaseException:
                await self.connection.rollback()
                raise
            else:
                await self.connection.commit()

    @asynccontextmanager
    async def snapshot(self) -> AsyncIterator[aiosqlite.Connection]:
        """Run a group of reads against one committed state.

        Do not call :meth:`fetch_one` or :meth:`fetch_all` inside the block;
        query the yielded connection instead.

        Yields:
            The active connection.
        """
        async with self._lock:
            yield self.connection

    async def fetch_one(
        self,
        query: str,
        params: tuple = (),
    ) -> Optional[aiosqlite.Row]:
        """Fetch a single row.

        Args:
            query: SQL query string.
            params: Query parameters.

        Returns:
            Single row or None.
        """
        async with self._lock:
            cursor = await self.connection.execute(query, params)
            return await cursor.fetchone()

    async def fetch_all(
        self,
        query: str,
        params: tuple = (),
    ) -> list[aiosqlite.Row]:
        """Fetch all rows.

        Args:
            query: SQL query string.
            params: Query parameters.

        Returns:
            List of rows.
        """
        async with self._lock:
            cursor = await self.connection.execute(query, params)
            return await cursor.fetchall()

    async def health_check(self) -> bool:
        """Check database connectivity.

        Returns:
            True if database is healthy, False otherwise.
        """
        try:
            if not self.connection:
                return False
            result = await self.fetch_one("SELECT 1")
            return result is not None and result[0] == 1
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False
