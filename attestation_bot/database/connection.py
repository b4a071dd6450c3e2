"""
Identity store connection and schema.
"""
import aiosqlite
from typing import AsyncIterator, Set
from contextlib import asynccontextmanager
import logging

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    telegram_id INTEGER PRIMARY KEY,
    email TEXT,
    role TEXT NOT NULL DEFAULT 'employee',
    full_name TEXT,
    created_at INTEGER NOT NULL DEFAULT (strftime('%s', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_users_email ON users (email);
"""

EXPECTED_TABLES = {'users'}


class DatabaseManager:
    """Owns the SQLite file that maps Telegram accounts to attestation identities"""

    def __init__(self, db_path: str = "data.db"):
        """
        Args:
            db_path: Path to SQLite database file, created on first init
        """
        self.db_path = db_path
        logger.info(f"📁 Identity store: {db_path}")

    @asynccontextmanager
    async def get_connection(self) -> AsyncIterator[aiosqlite.Connection]:
        db = await aiosqlite.connect(self.db_path)
        try:
            yield db
        finally:
            await db.close()

    async def init_db(self) -> None:
        """Create the users table and its email index if missing"""
        async with self.get_connection() as db:
            await db.executescript(SCHEMA_SQL)
            await db.commit()

        logger.info("✅ Identity schema ready")

    async def missing_tables(self) -> Set[str]:
        """Tables the bot needs that are not present"""
        async with self.get_connection() as db:
            cursor = await db.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            )
            tables = {row[0] for row in await cursor.fetchall()}
        return EXPECTED_TABLES - tables
