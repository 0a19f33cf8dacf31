"""
Database Connection Manager

Owns the single database handle shared by every user store operation, and
knows which SQL dialect sits behind it.
"""
import logging
from typing import Optional

from databases import Database

from userstore.config import StoreSettings

logger = logging.getLogger("userstore.database.connection")

POSTGRES_DIALECTS = ("postgresql", "postgres")


def is_postgres(database: Database) -> bool:
    """True when the handle talks to PostgreSQL (asyncpg); anything else is treated as SQLite."""
    return database.url.dialect in POSTGRES_DIALECTS


class ConnectionManager:
    """
    Opens the users database once at startup and closes it on shutdown.

    The URL comes from the caller or, failing that, from StoreSettings.
    """

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or StoreSettings.from_env().url
        self._database: Optional[Database] = None

    @property
    def database(self) -> Database:
        # Created lazily so constructing a store never touches the network
        if self._database is None:
            self._database = Database(self.database_url)
        return self._database

    @property
    def is_postgres(self) -> bool:
        return is_postgres(self.database)

    async def connect(self) -> None:
        if not self.database.is_connected:
            await self.database.connect()
            logger.info(f"Database connection established ({self.database.url.dialect})")

    async def disconnect(self) -> None:
        if self._database and self._database.is_connected:
            await self._database.disconnect()
            logger.info("Database connection closed")

    async def health_check(self) -> bool:
        """Run SELECT 1; any failure counts as unhealthy and is only logged."""
        try:
            if not self.is_connected():
                return False
            await self._database.fetch_val("SELECT 1")
            return True
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return False

    def is_connected(self) -> bool:
        return self._database is not None and self._database.is_connected
