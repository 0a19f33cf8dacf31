"""
User Repository

Handles all database operations for the users table. Arguments are assumed
to be validated already; see userstore.store for the validation gate.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Union

from databases import Database

from userstore.database.connection_manager import is_postgres
from userstore.database.schema import validate_table_name
from userstore.domain.user import COLUMNS

logger = logging.getLogger("userstore.repository")

LOOKUP_COLUMNS = ("id", "email", "phone")
UPDATABLE_COLUMNS = ("email", "password", "phone", "role")


class UserRepository:
    """Repository for user data access."""

    def __init__(self, database: Database, table_name: str = "users"):
        self.database = database
        self.table_name = validate_table_name(table_name)
        self._select = f"SELECT {', '.join(COLUMNS)} FROM {self.table_name}"

    def _timestamp(self, value: datetime) -> Union[datetime, str]:
        # asyncpg binds datetimes natively; sqlite stores ISO-8601 text
        if is_postgres(self.database):
            return value
        return value.isoformat()

    async def create(
        self,
        user_id: str,
        email: str,
        password: str,
        phone: str,
        created_at: datetime,
    ) -> None:
        """Insert a new user. created_at and updated_at start out equal."""
        query = f"""
            INSERT INTO {self.table_name} (id, email, password, phone, created_at, updated_at)
            VALUES (:id, :email, :password, :phone, :created_at, :updated_at)
        """
        timestamp = self._timestamp(created_at)
        await self.database.execute(query, {
            "id": user_id,
            "email": email,
            "password": password,
            "phone": phone,
            "created_at": timestamp,
            "updated_at": timestamp,
        })

    async def get_by(self, column: str, value: str) -> Optional[Dict[str, Any]]:
        """Get a single user by a unique column."""
        if column not in LOOKUP_COLUMNS:
            raise ValueError(f"Cannot look users up by {column!r}")
        query = f"{self._select} WHERE {column} = :value"
        row = await self.database.fetch_one(query, {"value": value})
        if not row:
            return None
        return dict(row)

    async def get_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Get user by ID."""
        return await self.get_by("id", user_id)

    async def update_field(
        self,
        user_id: str,
        column: str,
        value: str,
        updated_at: datetime,
    ) -> None:
        """Set one column and refresh updated_at."""
        if column not in UPDATABLE_COLUMNS:
            raise ValueError(f"Column {column!r} is not updatable")
        query = f"""
            UPDATE {self.table_name}
            SET {column} = :value, updated_at = :updated_at
            WHERE id = :user_id
        """
        await self.database.execute(query, {
            "value": value,
            "updated_at": self._timestamp(updated_at),
            "user_id": user_id,
        })

    async def delete(self, user_id: str) -> int:
        """Hard delete user. Returns the number of rows removed."""
        async with self.database.transaction():
            exists = await self.database.fetch_val(
                f"SELECT COUNT(*) FROM {self.table_name} WHERE id = :user_id",
                {"user_id": user_id},
            )
            if not exists:
                return 0
            await self.database.execute(
                f"DELETE FROM {self.table_name} WHERE id = :user_id",
                {"user_id": user_id},
            )
        logger.debug(f"Deleted user {user_id} from {self.table_name}")
        return 1
