"""
Users Table Schema

Checks for and creates the users table. Creating the table here keeps the
store self-contained; deployments with a migration pipeline can skip it.
"""
import logging
import re
from dataclasses import dataclass
from typing import List

from databases import Database

from userstore.database.connection_manager import is_postgres
from userstore.domain.user import DEFAULT_ROLE, ROLES
from userstore.exceptions import SchemaError

logger = logging.getLogger("userstore.database.schema")

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class SchemaResult:
    """Outcome of a schema check."""
    success: bool
    operation: str


def validate_table_name(table_name: str) -> str:
    """Table names are interpolated into SQL, so only plain identifiers are allowed."""
    if not isinstance(table_name, str) or not IDENTIFIER_PATTERN.match(table_name):
        raise SchemaError("check table name", f"invalid table name {table_name!r}")
    return table_name


def _is_already_exists(error: Exception) -> bool:
    # asyncpg DuplicateTableError / sqlite OperationalError
    if getattr(error, "sqlstate", None) == "42P07":
        return True
    return "already exists" in str(error).lower()


class UsersTableSchema:
    """
    DDL for the users table on a given backend.
    """

    def __init__(self, database: Database, table_name: str = "users"):
        self.database = database
        self.table_name = validate_table_name(table_name)

    @property
    def is_postgres(self) -> bool:
        return is_postgres(self.database)

    def create_statements(self) -> List[str]:
        """Statements that create the table and its password index."""
        table = self.table_name
        if self.is_postgres:
            id_type = "UUID"
            timestamp_type = "TIMESTAMP WITH TIME ZONE"
        else:
            id_type = "VARCHAR(36)"
            timestamp_type = "TIMESTAMP"
        roles = ", ".join(f"'{role}'" for role in ROLES)

        create_table = f"""
            CREATE TABLE {table} (
                id {id_type} NOT NULL,
                email VARCHAR(255) NOT NULL,
                password VARCHAR(255) NOT NULL,
                phone VARCHAR(255) NOT NULL,
                role VARCHAR(16) NOT NULL DEFAULT '{DEFAULT_ROLE}',
                created_at {timestamp_type} NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at {timestamp_type} NOT NULL DEFAULT CURRENT_TIMESTAMP,
                CONSTRAINT {table}_pkey PRIMARY KEY (id),
                CONSTRAINT {table}_email_key UNIQUE (email),
                CONSTRAINT {table}_phone_key UNIQUE (phone),
                CONSTRAINT {table}_role_check CHECK (role IN ({roles}))
            )
        """
        create_index = f"CREATE INDEX {table}_password_index ON {table} (password)"
        return [create_table, create_index]

    async def exists(self) -> bool:
        """Check whether the table is already present."""
        if self.is_postgres:
            query = """
                SELECT EXISTS (
                    SELECT 1 FROM information_schema.tables
                    WHERE table_schema = current_schema() AND table_name = :table_name
                )
            """
        else:
            query = "SELECT COUNT(*) FROM sqlite_master WHERE type = 'table' AND name = :table_name"
        result = await self.database.fetch_val(query, {"table_name": self.table_name})
        return bool(result)

    async def ensure(self) -> SchemaResult:
        """
        Create the table unless it exists.

        Returns:
            SchemaResult with operation 'table exists' or 'table created'

        Raises:
            SchemaError: If the check or the creation fails
        """
        try:
            if await self.exists():
                logger.debug(f"Table '{self.table_name}' exists")
                return SchemaResult(success=True, operation="table exists")

            async with self.database.transaction():
                for statement in self.create_statements():
                    await self.database.execute(statement)
        except Exception as e:
            if _is_already_exists(e):
                # Lost a race with another process creating the same table
                logger.info(f"Table '{self.table_name}' was created concurrently")
                return SchemaResult(success=True, operation="table exists")
            logger.error(f"Failed to check/create table '{self.table_name}': {e}", exc_info=True)
            raise SchemaError("check/create table", str(e)) from e

        logger.info(f"Table '{self.table_name}' created")
        return SchemaResult(success=True, operation="table created")
