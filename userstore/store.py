"""
User Store

Validated CRUD access to the users table. Every operation checks its
arguments before touching the database, so invalid input never produces a
query.
"""
import logging
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from userstore import validation
from userstore.config import StoreSettings
from userstore.database.connection_manager import ConnectionManager
from userstore.database.schema import SchemaResult, UsersTableSchema
from userstore.domain.user import User
from userstore.exceptions import DuplicateError, NotFoundError
from userstore.repositories.user_repository import UserRepository

logger = logging.getLogger("userstore.store")

UNIQUE_VIOLATION_SQLSTATE = "23505"
SQLITE_UNIQUE_COLUMNS = ("id", "email", "phone")

_TIMESTAMP_STEP = timedelta(microseconds=1)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def unique_violation(error: Exception, table_name: str = "users") -> Tuple[bool, Optional[str]]:
    """
    Classify a backend error as a unique constraint violation.

    The field is taken from the constraint (PostgreSQL) or the column
    (SQLite) of `table_name` only, never from loose text in the message.

    Returns:
        (is_violation, field) where field is 'email', 'phone', 'id' or None
        when the constraint cannot be attributed.
    """
    message = str(error)
    if getattr(error, "sqlstate", None) == UNIQUE_VIOLATION_SQLSTATE:
        constraint = getattr(error, "constraint_name", None)
        if not constraint:
            match = re.search(r'unique constraint "([^"]+)"', message)
            constraint = match.group(1) if match else ""
        constraints = {
            f"{table_name}_email_key": "email",
            f"{table_name}_phone_key": "phone",
            f"{table_name}_pkey": "id",
        }
        return True, constraints.get(constraint)

    match = re.search(r"UNIQUE constraint failed: (.+)$", message)
    if not match:
        return False, None
    for column in match.group(1).split(","):
        table, _, name = column.strip().rpartition(".")
        if table == table_name and name in SQLITE_UNIQUE_COLUMNS:
            return True, name
    return True, None


class UserStore:
    """
    Schema provisioning plus validated CRUD for one users table.

    The store owns no state besides its connection manager; construct it
    once and share it.
    """

    def __init__(self, connection: ConnectionManager, table_name: str = "users"):
        self.connection = connection
        self.table_name = table_name
        self.schema = UsersTableSchema(connection.database, table_name)
        self.repository = UserRepository(connection.database, table_name)

    @classmethod
    def from_settings(cls, settings: Optional[StoreSettings] = None) -> "UserStore":
        """Build a store from StoreSettings (defaults to the environment)."""
        settings = settings or StoreSettings.from_env()
        return cls(ConnectionManager(settings.url), settings.table_name)

    async def connect(self) -> None:
        await self.connection.connect()

    async def disconnect(self) -> None:
        await self.connection.disconnect()

    async def __aenter__(self) -> "UserStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    async def health_check(self) -> bool:
        return await self.connection.health_check()

    async def ensure_schema(self) -> SchemaResult:
        """
        Create the users table if it does not exist yet.

        Returns:
            SchemaResult(success=True, operation='table exists' | 'table created')

        Raises:
            SchemaError: If the table cannot be checked or created
        """
        logger.debug(f"[UserStore.ensure_schema] table={self.table_name}")
        return await self.schema.ensure()

    def _raise_if_duplicate(self, operation: str, error: Exception) -> None:
        is_duplicate, field = unique_violation(error, self.table_name)
        if is_duplicate:
            logger.info(f"[UserStore.{operation}] duplicate {field or 'key'}")
            raise DuplicateError(field, operation) from error
        logger.error(f"[UserStore.{operation}] ERROR: {error}", exc_info=True)

    async def insert(
        self,
        email: str,
        phone: str,
        password: str,
        id: Optional[str] = None,
    ) -> User:
        """
        Create a new user.

        Args:
            email: Email address, unique
            phone: International mobile number, unique
            password: Precomputed Argon2i hash
            id: Optional UUID; a random one is assigned when omitted

        Returns:
            The stored user, including generated id and timestamps

        Raises:
            ValidationError: If any argument is malformed
            DuplicateError: If the email, phone or id is taken
        """
        values = validation.validate_new_user(email, phone, password, id)
        user_id = values.get("id", str(uuid.uuid4())).lower()
        logger.debug(f"[UserStore.insert] id={user_id}, email={email}")

        try:
            await self.repository.create(
                user_id=user_id,
                email=values["email"],
                password=values["password"],
                phone=values["phone"],
                created_at=_utcnow(),
            )
        except Exception as e:
            self._raise_if_duplicate("insert", e)
            raise

        row = await self.repository.get_by_id(user_id)
        if row is None:
            raise NotFoundError(user_id, "insert")
        return User.from_dict(row)

    async def get_by_id(self, id: str) -> Optional[User]:
        """Get user by ID. Returns None if no user matches."""
        user_id = validation.require_id(id).lower()
        logger.debug(f"[UserStore.get_by_id] id={user_id}")
        row = await self.repository.get_by("id", user_id)
        return User.from_dict(row) if row else None

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email. Returns None if no user matches."""
        validation.require_email(email)
        logger.debug(f"[UserStore.get_by_email] email={email}")
        row = await self.repository.get_by("email", email)
        return User.from_dict(row) if row else None

    async def get_by_phone(self, phone: str) -> Optional[User]:
        """Get user by phone. Returns None if no user matches."""
        validation.require_phone(phone)
        logger.debug(f"[UserStore.get_by_phone] phone={phone}")
        row = await self.repository.get_by("phone", phone)
        return User.from_dict(row) if row else None

    async def _update(self, operation: str, user_id: str, column: str, value: str) -> User:
        current = await self.repository.get_by_id(user_id)
        if current is None:
            raise NotFoundError(user_id, operation)

        # updated_at must move forward even if the clock has not
        previous = User.from_dict(current).updated_at
        updated_at = max(_utcnow(), previous + _TIMESTAMP_STEP)

        try:
            await self.repository.update_field(user_id, column, value, updated_at)
        except Exception as e:
            self._raise_if_duplicate(operation, e)
            raise

        row = await self.repository.get_by_id(user_id)
        if row is None:
            # Deleted between the write and the read back
            raise NotFoundError(user_id, operation)
        return User.from_dict(row)

    async def update_email(self, id: str, email: str) -> User:
        """
        Change a user's email.

        Raises:
            ValidationError: If id or email is malformed
            NotFoundError: If no user has this id
            DuplicateError: If another user already has this email
        """
        user_id = validation.require_id(id).lower()
        validation.require_email(email)
        logger.debug(f"[UserStore.update_email] id={user_id}, email={email}")
        return await self._update("update_email", user_id, "email", email)

    async def update_password(self, id: str, password: str) -> User:
        """Replace a user's password hash."""
        user_id = validation.require_id(id).lower()
        validation.require_password(password)
        logger.debug(f"[UserStore.update_password] id={user_id}")
        return await self._update("update_password", user_id, "password", password)

    async def update_phone(self, id: str, phone: str) -> User:
        """Change a user's phone. Raises DuplicateError if the number is taken."""
        user_id = validation.require_id(id).lower()
        validation.require_phone(phone)
        logger.debug(f"[UserStore.update_phone] id={user_id}, phone={phone}")
        return await self._update("update_phone", user_id, "phone", phone)

    async def update_role(self, id: str, role: str) -> User:
        user_id = validation.require_id(id).lower()
        validation.require_role(role)
        logger.debug(f"[UserStore.update_role] id={user_id}, role={role}")
        return await self._update("update_role", user_id, "role", role)

    async def delete_by_id(self, id: str) -> int:
        """
        Permanently delete a user.

        Returns:
            Number of rows removed: 1, or 0 when no user had this id
        """
        user_id = validation.require_id(id).lower()
        logger.debug(f"[UserStore.delete_by_id] id={user_id}")
        return await self.repository.delete(user_id)
