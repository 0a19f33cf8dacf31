"""
Tests for users table provisioning.
"""
import pytest
from databases import Database
from unittest.mock import patch

from userstore.database.connection_manager import ConnectionManager
from userstore.database.schema import SchemaResult, UsersTableSchema, validate_table_name
from userstore.exceptions import SchemaError
from userstore.store import UserStore

from tests.samples import sqlite_url


@pytest.fixture
async def connected_store(tmp_path):
    user_store = UserStore(ConnectionManager(sqlite_url(tmp_path / "schema.db")))
    await user_store.connect()
    yield user_store
    await user_store.disconnect()


@pytest.mark.asyncio
async def test_ensure_schema_creates_then_reports_existing(connected_store):
    assert await connected_store.schema.exists() is False

    created = await connected_store.ensure_schema()
    assert created == SchemaResult(success=True, operation="table created")
    assert await connected_store.schema.exists() is True

    again = await connected_store.ensure_schema()
    assert again == SchemaResult(success=True, operation="table exists")


@pytest.mark.asyncio
async def test_created_table_has_expected_columns_and_indexes(connected_store):
    await connected_store.ensure_schema()
    database = connected_store.connection.database

    columns = await database.fetch_all("PRAGMA table_info(users)")
    assert [column["name"] for column in columns] == [
        "id", "email", "password", "phone", "role", "created_at", "updated_at",
    ]

    indexes = await database.fetch_all("PRAGMA index_list(users)")
    names = {index["name"] for index in indexes}
    assert "users_password_index" in names


@pytest.mark.asyncio
async def test_role_defaults_to_basic_and_is_constrained(connected_store):
    await connected_store.ensure_schema()
    database = connected_store.connection.database

    await database.execute(
        "INSERT INTO users (id, email, password, phone) VALUES (:id, :email, :password, :phone)",
        {"id": "row-1", "email": "x@y.com", "password": "p", "phone": "1"},
    )
    role = await database.fetch_val("SELECT role FROM users WHERE id = 'row-1'")
    assert role == "basic"

    with pytest.raises(Exception) as exc_info:
        await database.execute("UPDATE users SET role = 'superuser' WHERE id = 'row-1'")
    assert "check constraint" in str(exc_info.value).lower()


@pytest.mark.asyncio
async def test_custom_table_name(tmp_path):
    user_store = UserStore(ConnectionManager(sqlite_url(tmp_path / "custom.db")), table_name="accounts")
    async with user_store:
        result = await user_store.ensure_schema()
        assert result.operation == "table created"
        assert await user_store.schema.exists()


@pytest.mark.asyncio
async def test_creation_failure_raises_schema_error(connected_store):
    with patch.object(connected_store.schema, "create_statements", return_value=["CREATE TABLE broken ("]):
        with pytest.raises(SchemaError) as exc_info:
            await connected_store.ensure_schema()

    assert exc_info.value.operation == "check/create table"
    assert exc_info.value.__cause__ is not None
    assert await connected_store.schema.exists() is False


@pytest.mark.asyncio
async def test_already_exists_error_is_not_a_failure(connected_store):
    await connected_store.ensure_schema()
    # Simulate losing the race: the existence check misses, creation collides
    with patch.object(connected_store.schema, "exists", return_value=False):
        result = await connected_store.ensure_schema()

    assert result == SchemaResult(success=True, operation="table exists")


@pytest.mark.parametrize("name", ["users", "Users_2", "_accounts"])
def test_validate_table_name_accepts_identifiers(name):
    assert validate_table_name(name) == name


@pytest.mark.parametrize("name", ["", "users; DROP TABLE users", "user-accounts", "1users", None])
def test_validate_table_name_rejects(name):
    with pytest.raises(SchemaError):
        validate_table_name(name)


def test_store_rejects_bad_table_name(tmp_path):
    with pytest.raises(SchemaError):
        UserStore(ConnectionManager(sqlite_url(tmp_path / "x.db")), table_name="bad name")


def test_postgres_ddl():
    schema = UsersTableSchema(Database("postgresql://localhost:5432/localhost_db"), "users")
    create_table, create_index = schema.create_statements()

    assert schema.is_postgres
    assert "id UUID NOT NULL" in create_table
    assert "TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT CURRENT_TIMESTAMP" in create_table
    assert "CONSTRAINT users_email_key UNIQUE (email)" in create_table
    assert "CONSTRAINT users_phone_key UNIQUE (phone)" in create_table
    assert "role IN ('admin', 'vip', 'premium', 'member', 'basic')" in create_table
    assert "DEFAULT 'basic'" in create_table
    assert create_index == "CREATE INDEX users_password_index ON users (password)"


def test_sqlite_ddl():
    schema = UsersTableSchema(Database("sqlite:///users.db"), "members")
    create_table, _ = schema.create_statements()

    assert not schema.is_postgres
    assert "CREATE TABLE members" in create_table
    assert "id VARCHAR(36) NOT NULL" in create_table
    assert "CONSTRAINT members_pkey PRIMARY KEY (id)" in create_table


@pytest.mark.parametrize("url, expected", [
    ("postgresql://localhost:5432/localhost_db", True),
    ("postgresql+asyncpg://localhost:5432/localhost_db", True),
    ("sqlite:///users.db", False),
])
def test_dialect_detection_drives_ddl(url, expected):
    connection = ConnectionManager(url)
    schema = UsersTableSchema(connection.database, "users")

    assert connection.is_postgres is expected
    assert schema.is_postgres is expected
    assert ("id UUID NOT NULL" in schema.create_statements()[0]) is expected
