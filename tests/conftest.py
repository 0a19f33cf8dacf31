"""
Shared fixtures for the user store tests.

Behavioural tests run against an on-disk SQLite database in tmp_path.
"""
import pytest

from userstore.database.connection_manager import ConnectionManager
from userstore.store import UserStore

from tests.samples import OTHER_PASSWORD_HASH, PASSWORD_HASH, USER_ID, sqlite_url


@pytest.fixture
def yousif():
    """Sample user arguments for insert."""
    return {
        "email": "yousif@almudhaf.com",
        "password": PASSWORD_HASH,
        "phone": "+96555968743",
        "id": USER_ID,
    }


@pytest.fixture
def other_user():
    return {
        "email": "ofeenee@gmail.com",
        "password": OTHER_PASSWORD_HASH,
        "phone": "+447400123456",
    }


@pytest.fixture
async def store(tmp_path):
    """Connected store with a provisioned users table."""
    user_store = UserStore(ConnectionManager(sqlite_url(tmp_path / "users.db")))
    await user_store.connect()
    await user_store.ensure_schema()
    yield user_store
    await user_store.disconnect()
