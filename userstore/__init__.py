"""
User Store

Persistence for user accounts with validation in front of every query:
- domain: the immutable User record and role enumeration
- validation: per-field validators
- database: connection lifecycle and table provisioning
- repositories: data access
- store: the validated CRUD API
"""

from userstore.config import StoreSettings
from userstore.database.connection_manager import ConnectionManager
from userstore.database.schema import SchemaResult
from userstore.domain.user import DEFAULT_ROLE, ROLES, Role, User
from userstore.exceptions import (
    DuplicateError,
    NotFoundError,
    SchemaError,
    UserStoreError,
    ValidationError,
)
from userstore.store import UserStore

__all__ = [
    "ConnectionManager",
    "DEFAULT_ROLE",
    "DuplicateError",
    "NotFoundError",
    "ROLES",
    "Role",
    "SchemaError",
    "SchemaResult",
    "StoreSettings",
    "User",
    "UserStore",
    "UserStoreError",
    "ValidationError",
]
