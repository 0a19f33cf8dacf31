"""
Database Layer

Connection lifecycle and schema provisioning for the users table.
"""

from .connection_manager import ConnectionManager
from .schema import SchemaResult, UsersTableSchema

__all__ = [
    "ConnectionManager",
    "SchemaResult",
    "UsersTableSchema",
]
