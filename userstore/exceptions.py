"""
User Store - Exceptions
"""
from typing import Optional


class UserStoreError(Exception):
    """Base exception for user store errors"""
    pass


class ValidationError(UserStoreError):
    """Raised when an argument fails validation, before any storage access"""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"{field} invalid.")


class DuplicateError(UserStoreError):
    """Raised when a write violates a unique constraint"""

    def __init__(self, field: Optional[str], operation: str):
        self.field = field
        self.operation = operation
        target = field or "unique key"
        super().__init__(f"{operation}: {target} already exists.")


class NotFoundError(UserStoreError):
    """Raised when an update targets a user that does not exist"""

    def __init__(self, user_id: str, operation: str):
        self.user_id = user_id
        self.operation = operation
        super().__init__(f"{operation}: no user with id {user_id}.")


class SchemaError(UserStoreError):
    """Raised when the users table cannot be checked or created"""

    def __init__(self, operation: str, message: Optional[str] = None):
        self.operation = operation
        super().__init__(f"{operation}: {message}" if message else operation)
