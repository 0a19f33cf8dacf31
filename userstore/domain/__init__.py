"""
Domain Models

Pure data models representing the user entity.
"""

from .user import User, Role, ROLES, DEFAULT_ROLE

__all__ = [
    "User",
    "Role",
    "ROLES",
    "DEFAULT_ROLE",
]
