"""
User Domain Model

Immutable record representing one row of the users table.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping


class Role(str, Enum):
    ADMIN = "admin"
    VIP = "vip"
    PREMIUM = "premium"
    MEMBER = "member"
    BASIC = "basic"


ROLES = tuple(role.value for role in Role)
DEFAULT_ROLE = Role.BASIC.value

COLUMNS = ("id", "email", "password", "phone", "role", "created_at", "updated_at")


def _as_datetime(value: Any) -> datetime:
    # SQLite hands timestamps back as ISO strings
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class User:
    """User domain model."""
    id: str
    email: str
    password: str
    phone: str
    role: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "User":
        """Create User from dictionary (e.g., from database row)."""
        user_id = data["id"]
        if isinstance(user_id, uuid.UUID):
            user_id = str(user_id)
        return cls(
            id=user_id.lower(),
            email=data["email"],
            password=data["password"],
            phone=data["phone"],
            role=data.get("role") or DEFAULT_ROLE,
            created_at=_as_datetime(data["created_at"]),
            updated_at=_as_datetime(data["updated_at"]),
        )

    def to_dict(self) -> dict:
        """Convert User to dictionary."""
        return {
            "id": self.id,
            "email": self.email,
            "password": self.password,
            "phone": self.phone,
            "role": self.role,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, email={self.email!r}, phone={self.phone!r}, role={self.role!r})"
