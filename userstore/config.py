"""
Store Settings

Connection settings for the user store, read from the environment (and a
local .env file when present).
"""
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from dotenv import load_dotenv

DEFAULT_TABLE_NAME = "users"


def _optional(value: Optional[str]) -> Optional[str]:
    # Deployment templates write the literal "null" for absent credentials
    if value is None or value == "" or value == "null":
        return None
    return value


@dataclass
class StoreSettings:
    """
    Where the users table lives.

    `database_url` wins when set; otherwise the URL is composed from the
    individual connection parts.
    """
    database_url: Optional[str] = None
    client: str = "postgresql"
    host: str = "localhost"
    port: int = 5432
    database: str = "localhost_db"
    user: Optional[str] = None
    password: Optional[str] = None
    table_name: str = DEFAULT_TABLE_NAME

    def __post_init__(self):
        self.user = _optional(self.user)
        self.password = _optional(self.password)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "StoreSettings":
        """
        Build settings from environment variables.

        Args:
            env_file: Optional path to a .env file. Defaults to the nearest .env.
        """
        load_dotenv(env_file)
        return cls(
            database_url=_optional(os.getenv("DATABASE_URL")),
            client=os.getenv("DB_CLIENT", "postgresql"),
            host=os.getenv("DB_HOST", "localhost"),
            port=int(os.getenv("DB_PORT", "5432")),
            database=os.getenv("DB_NAME", "localhost_db"),
            user=os.getenv("DB_USER"),
            password=os.getenv("DB_PASSWORD"),
            table_name=os.getenv("USERS_TABLE", DEFAULT_TABLE_NAME),
        )

    @property
    def url(self) -> str:
        if self.database_url:
            return self.database_url

        credentials = ""
        if self.user:
            credentials = quote(self.user, safe="")
            if self.password:
                credentials += ":" + quote(self.password, safe="")
            credentials += "@"
        return f"{self.client}://{credentials}{self.host}:{self.port}/{self.database}"
