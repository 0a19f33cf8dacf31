"""
Provision the users table.

    python -m userstore.provision [--database-url URL] [--table NAME]

Connects with the configured settings, creates the table if needed and exits
non-zero when the database is unreachable or the schema cannot be created.
"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from userstore.config import StoreSettings
from userstore.exceptions import SchemaError
from userstore.store import UserStore

logger = logging.getLogger("userstore.provision")


async def provision(settings: StoreSettings) -> bool:
    try:
        store = UserStore.from_settings(settings)
    except SchemaError as e:
        logger.error(f"Invalid configuration: {e}")
        return False

    try:
        await store.connect()
    except Exception as e:
        logger.error(f"Could not connect to database: {e}")
        return False

    try:
        result = await store.ensure_schema()
        logger.info(f"Table '{settings.table_name}': {result.operation}")
        return result.success
    except SchemaError as e:
        logger.error(f"Schema provisioning failed: {e}")
        return False
    finally:
        await store.disconnect()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Create the users table if it does not exist")
    parser.add_argument("--database-url", help="Database URL (defaults to DATABASE_URL / DB_* variables)")
    parser.add_argument("--table", help="Table name (defaults to USERS_TABLE or 'users')")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = StoreSettings.from_env()
    if args.database_url:
        settings.database_url = args.database_url
    if args.table:
        settings.table_name = args.table

    success = asyncio.run(provision(settings))
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
