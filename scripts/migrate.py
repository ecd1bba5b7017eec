#!/usr/bin/env python
"""Create the billing tables in the database.

Usage:
    python scripts/migrate.py
    python scripts/migrate.py --database-url postgresql+asyncpg://...
    python scripts/migrate.py --dry-run
"""

import argparse
import asyncio
import sys

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine

from placement_billing.config import get_settings
from placement_billing.models import Base


def _existing_tables(sync_conn) -> set[str]:
    return set(inspect(sync_conn).get_table_names())


async def migrate(database_url: str, dry_run: bool) -> int:
    """Create any billing tables that do not exist yet."""
    engine = create_async_engine(database_url, echo=False)

    try:
        async with engine.begin() as conn:
            existing = await conn.run_sync(_existing_tables)
            pending = [t.name for t in Base.metadata.sorted_tables if t.name not in existing]

            print(f"Already present: {len(existing & set(Base.metadata.tables))}")

            if not pending:
                print("No pending tables.")
                return 0

            print(f"Pending tables: {len(pending)}")
            for name in pending:
                print(f"  Creating: {name}")

            if dry_run:
                print("\n[DRY RUN] Nothing was created")
                return 0

            await conn.run_sync(Base.metadata.create_all)
    except SQLAlchemyError as e:
        print(f"ERROR: Migration failed: {e}")
        return 1
    finally:
        await engine.dispose()

    print("\nOK")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Create billing tables")
    parser.add_argument(
        "--database-url",
        default=get_settings().database_url,
        help="Database URL (default: $DATABASE_URL)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be created without executing",
    )

    args = parser.parse_args()

    print("Billing Migration Runner")
    print("=" * 50)
    print(f"Database: {args.database_url.split('@')[-1] if '@' in args.database_url else args.database_url}")
    print()

    return asyncio.run(migrate(args.database_url, args.dry_run))


if __name__ == "__main__":
    sys.exit(main())
