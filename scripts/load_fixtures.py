"""Load demo deployments into the database.

Usage:
    python -m scripts.load_fixtures [--database-url URL]

Seeds a handful of deployments covering the common billing cases (mid-month
start, second and third contract year, ended, missing fee schedule). Rows use
fixed ids, so loading twice leaves the same data.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from placement_billing.config import get_settings
from placement_billing.models import Deployment, DeploymentMonthlyFee

# (deployment_id, start, end, status, (year1, year2, year3, accommodation) or None)
DEMO_DEPLOYMENTS = [
    (
        UUID("5b0f3c1e-0d4a-4c57-9a61-1f2e3d4c5b6a"),
        date(2024, 5, 15),
        None,
        "active",
        ("1500", "1500", "1500", "2500"),
    ),
    (
        UUID("6c1a4d2f-1e5b-4d68-8b72-2a3f4e5d6c7b"),
        date(2022, 1, 1),
        None,
        "active",
        ("1800", "1700", "1500", "2500"),
    ),
    (
        UUID("7d2b5e3a-2f6c-4e79-9c83-3b4a5f6e7d8c"),
        date(2023, 6, 1),
        date(2024, 5, 20),
        "ended",
        ("1800", "1700", "1500", "0"),
    ),
    (
        UUID("8e3c6f4b-3a7d-4f8a-ad94-4c5b6a7f8e9d"),
        date(2024, 2, 1),
        None,
        "active",
        None,
    ),
]


async def load_fixtures(database_url: str) -> None:
    """Upsert the demo deployments and their fee schedules."""
    print(f"Target database: {database_url.split('@')[1] if '@' in database_url else database_url}")

    engine = create_async_engine(database_url, echo=False)

    try:
        async with AsyncSession(engine) as session:
            for deployment_id, start, end, status, fees in DEMO_DEPLOYMENTS:
                await session.merge(
                    Deployment(
                        deployment_id=deployment_id,
                        start_date=start,
                        end_date=end,
                        status=status,
                    )
                )
                if fees is not None:
                    year1, year2, year3, accommodation = fees
                    await session.merge(
                        DeploymentMonthlyFee(
                            deployment_id=deployment_id,
                            service_fee_year1=Decimal(year1),
                            service_fee_year2=Decimal(year2),
                            service_fee_year3=Decimal(year3),
                            accommodation_fee=Decimal(accommodation),
                        )
                    )
                print(f"  {deployment_id}  {start} .. {end or 'open'}  fees={'yes' if fees else 'none'}")

            await session.commit()
    finally:
        await engine.dispose()

    print(f"\nLoaded {len(DEMO_DEPLOYMENTS)} deployments")


def main() -> None:
    parser = argparse.ArgumentParser(description="Load demo deployments into database")
    parser.add_argument(
        "--database-url",
        default=get_settings().database_url,
        help="Database URL (default: $DATABASE_URL)",
    )

    args = parser.parse_args()

    try:
        asyncio.run(load_fixtures(args.database_url))
    except SQLAlchemyError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
