"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from placement_billing.config import get_settings
from placement_billing.database import init_db
from placement_billing.services.batch_generator import MonthlyBillingGenerator
from placement_billing.services.ledger_service import SqlBillingLedger
from placement_billing.services.locking_service import BillingRunLocker
from placement_billing.services.stores import SqlDeploymentDirectory, SqlRateScheduleStore


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


DbSession = Annotated[AsyncSession, Depends(get_db_session)]


def get_run_locker(request: Request) -> BillingRunLocker:
    """Process-wide run locker created at application start."""
    return request.app.state.run_locker


def get_ledger(db: DbSession) -> SqlBillingLedger:
    """Billing ledger bound to the request session."""
    return SqlBillingLedger(db)


async def get_billing_generator(
    db: DbSession,
    locker: Annotated[BillingRunLocker, Depends(get_run_locker)],
) -> MonthlyBillingGenerator:
    """Batch generator wired to the request session."""
    return MonthlyBillingGenerator(
        directory=SqlDeploymentDirectory(db),
        schedules=SqlRateScheduleStore(db),
        ledger=SqlBillingLedger(db),
        locker=locker,
        settings=get_settings(),
    )


# Type aliases for cleaner dependency injection
Ledger = Annotated[SqlBillingLedger, Depends(get_ledger)]
BillingGenerator = Annotated[MonthlyBillingGenerator, Depends(get_billing_generator)]
