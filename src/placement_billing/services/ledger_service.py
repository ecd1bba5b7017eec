"""Idempotent persistence of monthly bill lines."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from placement_billing.calculators.types import BillLineCandidate
from placement_billing.config import get_settings
from placement_billing.database import STORE_ERRORS, StoreUnavailableError
from placement_billing.models import BillLine

logger = logging.getLogger(__name__)

CONFLICT_KEY = ["deployment_id", "year", "month"]


class SqlBillingLedger:
    """Billing ledger backed by the bill_line table.

    Key invariants:
    1. One bill_line per (deployment_id, year, month) (unique constraint)
    2. Regeneration overwrites the row via ON CONFLICT DO UPDATE
    3. Each upsert is committed on its own, so a later failure in the same
       batch never rolls back lines already written
    """

    def __init__(
        self,
        session: AsyncSession,
        due_days: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.session = session
        self.due_days = due_days if due_days is not None else get_settings().bill_due_days
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(BillLine)
        if dialect == "sqlite":
            return sqlite.insert(BillLine)
        raise StoreUnavailableError("upsert_bill_line", f"unsupported dialect '{dialect}'")

    async def upsert_bill_line(self, line: BillLineCandidate) -> None:
        """Insert or overwrite the bill line for (deployment_id, year, month)."""
        generated_at = self._clock()
        values = {
            "deployment_id": line.deployment_id,
            "year": line.year,
            "month": line.month,
            "bill_no": line.bill_no,
            "active_days": line.active_days,
            "billing_period_start": line.billing_period_start,
            "billing_period_end": line.billing_period_end,
            "service_fee_tier": line.service_fee_tier,
            "service_fee_rate": line.service_fee_rate,
            "service_fee_amount": line.service_fee_amount,
            "accommodation_fee_rate": line.accommodation_fee_rate,
            "accommodation_fee_amount": line.accommodation_fee_amount,
            "total_amount": line.total_amount,
            "payer_type": "worker",
            "status": "draft",
            "due_date": due_date_for(generated_at.date(), self.due_days),
            "generated_at": generated_at,
        }

        stmt = self._insert().values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=CONFLICT_KEY,
            set_={
                key: stmt.excluded[key]
                for key in values
                if key not in CONFLICT_KEY
            },
        )

        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except STORE_ERRORS as exc:
            logger.exception(
                "Bill line upsert failed for deployment %s %d/%02d",
                line.deployment_id,
                line.year,
                line.month,
            )
            try:
                await self.session.rollback()
            except STORE_ERRORS:
                logger.warning("Rollback after failed upsert also failed", exc_info=True)
            raise StoreUnavailableError("upsert_bill_line", str(exc)) from exc

    async def list_bill_lines(self, year: int, month: int) -> list[BillLine]:
        """Persisted lines for a month, ordered by bill number."""
        try:
            result = await self.session.execute(
                select(BillLine)
                .where(BillLine.year == year, BillLine.month == month)
                .order_by(BillLine.bill_no, BillLine.deployment_id)
                .execution_options(populate_existing=True)
            )
        except STORE_ERRORS as exc:
            raise StoreUnavailableError("list_bill_lines", str(exc)) from exc
        return list(result.scalars().all())

    async def get_bill_line(self, deployment_id: UUID, year: int, month: int) -> BillLine | None:
        """The persisted line for one key, if any."""
        try:
            result = await self.session.execute(
                select(BillLine).where(
                    BillLine.deployment_id == deployment_id,
                    BillLine.year == year,
                    BillLine.month == month,
                )
                .execution_options(populate_existing=True)
            )
        except STORE_ERRORS as exc:
            raise StoreUnavailableError("get_bill_line", str(exc)) from exc
        return result.scalar_one_or_none()


def due_date_for(generated_on: date, due_days: int) -> date:
    """Due date for a bill generated on a given UTC date."""
    return generated_on + timedelta(days=due_days)
