"""Collaborator contracts consumed by the batch generator.

Deployment and fee data are owned by the administrative CRUD layer; billing
reads them through these narrow protocols. SQLAlchemy-backed implementations
are provided for the application's own database.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Protocol, Sequence
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from placement_billing.calculators.periods import as_utc_date
from placement_billing.calculators.types import (
    BillLineCandidate,
    DeploymentRecord,
    DeploymentStatus,
    RateSchedule,
)
from placement_billing.database import STORE_ERRORS, StoreUnavailableError
from placement_billing.models import Deployment, DeploymentMonthlyFee

logger = logging.getLogger(__name__)


class DeploymentDirectory(Protocol):
    """Read-only source of deployments."""

    async def list_deployments_overlapping(
        self, month_start: date, month_end: date
    ) -> Sequence[DeploymentRecord]:
        """Deployments with start <= month_end and (no end or end >= month_start)."""
        ...


class RateScheduleStore(Protocol):
    """Read-only source of per-deployment rate schedules."""

    async def get_schedule_for(self, deployment_id: UUID) -> RateSchedule | None:
        """Return the current schedule, or None when the deployment has none."""
        ...


class BillingLedger(Protocol):
    """Durable store of one bill line per (deployment, year, month)."""

    async def upsert_bill_line(self, line: BillLineCandidate) -> None:
        """Insert the line or overwrite the existing one for its key."""
        ...


def to_deployment_record(row: Deployment) -> DeploymentRecord:
    """Map an ORM deployment to the billing read model."""
    return DeploymentRecord(
        deployment_id=row.deployment_id,
        start_date=as_utc_date(row.start_date),
        end_date=as_utc_date(row.end_date) if row.end_date is not None else None,
        status=DeploymentStatus(row.status),
        worker_id=row.worker_id,
    )


def to_rate_schedule(row: DeploymentMonthlyFee) -> RateSchedule:
    """Map an ORM fee row to a rate schedule."""
    return RateSchedule(
        service_fee_year1=row.service_fee_year1,
        service_fee_year2=row.service_fee_year2,
        service_fee_year3=row.service_fee_year3,
        accommodation_fee=row.accommodation_fee,
    )


class SqlDeploymentDirectory:
    """Deployment directory backed by the deployment table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_deployments_overlapping(
        self, month_start: date, month_end: date
    ) -> list[DeploymentRecord]:
        try:
            result = await self.session.execute(
                select(Deployment)
                .where(
                    Deployment.start_date <= month_end,
                    or_(Deployment.end_date.is_(None), Deployment.end_date >= month_start),
                )
                .order_by(Deployment.start_date, Deployment.deployment_id)
            )
            rows = list(result.scalars().all())
        except STORE_ERRORS as exc:
            logger.exception("Deployment query failed for %s..%s", month_start, month_end)
            raise StoreUnavailableError("list_deployments_overlapping", str(exc)) from exc

        return [to_deployment_record(row) for row in rows]


class SqlRateScheduleStore:
    """Rate schedule store backed by the deployment_monthly_fee table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_schedule_for(self, deployment_id: UUID) -> RateSchedule | None:
        try:
            row = await self.session.get(DeploymentMonthlyFee, deployment_id)
        except STORE_ERRORS as exc:
            logger.exception("Rate schedule lookup failed for deployment %s", deployment_id)
            raise StoreUnavailableError("get_schedule_for", str(exc)) from exc

        if row is None:
            return None
        return to_rate_schedule(row)
