"""Intersection of a deployment's active interval with a billing month."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from placement_billing.calculators.periods import MonthPeriod, inclusive_day_count
from placement_billing.calculators.types import (
    ComputationInvariantError,
    DeploymentRecord,
    DeploymentStatus,
)


@dataclass(frozen=True)
class Overlap:
    """Active days within a month and the effective bounds (None when disjoint)."""

    active_days: int
    start: date | None
    end: date | None


def overlap(
    start_date: date,
    end_date: date | None,
    period: MonthPeriod,
    deployment_id: UUID | None = None,
) -> Overlap:
    """Intersect [start_date, end_date] with the month.

    A missing end date means the deployment runs through the month end.
    """
    if end_date is not None and end_date < start_date:
        raise ComputationInvariantError(
            f"end date {end_date} precedes start date {start_date}", deployment_id
        )

    effective_start = max(start_date, period.start)
    effective_end = min(end_date or period.end, period.end)

    days = inclusive_day_count(effective_start, effective_end)
    if days == 0:
        return Overlap(active_days=0, start=None, end=None)
    if days > period.days:
        raise ComputationInvariantError(
            f"{days} active days exceeds {period.days} days in {period.label}",
            deployment_id,
        )
    return Overlap(active_days=days, start=effective_start, end=effective_end)


def overlap_for(deployment: DeploymentRecord, period: MonthPeriod) -> Overlap:
    """Overlap for a deployment record, checking its status invariant first."""
    if deployment.status != DeploymentStatus.ACTIVE and deployment.end_date is None:
        raise ComputationInvariantError(
            f"deployment is '{deployment.status.value}' but has no end date",
            deployment.deployment_id,
        )
    return overlap(
        deployment.start_date,
        deployment.end_date,
        period,
        deployment_id=deployment.deployment_id,
    )


def active_days(start_date: date, end_date: date | None, period: MonthPeriod) -> int:
    """Number of days in the month the deployment was active (0 if disjoint)."""
    return overlap(start_date, end_date, period).active_days
