"""Service-fee tier resolution by contract year."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import IntEnum
from typing import TYPE_CHECKING
from uuid import UUID

from placement_billing.calculators.periods import MonthPeriod, months_between
from placement_billing.calculators.types import (
    ComputationInvariantError,
    DeploymentRecord,
    RateSchedule,
)

if TYPE_CHECKING:
    from placement_billing.services.stores import RateScheduleStore


class RateTier(IntEnum):
    """Index into the three contract-year service-fee rates."""

    YEAR_1 = 0
    YEAR_2 = 1
    YEAR_3 = 2

    @property
    def contract_year(self) -> int:
        return self.value + 1


class ScheduleMissingError(Exception):
    """Raised when a deployment has no rate schedule and cannot be billed."""

    def __init__(self, deployment_id: UUID):
        self.deployment_id = deployment_id
        super().__init__(f"No rate schedule found for deployment {deployment_id}")


@dataclass(frozen=True)
class ResolvedRate:
    """Rates that apply to one deployment in one month."""

    tier: RateTier
    service_fee_rate: Decimal
    accommodation_fee_rate: Decimal


def resolve_tier(start_date: date, month_start: date) -> RateTier:
    """Tier from whole contract years elapsed, clamped to year 1..3.

    There is no year-4 rate: later years stay on the year-3 tier.
    """
    elapsed_years = months_between(start_date, month_start) // 12
    return RateTier(min(max(elapsed_years, RateTier.YEAR_1), RateTier.YEAR_3))


def select_rates(schedule: RateSchedule, tier: int) -> ResolvedRate:
    """Pick the service rate for tier plus the flat accommodation rate."""
    if tier not in (RateTier.YEAR_1, RateTier.YEAR_2, RateTier.YEAR_3):
        raise ComputationInvariantError(f"rate tier {tier} outside 0..2")
    tier = RateTier(tier)
    return ResolvedRate(
        tier=tier,
        service_fee_rate=schedule.service_fee_tiers[tier],
        accommodation_fee_rate=schedule.accommodation_fee,
    )


class RateScheduleResolver:
    """Resolves the applicable rates for a deployment in a billing month.

    Rate selection:
    1. Load the deployment's schedule; a missing schedule is not billable
    2. Count whole calendar months from the start month to the billing month
    3. Years 1, 2 and 3 map to the three service-fee rates; later years keep year 3
    """

    def __init__(self, store: RateScheduleStore):
        self.store = store

    async def resolve(self, deployment: DeploymentRecord, period: MonthPeriod) -> ResolvedRate:
        """Resolve rates for a deployment.

        Raises:
            ScheduleMissingError: If the deployment has no rate schedule
        """
        schedule = await self.store.get_schedule_for(deployment.deployment_id)
        if schedule is None:
            raise ScheduleMissingError(deployment.deployment_id)

        tier = resolve_tier(deployment.start_date, period.start)
        return select_rates(schedule, tier)
