"""Billing calculation pipeline."""

from placement_billing.calculators.engine import BillingEngine
from placement_billing.calculators.overlap import Overlap, active_days, overlap, overlap_for
from placement_billing.calculators.periods import InvalidPeriodError, MonthPeriod
from placement_billing.calculators.prorator import PRORATION_BASIS_DAYS, prorate
from placement_billing.calculators.rate_resolver import (
    RateScheduleResolver,
    RateTier,
    ResolvedRate,
    ScheduleMissingError,
    resolve_tier,
)

__all__ = [
    "BillingEngine",
    "InvalidPeriodError",
    "MonthPeriod",
    "Overlap",
    "PRORATION_BASIS_DAYS",
    "RateScheduleResolver",
    "RateTier",
    "ResolvedRate",
    "ScheduleMissingError",
    "active_days",
    "overlap",
    "overlap_for",
    "prorate",
    "resolve_tier",
]
