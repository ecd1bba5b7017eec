"""Fixed-basis proration of monthly rates."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from placement_billing.calculators.types import ComputationInvariantError

# Contractual convention: every month prorates against a nominal 30 days,
# whatever its real length. A full 31-day month bills slightly over the rate.
PRORATION_BASIS_DAYS = 30

WHOLE_UNIT = Decimal("1")


def prorate(rate: Decimal, active_days: int) -> Decimal:
    """Return round_half_up(rate * active_days / 30) in whole currency units."""
    if active_days < 0:
        raise ComputationInvariantError(f"negative active days: {active_days}")
    if rate < 0:
        raise ComputationInvariantError(f"negative monthly rate: {rate}")

    amount = Decimal(rate) * Decimal(active_days) / Decimal(PRORATION_BASIS_DAYS)
    return amount.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)
