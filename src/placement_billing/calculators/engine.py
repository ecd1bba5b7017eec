"""Per-deployment bill line computation."""

from __future__ import annotations

from placement_billing.calculators.overlap import Overlap
from placement_billing.calculators.periods import MonthPeriod
from placement_billing.calculators.prorator import prorate
from placement_billing.calculators.rate_resolver import ResolvedRate
from placement_billing.calculators.types import BillLineCandidate, DeploymentRecord


class BillingEngine:
    """Builds bill lines from an overlap and resolved rates.

    Pure computation: the same deployment, rates and month always produce an
    identical candidate, which is what makes regeneration idempotent.
    """

    @staticmethod
    def bill_no(deployment: DeploymentRecord, period: MonthPeriod) -> str:
        """Deterministic bill number: MTH-YYYYMM-<first 8 hex of deployment id>."""
        return (
            f"MTH-{period.year}{period.month:02d}-"
            f"{deployment.deployment_id.hex[:8].upper()}"
        )

    @classmethod
    def compute_line(
        cls,
        deployment: DeploymentRecord,
        period: MonthPeriod,
        active: Overlap,
        rates: ResolvedRate,
    ) -> BillLineCandidate:
        """Prorate service and accommodation fees independently."""
        return BillLineCandidate(
            deployment_id=deployment.deployment_id,
            year=period.year,
            month=period.month,
            bill_no=cls.bill_no(deployment, period),
            active_days=active.active_days,
            billing_period_start=active.start,
            billing_period_end=active.end,
            service_fee_tier=rates.tier.contract_year,
            service_fee_rate=rates.service_fee_rate,
            service_fee_amount=prorate(rates.service_fee_rate, active.active_days),
            accommodation_fee_rate=rates.accommodation_fee_rate,
            accommodation_fee_amount=prorate(rates.accommodation_fee_rate, active.active_days),
        )
