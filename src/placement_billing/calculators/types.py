"""Type definitions for the billing calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


class DeploymentStatus(str, Enum):
    """Deployment lifecycle status values."""

    ACTIVE = "active"
    ENDED = "ended"
    TERMINATED = "terminated"


class SkipReason(str, Enum):
    """Why a candidate deployment produced no bill line."""

    SCHEDULE_MISSING = "ScheduleMissing"
    NOT_STARTED = "NotStarted"
    INVARIANT_VIOLATION = "ComputationInvariantViolation"


class ComputationInvariantError(Exception):
    """Raised when billing inputs or intermediates break an invariant.

    Indicates a data or programming bug rather than user error.
    """

    def __init__(self, message: str, deployment_id: UUID | None = None):
        self.deployment_id = deployment_id
        if deployment_id is not None:
            message = f"{message} (deployment {deployment_id})"
        super().__init__(message)


@dataclass(frozen=True)
class DeploymentRecord:
    """Read model of a deployment as seen by billing."""

    deployment_id: UUID
    start_date: date
    end_date: date | None = None
    status: DeploymentStatus = DeploymentStatus.ACTIVE
    worker_id: UUID | None = None


@dataclass(frozen=True)
class RateSchedule:
    """Monthly contractual rates for one deployment."""

    service_fee_year1: Decimal
    service_fee_year2: Decimal
    service_fee_year3: Decimal
    accommodation_fee: Decimal = Decimal("0")

    @property
    def service_fee_tiers(self) -> tuple[Decimal, Decimal, Decimal]:
        return (self.service_fee_year1, self.service_fee_year2, self.service_fee_year3)


@dataclass(frozen=True)
class BillLineCandidate:
    """A computed bill line before persistence."""

    deployment_id: UUID
    year: int
    month: int
    bill_no: str
    active_days: int
    billing_period_start: date | None
    billing_period_end: date | None

    service_fee_tier: int  # 1, 2 or 3
    service_fee_rate: Decimal
    service_fee_amount: Decimal
    accommodation_fee_rate: Decimal
    accommodation_fee_amount: Decimal

    @property
    def total_amount(self) -> Decimal:
        return self.service_fee_amount + self.accommodation_fee_amount

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict (deterministic, string-encoded values)."""
        return {
            "deployment_id": str(self.deployment_id),
            "year": self.year,
            "month": self.month,
            "bill_no": self.bill_no,
            "active_days": self.active_days,
            "billing_period_start": (
                self.billing_period_start.isoformat() if self.billing_period_start else None
            ),
            "billing_period_end": (
                self.billing_period_end.isoformat() if self.billing_period_end else None
            ),
            "service_fee_tier": self.service_fee_tier,
            "service_fee_rate": str(self.service_fee_rate),
            "service_fee_amount": str(self.service_fee_amount),
            "accommodation_fee_rate": str(self.accommodation_fee_rate),
            "accommodation_fee_amount": str(self.accommodation_fee_amount),
            "total_amount": str(self.total_amount),
        }
