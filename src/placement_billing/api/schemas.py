"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict


# ============================================================================
# Generation schemas
# ============================================================================


class MonthlyFeesRequest(BaseModel):
    """Target billing month.

    Range checks are left to the generator so a bad month is reported as an
    invalid period rather than a schema error.
    """

    year: int
    month: int


class SkippedDeploymentResponse(BaseModel):
    """A deployment that produced no bill line."""

    deployment_id: UUID
    reason: str
    detail: str = ""


class GenerateMonthlyFeesResponse(BaseModel):
    """Summary of a completed generation run."""

    message: str
    count: int
    skipped: list[SkippedDeploymentResponse] = []


class BillLinePreview(BaseModel):
    """A computed line that was not written."""

    deployment_id: UUID
    bill_no: str
    active_days: int
    billing_period_start: date | None = None
    billing_period_end: date | None = None
    service_fee_tier: int
    service_fee_rate: Decimal
    service_fee_amount: Decimal
    accommodation_fee_rate: Decimal
    accommodation_fee_amount: Decimal
    total_amount: Decimal


class PreviewMonthlyFeesResponse(BaseModel):
    """Dry-run result for a billing month."""

    message: str
    year: int
    month: int
    lines: list[BillLinePreview]
    skipped: list[SkippedDeploymentResponse] = []


# ============================================================================
# Bill line schemas
# ============================================================================


class BillLineResponse(BaseModel):
    """Schema for a persisted bill line."""

    model_config = ConfigDict(from_attributes=True)

    bill_line_id: UUID
    deployment_id: UUID
    year: int
    month: int
    bill_no: str
    active_days: int
    billing_period_start: date | None = None
    billing_period_end: date | None = None
    service_fee_tier: int
    service_fee_rate: Decimal
    service_fee_amount: Decimal
    accommodation_fee_rate: Decimal
    accommodation_fee_amount: Decimal
    total_amount: Decimal
    payer_type: str
    status: str
    due_date: date
    generated_at: datetime


class BillLineListResponse(BaseModel):
    """Schema for listing a month's bill lines."""

    items: list[BillLineResponse]
    total: int


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str


class BatchFailedResponse(BaseModel):
    """Error response for a batch aborted by a store failure."""

    error: str
    count: int
    committed: list[UUID]
    not_committed: list[UUID]
