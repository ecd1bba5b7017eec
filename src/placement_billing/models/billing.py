"""Monthly bill line model."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from placement_billing.models.base import Base


class BillLine(Base):
    """One deployment's recurring charge for one calendar month.

    Written only by the batch generator. Regeneration for the same
    (deployment_id, year, month) overwrites the row in place.
    """

    __tablename__ = "bill_line"

    bill_line_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    deployment_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("deployment.deployment_id", ondelete="RESTRICT"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    bill_no: Mapped[str] = mapped_column(String, nullable=False)
    active_days: Mapped[int] = mapped_column(Integer, nullable=False)
    billing_period_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    billing_period_end: Mapped[date | None] = mapped_column(Date, nullable=True)

    service_fee_tier: Mapped[int] = mapped_column(Integer, nullable=False)
    service_fee_rate: Mapped[Decimal] = mapped_column(nullable=False)
    service_fee_amount: Mapped[Decimal] = mapped_column(nullable=False)
    accommodation_fee_rate: Mapped[Decimal] = mapped_column(nullable=False)
    accommodation_fee_amount: Mapped[Decimal] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    payer_type: Mapped[str] = mapped_column(String, nullable=False, default="worker")
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("deployment_id", "year", "month", name="bill_line_deployment_period_unique"),
        CheckConstraint("month BETWEEN 1 AND 12", name="bill_line_month_check"),
        CheckConstraint("active_days >= 0 AND active_days <= 31", name="bill_line_active_days_check"),
        CheckConstraint("service_fee_tier BETWEEN 1 AND 3", name="bill_line_tier_check"),
        CheckConstraint(
            "service_fee_amount >= 0 AND accommodation_fee_amount >= 0",
            name="bill_line_amounts_nonnegative",
        ),
    )
