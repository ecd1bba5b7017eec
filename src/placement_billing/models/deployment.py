"""Deployment and monthly fee schedule models.

Both tables are owned by the administrative CRUD layer; billing only reads them.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from placement_billing.models.base import Base


class Deployment(Base):
    """A worker's placement with one employer."""

    __tablename__ = "deployment"

    deployment_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    worker_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    employer_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'ended', 'terminated')",
            name="deployment_status_check",
        ),
        CheckConstraint(
            "end_date IS NULL OR end_date >= start_date",
            name="deployment_dates_check",
        ),
    )

    # Relationships
    monthly_fee: Mapped[DeploymentMonthlyFee | None] = relationship(
        back_populates="deployment",
        uselist=False,
    )


class DeploymentMonthlyFee(Base):
    """Contractual monthly rates attached to one deployment."""

    __tablename__ = "deployment_monthly_fee"

    deployment_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("deployment.deployment_id", ondelete="CASCADE"),
        primary_key=True,
    )
    service_fee_year1: Mapped[Decimal] = mapped_column(nullable=False)
    service_fee_year2: Mapped[Decimal] = mapped_column(nullable=False)
    service_fee_year3: Mapped[Decimal] = mapped_column(nullable=False)
    accommodation_fee: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "service_fee_year1 >= 0 AND service_fee_year2 >= 0 AND service_fee_year3 >= 0",
            name="monthly_fee_service_nonnegative",
        ),
        CheckConstraint("accommodation_fee >= 0", name="monthly_fee_accommodation_nonnegative"),
    )

    deployment: Mapped[Deployment] = relationship(back_populates="monthly_fee")
