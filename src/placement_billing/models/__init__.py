"""SQLAlchemy ORM models for placement billing."""

from placement_billing.models.base import Base
from placement_billing.models.billing import BillLine
from placement_billing.models.deployment import Deployment, DeploymentMonthlyFee

__all__ = [
    "Base",
    "BillLine",
    "Deployment",
    "DeploymentMonthlyFee",
]
