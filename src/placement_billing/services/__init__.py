"""Billing services."""

from placement_billing.services.batch_generator import (
    BatchFailedError,
    BatchResult,
    MonthlyBillingGenerator,
    SkippedDeployment,
)
from placement_billing.services.ledger_service import SqlBillingLedger
from placement_billing.services.locking_service import BillingRunLocker
from placement_billing.services.state_machine import (
    BatchRunStatus,
    BatchStateMachine,
    InvalidTransitionError,
)
from placement_billing.services.stores import (
    BillingLedger,
    DeploymentDirectory,
    RateScheduleStore,
    SqlDeploymentDirectory,
    SqlRateScheduleStore,
)

__all__ = [
    "BatchFailedError",
    "BatchResult",
    "BatchRunStatus",
    "BatchStateMachine",
    "BillingLedger",
    "BillingRunLocker",
    "DeploymentDirectory",
    "InvalidTransitionError",
    "MonthlyBillingGenerator",
    "RateScheduleStore",
    "SkippedDeployment",
    "SqlBillingLedger",
    "SqlDeploymentDirectory",
    "SqlRateScheduleStore",
]
