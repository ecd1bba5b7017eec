"""Monthly billing batch generation - main orchestrator."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from placement_billing.calculators.engine import BillingEngine
from placement_billing.calculators.overlap import overlap_for
from placement_billing.calculators.periods import (
    InvalidPeriodError,
    MonthPeriod,
    validate_period,
)
from placement_billing.calculators.rate_resolver import (
    RateScheduleResolver,
    ScheduleMissingError,
)
from placement_billing.calculators.types import (
    BillLineCandidate,
    ComputationInvariantError,
    DeploymentRecord,
    SkipReason,
)
from placement_billing.config import Settings, get_settings
from placement_billing.database import StoreUnavailableError
from placement_billing.services.locking_service import BillingRunLocker
from placement_billing.services.state_machine import BatchRunStatus, BatchStateMachine
from placement_billing.services.stores import (
    BillingLedger,
    DeploymentDirectory,
    RateScheduleStore,
)

logger = logging.getLogger(__name__)


@dataclass
class SkippedDeployment:
    """A candidate deployment that produced no bill line."""

    deployment_id: UUID
    reason: SkipReason
    detail: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "deployment_id": str(self.deployment_id),
            "reason": self.reason.value,
            "detail": self.detail,
        }


@dataclass
class BatchResult:
    """Outcome of one billing batch run."""

    year: int
    month: int
    status: BatchRunStatus = BatchRunStatus.VALIDATING
    dry_run: bool = False
    bill_lines_written: int = 0
    lines: list[BillLineCandidate] = field(default_factory=list)
    skipped: list[SkippedDeployment] = field(default_factory=list)
    committed: list[UUID] = field(default_factory=list)

    @property
    def period_label(self) -> str:
        return f"{self.year}/{self.month:02d}"

    @property
    def message(self) -> str:
        if self.dry_run:
            return f"Previewed {len(self.lines)} bills for {self.period_label}"
        if self.status == BatchRunStatus.FAILED:
            return (
                f"Billing for {self.period_label} failed after "
                f"{self.bill_lines_written} bills were written"
            )
        return f"Successfully generated {self.bill_lines_written} bills for {self.period_label}"


class BatchFailedError(Exception):
    """Raised when a store failure aborts a batch part-way through.

    Lines already written stay valid; re-running the batch is safe.
    """

    def __init__(
        self,
        result: BatchResult,
        not_committed: list[UUID],
        cause: StoreUnavailableError,
    ):
        self.result = result
        self.not_committed = not_committed
        self.cause = cause
        super().__init__(
            f"{result.message}; {len(not_committed)} deployment(s) not committed: {cause}"
        )


class MonthlyBillingGenerator:
    """Generates recurring service and accommodation fee lines for a month.

    Pipeline (stable order per deployment):
    1) Skip deployments that start after the month ends
    2) Intersect the deployment with the month to get active days
    3) Resolve the contract-year tier from the rate schedule
    4) Prorate service and accommodation fees independently
    5) Upsert the line keyed by (deployment, year, month)
    """

    def __init__(
        self,
        directory: DeploymentDirectory,
        schedules: RateScheduleStore,
        ledger: BillingLedger,
        locker: BillingRunLocker | None = None,
        settings: Settings | None = None,
    ):
        self.directory = directory
        self.ledger = ledger
        self.resolver = RateScheduleResolver(schedules)
        self.locker = locker or BillingRunLocker()
        self.settings = settings or get_settings()

    async def generate(self, year: int, month: int, dry_run: bool = False) -> BatchResult:
        """Run billing for (year, month).

        Raises:
            InvalidPeriodError: If the period is malformed (nothing is read or written)
            BatchFailedError: If the run lock or a store is unavailable
        """
        machine = BatchStateMachine()
        result = BatchResult(year=year, month=month, dry_run=dry_run)

        try:
            validate_period(
                year, month, self.settings.billing_min_year, self.settings.billing_max_year
            )
        except InvalidPeriodError:
            machine.advance(BatchRunStatus.FAILED)
            raise

        period = MonthPeriod.of(year, month)
        logger.info("Billing run %s started (dry_run=%s)", period.label, dry_run)

        async with AsyncExitStack() as stack:
            try:
                await stack.enter_async_context(self.locker.hold(year, month))
            except StoreUnavailableError as exc:
                machine.advance(BatchRunStatus.FAILED)
                result.status = machine.status
                logger.error("Billing run %s could not take the run lock: %s", period.label, exc)
                raise BatchFailedError(result, [], exc) from exc

            machine.advance(BatchRunStatus.FETCHING)
            result.status = machine.status
            try:
                deployments = await self.directory.list_deployments_overlapping(
                    period.start, period.end
                )
            except StoreUnavailableError as exc:
                machine.advance(BatchRunStatus.FAILED)
                result.status = machine.status
                logger.error("Billing run %s failed fetching deployments: %s", period.label, exc)
                raise BatchFailedError(result, [], exc) from exc

            machine.advance(BatchRunStatus.PROCESSING)
            result.status = machine.status

            for index, deployment in enumerate(deployments):
                try:
                    line = await self._process_deployment(deployment, period, result)
                    if line is None:
                        continue
                    result.lines.append(line)
                    if not dry_run:
                        await self.ledger.upsert_bill_line(line)
                        result.bill_lines_written += 1
                        result.committed.append(deployment.deployment_id)
                except StoreUnavailableError as exc:
                    machine.advance(BatchRunStatus.FAILED)
                    result.status = machine.status
                    not_committed = [d.deployment_id for d in deployments[index:]]
                    logger.error(
                        "Billing run %s aborted at deployment %s: %s "
                        "(%d written, %d not committed)",
                        period.label,
                        deployment.deployment_id,
                        exc,
                        result.bill_lines_written,
                        len(not_committed),
                    )
                    raise BatchFailedError(result, not_committed, exc) from exc

            machine.advance(BatchRunStatus.COMPLETED)
            result.status = machine.status

        logger.info(
            "Billing run %s completed: %d written, %d skipped",
            period.label,
            result.bill_lines_written,
            len(result.skipped),
        )
        return result

    async def _process_deployment(
        self,
        deployment: DeploymentRecord,
        period: MonthPeriod,
        result: BatchResult,
    ) -> BillLineCandidate | None:
        """Compute one deployment's line, or record why it is skipped."""
        deployment_id = deployment.deployment_id

        if deployment.start_date > period.end:
            self._skip(
                result,
                deployment_id,
                SkipReason.NOT_STARTED,
                f"starts {deployment.start_date.isoformat()}",
            )
            return None

        try:
            active = overlap_for(deployment, period)
            rates = await self.resolver.resolve(deployment, period)
            return BillingEngine.compute_line(deployment, period, active, rates)
        except ScheduleMissingError as exc:
            self._skip(result, deployment_id, SkipReason.SCHEDULE_MISSING, str(exc))
        except ComputationInvariantError as exc:
            logger.exception("Invariant violated billing deployment %s", deployment_id)
            self._skip(result, deployment_id, SkipReason.INVARIANT_VIOLATION, str(exc))
        return None

    @staticmethod
    def _skip(
        result: BatchResult, deployment_id: UUID, reason: SkipReason, detail: str
    ) -> None:
        logger.warning("Skipping deployment %s: %s (%s)", deployment_id, reason.value, detail)
        result.skipped.append(SkippedDeployment(deployment_id, reason, detail))
