"""Billing Command Line Interface.

Provides operational tools for:
- Monthly fee generation (scheduled jobs, manual re-runs)
- Dry-run previews
- Listing a month's bill lines

Usage:
    python -m placement_billing.cli generate --year 2024 --month 5
    python -m placement_billing.cli generate --year 2024 --month 5 --dry-run
    python -m placement_billing.cli bills --year 2024 --month 5
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Callable

from placement_billing.calculators.periods import InvalidPeriodError, validate_period
from placement_billing.config import configure_logging, get_settings
from placement_billing.database import (
    StoreUnavailableError,
    dispose_db,
    get_session,
    init_db,
)
from placement_billing.services.batch_generator import (
    BatchFailedError,
    BatchResult,
    MonthlyBillingGenerator,
)
from placement_billing.services.ledger_service import SqlBillingLedger
from placement_billing.services.locking_service import BillingRunLocker
from placement_billing.services.stores import SqlDeploymentDirectory, SqlRateScheduleStore

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID_PERIOD = 2


class BillingCli:
    """Billing Command Line Interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="placement-billing",
            description="Monthly billing operational tools",
        )
        parser.add_argument(
            "--log-level",
            type=str,
            help="Logging level (default: $LOG_LEVEL or INFO)",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # generate command
        generate = subparsers.add_parser(
            "generate",
            help="Generate service and accommodation fees for a month",
        )
        generate.add_argument("--year", type=int, required=True, help="Billing year")
        generate.add_argument("--month", type=int, required=True, help="Billing month (1-12)")
        generate.add_argument(
            "--dry-run",
            action="store_true",
            help="Compute lines without writing them",
        )

        # bills command
        bills = subparsers.add_parser(
            "bills",
            help="List persisted bill lines for a month",
        )
        bills.add_argument("--year", type=int, required=True, help="Billing year")
        bills.add_argument("--month", type=int, required=True, help="Billing month (1-12)")

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return EXIT_FAILED

        configure_logging(parsed.log_level)

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "generate": self._cmd_generate,
            "bills": self._cmd_bills,
        }

        handler = handlers.get(parsed.command)
        if handler:
            return handler(parsed)

        print(f"Unknown command: {parsed.command}", file=sys.stderr)
        return EXIT_FAILED

    def _cmd_generate(self, args: argparse.Namespace) -> int:
        """Generate monthly fees."""
        try:
            result = asyncio.run(self._generate(args.year, args.month, args.dry_run))
        except InvalidPeriodError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return EXIT_INVALID_PERIOD
        except BatchFailedError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            print(f"  Written before failure: {e.result.bill_lines_written}", file=sys.stderr)
            for deployment_id in e.not_committed:
                print(f"  Not committed: {deployment_id}", file=sys.stderr)
            print("\nRe-running the same month is safe.", file=sys.stderr)
            return EXIT_FAILED
        except StoreUnavailableError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return EXIT_FAILED

        self._print_result(result)
        return EXIT_OK

    def _cmd_bills(self, args: argparse.Namespace) -> int:
        """List bill lines for a month."""
        settings = get_settings()
        try:
            validate_period(
                args.year, args.month, settings.billing_min_year, settings.billing_max_year
            )
            rows = asyncio.run(self._list_bills(args.year, args.month))
        except InvalidPeriodError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return EXIT_INVALID_PERIOD
        except StoreUnavailableError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return EXIT_FAILED

        print(f"Bill lines for {args.year}/{args.month:02d}: {len(rows)}")
        for row in rows:
            print(
                f"  {row['bill_no']}  days={row['active_days']:>2}  "
                f"tier={row['service_fee_tier']}  service={row['service_fee_amount']}  "
                f"accommodation={row['accommodation_fee_amount']}  total={row['total_amount']}"
            )
        return EXIT_OK

    async def _generate(self, year: int, month: int, dry_run: bool) -> BatchResult:
        engine, _ = init_db()
        try:
            async with get_session() as session:
                generator = MonthlyBillingGenerator(
                    directory=SqlDeploymentDirectory(session),
                    schedules=SqlRateScheduleStore(session),
                    ledger=SqlBillingLedger(session),
                    locker=BillingRunLocker(engine),
                )
                return await generator.generate(year, month, dry_run=dry_run)
        finally:
            await dispose_db()

    async def _list_bills(self, year: int, month: int) -> list[dict]:
        try:
            async with get_session() as session:
                lines = await SqlBillingLedger(session).list_bill_lines(year, month)
                return [line.to_dict() for line in lines]
        finally:
            await dispose_db()

    @staticmethod
    def _print_result(result: BatchResult) -> None:
        print(result.message)
        if result.dry_run:
            for line in result.lines:
                print(
                    f"  {line.bill_no}  days={line.active_days:>2}  tier={line.service_fee_tier}  "
                    f"service={line.service_fee_amount}  "
                    f"accommodation={line.accommodation_fee_amount}"
                )
        if result.skipped:
            print(f"\nSkipped {len(result.skipped)} deployment(s):")
            for skipped in result.skipped:
                print(f"  {skipped.deployment_id}: {skipped.reason.value} {skipped.detail}")


def main() -> int:
    """CLI entry point."""
    cli = BillingCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
