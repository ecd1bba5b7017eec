"""Monthly billing API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from placement_billing.api.dependencies import BillingGenerator, Ledger
from placement_billing.api.schemas import (
    BatchFailedResponse,
    BillLineListResponse,
    BillLinePreview,
    BillLineResponse,
    ErrorResponse,
    GenerateMonthlyFeesResponse,
    MonthlyFeesRequest,
    PreviewMonthlyFeesResponse,
    SkippedDeploymentResponse,
)
from placement_billing.calculators.periods import validate_period
from placement_billing.config import get_settings
from placement_billing.services.batch_generator import BatchResult

router = APIRouter(prefix="/accounting", tags=["accounting"])


def _skipped(result: BatchResult) -> list[SkippedDeploymentResponse]:
    return [SkippedDeploymentResponse(**s.to_dict()) for s in result.skipped]


@router.post(
    "/generate-monthly-fees",
    response_model=GenerateMonthlyFeesResponse,
    status_code=status.HTTP_200_OK,
    responses={400: {"model": ErrorResponse}, 503: {"model": BatchFailedResponse}},
)
async def generate_monthly_fees(
    payload: MonthlyFeesRequest,
    generator: BillingGenerator,
) -> GenerateMonthlyFeesResponse:
    """Generate (or regenerate) recurring service and accommodation fees.

    Amount = round(monthly rate * active days / 30) per fee.
    """
    result = await generator.generate(payload.year, payload.month)
    return GenerateMonthlyFeesResponse(
        message=result.message,
        count=result.bill_lines_written,
        skipped=_skipped(result),
    )


@router.post(
    "/preview-monthly-fees",
    response_model=PreviewMonthlyFeesResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": BatchFailedResponse}},
)
async def preview_monthly_fees(
    payload: MonthlyFeesRequest,
    generator: BillingGenerator,
) -> PreviewMonthlyFeesResponse:
    """Compute a month's bill lines without writing them."""
    result = await generator.generate(payload.year, payload.month, dry_run=True)
    return PreviewMonthlyFeesResponse(
        message=result.message,
        year=result.year,
        month=result.month,
        lines=[
            BillLinePreview(
                deployment_id=line.deployment_id,
                bill_no=line.bill_no,
                active_days=line.active_days,
                billing_period_start=line.billing_period_start,
                billing_period_end=line.billing_period_end,
                service_fee_tier=line.service_fee_tier,
                service_fee_rate=line.service_fee_rate,
                service_fee_amount=line.service_fee_amount,
                accommodation_fee_rate=line.accommodation_fee_rate,
                accommodation_fee_amount=line.accommodation_fee_amount,
                total_amount=line.total_amount,
            )
            for line in result.lines
        ],
        skipped=_skipped(result),
    )


@router.get(
    "/bills",
    response_model=BillLineListResponse,
    responses={400: {"model": ErrorResponse}},
)
async def list_bills(
    ledger: Ledger,
    year: Annotated[int, Query()],
    month: Annotated[int, Query()],
) -> BillLineListResponse:
    """List persisted bill lines for a month."""
    settings = get_settings()
    validate_period(year, month, settings.billing_min_year, settings.billing_max_year)

    lines = await ledger.list_bill_lines(year, month)
    return BillLineListResponse(
        items=[BillLineResponse.model_validate(line) for line in lines],
        total=len(lines),
    )
