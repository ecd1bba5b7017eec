"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from placement_billing.api.routes import billing_router, health_router
from placement_billing.calculators.periods import InvalidPeriodError
from placement_billing.database import StoreUnavailableError, dispose_db, init_db
from placement_billing.services.batch_generator import BatchFailedError
from placement_billing.services.locking_service import BillingRunLocker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    engine, _ = init_db()
    app.state.run_locker = BillingRunLocker(engine)
    yield
    # Shutdown
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Placement Billing API",
        description="Monthly service and accommodation fee generation",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.run_locker = BillingRunLocker()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(InvalidPeriodError)
    async def invalid_period_handler(
        request: Request, exc: InvalidPeriodError
    ) -> JSONResponse:
        """Reject malformed billing periods."""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": str(exc)},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed request bodies and query strings as invalid periods."""
        fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
        logger.info("Rejected %s %s: invalid %s", request.method, request.url.path, fields)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Valid year and month (1-12) required"},
        )

    @app.exception_handler(BatchFailedError)
    async def batch_failed_handler(
        request: Request, exc: BatchFailedError
    ) -> JSONResponse:
        """Report a partially written batch."""
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "error": str(exc),
                "count": exc.result.bill_lines_written,
                "committed": [str(d) for d in exc.result.committed],
                "not_committed": [str(d) for d in exc.not_committed],
            },
        )

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(
        request: Request, exc: StoreUnavailableError
    ) -> JSONResponse:
        """Handle store failures outside a batch run."""
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": str(exc)},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "An unexpected error occurred"},
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(billing_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
