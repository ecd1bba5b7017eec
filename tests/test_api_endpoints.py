"""API endpoint tests.

Tests the FastAPI endpoints for monthly billing against an in-memory database.
"""

from datetime import date
from decimal import Decimal

from httpx import AsyncClient

from placement_billing.services.ledger_service import SqlBillingLedger


class TestHealthEndpoints:
    """Test health check endpoints."""

    async def test_health_check(self, client: AsyncClient):
        """Health endpoint should return 200."""
        response = await client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert "timestamp" in data
        assert data["version"]

    async def test_readiness_check(self, client: AsyncClient):
        """Readiness endpoint should return 200."""
        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    async def test_liveness_check(self, client: AsyncClient):
        """Liveness endpoint should return 200."""
        response = await client.get("/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestGenerateMonthlyFees:
    """Test POST /api/v1/accounting/generate-monthly-fees."""

    async def test_generate(self, client: AsyncClient, session, add_deployment):
        deployment = await add_deployment(date(2024, 5, 15), fees=("1500", "1500", "1500", "2500"))
        unscheduled = await add_deployment(date(2024, 1, 1), fees=None)

        response = await client.post(
            "/api/v1/accounting/generate-monthly-fees",
            json={"year": 2024, "month": 5},
        )

        assert response.status_code == 200, response.text
        data = response.json()
        assert data["message"] == "Successfully generated 1 bills for 2024/05"
        assert data["count"] == 1
        assert data["skipped"] == [
            {
                "deployment_id": str(unscheduled.deployment_id),
                "reason": "ScheduleMissing",
                "detail": data["skipped"][0]["detail"],
            }
        ]

        line = await SqlBillingLedger(session, due_days=15).get_bill_line(
            deployment.deployment_id, 2024, 5
        )
        assert line.active_days == 17
        assert line.service_fee_amount == Decimal("850")
        assert line.accommodation_fee_amount == Decimal("1417")

    async def test_regenerate_is_idempotent(self, client: AsyncClient, add_deployment):
        await add_deployment(date(2022, 1, 1))
        await add_deployment(date(2024, 3, 10))

        first = await client.post(
            "/api/v1/accounting/generate-monthly-fees", json={"year": 2024, "month": 5}
        )
        second = await client.post(
            "/api/v1/accounting/generate-monthly-fees", json={"year": 2024, "month": 5}
        )

        assert first.json()["count"] == second.json()["count"] == 2

        bills = await client.get("/api/v1/accounting/bills", params={"year": 2024, "month": 5})
        assert bills.json()["total"] == 2

    async def test_empty_month(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/accounting/generate-monthly-fees",
            json={"year": 2024, "month": 5},
        )

        assert response.status_code == 200
        assert response.json()["count"] == 0
        assert response.json()["message"] == "Successfully generated 0 bills for 2024/05"

    async def test_invalid_month_returns_400(self, client: AsyncClient, add_deployment):
        await add_deployment(date(2024, 1, 1))

        response = await client.post(
            "/api/v1/accounting/generate-monthly-fees",
            json={"year": 2024, "month": 13},
        )

        assert response.status_code == 400
        assert "month" in response.json()["error"]

        bills = await client.get("/api/v1/accounting/bills", params={"year": 2024, "month": 12})
        assert bills.json()["total"] == 0

    async def test_missing_month_returns_400(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/accounting/generate-monthly-fees",
            json={"year": 2024},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Valid year and month (1-12) required"}

    async def test_non_integer_month_returns_400(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/accounting/generate-monthly-fees",
            json={"year": 2024, "month": "may"},
        )

        assert response.status_code == 400
        assert set(response.json()) == {"error"}


class TestPreviewMonthlyFees:
    """Test POST /api/v1/accounting/preview-monthly-fees."""

    async def test_preview_writes_nothing(self, client: AsyncClient, add_deployment):
        deployment = await add_deployment(date(2022, 1, 1))

        response = await client.post(
            "/api/v1/accounting/preview-monthly-fees",
            json={"year": 2023, "month": 6},
        )

        assert response.status_code == 200, response.text
        data = response.json()
        assert data["message"] == "Previewed 1 bills for 2023/06"
        assert len(data["lines"]) == 1
        line = data["lines"][0]
        assert line["deployment_id"] == str(deployment.deployment_id)
        assert line["service_fee_tier"] == 2
        assert Decimal(line["service_fee_amount"]) == Decimal("1700")
        assert Decimal(line["accommodation_fee_amount"]) == Decimal("2500")

        bills = await client.get("/api/v1/accounting/bills", params={"year": 2023, "month": 6})
        assert bills.json()["total"] == 0


class TestListBills:
    """Test GET /api/v1/accounting/bills."""

    async def test_list_after_generate(self, client: AsyncClient, add_deployment):
        deployment = await add_deployment(date(2024, 5, 15), fees=("1500", "1500", "1500", "2500"))
        await client.post(
            "/api/v1/accounting/generate-monthly-fees", json={"year": 2024, "month": 5}
        )

        response = await client.get(
            "/api/v1/accounting/bills", params={"year": 2024, "month": 5}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        item = data["items"][0]
        assert item["deployment_id"] == str(deployment.deployment_id)
        assert item["bill_no"] == f"MTH-202405-{deployment.deployment_id.hex[:8].upper()}"
        assert item["billing_period_start"] == "2024-05-15"
        assert item["billing_period_end"] == "2024-05-31"
        assert Decimal(item["total_amount"]) == Decimal("2267")
        assert item["status"] == "draft"

    async def test_invalid_period_returns_400(self, client: AsyncClient):
        response = await client.get("/api/v1/accounting/bills", params={"year": 2024, "month": 0})

        assert response.status_code == 400

    async def test_missing_query_parameter_returns_400(self, client: AsyncClient):
        response = await client.get("/api/v1/accounting/bills", params={"year": 2024})

        assert response.status_code == 400
        assert "error" in response.json()


class TestDatabaseUnreachable:
    """Test endpoints when PostgreSQL refuses connections."""

    async def test_generate_returns_503_with_partial_count(self, unreachable_client: AsyncClient):
        response = await unreachable_client.post(
            "/api/v1/accounting/generate-monthly-fees",
            json={"year": 2024, "month": 5},
        )

        assert response.status_code == 503
        data = response.json()
        assert data["count"] == 0
        assert data["committed"] == []
        assert data["not_committed"] == []
        assert "list_deployments_overlapping" in data["error"]

    async def test_bills_returns_503(self, unreachable_client: AsyncClient):
        response = await unreachable_client.get(
            "/api/v1/accounting/bills", params={"year": 2024, "month": 5}
        )

        assert response.status_code == 503
        assert "list_bill_lines" in response.json()["error"]

    async def test_health_degraded_and_not_ready(self, unreachable_client: AsyncClient):
        health = await unreachable_client.get("/health")
        ready = await unreachable_client.get("/ready")
        live = await unreachable_client.get("/live")

        assert health.status_code == 200
        assert health.json()["status"] == "degraded"
        assert health.json()["database"] == "unhealthy"
        assert ready.status_code == 503
        assert ready.json()["status"] == "unavailable"
        assert live.status_code == 200
