"""Tests for the calculations API."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from billsplit.api.dependencies import get_store
from billsplit.main import app
from billsplit.services.storage import MemoryCalculationStore


@pytest.fixture(scope="module")
def client():
    """Create a test client with proper lifespan handling."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def store():
    """Give each test an empty store."""
    fresh = MemoryCalculationStore()
    app.dependency_overrides[get_store] = lambda: fresh
    yield fresh
    app.dependency_overrides.pop(get_store, None)


def _payload(**overrides) -> dict:
    """Helper: the reference three-tenant request body."""
    body = {
        "periodStart": "2025-01-01",
        "periodEnd": "2025-03-01",
        "mainMeterReading": 300,
        "subMeterReadings": [
            {"tenant": "ABCD", "reading": 100},
            {"tenant": "XYZ", "reading": 80},
            {"tenant": "OKBD", "reading": 70},
        ],
        "billAmount": 3000,
    }
    body.update(overrides)
    return body


class TestCreateCalculation:
    """POST /api/calculations."""

    def test_create(self, client: TestClient, store: MemoryCalculationStore) -> None:
        """Test a valid request is computed, saved and returned with camelCase keys."""
        response = client.post("/api/calculations", json=_payload())

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == 1
        assert "createdAt" in data
        assert data["periodStart"] == "2025-01-01"
        assert Decimal(data["commonUsage"]) == Decimal("50")
        assert Decimal(data["commonShare"]) == Decimal("500")
        assert [t["tenant"] for t in data["tenants"]] == ["ABCD", "XYZ", "OKBD"]
        assert [Decimal(t["share"]) for t in data["tenants"]] == [
            Decimal("1000"),
            Decimal("800"),
            Decimal("700"),
        ]
        assert sum(Decimal(t["amountDue"]) for t in data["tenants"]) == Decimal("3000")
        assert len(store.list()) == 1

    def test_snake_case_body_accepted(self, client: TestClient, store: MemoryCalculationStore) -> None:
        """Test field names are also accepted in snake_case."""
        response = client.post(
            "/api/calculations",
            json={
                "period_start": "2025-01-01",
                "period_end": "2025-03-01",
                "main_meter_reading": "300",
                "sub_meter_readings": [{"tenant": "A", "reading": "300"}],
                "bill_amount": "99.99",
            },
        )

        assert response.status_code == 201
        assert Decimal(response.json()["tenants"][0]["amountDue"]) == Decimal("99.99")

    def test_client_computed_shares_ignored(
        self, client: TestClient, store: MemoryCalculationStore
    ) -> None:
        """Test derived values in the body are recomputed on the server."""
        response = client.post(
            "/api/calculations",
            json=_payload(commonUsage=0, commonShare=1, tenants=[]),
        )

        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["commonUsage"]) == Decimal("50")
        assert Decimal(data["commonShare"]) == Decimal("500")
        assert len(data["tenants"]) == 3

    def test_images_pass_through(self, client: TestClient, store: MemoryCalculationStore) -> None:
        """Test image references are stored with the record."""
        response = client.post(
            "/api/calculations",
            json=_payload(
                meterImages={"mainMeter": "/api/images/m.png", "subMeters": {"XYZ": "/api/images/x.png"}},
                billImage="/api/images/b.jpg",
            ),
        )

        data = response.json()
        assert data["meterImages"] == {
            "mainMeter": "/api/images/m.png",
            "subMeters": {"XYZ": "/api/images/x.png"},
        }
        assert data["billImage"] == "/api/images/b.jpg"

    def test_sub_meters_exceed_main(self, client: TestClient, store: MemoryCalculationStore) -> None:
        """Test readings above the main meter are rejected and nothing is saved."""
        response = client.post(
            "/api/calculations",
            json=_payload(
                mainMeterReading=100,
                subMeterReadings=[
                    {"tenant": "A", "reading": 40},
                    {"tenant": "B", "reading": 40},
                    {"tenant": "C", "reading": 40},
                ],
            ),
        )

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "sub_meters_exceed_main"
        assert "cannot exceed the main meter" in data["message"]
        assert Decimal(data["deficit"]) == Decimal("20")
        assert store.list() == []

    def test_zero_main_meter(self, client: TestClient, store: MemoryCalculationStore) -> None:
        """Test a zero main meter is a 400."""
        response = client.post("/api/calculations", json=_payload(mainMeterReading=0))

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_main_meter"

    def test_negative_bill(self, client: TestClient, store: MemoryCalculationStore) -> None:
        """Test a negative bill is a 400."""
        response = client.post("/api/calculations", json=_payload(billAmount=-5))

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_bill_amount"

    def test_missing_field(self, client: TestClient, store: MemoryCalculationStore) -> None:
        """Test schema violations are a 400 with a readable message."""
        body = _payload()
        del body["billAmount"]
        response = client.post("/api/calculations", json=body)

        assert response.status_code == 400
        data = response.json()
        assert "billAmount" in data["message"]
        assert data["errors"]

    def test_empty_sub_meter_readings(self, client: TestClient, store: MemoryCalculationStore) -> None:
        """Test at least one sub-meter is required."""
        response = client.post("/api/calculations", json=_payload(subMeterReadings=[]))

        assert response.status_code == 400
        assert "At least one sub-meter reading is required" in response.json()["message"]

    def test_duplicate_tenants(self, client: TestClient, store: MemoryCalculationStore) -> None:
        """Test tenant names must be unique."""
        response = client.post(
            "/api/calculations",
            json=_payload(
                subMeterReadings=[{"tenant": "A", "reading": 1}, {"tenant": "A", "reading": 2}]
            ),
        )

        assert response.status_code == 400
        assert "unique" in response.json()["message"]


class TestPreviewCalculation:
    """POST /api/calculations/preview."""

    def test_preview_does_not_save(self, client: TestClient, store: MemoryCalculationStore) -> None:
        """Test previewing computes shares without creating a record."""
        response = client.post("/api/calculations/preview", json=_payload())

        assert response.status_code == 200
        data = response.json()
        assert "id" not in data
        assert Decimal(data["commonPercent"]).quantize(Decimal("0.1")) == Decimal("16.7")
        assert store.list() == []

    def test_preview_very_large_bill(self, client: TestClient, store: MemoryCalculationStore) -> None:
        """Test a bill too large for default decimal precision still computes."""
        response = client.post("/api/calculations/preview", json=_payload(billAmount="1e30"))

        assert response.status_code == 200
        dues = [Decimal(t["amountDue"]) for t in response.json()["tenants"]]
        assert all(due.as_tuple().exponent == -2 for due in dues)

    def test_preview_error(self, client: TestClient, store: MemoryCalculationStore) -> None:
        """Test preview reports engine errors the same way."""
        response = client.post(
            "/api/calculations/preview",
            json=_payload(subMeterReadings=[{"tenant": "A", "reading": -1}]),
        )

        assert response.status_code == 400
        assert response.json()["tenantIndex"] == 0


class TestReadCalculations:
    """GET and DELETE /api/calculations."""

    def test_list_newest_first(self, client: TestClient, store: MemoryCalculationStore) -> None:
        """Test listing returns the latest record first."""
        first = client.post("/api/calculations", json=_payload(billAmount=1000)).json()
        second = client.post("/api/calculations", json=_payload(billAmount=2000)).json()

        response = client.get("/api/calculations")

        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [second["id"], first["id"]]

    def test_get_by_id(self, client: TestClient, store: MemoryCalculationStore) -> None:
        """Test fetching a saved record returns the same data."""
        created = client.post("/api/calculations", json=_payload()).json()

        response = client.get(f"/api/calculations/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created

    def test_get_missing(self, client: TestClient, store: MemoryCalculationStore) -> None:
        """Test an unknown id is a 404."""
        response = client.get("/api/calculations/999")

        assert response.status_code == 404
        assert response.json() == {"message": "Calculation not found"}

    def test_get_invalid_id(self, client: TestClient, store: MemoryCalculationStore) -> None:
        """Test a non-numeric id is a 400."""
        response = client.get("/api/calculations/abc")

        assert response.status_code == 400

    def test_delete(self, client: TestClient, store: MemoryCalculationStore) -> None:
        """Test deleting a record, then deleting it again."""
        created = client.post("/api/calculations", json=_payload()).json()

        response = client.delete(f"/api/calculations/{created['id']}")
        assert response.status_code == 204
        assert response.content == b""

        response = client.delete(f"/api/calculations/{created['id']}")
        assert response.status_code == 404
        assert client.get(f"/api/calculations/{created['id']}").status_code == 404


class _BrokenStore(MemoryCalculationStore):
    def list(self):
        raise RuntimeError("database exploded at /secret/path")


def test_unexpected_error_is_generic_500(store: MemoryCalculationStore) -> None:
    """Test internal failures return a generic message."""
    app.dependency_overrides[get_store] = lambda: _BrokenStore()
    with TestClient(app, raise_server_exceptions=False) as c:
        response = c.get("/api/calculations")

    assert response.status_code == 500
    assert response.json() == {"message": "An unexpected error occurred"}
