"""Seed script to populate the SQL store with sample calculations.

Run with STORAGE_BACKEND=sql; the in-memory store does not outlive the script.
"""

from datetime import date
from decimal import Decimal

from billsplit.core.config import settings
from billsplit.schemas.calculation import CalculationCreate, SubMeterReadingIn
from billsplit.services.apportionment import compute_shares
from billsplit.services.storage import build_store

# (period_start, period_end, main, sub-meter readings, bill amount)
SAMPLE_BILLS = [
    (date(2025, 1, 1), date(2025, 3, 1), "300", ["100", "80", "70"], "3000"),
    (date(2025, 3, 1), date(2025, 5, 1), "412.5", ["150.2", "98.4", "121.9"], "4180"),
    (date(2025, 5, 1), date(2025, 7, 1), "520", ["201", "143.5", "130"], "5630.50"),
]


def seed_database() -> None:
    """Seed the configured store with sample data."""
    if settings.STORAGE_BACKEND != "sql":
        print("STORAGE_BACKEND is not 'sql'; seeded data would be lost. Skipping seed.")
        return

    store = build_store(settings)
    if store.list():
        print("Store already has data. Skipping seed.")
        return

    print("Seeding calculations...")

    for period_start, period_end, main, subs, bill in SAMPLE_BILLS:
        data = CalculationCreate(
            period_start=period_start,
            period_end=period_end,
            main_meter_reading=Decimal(main),
            sub_meter_readings=[
                SubMeterReadingIn(tenant=tenant, reading=Decimal(reading))
                for tenant, reading in zip(settings.TENANTS, subs)
            ],
            bill_amount=Decimal(bill),
        )
        record = store.save(compute_shares(data))
        dues = ", ".join(f"{t.tenant}={t.amount_due}" for t in record.tenants)
        print(f"Created calculation {record.id} ({period_start} - {period_end}): {dues}")

    print("\nSeed data created successfully!")


if __name__ == "__main__":
    seed_database()
