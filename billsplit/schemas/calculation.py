"""Calculation Pydantic schemas for request/response validation.

Fields are snake_case in Python and camelCase on the wire
(``mainMeterReading``, ``subMeterReadings``, ...). Both spellings are
accepted on input.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema that serializes field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubMeterReadingIn(CamelModel):
    """One tenant's sub-meter reading."""

    tenant: str
    reading: Decimal

    @field_validator("tenant")
    @classmethod
    def validate_tenant(cls, v: str) -> str:
        """Validate tenant name is not empty."""
        if not v or not v.strip():
            raise ValueError("Tenant name cannot be empty")
        return v.strip()


class MeterImages(CamelModel):
    """Photo URLs for the main meter and each tenant's sub-meter."""

    main_meter: str | None = None
    sub_meters: dict[str, str] = Field(default_factory=dict)  # {"ABCD": "/api/images/..."}


class CalculationCreate(CamelModel):
    """Schema for a bill apportionment request.

    Only the raw inputs are read; derived values sent by a client are ignored
    and recomputed on the server.
    """

    period_start: date
    period_end: date
    main_meter_reading: Decimal
    sub_meter_readings: list[SubMeterReadingIn]
    bill_amount: Decimal
    meter_images: MeterImages | None = None
    bill_image: str | None = None

    @field_validator("sub_meter_readings")
    @classmethod
    def validate_sub_meter_readings(cls, v: list[SubMeterReadingIn]) -> list[SubMeterReadingIn]:
        """Validate there is at least one reading and tenant names are unique."""
        if not v:
            raise ValueError("At least one sub-meter reading is required")
        names = [r.tenant for r in v]
        if len(set(names)) != len(names):
            raise ValueError("Tenant names must be unique")
        return v


class TenantShare(CamelModel):
    """A tenant's portion of the bill."""

    tenant: str
    reading: Decimal
    percent: Decimal  # Share of main meter consumption (0-100)
    share: Decimal  # reading / main_meter * bill_amount
    common_portion: Decimal  # Equal split of the common share
    amount_due: Decimal  # share + common_portion, settled to cents


class CalculationResult(CamelModel):
    """Result of apportioning a bill across tenants."""

    period_start: date
    period_end: date
    main_meter_reading: Decimal
    bill_amount: Decimal
    total_sub_meters: Decimal
    common_usage: Decimal  # main_meter - sum(sub_meters)
    common_percent: Decimal
    common_share: Decimal
    common_share_per_tenant: Decimal
    tenants: list[TenantShare]
    meter_images: MeterImages | None = None
    bill_image: str | None = None


class CalculationRecord(CalculationResult):
    """A saved calculation."""

    model_config = ConfigDict(frozen=True)

    id: int
    created_at: datetime
