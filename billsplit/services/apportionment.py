"""Bill apportionment: turn meter readings and a bill amount into tenant shares.

Every tenant pays for their own sub-meter consumption at the flat rate
``bill_amount / main_meter_reading``. Consumption the sub-meters do not
capture (common areas, losses) is billed the same way and split equally:

    share_i       = reading_i / main_meter * bill_amount
    common_usage  = main_meter - sum(reading_i)
    common_share  = common_usage / main_meter * bill_amount
    amount_due_i  = share_i + common_share / N
"""

import logging
from decimal import ROUND_HALF_UP, Decimal, localcontext

from billsplit.schemas.calculation import CalculationCreate, CalculationResult, TenantShare

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


class ApportionmentError(ValueError):
    """Base class for readings or amounts that cannot be apportioned."""

    code = "apportionment_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Error payload for API responses."""
        return {"message": self.message, "code": self.code}


class InvalidMainMeter(ApportionmentError):
    code = "invalid_main_meter"

    def __init__(self) -> None:
        super().__init__("Main meter reading must be a positive number")


class InvalidSubMeter(ApportionmentError):
    code = "invalid_sub_meter"

    def __init__(self, tenant_index: int, tenant: str) -> None:
        super().__init__(f"{tenant} meter reading must be a non-negative number")
        self.tenant_index = tenant_index
        self.tenant = tenant

    def to_dict(self) -> dict:
        return {**super().to_dict(), "tenantIndex": self.tenant_index, "tenant": self.tenant}


class InvalidBillAmount(ApportionmentError):
    code = "invalid_bill_amount"

    def __init__(self) -> None:
        super().__init__("Bill amount must be positive")


class SubMetersExceedMain(ApportionmentError):
    code = "sub_meters_exceed_main"

    def __init__(self, deficit: Decimal) -> None:
        super().__init__(
            "The sum of sub-meter readings cannot exceed the main meter reading "
            f"(over by {deficit})"
        )
        self.deficit = deficit

    def to_dict(self) -> dict:
        return {**super().to_dict(), "deficit": str(self.deficit)}


def validate_inputs(data: CalculationCreate) -> None:
    """Check each field in order and raise on the first invalid one."""
    main = data.main_meter_reading
    if not main.is_finite() or main <= 0:
        raise InvalidMainMeter()

    for index, sub in enumerate(data.sub_meter_readings):
        if not sub.reading.is_finite() or sub.reading < 0:
            raise InvalidSubMeter(index, sub.tenant)

    bill = data.bill_amount
    if not bill.is_finite() or bill <= 0:
        raise InvalidBillAmount()


def settle_amounts(amounts: list[Decimal], total: Decimal) -> list[Decimal]:
    """Round amounts to cents so that they add up to ``total`` rounded to cents.

    The rounding remainder goes to the largest amount (the first one on ties).
    """
    if not amounts:
        return []

    # Enough digits to carry the largest value down to the cent
    digits = max(value.adjusted() for value in [*amounts, total]) + 4
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, digits)
        rounded = [amount.quantize(CENT, rounding=ROUND_HALF_UP) for amount in amounts]
        remainder = total.quantize(CENT, rounding=ROUND_HALF_UP) - sum(rounded, Decimal("0"))
        if remainder:
            largest = max(range(len(amounts)), key=lambda i: (amounts[i], -i))
            rounded[largest] += remainder
    return rounded


def compute_shares(data: CalculationCreate) -> CalculationResult:
    """Apportion ``data.bill_amount`` across tenants.

    Raises:
        InvalidMainMeter: main reading is not a positive number
        InvalidSubMeter: a sub-meter reading is negative or not finite
        InvalidBillAmount: bill amount is not a positive number
        SubMetersExceedMain: sub-meter readings add up to more than the main meter

    """
    validate_inputs(data)

    main = data.main_meter_reading
    bill = data.bill_amount
    readings = data.sub_meter_readings

    total_sub_meters = sum((r.reading for r in readings), Decimal("0"))
    common_usage = main - total_sub_meters
    if common_usage < 0:
        raise SubMetersExceedMain(-common_usage)

    # Multiply before dividing so whole-number inputs stay exact
    shares = [r.reading * bill / main for r in readings]
    percents = [r.reading * HUNDRED / main for r in readings]
    common_share = common_usage * bill / main
    common_percent = common_usage * HUNDRED / main
    common_share_per_tenant = common_share / len(readings)

    amounts_due = settle_amounts(
        [share + common_share_per_tenant for share in shares],
        bill,
    )

    tenants = [
        TenantShare(
            tenant=r.tenant,
            reading=r.reading,
            percent=percent,
            share=share,
            common_portion=common_share_per_tenant,
            amount_due=amount_due,
        )
        for r, percent, share, amount_due in zip(readings, percents, shares, amounts_due)
    ]

    logger.debug(
        "Apportioned %s across %d tenants (common usage %s)",
        bill,
        len(tenants),
        common_usage,
    )

    return CalculationResult(
        period_start=data.period_start,
        period_end=data.period_end,
        main_meter_reading=main,
        bill_amount=bill,
        total_sub_meters=total_sub_meters,
        common_usage=common_usage,
        common_percent=common_percent,
        common_share=common_share,
        common_share_per_tenant=common_share_per_tenant,
        tenants=tenants,
        meter_images=data.meter_images,
        bill_image=data.bill_image,
    )
