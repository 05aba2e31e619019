"""Display helpers for amounts, percentages and billing periods."""

import calendar
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, localcontext

from billsplit.schemas.calculation import CalculationResult


def _group_indian(digits: str) -> str:
    """Group digits the Indian way: last three, then pairs (12,34,567)."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_currency(value: Decimal | float | int) -> str:
    """Format an amount with Indian digit grouping and no decimals."""
    amount = Decimal(str(value))
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + 2)
        amount = amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    return sign + _group_indian(str(amount.copy_abs()))


def format_percent(value: Decimal | float) -> str:
    """Format a percentage to one decimal place."""
    return str(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def format_date(value: date) -> str:
    """Format a date as e.g. "Feb 1"."""
    return f"{calendar.month_abbr[value.month]} {value.day}"


def format_date_range(start: date, end: date) -> str:
    """Format a billing period as e.g. "Feb 1 - Apr 1, 2025"."""
    return f"{format_date(start)} - {format_date(end)}, {end.year}"


def _months_before(day: date, months: int) -> date:
    """Return the same day ``months`` earlier, clamped to the month's length."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def default_period(today: date, months: int = 2) -> tuple[date, date]:
    """Billing period ending today and starting ``months`` earlier."""
    return _months_before(today, months), today


def build_share_summary(result: CalculationResult, currency_symbol: str = "₹") -> str:
    """Plain-text summary of a split, for pasting into a chat."""
    lines = [
        f"Electricity Bill Split ({format_date_range(result.period_start, result.period_end)})",
        f"Total bill: {currency_symbol}{format_currency(result.bill_amount)}",
        "",
    ]
    for tenant in result.tenants:
        lines.append(
            f"{tenant.tenant}: {currency_symbol}{format_currency(tenant.share)} "
            f"({format_percent(tenant.percent)}%)"
        )
    lines.append(
        f"Common: {currency_symbol}{format_currency(result.common_share)} "
        f"({currency_symbol}{format_currency(result.common_share_per_tenant)} each)"
    )
    lines.append("")
    lines.append("Amount due:")
    for tenant in result.tenants:
        lines.append(f"{tenant.tenant}: {currency_symbol}{tenant.amount_due}")
    return "\n".join(lines)
