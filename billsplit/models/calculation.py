"""Calculation database model for the SQL-backed record store."""

from datetime import UTC, date, datetime

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from billsplit.core.database import Base
from billsplit.schemas.calculation import CalculationRecord, CalculationResult


class Calculation(Base):
    """A saved bill apportionment.

    The period dates are real columns for ordering and filtering; the rest of
    the result is stored as JSON so decimals round-trip at full precision.
    """

    __tablename__ = "calculations"
    __table_args__ = {"sqlite_autoincrement": True}  # Never reuse ids of deleted rows

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        index=True,
    )
    period_start: Mapped[date]
    period_end: Mapped[date]
    payload_json: Mapped[str] = mapped_column(Text)  # JSON: CalculationResult

    def set_result(self, result: CalculationResult) -> None:
        """Serialize a computed result for storage."""
        self.period_start = result.period_start
        self.period_end = result.period_end
        self.payload_json = result.model_dump_json()

    def to_record(self) -> CalculationRecord:
        """Rebuild the immutable record from the stored row."""
        result = CalculationResult.model_validate_json(self.payload_json)
        created_at = self.created_at
        if created_at.tzinfo is None:
            # SQLite drops the offset; values are always written in UTC
            created_at = created_at.replace(tzinfo=UTC)
        return CalculationRecord(
            **result.model_dump(),
            id=self.id,
            created_at=created_at,
        )
