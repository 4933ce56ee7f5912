from __future__ import annotations
from datetime import datetime, timezone

from sqlalchemy import Integer, String, Text, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fieldportal.db.base import Base


class ScheduleData(Base):
    """Raw CSV of one month's schedule. Parsed on read, never stored parsed."""

    __tablename__ = "schedule_data"
    __table_args__ = (UniqueConstraint("year", "month", name="uq_schedule_year_month"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    csv_content: Mapped[str] = mapped_column(Text, nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
