from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Float, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fieldportal.db.base import Base

MEASUREMENT_FIELDS = (
    "depth_to_water",
    "ph",
    "conductivity",
    "temperature",
    "redox_potential",
    "dissolved_oxygen",
)


class SamplingEvent(Base):
    __tablename__ = "sampling_events"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    piezometer_id: Mapped[int] = mapped_column(ForeignKey("piezometers.id"), index=True, nullable=False)
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False, index=True
    )

    depth_to_water: Mapped[Optional[float]] = mapped_column(Float)   # m
    ph: Mapped[Optional[float]] = mapped_column(Float)
    conductivity: Mapped[Optional[float]] = mapped_column(Float)     # µS/cm
    temperature: Mapped[Optional[float]] = mapped_column(Float)      # °C
    redox_potential: Mapped[Optional[float]] = mapped_column(Float)  # mV
    dissolved_oxygen: Mapped[Optional[float]] = mapped_column(Float)  # mg/L

    notes: Mapped[Optional[str]] = mapped_column(Text)

    piezometer = relationship("Piezometer", lazy="joined")

    @property
    def measurements(self) -> dict:
        return {f: getattr(self, f) for f in MEASUREMENT_FIELDS}
