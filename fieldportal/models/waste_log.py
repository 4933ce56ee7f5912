from __future__ import annotations
import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, Text, Float, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fieldportal.db.base import Base


class WasteType(str, enum.Enum):
    CONTAMINATED_WATER = "Contaminated Water"
    CONTAMINATED_SOIL = "Contaminated Soil"
    USED_ABSORBENTS = "Used Absorbents"
    DRILLING_CUTTINGS = "Drilling Cuttings"
    OTHER = "Other"


class WasteUnit(str, enum.Enum):
    LITERS = "Liters"
    KG = "kg"
    DRUMS = "Drums"
    CUBIC_METERS = "m³"


class WasteStatus(str, enum.Enum):
    STORED_ON_SITE = "Stored On-Site"
    AWAITING_DISPOSAL = "Awaiting Disposal"
    TRANSPORTED_OFF_SITE = "Transported Off-Site"
    DISPOSED = "Disposed"


def _enum_values(cls):
    return [m.value for m in cls]


class WasteLog(Base):
    __tablename__ = "waste_logs"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    site_id: Mapped[int] = mapped_column(ForeignKey("sites.id"), index=True, nullable=False)
    date_generated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    waste_type: Mapped[WasteType] = mapped_column(
        SAEnum(WasteType, name="waste_type", values_callable=_enum_values, native_enum=False),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    eer_code: Mapped[str] = mapped_column(String(32), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[WasteUnit] = mapped_column(
        SAEnum(WasteUnit, name="waste_unit", values_callable=_enum_values, native_enum=False),
        nullable=False,
    )
    storage_location: Mapped[Optional[str]] = mapped_column(String(255))
    image_url: Mapped[Optional[str]] = mapped_column(String(1024))
    status: Mapped[WasteStatus] = mapped_column(
        SAEnum(WasteStatus, name="waste_status", values_callable=_enum_values, native_enum=False),
        default=WasteStatus.STORED_ON_SITE,
        nullable=False,
    )

    site = relationship("Site", lazy="joined")
