from __future__ import annotations
from typing import Optional

from sqlalchemy import String, Float, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fieldportal.db.base import Base


class Piezometer(Base):
    __tablename__ = "piezometers"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    site_id: Mapped[int] = mapped_column(ForeignKey("sites.id"), index=True, nullable=False)

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    depth: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    site = relationship("Site", back_populates="piezometers")

    __table_args__ = (
        Index("ix_piezometers_site_id_name", "site_id", "name"),
    )

    @property
    def coordinates(self) -> list[float]:
        return [self.latitude, self.longitude]

    def __str__(self) -> str:
        return self.name
