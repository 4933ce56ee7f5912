from __future__ import annotations
from typing import List, Optional

from sqlalchemy import String, Float
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fieldportal.db.base import Base


class Site(Base):
    __tablename__ = "sites"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(200), unique=True, index=True, nullable=False)
    client: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)

    # No cascade and no delete: piezometers and waste logs require their site
    piezometers: Mapped[List["Piezometer"]] = relationship(
        back_populates="site",
        order_by="Piezometer.name",
        lazy="selectin",
    )

    @property
    def coordinates(self) -> list[float]:
        return [self.latitude, self.longitude]

    def __str__(self) -> str:
        return self.name
