from __future__ import annotations
import datetime as dt
from typing import Optional, List

from sqlalchemy import Integer, String, Text, Float, Date, DateTime, JSON, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fieldportal.db.base import Base


class Receipt(Base):
    __tablename__ = "receipts"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    date: Mapped[dt.date] = mapped_column(Date, index=True, nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Exactly one of these is set: inline data URL, or a blob-storage URL
    image_data: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    # Point-in-time copy of the selected commessa (see Commessa.snapshot)
    commessa: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    participants: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)

    created_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    created_by = relationship("User", lazy="joined")
