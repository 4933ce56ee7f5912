# A project / work order ("commessa") from the SAP export
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column
from fieldportal.db.base import Base


class Commessa(Base):
    __tablename__ = "commesse"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    wbs_element: Mapped[str | None] = mapped_column(String(64), nullable=True)

    def snapshot(self) -> dict:
        """Copy embedded into receipts; later edits here must not touch it."""
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "wbs_element": self.wbs_element,
        }

    def __str__(self) -> str:
        return f"{self.code} - {self.description}"
