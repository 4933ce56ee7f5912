from __future__ import annotations
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from fieldportal.db.base import Base

ADMIN = "admin"
STAFF = "staff"


class Role(Base):

    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    users = relationship("User", back_populates="role", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Role id={self.id} name={self.name}>"
