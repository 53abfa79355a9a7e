"""SQLAlchemy model definition for administrators entering tickets."""

from __future__ import annotations

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from ..database import Base


class Admin(Base):
    __tablename__ = "admins"

    id = Column("admin_id", Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(250), nullable=False)
    last_name = Column(String(250), nullable=False)
    email = Column(String(250), nullable=True, unique=True)

    tickets = relationship("Ticket", back_populates="admin")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
