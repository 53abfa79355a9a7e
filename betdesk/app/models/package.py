"""SQLAlchemy model definition for tipster packages."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship

from ..database import Base


class Package(Base):
    """A tipster product grouping tickets; only active packages show in history."""

    __tablename__ = "packages"

    id = Column("package_id", Integer, primary_key=True, autoincrement=True)
    name = Column(String(250), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, server_default="1")

    tickets = relationship("Ticket", back_populates="package", passive_deletes=True)
