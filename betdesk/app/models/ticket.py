"""SQLAlchemy model definitions for wager tickets and their match components."""

from __future__ import annotations

import enum
from datetime import date, datetime
from typing import Any, Callable, Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import relationship

from ..database import Base
from .validation import Choice, NotNull, Positive, ValidatedModel, ValidationEngine, Violation


class BettingShop(enum.IntEnum):
    """Bookmakers a ticket can be placed with."""

    TIPSPORT = 10
    CHANCE = 20
    FORTUNA = 30
    SAZKABET = 40
    FOREIGN = 50


BETTING_SHOP_NAMES = {
    BettingShop.TIPSPORT: "Tipsport",
    BettingShop.CHANCE: "Chance",
    BettingShop.FORTUNA: "Fortuna",
    BettingShop.SAZKABET: "Sazkabet",
    BettingShop.FOREIGN: "Foreign",
}


class TicketState(enum.IntEnum):
    """Resolution state shared by tickets and their components."""

    NEW = 0
    SUCCESS = 1
    FAIL = 2
    CANCELED = 3


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError:
        return None


def _parse_state(value: Any) -> Any:
    try:
        return TicketState(int(value))
    except (TypeError, ValueError):
        return value


class Ticket(ValidatedModel, Base):
    """A wager placed with a bookmaker, made of one or more match components."""

    __tablename__ = "tickets"

    id = Column("ticket_id", Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    betting_shop = Column(Integer, nullable=False)
    deposit = Column(Float, nullable=False)
    final_course = Column(Float, nullable=True)
    final_state = Column(Integer, nullable=False, default=int(TicketState.NEW))
    closest_match_date = Column(DateTime, nullable=False)
    checked = Column(Boolean, nullable=False, default=False, server_default="0")
    package_id = Column(
        Integer,
        ForeignKey("packages.package_id", ondelete="CASCADE"),
        nullable=False,
    )
    admin_id = Column(
        Integer,
        ForeignKey("admins.admin_id", ondelete="RESTRICT"),
        nullable=False,
    )

    package = relationship("Package", back_populates="tickets")
    admin = relationship("Admin", back_populates="tickets")
    components = relationship(
        "TicketComponent",
        back_populates="ticket",
        cascade="all, delete-orphan",
    )

    bindable_fields = (
        "betting_shop",
        "deposit",
        "final_course",
        "final_state",
        "closest_match_date",
        "checked",
        "package_id",
        "admin_id",
    )
    serializable_fields = (
        "id",
        "created_at",
        "betting_shop",
        "deposit",
        "final_course",
        "final_state",
        "closest_match_date",
        "checked",
        "package_id",
        "admin_id",
    )

    def field_setters(self) -> dict[str, Callable[[Any], None]]:
        setters = super().field_setters()
        setters["closest_match_date"] = lambda value: setattr(
            self, "closest_match_date", _parse_datetime(value)
        )
        setters["final_state"] = lambda value: setattr(self, "final_state", _parse_state(value))
        return setters

    def validate(self, engine: ValidationEngine) -> list[list[Violation]]:
        return [
            engine.validate(
                "betting_shop",
                self.betting_shop,
                [NotNull("Betting shop is required")],
            ),
            engine.validate(
                "betting_shop",
                self.betting_shop,
                [
                    Choice(
                        [shop.value for shop in BettingShop],
                        "Choose a valid betting shop",
                        coerce=int,
                    )
                ],
            ),
            engine.validate("deposit", self.deposit, [NotNull("Deposit is required")]),
            engine.validate("deposit", self.deposit, [Positive("Deposit must be a positive number")]),
            engine.validate(
                "final_course",
                self.final_course,
                [Positive("Odds must be a positive number")],
            ),
            engine.validate(
                "final_state",
                self.final_state,
                [Choice([state.value for state in TicketState], "Choose a valid ticket state", coerce=int)],
            ),
            engine.validate(
                "closest_match_date",
                self.closest_match_date,
                [NotNull("Date of the closest match is required")],
            ),
        ]

    @staticmethod
    def betting_shop_options() -> dict[int, str]:
        return {int(shop): name for shop, name in BETTING_SHOP_NAMES.items()}

    @property
    def betting_shop_name(self) -> str:
        return self.betting_shop_options().get(self.betting_shop, "")

    @property
    def state(self) -> Optional[TicketState]:
        if self.final_state is None:
            return None
        return TicketState(self.final_state)

    @property
    def rounded_course(self) -> float:
        return round(float(self.final_course or 0), 2)

    @property
    def match_count(self) -> int:
        return len(self.components)


class TicketComponent(Base):
    """A single match on a ticket."""

    __tablename__ = "ticket_components"

    id = Column("component_id", Integer, primary_key=True, autoincrement=True)
    ticket_id = Column(
        Integer,
        ForeignKey("tickets.ticket_id", ondelete="CASCADE"),
        nullable=False,
    )
    match_name = Column(String(250), nullable=False)
    course = Column(Float, nullable=False)
    state = Column(Integer, nullable=False, default=int(TicketState.NEW))
    match_date = Column(DateTime, nullable=False)

    ticket = relationship("Ticket", back_populates="components")


Index("tickets_package_state_idx", Ticket.package_id, Ticket.final_state)
Index("tickets_closest_match_idx", Ticket.closest_match_date)
Index("tickets_checked_idx", Ticket.checked)
