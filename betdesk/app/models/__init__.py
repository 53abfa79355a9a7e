"""Expose SQLAlchemy models for convenient imports."""

from .admin import Admin
from .package import Package
from .ticket import (
    BETTING_SHOP_NAMES,
    BettingShop,
    Ticket,
    TicketComponent,
    TicketState,
)
from .validation import (
    Choice,
    Constraint,
    NotNull,
    Positive,
    ValidatedModel,
    ValidationEngine,
    Violation,
    default_engine,
)

__all__ = [
    "Admin",
    "Package",
    "BETTING_SHOP_NAMES",
    "BettingShop",
    "Ticket",
    "TicketComponent",
    "TicketState",
    "Choice",
    "Constraint",
    "NotNull",
    "Positive",
    "ValidatedModel",
    "ValidationEngine",
    "Violation",
    "default_engine",
]
