from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.ticket import TicketState
from .common import PaginatedResponse


class PackageSummary(BaseModel):
    id: int
    name: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class AdminSummary(BaseModel):
    id: int
    first_name: str
    last_name: str

    model_config = ConfigDict(from_attributes=True)


class TicketComponentRead(BaseModel):
    id: int
    match_name: str
    course: float
    state: TicketState
    match_date: datetime

    model_config = ConfigDict(from_attributes=True)


class TicketCreate(BaseModel):
    """Payload accepted when entering a ticket.

    Rule checks (positive deposit, known betting shop...) are left to the
    entity so that every message is reported together.
    """

    betting_shop: Optional[int] = Field(default=None, description="Bookmaker code")
    deposit: Optional[float] = Field(default=None, description="Stake placed on the ticket")
    final_course: Optional[float] = Field(default=None, description="Combined odds")
    closest_match_date: Optional[datetime] = Field(
        default=None, description="Kick-off of the earliest match on the ticket"
    )
    package_id: Optional[int] = Field(default=None, description="Package the ticket belongs to")
    admin_id: Optional[int] = Field(default=None, description="Admin entering the ticket")


class TicketRead(BaseModel):
    id: int
    created_at: datetime
    betting_shop: int
    betting_shop_name: str
    deposit: float
    final_course: Optional[float] = None
    final_state: TicketState
    closest_match_date: datetime
    checked: bool
    match_count: int
    package: PackageSummary
    admin: AdminSummary

    model_config = ConfigDict(from_attributes=True)


class TicketDetail(TicketRead):
    components: list[TicketComponentRead] = Field(default_factory=list)


class TicketListResponse(PaginatedResponse[TicketRead]):
    """Paginated ticket listing."""


class TicketValidationErrorResponse(BaseModel):
    messages: list[str]


__all__ = [
    "AdminSummary",
    "PackageSummary",
    "TicketComponentRead",
    "TicketCreate",
    "TicketDetail",
    "TicketListResponse",
    "TicketRead",
    "TicketValidationErrorResponse",
]
