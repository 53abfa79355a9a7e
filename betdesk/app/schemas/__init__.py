"""Expose Pydantic schemas for convenient imports."""

from .common import PaginatedResponse, PaginationLinks
from .ticket import (
    AdminSummary,
    PackageSummary,
    TicketComponentRead,
    TicketCreate,
    TicketDetail,
    TicketListResponse,
    TicketRead,
    TicketValidationErrorResponse,
)

__all__ = [
    "PaginatedResponse",
    "PaginationLinks",
    "AdminSummary",
    "PackageSummary",
    "TicketComponentRead",
    "TicketCreate",
    "TicketDetail",
    "TicketListResponse",
    "TicketRead",
    "TicketValidationErrorResponse",
]
