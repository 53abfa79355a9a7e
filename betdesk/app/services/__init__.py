"""Service layer encapsulating business logic for API routers."""

from .criteria import ListingCriteria, SortDirection, SortOrder
from .listing import (
    EqualsFilter,
    FilterClause,
    FullTextFilter,
    Join,
    ListingPage,
    ListingRepository,
    ListingSchema,
    MembershipFilter,
    QuerySpec,
    RangeFilter,
    SortKey,
    compile_listing,
)
from .pagination import Paginator
from .tickets import (
    HISTORY_LISTING,
    TICKET_LISTING,
    TicketService,
    TicketServiceError,
    TicketValidationError,
)

__all__ = [
    "ListingCriteria",
    "SortDirection",
    "SortOrder",
    "EqualsFilter",
    "FilterClause",
    "FullTextFilter",
    "Join",
    "ListingPage",
    "ListingRepository",
    "ListingSchema",
    "MembershipFilter",
    "QuerySpec",
    "RangeFilter",
    "SortKey",
    "compile_listing",
    "Paginator",
    "HISTORY_LISTING",
    "TICKET_LISTING",
    "TicketService",
    "TicketServiceError",
    "TicketValidationError",
]
