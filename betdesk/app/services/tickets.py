"""Business logic for ticket listings and lookups."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import extract
from sqlalchemy.orm import Session, selectinload

from .. import models
from ..models.validation import ValidationEngine, default_engine
from .criteria import FULLTEXT_KEY, ListingCriteria
from .listing import (
    EqualsFilter,
    FullTextFilter,
    Join,
    ListingPage,
    ListingRepository,
    ListingSchema,
    MembershipFilter,
    RangeFilter,
    SortKey,
)

LOGGER = logging.getLogger(__name__)

ADMIN_JOIN = Join("admin", models.Admin, models.Ticket.admin_id == models.Admin.id)
PACKAGE_JOIN = Join("package", models.Package, models.Ticket.package_id == models.Package.id)

TICKET_LISTING = ListingSchema(
    entity=models.Ticket,
    id_column=models.Ticket.id,
    default_sort="-created_at",
    sort_keys={
        "created_at": SortKey(models.Ticket.created_at),
        "final_course": SortKey(models.Ticket.final_course),
        "final_state": SortKey(models.Ticket.final_state),
        "closest_match_date": SortKey(models.Ticket.closest_match_date),
        "package_name": SortKey(models.Package.name, joins=(PACKAGE_JOIN,)),
    },
    filters=(
        FullTextFilter(
            FULLTEXT_KEY,
            first=models.Admin.first_name,
            second=models.Admin.last_name,
            joins=(ADMIN_JOIN,),
        ),
        RangeFilter(models.Ticket.created_at, lower_key="created_at_from", upper_key="created_at_to"),
        EqualsFilter("package_id", models.Ticket.package_id),
        MembershipFilter("states", models.Ticket.final_state),
        EqualsFilter("state", models.Ticket.final_state),
    ),
)

HISTORY_LISTING = ListingSchema(
    entity=models.Ticket,
    id_column=models.Ticket.id,
    default_sort="-closest_match_date",
    sort_keys={"closest_match_date": SortKey(models.Ticket.closest_match_date)},
    filters=(
        RangeFilter(
            models.Ticket.closest_match_date,
            lower_key="created_at_from",
            upper_key="created_at_to",
        ),
        EqualsFilter("package_id", models.Ticket.package_id),
        MembershipFilter(
            "states",
            models.Ticket.final_state,
            otherwise=models.Ticket.final_state != int(models.TicketState.NEW),
        ),
        EqualsFilter("state", models.Ticket.final_state),
    ),
    fixed_joins=(PACKAGE_JOIN,),
    fixed_predicates=(models.Package.is_active.is_(True),),
)


class TicketServiceError(RuntimeError):
    """Raised when ticket operations cannot be completed."""


class TicketValidationError(TicketServiceError):
    """Raised when a ticket fails validation before persistence."""

    def __init__(self, messages: Iterable[str]) -> None:
        self.messages = list(messages)
        super().__init__("; ".join(self.messages) or "Invalid ticket")


class TicketService:
    """Read operations over tickets plus validated creation."""

    listing = ListingRepository[models.Ticket](TICKET_LISTING)
    history = ListingRepository[models.Ticket](HISTORY_LISTING)

    @staticmethod
    def list_tickets(db: Session, criteria: ListingCriteria) -> ListingPage[models.Ticket]:
        """Admin listing: every ticket, filterable by admin name, dates, package and state."""

        return TicketService.listing.paginate(db, criteria)

    @staticmethod
    def list_history_tickets(db: Session, criteria: ListingCriteria) -> ListingPage[models.Ticket]:
        """Public history: resolved tickets of active packages, newest match first."""

        return TicketService.history.paginate(db, criteria)

    @staticmethod
    def get_ticket(db: Session, ticket_id: int) -> Optional[models.Ticket]:
        return (
            db.query(models.Ticket)
            .options(selectinload(models.Ticket.components))
            .filter(models.Ticket.id == ticket_id)
            .first()
        )

    @staticmethod
    def list_month_tickets(
        db: Session,
        package_id: int,
        month: int,
        year: Optional[int] = None,
    ) -> list[models.Ticket]:
        """Resolved tickets of a package whose closest match falls in the given month."""

        year = year if year is not None else date.today().year
        return (
            db.query(models.Ticket)
            .filter(extract("month", models.Ticket.closest_match_date) == month)
            .filter(extract("year", models.Ticket.closest_match_date) == year)
            .filter(models.Ticket.package_id == package_id)
            .filter(models.Ticket.final_state != int(models.TicketState.NEW))
            .order_by(models.Ticket.closest_match_date, models.Ticket.id)
            .all()
        )

    @staticmethod
    def list_unresolved_tickets(db: Session, package_ids: Iterable[int]) -> list[models.Ticket]:
        ids = list(package_ids)
        if not ids:
            return []
        return (
            db.query(models.Ticket)
            .filter(models.Ticket.package_id.in_(ids))
            .filter(models.Ticket.final_state == int(models.TicketState.NEW))
            .order_by(models.Ticket.closest_match_date.asc(), models.Ticket.id.asc())
            .all()
        )

    @staticmethod
    def _unchecked_query(db: Session, package_id: Optional[int] = None):
        query = db.query(models.Ticket).filter(models.Ticket.checked.is_(False))
        if package_id is not None:
            query = query.filter(models.Ticket.package_id == package_id)
        return query

    @staticmethod
    def list_unchecked_tickets(db: Session, package_id: Optional[int] = None) -> list[models.Ticket]:
        return TicketService._unchecked_query(db, package_id).order_by(models.Ticket.id).all()

    @staticmethod
    def count_unchecked_tickets(db: Session, package_id: int) -> int:
        return int(TicketService._unchecked_query(db, package_id).count())

    @staticmethod
    def list_latest_history_tickets(db: Session, limit: int = 6) -> list[models.Ticket]:
        return (
            db.query(models.Ticket)
            .join(models.Package, models.Ticket.package_id == models.Package.id)
            .filter(models.Ticket.final_state != int(models.TicketState.NEW))
            .filter(models.Package.is_active.is_(True))
            .order_by(models.Ticket.closest_match_date.desc(), models.Ticket.id.desc())
            .limit(max(limit, 1))
            .all()
        )

    @staticmethod
    def create_ticket(
        db: Session,
        values: Mapping[str, Any],
        *,
        engine: ValidationEngine = default_engine,
    ) -> models.Ticket:
        ticket = models.Ticket(final_state=int(models.TicketState.NEW), checked=False)
        ticket.bind(values)

        is_valid = ticket.is_valid(engine)
        if ticket.package_id is None or db.get(models.Package, ticket.package_id) is None:
            ticket.add_message("Choose an existing package")
            is_valid = False
        if ticket.admin_id is None or db.get(models.Admin, ticket.admin_id) is None:
            ticket.add_message("Choose an existing admin")
            is_valid = False
        if not is_valid:
            LOGGER.info("Rejected ticket with %d validation messages", len(ticket.messages))
            raise TicketValidationError(ticket.messages)

        db.add(ticket)
        db.commit()
        db.refresh(ticket)
        LOGGER.info("Created ticket %s for package %s", ticket.id, ticket.package_id)
        return ticket
