"""Router exposing ticket listings and lookups."""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import (
    ListingCriteria,
    ListingPage,
    Paginator,
    TicketService,
    TicketValidationError,
)

LOGGER = logging.getLogger(__name__)

router = APIRouter()


def get_listing_criteria(request: Request) -> ListingCriteria:
    """Build listing criteria from the raw query string."""

    return ListingCriteria.from_query(request.query_params.multi_items())


def _page_link(path: str, criteria: ListingCriteria, page: int) -> str:
    return f"{path}?{criteria.build_url_query(page)}"


def _listing_response(
    request: Request,
    criteria: ListingCriteria,
    listing: ListingPage,
) -> schemas.TicketListResponse:
    criteria.set_total(listing.total)
    paginator = Paginator.for_criteria(criteria)
    path = request.url.path

    has_pages = paginator.page_count > 0
    links = schemas.PaginationLinks(
        current=_page_link(path, criteria, paginator.page),
        first=_page_link(path, criteria, paginator.first_page) if has_pages else None,
        last=_page_link(path, criteria, paginator.last_page) if has_pages else None,
        previous=_page_link(path, criteria, paginator.page - 1) if paginator.has_previous else None,
        next=_page_link(path, criteria, paginator.page + 1) if paginator.has_next else None,
    )
    return schemas.TicketListResponse(
        items=[schemas.TicketRead.model_validate(ticket) for ticket in listing.items],
        total=listing.total,
        page=paginator.page,
        limit=paginator.items_per_page,
        page_count=paginator.page_count,
        sort=listing.sort.token if listing.sort else None,
        links=links,
    )


def _run_listing(
    runner: Callable[[Session, ListingCriteria], ListingPage],
    db: Session,
    criteria: ListingCriteria,
    description: str,
) -> ListingPage:
    try:
        return runner(db, criteria)
    except SQLAlchemyError as exc:
        LOGGER.exception(
            "Failed to list %s",
            description,
            exc_info=exc,
            extra={"criteria": criteria.criteria, "page": criteria.page},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Tickets could not be loaded. Please try again later.",
        ) from exc


@router.get("/", response_model=schemas.TicketListResponse)
def list_tickets(
    request: Request,
    db: Session = Depends(get_db),
    criteria: ListingCriteria = Depends(get_listing_criteria),
) -> schemas.TicketListResponse:
    """Return tickets filtered by admin name, creation dates, package and state."""

    listing = _run_listing(TicketService.list_tickets, db, criteria, "tickets")
    return _listing_response(request, criteria, listing)


@router.get("/history", response_model=schemas.TicketListResponse)
def list_history_tickets(
    request: Request,
    db: Session = Depends(get_db),
    criteria: ListingCriteria = Depends(get_listing_criteria),
) -> schemas.TicketListResponse:
    """Return resolved tickets of active packages."""

    listing = _run_listing(TicketService.list_history_tickets, db, criteria, "ticket history")
    return _listing_response(request, criteria, listing)


@router.get("/{ticket_id}", response_model=schemas.TicketDetail)
def get_ticket(ticket_id: int, db: Session = Depends(get_db)) -> schemas.TicketDetail:
    ticket = TicketService.get_ticket(db, ticket_id)
    if ticket is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found")
    return schemas.TicketDetail.model_validate(ticket)


@router.post(
    "/",
    response_model=schemas.TicketDetail,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": schemas.TicketValidationErrorResponse}},
)
def create_ticket(payload: schemas.TicketCreate, db: Session = Depends(get_db)):
    try:
        ticket = TicketService.create_ticket(db, payload.model_dump(exclude_unset=True))
    except TicketValidationError as exc:
        return JSONResponse(
            status_code=422,
            content={"messages": exc.messages},
        )
    return schemas.TicketDetail.model_validate(TicketService.get_ticket(db, ticket.id))
