from __future__ import annotations

from datetime import datetime

import pytest

from betdesk.app import models
from betdesk.app.services import TicketService, TicketValidationError


def test_get_ticket_loads_components(db_session, seed_basic_data) -> None:
    ticket = seed_basic_data["tickets"][0]
    ticket.components.extend(
        [
            models.TicketComponent(match_name="Sparta - Slavia", course=1.7, match_date=datetime(2024, 5, 3, 18)),
            models.TicketComponent(
                match_name="Plzen - Ostrava",
                course=2.1,
                state=int(models.TicketState.SUCCESS),
                match_date=datetime(2024, 5, 3, 20),
            ),
        ]
    )
    db_session.commit()
    db_session.expire_all()

    loaded = TicketService.get_ticket(db_session, ticket.id)

    assert loaded is not None
    assert loaded.match_count == 2
    assert sorted(component.match_name for component in loaded.components) == [
        "Plzen - Ostrava",
        "Sparta - Slavia",
    ]


def test_get_ticket_returns_none_for_unknown_id(db_session) -> None:
    assert TicketService.get_ticket(db_session, 123456) is None


def test_list_month_tickets_returns_resolved_tickets_of_package(db_session, seed_basic_data) -> None:
    premium = seed_basic_data["packages"]["premium"]
    tickets = seed_basic_data["tickets"]

    may = TicketService.list_month_tickets(db_session, premium.id, 5, 2024)
    june = TicketService.list_month_tickets(db_session, premium.id, 6, 2024)

    assert [ticket.id for ticket in may] == [tickets[0].id, tickets[1].id]
    assert june == []


def test_list_month_tickets_skips_unresolved(db_session, seed_basic_data) -> None:
    basic = seed_basic_data["packages"]["basic"]

    assert TicketService.list_month_tickets(db_session, basic.id, 5, 2024) == []


def test_list_unresolved_tickets(db_session, seed_basic_data) -> None:
    packages = seed_basic_data["packages"]
    tickets = seed_basic_data["tickets"]

    unresolved = TicketService.list_unresolved_tickets(
        db_session, [packages["premium"].id, packages["basic"].id]
    )

    assert [ticket.id for ticket in unresolved] == [tickets[2].id]
    assert TicketService.list_unresolved_tickets(db_session, []) == []


def test_unchecked_tickets(db_session, seed_basic_data) -> None:
    packages = seed_basic_data["packages"]
    tickets = seed_basic_data["tickets"]

    unchecked = TicketService.list_unchecked_tickets(db_session)

    assert [ticket.id for ticket in unchecked] == [tickets[0].id, tickets[1].id, tickets[2].id]
    assert TicketService.list_unchecked_tickets(db_session, packages["legacy"].id) == []
    assert TicketService.count_unchecked_tickets(db_session, packages["premium"].id) == 2
    assert TicketService.count_unchecked_tickets(db_session, packages["legacy"].id) == 0


def test_latest_history_tickets(db_session, seed_basic_data) -> None:
    tickets = seed_basic_data["tickets"]

    latest = TicketService.list_latest_history_tickets(db_session)
    single = TicketService.list_latest_history_tickets(db_session, limit=1)

    assert [ticket.id for ticket in latest] == [tickets[1].id, tickets[0].id]
    assert [ticket.id for ticket in single] == [tickets[1].id]


def test_create_ticket_persists_valid_ticket(db_session, seed_basic_data) -> None:
    package = seed_basic_data["packages"]["basic"]
    admin = seed_basic_data["admins"]["jane"]

    ticket = TicketService.create_ticket(
        db_session,
        {
            "betting_shop": 20,
            "deposit": 50.0,
            "final_course": 2.1,
            "closest_match_date": "2024-06-01T18:00:00",
            "package_id": package.id,
            "admin_id": admin.id,
            "checked": True,
        },
    )

    assert ticket.id is not None
    assert ticket.created_at is not None
    assert ticket.final_state == models.TicketState.NEW
    assert ticket.checked is True
    assert ticket.betting_shop_name == "Chance"
    assert db_session.query(models.Ticket).count() == 5


def test_create_ticket_reports_every_problem(db_session, seed_basic_data) -> None:
    admin = seed_basic_data["admins"]["jane"]

    with pytest.raises(TicketValidationError) as excinfo:
        TicketService.create_ticket(
            db_session,
            {"betting_shop": 20, "closest_match_date": "2024-06-01T18:00:00", "admin_id": admin.id},
        )

    assert excinfo.value.messages == ["Deposit is required", "Choose an existing package"]
    assert db_session.query(models.Ticket).count() == 4


def test_create_ticket_rejects_unknown_admin(db_session, seed_basic_data) -> None:
    package = seed_basic_data["packages"]["premium"]

    with pytest.raises(TicketValidationError) as excinfo:
        TicketService.create_ticket(
            db_session,
            {
                "betting_shop": 10,
                "deposit": 20,
                "closest_match_date": "2024-06-01T18:00:00",
                "package_id": package.id,
                "admin_id": 987654,
            },
        )

    assert excinfo.value.messages == ["Choose an existing admin"]


def test_admin_full_name(seed_basic_data) -> None:
    assert seed_basic_data["admins"]["jane"].full_name == "Jane Doe"


def test_components_follow_their_ticket(db_session, seed_basic_data) -> None:
    ticket = seed_basic_data["tickets"][0]
    kept = models.TicketComponent(match_name="Brno - Zlin", course=1.4, match_date=datetime(2024, 5, 3, 17))
    dropped = models.TicketComponent(match_name="Olomouc - Jablonec", course=2.6, match_date=datetime(2024, 5, 3, 19))
    ticket.components.extend([kept, dropped])
    db_session.commit()

    ticket_id = ticket.id
    ticket.components.remove(dropped)
    db_session.commit()
    assert db_session.query(models.TicketComponent).count() == 1

    db_session.delete(ticket)
    db_session.commit()
    assert db_session.query(models.TicketComponent).count() == 0
    assert TicketService.get_ticket(db_session, ticket_id) is None
