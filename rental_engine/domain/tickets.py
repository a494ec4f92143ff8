"""
Ticket Gate -- the single checkpoint between "booking approved" and
"vehicle handed over".

* One *current* ticket per rental.  Reissuing (re-approval, extension)
  supersedes the current id; pickup validation only accepts the current
  one.
* A consumed ticket stays consumed, so a rental that was picked up before
  an extension is still considered picked up afterwards.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional

from .entities import Rental, Ticket, Vehicle
from .enums import TicketRejection
from .errors import TicketInvalid

TICKET_PREFIX = "TKT-"
DEFAULT_PICKUP_LOCATION = "Main Office - Vehicle Rental Center"
DEFAULT_INSTRUCTIONS = "Please bring valid ID and this ticket for vehicle pickup"


def format_ticket_id(number: int) -> str:
    return f"{TICKET_PREFIX}{number:06d}"


def parse_ticket_number(ticket_id: str) -> int:
    try:
        return int(ticket_id.removeprefix(TICKET_PREFIX))
    except ValueError:
        return 0


class TicketGate:
    def __init__(
        self,
        start_number: int = 1,
        pickup_location: str = DEFAULT_PICKUP_LOCATION,
        instructions: str = DEFAULT_INSTRUCTIONS,
    ):
        self._next_number = start_number
        self.pickup_location = pickup_location
        self.instructions = instructions
        self._tickets: dict[str, Ticket] = {}
        self._by_rental: dict[int, list[str]] = {}
        self._current: dict[int, str] = {}

    # ── Loading ───────────────────────────────────────────────────────

    def load(self, tickets: Iterable[Ticket], rentals: Iterable[Rental]) -> None:
        """Restore tickets from a snapshot; rentals name the current ones."""
        for ticket in sorted(tickets, key=lambda t: parse_ticket_number(t.id)):
            self._tickets[ticket.id] = ticket
            self._by_rental.setdefault(ticket.rental_id, []).append(ticket.id)
            self._next_number = max(
                self._next_number, parse_ticket_number(ticket.id) + 1
            )
        for rental in rentals:
            if rental.ticket_id and rental.ticket_id in self._tickets:
                self._current[rental.id] = rental.ticket_id

    # ── Issue / validate ──────────────────────────────────────────────

    def issue(
        self, rental: Rental, vehicle: Vehicle, now: Optional[datetime] = None
    ) -> Ticket:
        ticket = Ticket(
            id=format_ticket_id(self._next_number),
            rental_id=rental.id,
            customer_name=rental.customer.name,
            customer_contact=rental.customer.contact,
            vehicle_info=vehicle.display_name,
            plate_no=vehicle.plate_no,
            start_date=rental.start_date,
            end_date=rental.end_date,
            total_fee=rental.fee,
            insurance=rental.insurance,
            generated_at=now or datetime.now(),
            pickup_location=self.pickup_location,
            instructions=self.instructions,
        )
        self._next_number += 1
        self._tickets[ticket.id] = ticket
        self._by_rental.setdefault(rental.id, []).append(ticket.id)
        self._current[rental.id] = ticket.id
        rental.ticket_id = ticket.id
        return ticket

    def check(self, ticket_id: str, claimed_name: str, today: date) -> Ticket:
        """Run every validation rule without consuming the ticket."""
        ticket = self._tickets.get(ticket_id)
        if ticket is None:
            raise TicketInvalid(TicketRejection.UNKNOWN, ticket_id)
        if ticket.used:
            raise TicketInvalid(TicketRejection.ALREADY_USED, ticket_id)
        if self._current.get(ticket.rental_id) != ticket_id:
            raise TicketInvalid(TicketRejection.SUPERSEDED, ticket_id)
        if ticket.customer_name.strip().casefold() != claimed_name.strip().casefold():
            raise TicketInvalid(TicketRejection.NAME_MISMATCH, ticket_id)
        if today < ticket.start_date:
            raise TicketInvalid(TicketRejection.TOO_EARLY, ticket_id)
        return ticket

    def validate(
        self,
        ticket_id: str,
        claimed_name: str,
        today: date,
        now: Optional[datetime] = None,
    ) -> Ticket:
        ticket = self.check(ticket_id, claimed_name, today)
        ticket.used = True
        ticket.used_at = now or datetime.now()
        return ticket

    # ── Queries ───────────────────────────────────────────────────────

    def get(self, ticket_id: str) -> Optional[Ticket]:
        return self._tickets.get(ticket_id)

    def current_for(self, rental_id: int) -> Optional[Ticket]:
        ticket_id = self._current.get(rental_id)
        return self._tickets.get(ticket_id) if ticket_id else None

    def is_picked_up(self, rental_id: int) -> bool:
        return any(
            self._tickets[tid].used for tid in self._by_rental.get(rental_id, [])
        )

    def tickets_for_customer(self, customer_name: str) -> list[Ticket]:
        wanted = customer_name.strip().casefold()
        return [
            t for t in self._tickets.values()
            if t.customer_name.strip().casefold() == wanted
        ]

    def all(self) -> list[Ticket]:
        return list(self._tickets.values())
