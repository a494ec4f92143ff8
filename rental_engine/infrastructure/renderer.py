"""Plain-text ticket document attached to approval notices."""

from __future__ import annotations

import logging
from typing import Optional

from rental_engine.domain.entities import Ticket

logger = logging.getLogger(__name__)

WIDTH = 66

INSTRUCTIONS = (
    "Bring valid government-issued ID",
    "Present this ticket at the pickup location",
    "Vehicle inspection is conducted before handover",
)


def _row(label: str, value: str) -> str:
    return f"| {label:<16}{value:<{WIDTH - 20}} |"


class TextTicketRenderer:
    def __init__(self, currency: str = "RM"):
        self.currency = currency

    def render(self, ticket: Ticket) -> Optional[bytes]:
        try:
            lines = [
                "+" + "-" * (WIDTH - 2) + "+",
                f"| {'RENTAL CONFIRMATION TICKET':^{WIDTH - 4}} |",
                "+" + "-" * (WIDTH - 2) + "+",
                _row("Ticket ID:", ticket.id),
                _row("Rental ID:", str(ticket.rental_id)),
                _row("Customer:", ticket.customer_name),
                _row("Contact:", ticket.customer_contact),
                _row("Vehicle:", f"{ticket.vehicle_info} ({ticket.plate_no})"),
                _row("Period:", f"{ticket.start_date} to {ticket.end_date}"),
                _row("Total fee:", f"{self.currency}{ticket.total_fee:.2f}"),
                _row("Insurance:", "Included" if ticket.insurance else "Not included"),
                _row("Pickup at:", ticket.pickup_location),
                _row("Generated:", ticket.generated_at.strftime("%Y-%m-%d %H:%M:%S")),
                "+" + "-" * (WIDTH - 2) + "+",
            ]
            lines += [f"| - {line:<{WIDTH - 6}} |" for line in INSTRUCTIONS]
            lines.append("+" + "-" * (WIDTH - 2) + "+")
        except (AttributeError, TypeError, ValueError):
            logger.exception("Could not render ticket %s", getattr(ticket, "id", "?"))
            return None
        return ("\n".join(lines) + "\n").encode("utf-8")
