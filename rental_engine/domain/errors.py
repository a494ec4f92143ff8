"""
Domain error taxonomy.

Every error here is recoverable: the caller re-prompts, re-fetches state
or tells the customer what to do next.  Persistence and notification
failures are deliberately *not* part of this hierarchy; they are reported
as ``Outcome`` values and never abort an operation.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from .enums import RentalStatus, TicketRejection


class RentalError(Exception):
    """Base class for all reservation-engine errors."""


class ValidationError(RentalError):
    """Bad date range, non-positive duration or an unbookable vehicle."""


class NotFound(RentalError):
    """Referenced vehicle, rental, issue or account does not exist."""


class Conflict(RentalError):
    """The requested period clashes with another booking's buffered window."""

    def __init__(
        self,
        message: str,
        *,
        rental_id: Optional[int] = None,
        holder: Optional[str] = None,
        window_start: Optional[date] = None,
        window_end: Optional[date] = None,
    ):
        super().__init__(message)
        self.rental_id = rental_id
        self.holder = holder
        self.window_start = window_start
        self.window_end = window_end


class InvalidTransition(RentalError):
    """Raised when a rental status change violates the state machine."""

    def __init__(self, current: RentalStatus, requested: RentalStatus):
        super().__init__(
            f"Cannot transition from {current.value} to {requested.value}"
        )
        self.current = current
        self.requested = requested


class NotPickedUp(RentalError):
    """Return attempted before the pickup ticket was validated."""


class TicketInvalid(RentalError):
    def __init__(self, reason: TicketRejection, ticket_id: str):
        super().__init__(f"Ticket {ticket_id} rejected: {reason.value}")
        self.reason = reason
        self.ticket_id = ticket_id
