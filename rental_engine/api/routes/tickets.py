"""
Ticket endpoints (pickup desk)
==============================

GET  /api/v1/tickets?customer_name=...        -- tickets issued to a customer
GET  /api/v1/tickets/{ticket_id}              -- ticket details
POST /api/v1/tickets/{ticket_id}/validate     -- consume at vehicle handover
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from rental_engine.api.dependencies import get_manager
from rental_engine.api.middleware import limiter
from rental_engine.api.schemas import (
    TicketRejectedResponse,
    TicketResponse,
    TicketValidateRequest,
)
from rental_engine.services.reservations import ReservationManager

router = APIRouter(prefix="/tickets", tags=["tickets"])


@router.get("", response_model=list[TicketResponse], summary="List a customer's tickets")
@limiter.limit("100/minute")
async def list_tickets(
    request: Request,
    customer_name: str,
    manager: ReservationManager = Depends(get_manager),
):
    return manager.gate.tickets_for_customer(customer_name)


@router.get("/{ticket_id}", response_model=TicketResponse, summary="Get a ticket")
@limiter.limit("100/minute")
async def get_ticket(
    request: Request,
    ticket_id: str,
    manager: ReservationManager = Depends(get_manager),
):
    ticket = manager.gate.get(ticket_id)
    if ticket is None:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


@router.post(
    "/{ticket_id}/validate",
    response_model=TicketResponse,
    summary="Validate a ticket at pickup",
    description=(
        "Only the rental's current ticket is accepted, on or after the start "
        "date, for the customer named on it.  On success the vehicle is RENTED."
    ),
    responses={400: {"model": TicketRejectedResponse}},
)
@limiter.limit("30/minute")
async def validate_ticket(
    request: Request,
    ticket_id: str,
    body: TicketValidateRequest,
    manager: ReservationManager = Depends(get_manager),
):
    return await manager.validate_ticket(ticket_id, body.customer_name)
