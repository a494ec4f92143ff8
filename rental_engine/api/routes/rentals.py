"""
Rental endpoints
================

POST  /api/v1/rentals                  -- request a booking (PENDING)
GET   /api/v1/rentals?username=...     -- a customer's rental history
GET   /api/v1/rentals/{rental_id}      -- one rental
PATCH /api/v1/rentals/{rental_id}/cancel -- cancel a PENDING booking
POST  /api/v1/rentals/extend           -- extend the caller's ACTIVE rental
POST  /api/v1/rentals/extend-pending   -- extend a booking awaiting approval
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from rental_engine.api.dependencies import get_manager
from rental_engine.api.middleware import limiter
from rental_engine.api.schemas import (
    ExtendResponse,
    ReasonRequest,
    RentalCreateRequest,
    RentalExtendRequest,
    RentalResponse,
)
from rental_engine.domain.entities import Rental
from rental_engine.services.reservations import ReservationManager

router = APIRouter(prefix="/rentals", tags=["rentals"])


@router.post(
    "",
    status_code=201,
    response_model=RentalResponse,
    summary="Request a booking",
    responses={409: {"description": "Dates clash with another booking's buffered window."}},
)
@limiter.limit("60/minute")
async def create_rental(
    request: Request,
    body: RentalCreateRequest,
    manager: ReservationManager = Depends(get_manager),
):
    return await manager.create(
        body.username, body.vehicle_id, body.start_date, body.end_date, body.insurance
    )


@router.get("", response_model=list[RentalResponse], summary="List a customer's rentals")
@limiter.limit("100/minute")
async def list_rentals(
    request: Request,
    username: str,
    manager: ReservationManager = Depends(get_manager),
):
    return manager.rentals_for_user(username)


@router.get("/{rental_id}", response_model=RentalResponse, summary="Get a rental")
@limiter.limit("100/minute")
async def get_rental(
    request: Request,
    rental_id: int,
    manager: ReservationManager = Depends(get_manager),
):
    return manager.get_rental(rental_id)


@router.patch(
    "/{rental_id}/cancel",
    response_model=RentalResponse,
    summary="Cancel a booking",
    description="Only PENDING bookings can be cancelled; no fee applies.",
)
@limiter.limit("30/minute")
async def cancel_rental(
    request: Request,
    rental_id: int,
    body: ReasonRequest,
    manager: ReservationManager = Depends(get_manager),
):
    return await manager.cancel(rental_id, body.reason)


@router.post(
    "/extend",
    response_model=ExtendResponse,
    summary="Extend an active rental",
    description=(
        "Re-prices the whole stay, so a longer rental may reach a better "
        "discount tier.  A fresh ticket replaces the current one."
    ),
)
@limiter.limit("30/minute")
async def extend_rental(
    request: Request,
    body: RentalExtendRequest,
    manager: ReservationManager = Depends(get_manager),
):
    rental = await manager.extend_rental(
        body.username, body.vehicle_id, body.new_end_date, body.insurance
    )
    return _extend_response(body, rental)


@router.post(
    "/extend-pending",
    response_model=ExtendResponse,
    summary="Extend a booking awaiting approval",
)
@limiter.limit("30/minute")
async def extend_pending_rental(
    request: Request,
    body: RentalExtendRequest,
    manager: ReservationManager = Depends(get_manager),
):
    rental = await manager.extend_pending_rental(
        body.username, body.vehicle_id, body.new_end_date, body.insurance
    )
    return _extend_response(body, rental)


def _extend_response(
    body: RentalExtendRequest, rental: Optional[Rental]
) -> ExtendResponse:
    if rental is None:
        raise HTTPException(
            status_code=404,
            detail=f"No matching rental for {body.username} on vehicle {body.vehicle_id}",
        )
    return ExtendResponse(extended=True, rental=RentalResponse.model_validate(rental))
