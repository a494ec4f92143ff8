"""
Vehicle catalog endpoints
=========================

GET /api/v1/vehicles                     -- bookable fleet
GET /api/v1/vehicles/{vehicle_id}        -- one vehicle with its issues
GET /api/v1/vehicles/{vehicle_id}/schedule -- buffered unavailable periods
GET /api/v1/vehicles/{vehicle_id}/issues   -- maintenance log (open_only=true for outstanding)
GET /api/v1/vehicles/{vehicle_id}/quote  -- price a prospective booking
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Request

from rental_engine.api.dependencies import get_manager
from rental_engine.api.middleware import limiter
from rental_engine.api.schemas import (
    IssueResponse,
    PeriodResponse,
    QuoteResponse,
    ScheduleResponse,
    VehicleResponse,
)
from rental_engine.domain.pricing import discount_for, rental_days
from rental_engine.services.reservations import ReservationManager

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.get("", response_model=list[VehicleResponse], summary="List vehicles")
@limiter.limit("100/minute")
async def list_vehicles(
    request: Request,
    include_archived: bool = False,
    manager: ReservationManager = Depends(get_manager),
):
    return manager.list_vehicles(include_archived)


@router.get("/{vehicle_id}", response_model=VehicleResponse, summary="Get a vehicle")
@limiter.limit("100/minute")
async def get_vehicle(
    request: Request,
    vehicle_id: int,
    manager: ReservationManager = Depends(get_manager),
):
    return manager.get_vehicle(vehicle_id)


@router.get(
    "/{vehicle_id}/schedule",
    response_model=ScheduleResponse,
    summary="Unavailable periods including the service buffer",
)
@limiter.limit("100/minute")
async def get_schedule(
    request: Request,
    vehicle_id: int,
    manager: ReservationManager = Depends(get_manager),
):
    periods = manager.schedule(vehicle_id)
    return ScheduleResponse(
        vehicle_id=vehicle_id,
        buffer_days=manager.buffer_days,
        unavailable=[PeriodResponse(start=s, end=e) for s, e in periods],
    )


@router.get(
    "/{vehicle_id}/issues",
    response_model=list[IssueResponse],
    summary="Maintenance issues reported against a vehicle",
)
@limiter.limit("100/minute")
async def list_issues(
    request: Request,
    vehicle_id: int,
    open_only: bool = False,
    manager: ReservationManager = Depends(get_manager),
):
    return manager.issues(vehicle_id, open_only)


@router.get("/{vehicle_id}/quote", response_model=QuoteResponse, summary="Quote a booking")
@limiter.limit("100/minute")
async def get_quote(
    request: Request,
    vehicle_id: int,
    start_date: date,
    end_date: date,
    insurance: bool = False,
    manager: ReservationManager = Depends(get_manager),
):
    fee = manager.quote(vehicle_id, start_date, end_date, insurance)
    days = rental_days(start_date, end_date)
    return QuoteResponse(
        vehicle_id=vehicle_id,
        start_date=start_date,
        end_date=end_date,
        days=days,
        discount=discount_for(manager.get_vehicle(vehicle_id), days),
        insurance=insurance,
        fee=fee,
    )
