"""
Admin / back-office endpoints
=============================

Rentals
  GET  /api/v1/admin/rentals/pending            -- approval queue
  GET  /api/v1/admin/rentals/active             -- vehicles currently out
  POST /api/v1/admin/rentals/offline            -- walk-in booking, ACTIVE at once
  POST /api/v1/admin/rentals/{id}/approve       -- issue a ticket
  POST /api/v1/admin/rentals/{id}/reject        -- decline with a reason
  POST /api/v1/admin/rentals/{id}/return        -- check a vehicle back in

Fleet
  POST   /api/v1/admin/vehicles                 -- register a vehicle
  DELETE /api/v1/admin/vehicles/{id}            -- hard delete (no history)
  POST   /api/v1/admin/vehicles/{id}/archive    -- soft delete
  POST   /api/v1/admin/vehicles/{id}/restore
  PUT    /api/v1/admin/vehicles/{id}/override   -- sticky status override
  DELETE /api/v1/admin/vehicles/{id}/override
  POST   /api/v1/admin/vehicles/{id}/issues     -- report a maintenance issue
  POST   /api/v1/admin/vehicles/{id}/issues/{issue_id}/resolve

Operations
  POST /api/v1/admin/reminders/run              -- one reminder pass now
  GET  /api/v1/admin/failures                   -- side effects that failed
  GET  /api/v1/admin/health
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from rental_engine.api.dependencies import get_manager
from rental_engine.api.middleware import limiter
from rental_engine.api.schemas import (
    FailureResponse,
    HealthResponse,
    IssueCreateRequest,
    IssueResolveRequest,
    IssueResponse,
    OverrideRequest,
    RejectRequest,
    ReminderRunResponse,
    RentalCreateRequest,
    RentalResponse,
    ReturnRequest,
    TicketResponse,
    VehicleCreateRequest,
    VehicleResponse,
)
from rental_engine.domain.entities import DamageReport, Vehicle
from rental_engine.services.reservations import ReservationManager

router = APIRouter(prefix="/admin", tags=["admin"])


# ── Rentals ───────────────────────────────────────────────────────────


@router.get("/rentals/pending", response_model=list[RentalResponse], summary="Approval queue")
@limiter.limit("100/minute")
async def pending_rentals(
    request: Request, manager: ReservationManager = Depends(get_manager)
):
    return manager.pending_rentals()


@router.get("/rentals/active", response_model=list[RentalResponse], summary="Active rentals")
@limiter.limit("100/minute")
async def active_rentals(
    request: Request, manager: ReservationManager = Depends(get_manager)
):
    return manager.active_rentals()


@router.post(
    "/rentals/offline",
    status_code=201,
    response_model=RentalResponse,
    summary="Walk-in booking",
    description="Created ACTIVE with a ticket; same-customer extensions skip the buffer.",
)
@limiter.limit("30/minute")
async def create_offline_rental(
    request: Request,
    body: RentalCreateRequest,
    manager: ReservationManager = Depends(get_manager),
):
    return await manager.create_offline(
        body.username, body.vehicle_id, body.start_date, body.end_date, body.insurance
    )


@router.post("/rentals/{rental_id}/approve", response_model=TicketResponse, summary="Approve")
@limiter.limit("30/minute")
async def approve_rental(
    request: Request,
    rental_id: int,
    manager: ReservationManager = Depends(get_manager),
):
    return await manager.approve(rental_id)


@router.post("/rentals/{rental_id}/reject", response_model=RentalResponse, summary="Reject")
@limiter.limit("30/minute")
async def reject_rental(
    request: Request,
    rental_id: int,
    body: RejectRequest,
    manager: ReservationManager = Depends(get_manager),
):
    return await manager.reject(rental_id, body.reason)


@router.post(
    "/rentals/{rental_id}/return",
    response_model=RentalResponse,
    summary="Check a vehicle back in",
    description=(
        "Requires a validated pickup ticket.  The whole stay is re-priced up "
        "to today and late days are charged separately.  Damage items with "
        "severity 3 or more put the vehicle under maintenance."
    ),
)
@limiter.limit("30/minute")
async def return_rental(
    request: Request,
    rental_id: int,
    body: ReturnRequest,
    manager: ReservationManager = Depends(get_manager),
):
    damages = [
        DamageReport(d.description, d.severity, d.category) for d in body.damages
    ]
    return await manager.return_vehicle(rental_id, damages)


# ── Fleet ─────────────────────────────────────────────────────────────


@router.post("/vehicles", status_code=201, response_model=VehicleResponse, summary="Add vehicle")
@limiter.limit("30/minute")
async def add_vehicle(
    request: Request,
    body: VehicleCreateRequest,
    manager: ReservationManager = Depends(get_manager),
):
    vehicle = Vehicle(id=0, **body.model_dump())
    return await manager.add_vehicle(vehicle)


@router.delete("/vehicles/{vehicle_id}", status_code=204, summary="Delete vehicle")
@limiter.limit("30/minute")
async def delete_vehicle(
    request: Request,
    vehicle_id: int,
    manager: ReservationManager = Depends(get_manager),
):
    await manager.delete_vehicle(vehicle_id)
    return Response(status_code=204)


@router.post(
    "/vehicles/{vehicle_id}/archive",
    response_model=list[RentalResponse],
    summary="Archive vehicle; returns the bookings it cancelled",
)
@limiter.limit("30/minute")
async def archive_vehicle(
    request: Request,
    vehicle_id: int,
    manager: ReservationManager = Depends(get_manager),
):
    return await manager.archive_vehicle(vehicle_id)


@router.post("/vehicles/{vehicle_id}/restore", response_model=VehicleResponse, summary="Restore")
@limiter.limit("30/minute")
async def restore_vehicle(
    request: Request,
    vehicle_id: int,
    manager: ReservationManager = Depends(get_manager),
):
    return await manager.restore_vehicle(vehicle_id)


@router.put("/vehicles/{vehicle_id}/override", response_model=VehicleResponse, summary="Override")
@limiter.limit("30/minute")
async def set_override(
    request: Request,
    vehicle_id: int,
    body: OverrideRequest,
    manager: ReservationManager = Depends(get_manager),
):
    return await manager.set_override(vehicle_id, body.status)


@router.delete(
    "/vehicles/{vehicle_id}/override", response_model=VehicleResponse, summary="Clear override"
)
@limiter.limit("30/minute")
async def clear_override(
    request: Request,
    vehicle_id: int,
    manager: ReservationManager = Depends(get_manager),
):
    return await manager.clear_override(vehicle_id)


@router.post(
    "/vehicles/{vehicle_id}/issues",
    status_code=201,
    response_model=IssueResponse,
    summary="Report a maintenance issue",
)
@limiter.limit("30/minute")
async def report_issue(
    request: Request,
    vehicle_id: int,
    body: IssueCreateRequest,
    manager: ReservationManager = Depends(get_manager),
):
    return await manager.report_issue(
        vehicle_id, body.category, body.description, body.reported_by, body.severity
    )


@router.post(
    "/vehicles/{vehicle_id}/issues/{issue_id}/resolve",
    response_model=IssueResponse,
    summary="Resolve a maintenance issue",
)
@limiter.limit("30/minute")
async def resolve_issue(
    request: Request,
    vehicle_id: int,
    issue_id: int,
    body: IssueResolveRequest,
    manager: ReservationManager = Depends(get_manager),
):
    return await manager.resolve_issue(vehicle_id, issue_id, body.cost, body.resolved_by)


# ── Operations ────────────────────────────────────────────────────────


@router.post("/reminders/run", response_model=ReminderRunResponse, summary="Send reminders now")
@limiter.limit("10/minute")
async def run_reminders(
    request: Request, manager: ReservationManager = Depends(get_manager)
):
    return ReminderRunResponse(sent=await manager.send_reminders())


@router.get("/failures", response_model=list[FailureResponse], summary="Failed side effects")
@limiter.limit("100/minute")
async def side_effect_failures(
    request: Request, manager: ReservationManager = Depends(get_manager)
):
    return manager.failures


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
