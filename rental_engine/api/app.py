"""
FastAPI application factory.

* Registers routes for rentals, tickets, vehicles and admin.
* Loads the persisted snapshot into a ``ReservationManager`` and starts /
  stops the reminder worker via lifespan events.
* Maps domain errors to HTTP status codes.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from rental_engine.api.middleware import limiter
from rental_engine.api.routes import admin, rentals, tickets, vehicles
from rental_engine.bootstrap import build_manager
from rental_engine.config import settings
from rental_engine.domain.errors import (
    Conflict,
    InvalidTransition,
    NotFound,
    NotPickedUp,
    TicketInvalid,
    ValidationError,
)
from rental_engine.infrastructure.database import (
    create_engine,
    create_session_factory,
    init_db,
)
from rental_engine.infrastructure.redis_client import create_redis
from rental_engine.infrastructure.store import SqlSnapshotStore
from rental_engine.workers import reminders as _reminders

logging.basicConfig(level=logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load state and start the reminder worker; stop it on shutdown."""
    engine = create_engine(settings.database_url)
    await init_db(engine)
    redis = create_redis(settings.redis_url)
    store = SqlSnapshotStore(create_session_factory(engine))

    manager = await build_manager(store, settings, redis_client=redis)
    app.state.manager = manager

    await _reminders.start_reminder_loop(manager, redis)
    yield
    await _reminders.stop_reminder_loop()
    await redis.aclose()
    await engine.dispose()


# ── Domain error mapping ──────────────────────────────────────────────


async def _validation_error(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


async def _not_found(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def _conflict(request: Request, exc: Conflict):
    return JSONResponse(
        status_code=409,
        content={
            "detail": str(exc),
            "rental_id": exc.rental_id,
            "holder": exc.holder,
            "window_start": exc.window_start.isoformat() if exc.window_start else None,
            "window_end": exc.window_end.isoformat() if exc.window_end else None,
        },
    )


async def _invalid_transition(request: Request, exc: InvalidTransition):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


async def _not_picked_up(request: Request, exc: NotPickedUp):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


async def _ticket_invalid(request: Request, exc: TicketInvalid):
    return JSONResponse(
        status_code=400,
        content={
            "detail": str(exc),
            "reason": exc.reason.value,
            "ticket_id": exc.ticket_id,
        },
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Vehicle Rental Reservation Engine",
        description=(
            "Books vehicles against a buffered availability ledger, prices "
            "stays with long-term discounts, gates pickup with single-use "
            "tickets and tracks maintenance that grounds the fleet."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(NotFound, _not_found)
    app.add_exception_handler(Conflict, _conflict)
    app.add_exception_handler(InvalidTransition, _invalid_transition)
    app.add_exception_handler(NotPickedUp, _not_picked_up)
    app.add_exception_handler(TicketInvalid, _ticket_invalid)

    # Routers
    app.include_router(rentals.router, prefix="/api/v1")
    app.include_router(tickets.router, prefix="/api/v1")
    app.include_router(vehicles.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
