"""FastAPI dependency injection helpers."""

from fastapi import Request

from rental_engine.services.reservations import ReservationManager


def get_manager(request: Request) -> ReservationManager:
    """The manager built at startup and parked on ``app.state``."""
    return request.app.state.manager
