"""
Vehicle Status State Machine.

Status is *derived*, never set directly except through an administrative
override.  Precedence, highest first:

1. admin override (UNDER_MAINTENANCE / OUT_OF_SERVICE) -- sticky
2. any open issue at or above the critical severity -> UNDER_MAINTENANCE
3. an ACTIVE rental whose ticket was consumed        -> RENTED
4. an ACTIVE or PENDING rental not yet picked up     -> RESERVED
5. a booked interval starting today or later         -> RESERVED
6. otherwise                                         -> AVAILABLE

Tier 3 vs 4 is what separates "car physically gone" from "car merely
promised".
"""

from __future__ import annotations

from datetime import date
from typing import Callable, Iterable

from .entities import Rental, Vehicle
from .enums import RentalStatus, VehicleStatus
from .ledger import has_future_booking
from .maintenance import CRITICAL_SEVERITY, has_critical_open_issues


def derive_status(
    vehicle: Vehicle,
    rentals: Iterable[Rental],
    is_picked_up: Callable[[int], bool],
    today: date,
    critical_severity: int = CRITICAL_SEVERITY,
) -> VehicleStatus:
    if vehicle.override is not None:
        return vehicle.override
    if has_critical_open_issues(vehicle, critical_severity):
        return VehicleStatus.UNDER_MAINTENANCE

    booked = False
    for rental in rentals:
        if rental.vehicle_id != vehicle.id:
            continue
        if rental.status == RentalStatus.ACTIVE and is_picked_up(rental.id):
            return VehicleStatus.RENTED
        if rental.status in (RentalStatus.ACTIVE, RentalStatus.PENDING):
            booked = True

    if booked or has_future_booking(vehicle, today):
        return VehicleStatus.RESERVED
    return VehicleStatus.AVAILABLE


def recompute(
    vehicle: Vehicle,
    rentals: Iterable[Rental],
    is_picked_up: Callable[[int], bool],
    today: date,
    critical_severity: int = CRITICAL_SEVERITY,
) -> VehicleStatus:
    """Re-sync ``vehicle.status`` and return it."""
    vehicle.status = derive_status(
        vehicle, rentals, is_picked_up, today, critical_severity
    )
    return vehicle.status
