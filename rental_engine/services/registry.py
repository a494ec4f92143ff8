"""
In-process registries built once at startup and handed to the manager.

They replace the system-wide static lists of the desktop tool: every
consumer receives the registry it needs explicitly.
"""

from __future__ import annotations

import itertools
from typing import Iterable, Optional

from rental_engine.domain.entities import (
    Account,
    AdminAccount,
    CustomerAccount,
    MaintenanceIssue,
    Rental,
    Vehicle,
)
from rental_engine.domain.enums import RentalStatus
from rental_engine.domain.errors import NotFound


class VehicleRegistry:
    def __init__(self, vehicles: Iterable[Vehicle] = ()):
        self._vehicles: dict[int, Vehicle] = {v.id: v for v in vehicles}

    def add(self, vehicle: Vehicle) -> Vehicle:
        self._vehicles[vehicle.id] = vehicle
        return vehicle

    def remove(self, vehicle_id: int) -> None:
        self._vehicles.pop(vehicle_id, None)

    def get(self, vehicle_id: int) -> Vehicle:
        vehicle = self._vehicles.get(vehicle_id)
        if vehicle is None:
            raise NotFound(f"Vehicle {vehicle_id} not found")
        return vehicle

    def find_by_plate(self, plate_no: str) -> Optional[Vehicle]:
        wanted = plate_no.strip().upper()
        return next(
            (v for v in self._vehicles.values() if v.plate_no.upper() == wanted),
            None,
        )

    def next_id(self) -> int:
        return max(self._vehicles, default=0) + 1

    def all(self) -> list[Vehicle]:
        return list(self._vehicles.values())

    def active(self) -> list[Vehicle]:
        return [v for v in self._vehicles.values() if not v.archived]

    def issues(self) -> list[MaintenanceIssue]:
        return [i for v in self._vehicles.values() for i in v.issues]


class RentalRegistry:
    """Owns every rental; id allocation is a single monotonic counter."""

    def __init__(self, rentals: Iterable[Rental] = ()):
        self._rentals: dict[int, Rental] = {r.id: r for r in rentals}
        self._ids = itertools.count(max(self._rentals, default=0) + 1)

    def allocate_id(self) -> int:
        return next(self._ids)

    def add(self, rental: Rental) -> Rental:
        self._rentals[rental.id] = rental
        return rental

    def get(self, rental_id: int) -> Rental:
        rental = self._rentals.get(rental_id)
        if rental is None:
            raise NotFound(f"Rental {rental_id} not found")
        return rental

    def all(self) -> list[Rental]:
        return list(self._rentals.values())

    def for_vehicle(self, vehicle_id: int) -> list[Rental]:
        return [r for r in self._rentals.values() if r.vehicle_id == vehicle_id]

    def for_user(self, username: str) -> list[Rental]:
        return [r for r in self._rentals.values() if r.username == username]

    def with_status(self, status: RentalStatus) -> list[Rental]:
        return [r for r in self._rentals.values() if r.status == status]


class AccountDirectory:
    """Identity lookup over the accounts loaded at startup."""

    def __init__(self, accounts: Iterable[Account] = ()):
        self._accounts: dict[str, Account] = {a.username: a for a in accounts}

    def add(self, account: Account) -> None:
        self._accounts[account.username] = account

    def account_by_username(self, username: str) -> Optional[Account]:
        return self._accounts.get(username)

    def admins(self) -> list[AdminAccount]:
        result = []
        for account in self._accounts.values():
            match account:
                case AdminAccount():
                    result.append(account)
                case CustomerAccount():
                    pass
        return result

    def all(self) -> list[Account]:
        return list(self._accounts.values())
