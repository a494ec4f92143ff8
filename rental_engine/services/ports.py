"""
Boundary contracts for the collaborators the engine depends on.

Side-effecting collaborators never raise for delivery / storage problems;
they return an ``Outcome`` which the caller logs and records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from rental_engine.domain.entities import (
    Account,
    MaintenanceIssue,
    Rental,
    Ticket,
    Vehicle,
)


@dataclass(frozen=True)
class Outcome:
    ok: bool
    detail: str = ""

    @classmethod
    def success(cls) -> "Outcome":
        return cls(True)

    @classmethod
    def failure(cls, detail: str) -> "Outcome":
        return cls(False, detail)


class SnapshotStore(Protocol):
    async def load_vehicles(self) -> list[Vehicle]: ...

    async def save_vehicles(self, vehicles: list[Vehicle]) -> Outcome: ...

    async def load_rentals(self) -> list[Rental]: ...

    async def save_rentals(self, rentals: list[Rental]) -> Outcome: ...

    async def load_maintenance_logs(self) -> list[MaintenanceIssue]: ...

    async def save_maintenance_logs(
        self, issues: list[MaintenanceIssue]
    ) -> Outcome: ...

    async def load_tickets(self) -> list[Ticket]: ...

    async def save_tickets(self, tickets: list[Ticket]) -> Outcome: ...

    async def load_accounts(self) -> list[Account]: ...


class Notifier(Protocol):
    async def notify(
        self,
        username: str,
        subject: str,
        body: str,
        attachment: Optional[bytes] = None,
    ) -> Outcome: ...

    async def notify_admins(self, subject: str, body: str) -> Outcome: ...


class TicketRenderer(Protocol):
    def render(self, ticket: Ticket) -> Optional[bytes]: ...
