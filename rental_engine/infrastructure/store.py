"""
SQL-backed snapshot store.

Loads once at startup and saves whole collections after each committed
transition.  Storage and connection errors are turned into ``Outcome`` values; the
reservation manager logs them and keeps the in-memory state.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .repositories import (
    AccountRepository,
    MaintenanceLogRepository,
    RentalRepository,
    TicketRepository,
    VehicleRepository,
)
from rental_engine.domain.entities import (
    Account,
    MaintenanceIssue,
    Rental,
    Ticket,
    Vehicle,
)
from rental_engine.services.ports import Outcome

logger = logging.getLogger(__name__)


class SqlSnapshotStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _save(
        self, what: str, write: Callable[[AsyncSession], Awaitable[None]]
    ) -> Outcome:
        try:
            async with self.session_factory() as session:
                try:
                    await write(session)
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Failed to save %s: %s", what, exc)
            return Outcome.failure(f"{what}: {exc}")
        return Outcome.success()

    # ── Vehicles ──────────────────────────────────────────────────────

    async def load_vehicles(self) -> list[Vehicle]:
        async with self.session_factory() as session:
            return await VehicleRepository(session).list_all()

    async def save_vehicles(self, vehicles: list[Vehicle]) -> Outcome:
        return await self._save(
            "vehicles", lambda s: VehicleRepository(s).replace_all(vehicles)
        )

    # ── Rentals ───────────────────────────────────────────────────────

    async def load_rentals(self) -> list[Rental]:
        async with self.session_factory() as session:
            return await RentalRepository(session).list_all()

    async def save_rentals(self, rentals: list[Rental]) -> Outcome:
        return await self._save(
            "rentals", lambda s: RentalRepository(s).replace_all(rentals)
        )

    # ── Maintenance logs ──────────────────────────────────────────────

    async def load_maintenance_logs(self) -> list[MaintenanceIssue]:
        async with self.session_factory() as session:
            return await MaintenanceLogRepository(session).list_all()

    async def save_maintenance_logs(self, issues: list[MaintenanceIssue]) -> Outcome:
        return await self._save(
            "maintenance logs",
            lambda s: MaintenanceLogRepository(s).replace_all(issues),
        )

    # ── Tickets ───────────────────────────────────────────────────────

    async def load_tickets(self) -> list[Ticket]:
        async with self.session_factory() as session:
            return await TicketRepository(session).list_all()

    async def save_tickets(self, tickets: list[Ticket]) -> Outcome:
        return await self._save(
            "tickets", lambda s: TicketRepository(s).replace_all(tickets)
        )

    # ── Accounts ──────────────────────────────────────────────────────

    async def load_accounts(self) -> list[Account]:
        async with self.session_factory() as session:
            return await AccountRepository(session).list_all()

    async def save_account(self, account: Account) -> Outcome:
        return await self._save(
            "accounts", lambda s: AccountRepository(s).add(account)
        )
