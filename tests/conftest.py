"""
Shared test fixtures.

The reservation manager is exercised against an in-memory snapshot store
and a recording notifier so tests run without PostgreSQL or Redis.  The
SQL store itself is tested against an in-memory SQLite database (via
aiosqlite).  Time is frozen with a settable clock.
"""

from __future__ import annotations

from datetime import date
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio

from rental_engine.domain.entities import AdminAccount, CustomerAccount, Vehicle
from rental_engine.domain.maintenance import MaintenanceTracker
from rental_engine.domain.tickets import TicketGate
from rental_engine.infrastructure.database import (
    create_engine,
    create_session_factory,
    init_db,
)
from rental_engine.infrastructure.renderer import TextTicketRenderer
from rental_engine.infrastructure.store import SqlSnapshotStore
from rental_engine.services.ports import Outcome
from rental_engine.services.registry import (
    AccountDirectory,
    RentalRegistry,
    VehicleRegistry,
)
from rental_engine.services.reservations import ReservationManager

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

NEW_YEAR = date(2024, 1, 1)


# ── Test doubles ──────────────────────────────────────────────────────


class FrozenClock:
    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today


class RecordingNotifier:
    """Collects messages instead of delivering them."""

    def __init__(self):
        self.sent: list[dict] = []
        self.admin_broadcasts: list[dict] = []
        self.fail = False

    async def notify(self, username, subject, body, attachment=None) -> Outcome:
        if self.fail:
            return Outcome.failure("mail server down")
        self.sent.append(
            {"to": username, "subject": subject, "body": body, "attachment": attachment}
        )
        return Outcome.success()

    async def notify_admins(self, subject, body) -> Outcome:
        if self.fail:
            return Outcome.failure("mail server down")
        self.admin_broadcasts.append({"subject": subject, "body": body})
        return Outcome.success()

    def subjects_for(self, username: str) -> list[str]:
        return [m["subject"] for m in self.sent if m["to"] == username]


class MemoryStore:
    """Snapshot store that keeps the last saved collections in a dict."""

    def __init__(self):
        self.saved: dict[str, list] = {}
        self.failing: set[str] = set()

    async def _save(self, name: str, items) -> Outcome:
        if name in self.failing:
            return Outcome.failure(f"{name}: disk full")
        self.saved[name] = list(items)
        return Outcome.success()

    async def load_vehicles(self):
        return self.saved.get("vehicles", [])

    async def save_vehicles(self, vehicles):
        return await self._save("vehicles", vehicles)

    async def load_rentals(self):
        return self.saved.get("rentals", [])

    async def save_rentals(self, rentals):
        return await self._save("rentals", rentals)

    async def load_maintenance_logs(self):
        return self.saved.get("maintenance", [])

    async def save_maintenance_logs(self, issues):
        return await self._save("maintenance", issues)

    async def load_tickets(self):
        return self.saved.get("tickets", [])

    async def save_tickets(self, tickets):
        return await self._save("tickets", tickets)

    async def load_accounts(self):
        return self.saved.get("accounts", [])


class BrokenRenderer:
    def render(self, ticket) -> Optional[bytes]:
        return None


# ── Builders ──────────────────────────────────────────────────────────


def make_vehicle(vehicle_id: int = 1, plate_no: Optional[str] = None, **overrides) -> Vehicle:
    fields = {
        "brand": "Toyota",
        "model": "Vios",
        "daily_rate": 100.0,
        "insurance_rate": 0.05,
        "discount_tiers": {7: 0.10},
    }
    fields.update(overrides)
    return Vehicle(id=vehicle_id, plate_no=plate_no or f"ABC{vehicle_id:04d}", **fields)


ACCOUNTS = [
    CustomerAccount("alice", "Alice Tan", "alice@example.com"),
    CustomerAccount("bob", "Bob Lee", "bob@example.com"),
    CustomerAccount("carol", "Carol Ng", "carol@example.com"),
    AdminAccount("admin", "Fleet Admin", "admin@example.com"),
]


def make_manager(
    vehicles=None,
    clock: Optional[FrozenClock] = None,
    notifier: Optional[RecordingNotifier] = None,
    store=None,
    renderer=None,
    accounts=None,
) -> ReservationManager:
    return ReservationManager(
        vehicles=VehicleRegistry(vehicles if vehicles is not None else [make_vehicle()]),
        rentals=RentalRegistry(),
        accounts=AccountDirectory(accounts if accounts is not None else ACCOUNTS),
        gate=TicketGate(),
        tracker=MaintenanceTracker(),
        store=store if store is not None else MemoryStore(),
        notifier=notifier if notifier is not None else RecordingNotifier(),
        renderer=renderer if renderer is not None else TextTicketRenderer(),
        clock=clock or FrozenClock(NEW_YEAR),
    )


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NEW_YEAR)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def manager(clock, notifier, memory_store) -> ReservationManager:
    return make_manager(clock=clock, notifier=notifier, store=memory_store)


@pytest_asyncio.fixture
async def sql_store() -> AsyncGenerator[SqlSnapshotStore, None]:
    """Create tables in a fresh in-memory database, yield a store, dispose."""
    engine = create_engine(TEST_DB_URL)
    await init_db(engine)
    yield SqlSnapshotStore(create_session_factory(engine))
    await engine.dispose()
