"""Assemble a ``ReservationManager`` from a persisted snapshot."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Callable, Optional

import redis.asyncio as aioredis

from rental_engine.config import Settings, settings as default_settings
from rental_engine.domain.entities import MaintenanceIssue
from rental_engine.domain.maintenance import MaintenanceTracker
from rental_engine.domain.pricing import FeeCalculator
from rental_engine.domain.tickets import TicketGate
from rental_engine.infrastructure.locks import VehicleLocks
from rental_engine.infrastructure.notifier import RedisNotifier
from rental_engine.infrastructure.redis_client import create_redis
from rental_engine.infrastructure.renderer import TextTicketRenderer
from rental_engine.services.ports import Notifier, SnapshotStore, TicketRenderer
from rental_engine.services.registry import (
    AccountDirectory,
    RentalRegistry,
    VehicleRegistry,
)
from rental_engine.services.reservations import ReservationManager

logger = logging.getLogger(__name__)


async def build_manager(
    store: SnapshotStore,
    config: Optional[Settings] = None,
    notifier: Optional[Notifier] = None,
    redis_client: Optional[aioredis.Redis] = None,
    renderer: Optional[TicketRenderer] = None,
    clock: Callable[[], date] = date.today,
) -> ReservationManager:
    config = config or default_settings

    accounts = AccountDirectory(await store.load_accounts())
    vehicles = await store.load_vehicles()
    rentals = await store.load_rentals()
    issues = await store.load_maintenance_logs()
    tickets = await store.load_tickets()

    by_vehicle: dict[int, list[MaintenanceIssue]] = defaultdict(list)
    for issue in issues:
        by_vehicle[issue.vehicle_id].append(issue)
    for vehicle in vehicles:
        vehicle.issues = by_vehicle.get(vehicle.id, [])

    gate = TicketGate(pickup_location=config.pickup_location)
    gate.load(tickets, rentals)

    if notifier is None:
        notifier = RedisNotifier(redis_client or create_redis(config.redis_url), accounts)

    manager = ReservationManager(
        vehicles=VehicleRegistry(vehicles),
        rentals=RentalRegistry(rentals),
        accounts=accounts,
        gate=gate,
        tracker=MaintenanceTracker.from_existing(
            issues, broadcast_severity=config.broadcast_severity
        ),
        store=store,
        notifier=notifier,
        renderer=renderer or TextTicketRenderer(config.currency),
        fees=FeeCalculator(config.late_penalty_per_day),
        locks=VehicleLocks(),
        clock=clock,
        buffer_days=config.buffer_days,
        critical_severity=config.critical_severity,
        currency=config.currency,
    )
    manager.refresh_statuses()
    logger.info(
        "Loaded %d vehicles, %d rentals, %d tickets, %d maintenance logs",
        len(vehicles), len(rentals), len(tickets), len(issues),
    )
    return manager
