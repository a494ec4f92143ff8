"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and maps
between ORM rows and domain entities.  ``replace_all`` gives snapshot
semantics: rows are upserted and rows missing from the snapshot deleted.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    AccountModel,
    MaintenanceLogModel,
    RentalModel,
    TicketModel,
    VehicleModel,
)
from rental_engine.domain.entities import (
    Account,
    AdminAccount,
    BookedInterval,
    Customer,
    CustomerAccount,
    MaintenanceIssue,
    Rental,
    Ticket,
    Vehicle,
)


# ── Row <-> entity mapping ────────────────────────────────────────────


def vehicle_to_row(vehicle: Vehicle) -> VehicleModel:
    return VehicleModel(
        id=vehicle.id,
        plate_no=vehicle.plate_no,
        brand=vehicle.brand,
        model=vehicle.model,
        vehicle_type=vehicle.vehicle_type,
        fuel_type=vehicle.fuel_type,
        color=vehicle.color,
        year=vehicle.year,
        daily_rate=vehicle.daily_rate,
        insurance_rate=vehicle.insurance_rate,
        discount_tiers={str(k): v for k, v in vehicle.discount_tiers.items()},
        booked_intervals=[
            {
                "start": i.start.isoformat(),
                "end": i.end.isoformat(),
                "rental_id": i.rental_id,
            }
            for i in vehicle.intervals
        ],
        status=vehicle.status,
        status_override=vehicle.override,
        archived=vehicle.archived,
    )


def vehicle_from_row(row: VehicleModel) -> Vehicle:
    return Vehicle(
        id=row.id,
        plate_no=row.plate_no,
        brand=row.brand,
        model=row.model,
        vehicle_type=row.vehicle_type,
        fuel_type=row.fuel_type,
        color=row.color or "",
        year=row.year or 0,
        daily_rate=row.daily_rate,
        insurance_rate=row.insurance_rate,
        discount_tiers={int(k): float(v) for k, v in (row.discount_tiers or {}).items()},
        intervals=[
            BookedInterval(
                date.fromisoformat(i["start"]),
                date.fromisoformat(i["end"]),
                i.get("rental_id"),
            )
            for i in (row.booked_intervals or [])
        ],
        status=row.status,
        override=row.status_override,
        archived=row.archived,
    )


def rental_to_row(rental: Rental) -> RentalModel:
    return RentalModel(
        id=rental.id,
        vehicle_id=rental.vehicle_id,
        username=rental.username,
        customer_name=rental.customer.name,
        customer_contact=rental.customer.contact,
        start_date=rental.start_date,
        end_date=rental.end_date,
        status=rental.status,
        fee=rental.fee,
        actual_fee=rental.actual_fee,
        late_fee=rental.late_fee,
        insurance=rental.insurance,
        due_soon_reminder_sent=rental.due_soon_reminder_sent,
        overdue_reminder_sent=rental.overdue_reminder_sent,
        ticket_id=rental.ticket_id,
        cancel_reason=rental.cancel_reason,
        created_at=rental.created_at,
    )


def rental_from_row(row: RentalModel) -> Rental:
    return Rental(
        id=row.id,
        customer=Customer(row.customer_name, row.customer_contact or ""),
        vehicle_id=row.vehicle_id,
        start_date=row.start_date,
        end_date=row.end_date,
        fee=row.fee,
        insurance=row.insurance,
        username=row.username or "",
        status=row.status,
        actual_fee=row.actual_fee,
        late_fee=row.late_fee,
        due_soon_reminder_sent=row.due_soon_reminder_sent,
        overdue_reminder_sent=row.overdue_reminder_sent,
        ticket_id=row.ticket_id,
        cancel_reason=row.cancel_reason,
        created_at=row.created_at,
    )


def ticket_to_row(ticket: Ticket) -> TicketModel:
    return TicketModel(
        id=ticket.id,
        rental_id=ticket.rental_id,
        customer_name=ticket.customer_name,
        customer_contact=ticket.customer_contact,
        vehicle_info=ticket.vehicle_info,
        plate_no=ticket.plate_no,
        start_date=ticket.start_date,
        end_date=ticket.end_date,
        total_fee=ticket.total_fee,
        insurance=ticket.insurance,
        generated_at=ticket.generated_at,
        pickup_location=ticket.pickup_location,
        instructions=ticket.instructions,
        used=ticket.used,
        used_at=ticket.used_at,
    )


def ticket_from_row(row: TicketModel) -> Ticket:
    return Ticket(
        id=row.id,
        rental_id=row.rental_id,
        customer_name=row.customer_name,
        customer_contact=row.customer_contact or "",
        vehicle_info=row.vehicle_info,
        plate_no=row.plate_no,
        start_date=row.start_date,
        end_date=row.end_date,
        total_fee=row.total_fee,
        insurance=row.insurance,
        generated_at=row.generated_at,
        pickup_location=row.pickup_location or "",
        instructions=row.instructions or "",
        used=row.used,
        used_at=row.used_at,
    )


def issue_to_row(issue: MaintenanceIssue) -> MaintenanceLogModel:
    return MaintenanceLogModel(
        id=issue.id,
        vehicle_id=issue.vehicle_id,
        category=issue.category,
        description=issue.description,
        severity=issue.severity,
        reported_by=issue.reported_by,
        status=issue.status,
        cost=issue.cost,
        resolved_by=issue.resolved_by,
        reported_at=issue.reported_at,
        resolved_at=issue.resolved_at,
    )


def issue_from_row(row: MaintenanceLogModel) -> MaintenanceIssue:
    return MaintenanceIssue(
        id=row.id,
        vehicle_id=row.vehicle_id,
        category=row.category,
        description=row.description,
        severity=row.severity,
        reported_by=row.reported_by,
        status=row.status,
        cost=row.cost,
        resolved_by=row.resolved_by,
        reported_at=row.reported_at,
        resolved_at=row.resolved_at,
    )


def account_from_row(row: AccountModel) -> Account:
    if row.role == "ADMIN":
        return AdminAccount(row.username, row.full_name, row.contact or "")
    return CustomerAccount(row.username, row.full_name, row.contact or "")


def account_to_row(account: Account) -> AccountModel:
    match account:
        case AdminAccount(username=username, full_name=name, contact=contact):
            role = "ADMIN"
        case CustomerAccount(username=username, full_name=name, contact=contact):
            role = "CUSTOMER"
    return AccountModel(username=username, full_name=name, contact=contact, role=role)


# ── Repositories ──────────────────────────────────────────────────────


class VehicleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_all(self) -> list[Vehicle]:
        result = await self.session.execute(select(VehicleModel).order_by(VehicleModel.id))
        return [vehicle_from_row(r) for r in result.scalars().all()]

    async def replace_all(self, vehicles: Iterable[Vehicle]) -> None:
        vehicles = list(vehicles)
        for vehicle in vehicles:
            await self.session.merge(vehicle_to_row(vehicle))
        await self.session.execute(
            delete(VehicleModel).where(VehicleModel.id.not_in([v.id for v in vehicles]))
        )


class RentalRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_all(self) -> list[Rental]:
        result = await self.session.execute(select(RentalModel).order_by(RentalModel.id))
        return [rental_from_row(r) for r in result.scalars().all()]

    async def replace_all(self, rentals: Iterable[Rental]) -> None:
        rentals = list(rentals)
        for rental in rentals:
            await self.session.merge(rental_to_row(rental))
        await self.session.execute(
            delete(RentalModel).where(RentalModel.id.not_in([r.id for r in rentals]))
        )


class TicketRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_all(self) -> list[Ticket]:
        result = await self.session.execute(select(TicketModel).order_by(TicketModel.id))
        return [ticket_from_row(r) for r in result.scalars().all()]

    async def replace_all(self, tickets: Iterable[Ticket]) -> None:
        tickets = list(tickets)
        for ticket in tickets:
            await self.session.merge(ticket_to_row(ticket))
        await self.session.execute(
            delete(TicketModel).where(TicketModel.id.not_in([t.id for t in tickets]))
        )


class MaintenanceLogRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_all(self) -> list[MaintenanceIssue]:
        result = await self.session.execute(
            select(MaintenanceLogModel).order_by(MaintenanceLogModel.id)
        )
        return [issue_from_row(r) for r in result.scalars().all()]

    async def replace_all(self, issues: Iterable[MaintenanceIssue]) -> None:
        issues = list(issues)
        for issue in issues:
            await self.session.merge(issue_to_row(issue))
        await self.session.execute(
            delete(MaintenanceLogModel).where(
                MaintenanceLogModel.id.not_in([i.id for i in issues])
            )
        )


class AccountRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_all(self) -> list[Account]:
        result = await self.session.execute(select(AccountModel))
        return [account_from_row(r) for r in result.scalars().all()]

    async def add(self, account: Account) -> None:
        await self.session.merge(account_to_row(account))
