"""
Reservation Lifecycle Manager
=============================

The control plane of the engine.  Orchestrates the availability ledger,
fee calculator, ticket gate, maintenance tracker and vehicle status
machine for every booking operation.

Rental state machine
--------------------
PENDING --approve--> ACTIVE --return--> RETURNED
PENDING --cancel / reject--> CANCELLED

Concurrency safety
------------------
* Every mutation for a vehicle runs under that vehicle's ``asyncio.Lock``
  (``VehicleLocks``); operations on different vehicles run in parallel.
* Ids come from monotonic counters advanced with no ``await`` in between,
  so concurrent creates never collide.
* Persistence and notifications run *after* the in-memory transition has
  committed and the lock is released.  Their failures are logged and
  recorded in ``failures``; the transition always stands.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional

from rental_engine.domain import ledger
from rental_engine.domain.entities import (
    AdminAccount,
    BookedInterval,
    Customer,
    CustomerAccount,
    DamageReport,
    MaintenanceIssue,
    Rental,
    Ticket,
    Vehicle,
)
from rental_engine.domain.enums import (
    STICKY_STATUSES,
    MaintenanceCategory,
    RentalStatus,
    VehicleStatus,
)
from rental_engine.domain.errors import (
    Conflict,
    NotFound,
    NotPickedUp,
    ValidationError,
)
from rental_engine.domain.maintenance import (
    CRITICAL_SEVERITY,
    MaintenanceTracker,
    clamp_severity,
    open_issues,
)
from rental_engine.domain.pricing import FeeCalculator
from rental_engine.domain.status import recompute
from rental_engine.domain.tickets import TicketGate
from rental_engine.infrastructure.locks import VehicleLocks
from rental_engine.services.ports import (
    Notifier,
    Outcome,
    SnapshotStore,
    TicketRenderer,
)
from rental_engine.services.registry import (
    AccountDirectory,
    RentalRegistry,
    VehicleRegistry,
)

logger = logging.getLogger(__name__)

VEHICLES = "vehicles"
RENTALS = "rentals"
TICKETS = "tickets"
MAINTENANCE = "maintenance"

# Save order respects foreign keys: vehicles before rentals before tickets.
_SAVE_ORDER = (VEHICLES, RENTALS, TICKETS, MAINTENANCE)

RETURN_INSPECTOR = "return-inspection"


@dataclass(frozen=True)
class SideEffectFailure:
    """A committed transition whose persistence or notification failed."""

    operation: str
    collaborator: str
    detail: str
    at: datetime = field(default_factory=datetime.now)


class ReservationManager:
    def __init__(
        self,
        vehicles: VehicleRegistry,
        rentals: RentalRegistry,
        accounts: AccountDirectory,
        gate: TicketGate,
        tracker: MaintenanceTracker,
        store: SnapshotStore,
        notifier: Notifier,
        renderer: TicketRenderer,
        fees: Optional[FeeCalculator] = None,
        locks: Optional[VehicleLocks] = None,
        clock: Callable[[], date] = date.today,
        buffer_days: int = ledger.DEFAULT_BUFFER_DAYS,
        critical_severity: int = CRITICAL_SEVERITY,
        currency: str = "RM",
    ):
        self.vehicles = vehicles
        self.rentals = rentals
        self.accounts = accounts
        self.gate = gate
        self.tracker = tracker
        self.store = store
        self.notifier = notifier
        self.renderer = renderer
        self.fees = fees or FeeCalculator()
        self.locks = locks or VehicleLocks()
        self.clock = clock
        self.buffer_days = buffer_days
        self.critical_severity = critical_severity
        self.currency = currency
        self.failures: list[SideEffectFailure] = []

    # ── Helpers ───────────────────────────────────────────────────────

    def today(self) -> date:
        return self.clock()

    def _money(self, amount: float) -> str:
        return f"{self.currency}{amount:.2f}"

    def _recompute(self, vehicle: Vehicle) -> VehicleStatus:
        return recompute(
            vehicle,
            self.rentals.for_vehicle(vehicle.id),
            self.gate.is_picked_up,
            self.today(),
            self.critical_severity,
        )

    def _customer_for(self, username: str) -> Customer:
        account = self.accounts.account_by_username(username)
        match account:
            case CustomerAccount(full_name=name, contact=contact):
                return Customer(name, contact)
            case AdminAccount():
                raise ValidationError(
                    f"Admin account {username!r} cannot hold bookings"
                )
            case None:
                raise NotFound(f"Account {username!r} not found")

    def _check_booking(self, vehicle: Vehicle, start: date, end: date) -> None:
        if end < start:
            raise ValidationError("End date cannot be before start date")
        if start < self.today():
            raise ValidationError("Start date cannot be in the past")
        if vehicle.archived:
            raise ValidationError(f"Vehicle {vehicle.plate_no} is archived")
        if vehicle.override == VehicleStatus.OUT_OF_SERVICE:
            raise ValidationError(f"Vehicle {vehicle.plate_no} is out of service")

    def _conflict_error(
        self, vehicle: Vehicle, clash: BookedInterval, buffer_days: int
    ) -> Conflict:
        window_start, window_end = ledger.buffered_window(clash, buffer_days)
        holder, status, rental_id = "another customer", "existing", clash.rental_id
        if rental_id is not None:
            try:
                other = self.rentals.get(rental_id)
            except NotFound:
                other = None
            if other is not None:
                holder, status = other.customer.name, other.status.value
        message = (
            f"Conflict with {status} rental by {holder} (ID: {rental_id}) "
            f"on {vehicle.plate_no} from {clash.start} to {clash.end} "
            f"(with {buffer_days}-day buffer: {window_start} to {window_end})"
        )
        return Conflict(
            message,
            rental_id=rental_id,
            holder=holder,
            window_start=window_start,
            window_end=window_end,
        )

    def _find_own_rental(
        self, username: str, vehicle_id: int, status: RentalStatus
    ) -> Optional[Rental]:
        """
        Username first, then the account's full name, then a customer name
        equal to the username.  Two customers sharing a full name can be
        confused by the fallbacks; kept for parity with existing data.
        """
        candidates = [
            r for r in self.rentals.for_vehicle(vehicle_id) if r.status == status
        ]
        for rental in candidates:
            if rental.username == username:
                return rental
        account = self.accounts.account_by_username(username)
        if account is not None and account.full_name:
            for rental in candidates:
                if rental.customer.name == account.full_name:
                    return rental
        for rental in candidates:
            if rental.customer.name == username:
                return rental
        return None

    def _rebook(self, vehicle: Vehicle, rental: Rental, new_end: date) -> None:
        """Swap the rental's interval for ``[start, new_end]`` with no buffer."""
        ledger.release(vehicle, rental.start_date, rental.end_date)
        clash = ledger.conflict(vehicle, rental.start_date, new_end, buffer_days=0)
        if clash is not None:
            ledger.reserve(vehicle, rental.start_date, rental.end_date, rental.id)
            raise self._conflict_error(vehicle, clash, buffer_days=0)
        ledger.reserve(vehicle, rental.start_date, new_end, rental.id)

    def _cancel_locked(self, rental: Rental, reason: str) -> Vehicle:
        rental.transition_to(RentalStatus.CANCELLED)
        rental.cancel_reason = reason
        vehicle = self.vehicles.get(rental.vehicle_id)
        ledger.release(vehicle, rental.start_date, rental.end_date)
        self._recompute(vehicle)
        return vehicle

    # ── Side effects ──────────────────────────────────────────────────

    def _record(self, operation: str, collaborator: str, outcome: Outcome) -> None:
        if outcome.ok:
            return
        logger.warning(
            "%s committed but %s failed: %s", operation, collaborator, outcome.detail
        )
        self.failures.append(SideEffectFailure(operation, collaborator, outcome.detail))

    async def _persist(self, operation: str, *parts: str) -> None:
        for part in _SAVE_ORDER:
            if part not in parts:
                continue
            if part == VEHICLES:
                outcome = await self.store.save_vehicles(self.vehicles.all())
            elif part == RENTALS:
                outcome = await self.store.save_rentals(self.rentals.all())
            elif part == TICKETS:
                outcome = await self.store.save_tickets(self.gate.all())
            else:
                outcome = await self.store.save_maintenance_logs(self.vehicles.issues())
            self._record(operation, f"save_{part}", outcome)

    async def _notify(
        self,
        operation: str,
        username: str,
        subject: str,
        body: str,
        attachment: Optional[bytes] = None,
    ) -> None:
        if not username:
            return
        outcome = await self.notifier.notify(username, subject, body, attachment)
        self._record(operation, "notify", outcome)

    async def _notify_admins(self, operation: str, subject: str, body: str) -> None:
        outcome = await self.notifier.notify_admins(subject, body)
        self._record(operation, "notify_admins", outcome)

    # ── Queries ───────────────────────────────────────────────────────

    def get_vehicle(self, vehicle_id: int) -> Vehicle:
        return self.vehicles.get(vehicle_id)

    def list_vehicles(self, include_archived: bool = False) -> list[Vehicle]:
        return self.vehicles.all() if include_archived else self.vehicles.active()

    def get_rental(self, rental_id: int) -> Rental:
        return self.rentals.get(rental_id)

    def rentals_for_user(self, username: str) -> list[Rental]:
        return self.rentals.for_user(username)

    def pending_rentals(self) -> list[Rental]:
        return self.rentals.with_status(RentalStatus.PENDING)

    def active_rentals(self) -> list[Rental]:
        return self.rentals.with_status(RentalStatus.ACTIVE)

    def current_ticket(self, rental_id: int) -> Optional[Ticket]:
        return self.gate.current_for(rental_id)

    def refresh_statuses(self) -> None:
        """Re-derive every vehicle's status, e.g. after loading or a date change."""
        for vehicle in self.vehicles.all():
            self._recompute(vehicle)

    def schedule(self, vehicle_id: int) -> list[tuple[date, date]]:
        return ledger.unavailable_periods(self.vehicles.get(vehicle_id), self.buffer_days)

    def issues(self, vehicle_id: int, open_only: bool = False) -> list[MaintenanceIssue]:
        vehicle = self.vehicles.get(vehicle_id)
        return open_issues(vehicle) if open_only else list(vehicle.issues)

    def quote(
        self, vehicle_id: int, start: date, end: date, insurance: bool = False
    ) -> float:
        if end < start:
            raise ValidationError("End date cannot be before start date")
        return self.fees.quote(self.vehicles.get(vehicle_id), start, end, insurance)

    # ── Booking ───────────────────────────────────────────────────────

    async def create(
        self,
        username: str,
        vehicle_id: int,
        start: date,
        end: date,
        insurance: bool = False,
    ) -> Rental:
        """Book a vehicle for approval.  The buffer applies to every clash."""
        customer = self._customer_for(username)
        async with self.locks.for_vehicle(vehicle_id):
            vehicle = self.vehicles.get(vehicle_id)
            self._check_booking(vehicle, start, end)
            clash = ledger.conflict(vehicle, start, end, self.buffer_days)
            if clash is not None:
                raise self._conflict_error(vehicle, clash, self.buffer_days)

            rental = Rental(
                id=self.rentals.allocate_id(),
                customer=customer,
                vehicle_id=vehicle.id,
                start_date=start,
                end_date=end,
                fee=self.fees.quote(vehicle, start, end, insurance),
                insurance=insurance,
                username=username,
                created_at=datetime.now(),
            )
            ledger.reserve(vehicle, start, end, rental.id)
            self.rentals.add(rental)
            self._recompute(vehicle)

        logger.info(
            "Rental %d created for %s on vehicle %d (%s to %s)",
            rental.id, username, vehicle_id, start, end,
        )
        await self._persist("create", VEHICLES, RENTALS)
        await self._notify(
            "create",
            username,
            "Rental request received",
            f"Your booking of {vehicle.display_name} from {start} to {end} "
            f"is awaiting approval. Quoted fee: {self._money(rental.fee)}.",
        )
        return rental

    async def create_offline(
        self,
        username: str,
        vehicle_id: int,
        start: date,
        end: date,
        insurance: bool = False,
    ) -> Rental:
        """Walk-in booking: created ACTIVE with a ticket, no approval step."""
        customer = self._customer_for(username)
        async with self.locks.for_vehicle(vehicle_id):
            vehicle = self.vehicles.get(vehicle_id)
            self._check_booking(vehicle, start, end)
            clash = ledger.extension_aware_conflict(
                vehicle,
                self.rentals.for_vehicle(vehicle_id),
                start,
                end,
                username,
                self.buffer_days,
            )
            if clash is not None:
                raise self._conflict_error(vehicle, clash, self.buffer_days)

            rental = Rental(
                id=self.rentals.allocate_id(),
                customer=customer,
                vehicle_id=vehicle.id,
                start_date=start,
                end_date=end,
                fee=self.fees.quote(vehicle, start, end, insurance),
                insurance=insurance,
                username=username,
                status=RentalStatus.ACTIVE,
                created_at=datetime.now(),
            )
            ledger.reserve(vehicle, start, end, rental.id)
            self.rentals.add(rental)
            ticket = self.gate.issue(rental, vehicle)
            self._recompute(vehicle)

        logger.info("Offline rental %d created for %s, ticket %s", rental.id, username, ticket.id)
        await self._persist("create_offline", VEHICLES, RENTALS, TICKETS)
        await self._notify(
            "create_offline",
            username,
            "Rental confirmed",
            f"Your walk-in rental of {vehicle.display_name} ({start} to {end}) is "
            f"confirmed. Ticket: {ticket.id}. Fee: {self._money(rental.fee)}.",
        )
        return rental

    async def approve(self, rental_id: int) -> Ticket:
        rental = self.rentals.get(rental_id)
        async with self.locks.for_vehicle(rental.vehicle_id):
            rental.ensure_can_transition(RentalStatus.ACTIVE)
            vehicle = self.vehicles.get(rental.vehicle_id)
            ticket = self.gate.issue(rental, vehicle)
            rental.transition_to(RentalStatus.ACTIVE)
            self._recompute(vehicle)

        logger.info("Rental %d approved, ticket %s issued", rental_id, ticket.id)
        await self._persist("approve", VEHICLES, RENTALS, TICKETS)

        subject = "Rental approved"
        body = (
            f"Your rental of {vehicle.display_name} (rental {rental.id}) is approved. "
            f"Ticket ID: {ticket.id}. Present it with your ID at {ticket.pickup_location}."
        )
        try:
            document = self.renderer.render(ticket)
        except Exception as exc:
            detail = f"{type(exc).__name__}: {exc}"
            self._record("approve", "render", Outcome.failure(detail))
            document = None
        if document is None:
            logger.warning("Ticket %s could not be rendered; sending plain notice", ticket.id)
        await self._notify("approve", rental.username, subject, body, document)
        return ticket

    async def cancel(self, rental_id: int, reason: str = "No reason provided") -> Rental:
        rental = self.rentals.get(rental_id)
        async with self.locks.for_vehicle(rental.vehicle_id):
            vehicle = self._cancel_locked(rental, reason)

        logger.info("Rental %d cancelled: %s", rental_id, reason)
        await self._persist("cancel", VEHICLES, RENTALS)
        await self._notify(
            "cancel",
            rental.username,
            "Rental cancelled",
            f"Your booking of {vehicle.display_name} from {rental.start_date} to "
            f"{rental.end_date} was cancelled. No charge applies.",
        )
        return rental

    async def reject(self, rental_id: int, reason: str) -> Rental:
        if not reason.strip():
            raise ValidationError("A rejection reason is required")
        rental = self.rentals.get(rental_id)
        async with self.locks.for_vehicle(rental.vehicle_id):
            vehicle = self._cancel_locked(rental, reason)

        logger.info("Rental %d rejected: %s", rental_id, reason)
        await self._persist("reject", VEHICLES, RENTALS)
        await self._notify(
            "reject",
            rental.username,
            "Rental request rejected",
            f"Your request for {vehicle.display_name} from {rental.start_date} to "
            f"{rental.end_date} was rejected. Reason: {reason}",
        )
        return rental

    async def extend(
        self, username: str, vehicle_id: int, new_end: date, insurance: bool
    ) -> bool:
        rental = await self.extend_rental(username, vehicle_id, new_end, insurance)
        return rental is not None

    async def extend_rental(
        self, username: str, vehicle_id: int, new_end: date, insurance: bool
    ) -> Optional[Rental]:
        """
        Lengthen the caller's ACTIVE rental on *vehicle_id*.

        Returns ``None`` when the caller has nothing to extend.  The whole
        period is re-quoted so a longer stay can reach a better discount
        tier; reminder flags are cleared and a fresh ticket is issued.
        """
        async with self.locks.for_vehicle(vehicle_id):
            rental = self._find_own_rental(username, vehicle_id, RentalStatus.ACTIVE)
            if rental is None:
                return None
            if new_end <= rental.end_date:
                raise ValidationError(
                    f"New end date must be after {rental.end_date}"
                )
            vehicle = self.vehicles.get(vehicle_id)
            self._rebook(vehicle, rental, new_end)

            rental.end_date = new_end
            rental.insurance = insurance
            rental.fee = self.fees.quote(vehicle, rental.start_date, new_end, insurance)
            rental.due_soon_reminder_sent = False
            rental.overdue_reminder_sent = False
            ticket = self.gate.issue(rental, vehicle)
            self._recompute(vehicle)

        logger.info("Rental %d extended to %s, ticket %s", rental.id, new_end, ticket.id)
        await self._persist("extend", VEHICLES, RENTALS, TICKETS)
        await self._notify(
            "extend",
            rental.username,
            "Rental extended",
            f"Your rental of {vehicle.display_name} now ends on {new_end}. "
            f"New total: {self._money(rental.fee)}. New ticket: {ticket.id}.",
        )
        return rental

    async def extend_pending(
        self, username: str, vehicle_id: int, new_end: date, insurance: bool
    ) -> bool:
        rental = await self.extend_pending_rental(username, vehicle_id, new_end, insurance)
        return rental is not None

    async def extend_pending_rental(
        self, username: str, vehicle_id: int, new_end: date, insurance: bool
    ) -> Optional[Rental]:
        """Same as ``extend_rental`` for a booking still awaiting approval; no ticket."""
        async with self.locks.for_vehicle(vehicle_id):
            rental = self._find_own_rental(username, vehicle_id, RentalStatus.PENDING)
            if rental is None:
                return None
            if new_end <= rental.end_date:
                raise ValidationError(
                    f"New end date must be after {rental.end_date}"
                )
            vehicle = self.vehicles.get(vehicle_id)
            self._rebook(vehicle, rental, new_end)

            rental.end_date = new_end
            rental.insurance = insurance
            rental.fee = self.fees.quote(vehicle, rental.start_date, new_end, insurance)
            self._recompute(vehicle)

        await self._persist("extend_pending", VEHICLES, RENTALS)
        return rental

    async def return_vehicle(
        self, rental_id: int, damages: Iterable[DamageReport] = ()
    ) -> Rental:
        damages = list(damages)
        for damage in damages:
            if not damage.description.strip():
                raise ValidationError("Damage description must not be empty")

        rental = self.rentals.get(rental_id)
        async with self.locks.for_vehicle(rental.vehicle_id):
            rental.ensure_can_transition(RentalStatus.RETURNED)
            if not self.gate.is_picked_up(rental.id):
                raise NotPickedUp(
                    f"Rental {rental_id} has not been picked up; validate its ticket first"
                )
            vehicle = self.vehicles.get(rental.vehicle_id)
            today = self.today()

            rental.actual_fee = self.fees.actual_fee(rental, vehicle, today)
            rental.late_fee = self.fees.late_fee(rental.end_date, today)
            new_issues: list[MaintenanceIssue] = [
                self.tracker.report(
                    vehicle,
                    damage.category,
                    damage.description,
                    RETURN_INSPECTOR,
                    damage.severity,
                )
                for damage in damages
            ]
            rental.transition_to(RentalStatus.RETURNED)
            ledger.release(vehicle, rental.start_date, rental.end_date)
            status = self._recompute(vehicle)

        logger.info(
            "Rental %d returned: fee %.2f, late %.2f, vehicle now %s",
            rental.id, rental.actual_fee, rental.late_fee, status.value,
        )
        await self._persist("return", VEHICLES, RENTALS, MAINTENANCE)
        body = f"Thank you for returning {vehicle.display_name}. Final fee: {self._money(rental.actual_fee)}."
        if rental.late_fee:
            body += f" Late return penalty: {self._money(rental.late_fee)}."
        await self._notify("return", rental.username, "Vehicle returned", body)
        for issue in new_issues:
            if self.tracker.should_broadcast(issue):
                await self._notify_admins(
                    "return",
                    f"Severe damage reported on {vehicle.plate_no}",
                    f"Severity {issue.severity}: {issue.description}",
                )
        return rental

    # ── Ticket gate ───────────────────────────────────────────────────

    async def validate_ticket(self, ticket_id: str, claimed_name: str) -> Ticket:
        """Pickup: consume the ticket and move the vehicle to RENTED."""
        ticket = self.gate.get(ticket_id)
        if ticket is None:
            # raises TicketInvalid(UNKNOWN)
            self.gate.check(ticket_id, claimed_name, self.today())
        rental = self.rentals.get(ticket.rental_id)
        async with self.locks.for_vehicle(rental.vehicle_id):
            self.gate.validate(ticket_id, claimed_name, self.today())
            vehicle = self.vehicles.get(rental.vehicle_id)
            self._recompute(vehicle)

        logger.info("Ticket %s validated, rental %d picked up", ticket_id, rental.id)
        await self._persist("validate_ticket", VEHICLES, TICKETS)
        await self._notify(
            "validate_ticket",
            rental.username,
            "Vehicle picked up",
            f"Enjoy your trip in {vehicle.display_name}. Please return it by {rental.end_date}.",
        )
        return ticket

    # ── Maintenance ───────────────────────────────────────────────────

    async def report_issue(
        self,
        vehicle_id: int,
        category: MaintenanceCategory,
        description: str,
        reported_by: str,
        severity: int,
    ) -> MaintenanceIssue:
        async with self.locks.for_vehicle(vehicle_id):
            vehicle = self.vehicles.get(vehicle_id)
            issue = self.tracker.report(
                vehicle, category, description, reported_by, clamp_severity(severity)
            )
            self._recompute(vehicle)

        logger.info(
            "Issue %d reported on vehicle %d (severity %d)", issue.id, vehicle_id, issue.severity
        )
        await self._persist("report_issue", VEHICLES, MAINTENANCE)
        if self.tracker.should_broadcast(issue):
            await self._notify_admins(
                "report_issue",
                f"Critical maintenance issue on {vehicle.plate_no}",
                f"[{issue.category.value}] severity {issue.severity}: "
                f"{issue.description} (reported by {reported_by})",
            )
        return issue

    async def resolve_issue(
        self, vehicle_id: int, issue_id: int, cost: float, resolved_by: str
    ) -> MaintenanceIssue:
        async with self.locks.for_vehicle(vehicle_id):
            vehicle = self.vehicles.get(vehicle_id)
            issue = self.tracker.resolve(vehicle, issue_id, cost, resolved_by)
            status = self._recompute(vehicle)

        logger.info("Issue %d resolved; vehicle %d now %s", issue_id, vehicle_id, status.value)
        await self._persist("resolve_issue", VEHICLES, MAINTENANCE)
        return issue

    # ── Catalog administration ────────────────────────────────────────

    async def add_vehicle(self, vehicle: Vehicle) -> Vehicle:
        if vehicle.daily_rate <= 0:
            raise ValidationError("Daily rate must be positive")
        if not 0 <= vehicle.insurance_rate < 1:
            raise ValidationError("Insurance rate must be between 0 and 1")
        for min_days, fraction in vehicle.discount_tiers.items():
            if min_days < 1 or not 0 <= fraction < 1:
                raise ValidationError(f"Invalid discount tier {min_days}: {fraction}")
        if self.vehicles.find_by_plate(vehicle.plate_no) is not None:
            raise ValidationError(f"Plate {vehicle.plate_no} already registered")
        if not vehicle.id:
            vehicle.id = self.vehicles.next_id()
        self.vehicles.add(vehicle)
        self._recompute(vehicle)
        await self._persist("add_vehicle", VEHICLES)
        return vehicle

    async def archive_vehicle(self, vehicle_id: int) -> list[Rental]:
        """Soft delete.  Pending bookings are cancelled; active ones block."""
        async with self.locks.for_vehicle(vehicle_id):
            vehicle = self.vehicles.get(vehicle_id)
            rentals = self.rentals.for_vehicle(vehicle_id)
            if any(r.status == RentalStatus.ACTIVE for r in rentals):
                raise ValidationError(
                    f"Vehicle {vehicle.plate_no} has an active rental and cannot be archived"
                )
            cancelled = []
            for rental in rentals:
                if rental.status == RentalStatus.PENDING:
                    self._cancel_locked(rental, "Vehicle withdrawn from service")
                    cancelled.append(rental)
            vehicle.intervals.clear()
            vehicle.archived = True
            self._recompute(vehicle)

        await self._persist("archive_vehicle", VEHICLES, RENTALS)
        for rental in cancelled:
            await self._notify(
                "archive_vehicle",
                rental.username,
                "Rental cancelled",
                f"{vehicle.display_name} has been withdrawn; your booking from "
                f"{rental.start_date} to {rental.end_date} was cancelled.",
            )
        return cancelled

    async def restore_vehicle(self, vehicle_id: int) -> Vehicle:
        async with self.locks.for_vehicle(vehicle_id):
            vehicle = self.vehicles.get(vehicle_id)
            vehicle.archived = False
            self._recompute(vehicle)
        await self._persist("restore_vehicle", VEHICLES)
        return vehicle

    async def delete_vehicle(self, vehicle_id: int) -> None:
        async with self.locks.for_vehicle(vehicle_id):
            vehicle = self.vehicles.get(vehicle_id)
            if self.rentals.for_vehicle(vehicle_id) or vehicle.issues:
                raise ValidationError(
                    f"Vehicle {vehicle.plate_no} has history; archive it instead"
                )
            self.vehicles.remove(vehicle_id)
        await self._persist("delete_vehicle", VEHICLES)

    async def set_override(self, vehicle_id: int, status: VehicleStatus) -> Vehicle:
        if status not in STICKY_STATUSES:
            raise ValidationError(
                f"{status.value} cannot be set manually; only "
                f"{', '.join(s.value for s in STICKY_STATUSES)} can"
            )
        async with self.locks.for_vehicle(vehicle_id):
            vehicle = self.vehicles.get(vehicle_id)
            vehicle.override = status
            self._recompute(vehicle)
        logger.info("Vehicle %d overridden to %s", vehicle_id, status.value)
        await self._persist("set_override", VEHICLES)
        return vehicle

    async def clear_override(self, vehicle_id: int) -> Vehicle:
        async with self.locks.for_vehicle(vehicle_id):
            vehicle = self.vehicles.get(vehicle_id)
            vehicle.override = None
            status = self._recompute(vehicle)
        logger.info("Vehicle %d override cleared, now %s", vehicle_id, status.value)
        await self._persist("clear_override", VEHICLES)
        return vehicle

    # ── Reminders ─────────────────────────────────────────────────────

    async def send_reminders(self) -> int:
        """Due-tomorrow and overdue notices, each sent once per rental."""
        today = self.today()
        tomorrow = today + timedelta(days=1)
        outgoing: list[tuple[str, str, str]] = []

        for rental in self.active_rentals():
            async with self.locks.for_vehicle(rental.vehicle_id):
                if rental.status != RentalStatus.ACTIVE:
                    continue
                vehicle = self.vehicles.get(rental.vehicle_id)
                if rental.end_date == tomorrow and not rental.due_soon_reminder_sent:
                    rental.due_soon_reminder_sent = True
                    outgoing.append((
                        rental.username,
                        "Rental due tomorrow",
                        f"Rental {rental.id} ({vehicle.display_name}) is due back on {rental.end_date}.",
                    ))
                if rental.end_date < today and not rental.overdue_reminder_sent:
                    rental.overdue_reminder_sent = True
                    outgoing.append((
                        rental.username,
                        "Rental overdue",
                        f"Rental {rental.id} ({vehicle.display_name}) was due on "
                        f"{rental.end_date}. Late fees of "
                        f"{self._money(self.fees.late_penalty_per_day)} per day apply.",
                    ))

        if outgoing:
            await self._persist("send_reminders", RENTALS)
        for username, subject, body in outgoing:
            await self._notify("send_reminders", username, subject, body)
        return len(outgoing)
