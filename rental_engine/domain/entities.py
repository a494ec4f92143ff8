"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Rental``: enforces valid lifecycle transitions
  (PENDING -> ACTIVE -> RETURNED | PENDING -> CANCELLED).
- ``Vehicle`` owns its booking ledger (``intervals``) and its maintenance
  issues; rentals and tickets refer to vehicles by id only.
- Accounts are a tagged variant (``CustomerAccount | AdminAccount``)
  consumed with ``match`` rather than role checks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Union

from .enums import (
    RENTAL_TRANSITIONS,
    FuelType,
    IssueStatus,
    MaintenanceCategory,
    RentalStatus,
    VehicleStatus,
    VehicleType,
)
from .errors import InvalidTransition


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Customer:
    """Customer snapshot captured when a booking is made."""

    name: str
    contact: str = ""


@dataclass(frozen=True)
class BookedInterval:
    start: date
    end: date
    rental_id: Optional[int] = None


@dataclass(frozen=True)
class DamageReport:
    description: str
    severity: int = 3
    category: MaintenanceCategory = MaintenanceCategory.DAMAGE


# ── Accounts ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CustomerAccount:
    username: str
    full_name: str
    contact: str = ""


@dataclass(frozen=True)
class AdminAccount:
    username: str
    full_name: str
    contact: str = ""


Account = Union[CustomerAccount, AdminAccount]


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class MaintenanceIssue:
    id: int
    vehicle_id: int
    category: MaintenanceCategory
    description: str
    severity: int
    reported_by: str
    status: IssueStatus = IssueStatus.OPEN
    cost: float = 0.0
    resolved_by: Optional[str] = None
    reported_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status == IssueStatus.OPEN


@dataclass
class Vehicle:
    id: int
    plate_no: str
    brand: str
    model: str
    vehicle_type: VehicleType = VehicleType.SEDAN
    fuel_type: FuelType = FuelType.PETROL
    color: str = ""
    year: int = 0
    daily_rate: float = 50.0
    insurance_rate: float = 0.0
    discount_tiers: dict[int, float] = field(default_factory=dict)
    intervals: list[BookedInterval] = field(default_factory=list)
    issues: list[MaintenanceIssue] = field(default_factory=list)
    status: VehicleStatus = VehicleStatus.AVAILABLE
    override: Optional[VehicleStatus] = None
    archived: bool = False

    @property
    def display_name(self) -> str:
        return f"{self.brand} {self.model}"


@dataclass
class Rental:
    id: int
    customer: Customer
    vehicle_id: int
    start_date: date
    end_date: date
    fee: float
    insurance: bool = False
    username: str = ""
    status: RentalStatus = RentalStatus.PENDING
    actual_fee: float = 0.0
    late_fee: float = 0.0
    due_soon_reminder_sent: bool = False
    overdue_reminder_sent: bool = False
    ticket_id: Optional[str] = None
    cancel_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status in (RentalStatus.PENDING, RentalStatus.ACTIVE)

    def transition_to(self, new_status: RentalStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        allowed = RENTAL_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidTransition(self.status, new_status)
        self.status = new_status

    def ensure_can_transition(self, new_status: RentalStatus) -> None:
        """Raise ``InvalidTransition`` without changing anything."""
        if new_status not in RENTAL_TRANSITIONS.get(self.status, set()):
            raise InvalidTransition(self.status, new_status)


@dataclass
class Ticket:
    id: str
    rental_id: int
    customer_name: str
    customer_contact: str
    vehicle_info: str
    plate_no: str
    start_date: date
    end_date: date
    total_fee: float
    insurance: bool
    generated_at: datetime
    pickup_location: str = ""
    instructions: str = ""
    used: bool = False
    used_at: Optional[datetime] = None
