"""Domain enumerations and state-transition rules."""

import enum


class RentalStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"


# State machine: maps current status -> set of valid next statuses
RENTAL_TRANSITIONS: dict[RentalStatus, set[RentalStatus]] = {
    RentalStatus.PENDING: {RentalStatus.ACTIVE, RentalStatus.CANCELLED},
    RentalStatus.ACTIVE: {RentalStatus.RETURNED},
    RentalStatus.RETURNED: set(),
    RentalStatus.CANCELLED: set(),
}

# Rentals that still hold an interval in the vehicle ledger
OPEN_RENTAL_STATUSES = frozenset({RentalStatus.PENDING, RentalStatus.ACTIVE})


class VehicleStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    RENTED = "RENTED"
    UNDER_MAINTENANCE = "UNDER_MAINTENANCE"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"


# Only these may be set as an administrative override; both are sticky.
STICKY_STATUSES = frozenset(
    {VehicleStatus.UNDER_MAINTENANCE, VehicleStatus.OUT_OF_SERVICE}
)


class VehicleType(str, enum.Enum):
    HATCHBACK = "HATCHBACK"
    SEDAN = "SEDAN"
    SUV = "SUV"
    MPV = "MPV"
    PICKUP = "PICKUP"
    VAN = "VAN"


class FuelType(str, enum.Enum):
    PETROL = "PETROL"
    DIESEL = "DIESEL"
    HYBRID = "HYBRID"
    ELECTRIC = "ELECTRIC"


class MaintenanceCategory(str, enum.Enum):
    ROUTINE = "ROUTINE"
    REPAIR = "REPAIR"
    DAMAGE = "DAMAGE"
    CLEANING = "CLEANING"
    INSPECTION = "INSPECTION"


class IssueStatus(str, enum.Enum):
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"


class TicketRejection(str, enum.Enum):
    """Why a ticket failed validation at the pickup desk."""

    UNKNOWN = "UNKNOWN"
    ALREADY_USED = "ALREADY_USED"
    SUPERSEDED = "SUPERSEDED"
    NAME_MISMATCH = "NAME_MISMATCH"
    TOO_EARLY = "TOO_EARLY"
