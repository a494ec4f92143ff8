"""
SQLAlchemy ORM models for the snapshot store.

Tables
------
* ``accounts``          -- customers and admins (identity lookup only)
* ``vehicles``          -- catalog, pricing, ledger intervals, status
* ``rentals``           -- bookings and their lifecycle state
* ``tickets``           -- pickup credentials, current and superseded
* ``maintenance_logs``  -- issues reported against vehicles

Indexes
-------
* **B-Tree** on ``status``, ``vehicle_id``, ``username`` and
  ``rental_id`` for the look-ups used by the reminder worker and the API.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)

from .database import Base
from rental_engine.domain.enums import (
    FuelType,
    IssueStatus,
    MaintenanceCategory,
    RentalStatus,
    VehicleStatus,
    VehicleType,
)


class AccountModel(Base):
    __tablename__ = "accounts"

    username = Column(String(64), primary_key=True)
    full_name = Column(String(120), nullable=False)
    contact = Column(String(255), default="")
    role = Column(String(16), default="CUSTOMER", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class VehicleModel(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True)
    plate_no = Column(String(20), unique=True, nullable=False)
    brand = Column(String(60), nullable=False)
    model = Column(String(60), nullable=False)
    vehicle_type = Column(Enum(VehicleType), default=VehicleType.SEDAN)
    fuel_type = Column(Enum(FuelType), default=FuelType.PETROL)
    color = Column(String(30), default="")
    year = Column(Integer, default=0)
    daily_rate = Column(Float, nullable=False)
    insurance_rate = Column(Float, default=0.0, nullable=False)

    # {"7": 0.1, "30": 0.2} -- JSON object keys are always strings
    discount_tiers = Column(JSON, default=dict, nullable=False)
    # [{"start": "2024-01-01", "end": "2024-01-10", "rental_id": 1}, ...]
    booked_intervals = Column(JSON, default=list, nullable=False)

    status = Column(
        Enum(VehicleStatus), default=VehicleStatus.AVAILABLE, nullable=False
    )
    status_override = Column(Enum(VehicleStatus), nullable=True)
    archived = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index("idx_vehicles_status", "status"),
        Index("idx_vehicles_archived", "archived"),
    )


class RentalModel(Base):
    __tablename__ = "rentals"

    id = Column(Integer, primary_key=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    username = Column(String(64), default="")
    customer_name = Column(String(120), nullable=False)
    customer_contact = Column(String(255), default="")

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(Enum(RentalStatus), default=RentalStatus.PENDING, nullable=False)

    fee = Column(Float, nullable=False)
    actual_fee = Column(Float, default=0.0, nullable=False)
    late_fee = Column(Float, default=0.0, nullable=False)
    insurance = Column(Boolean, default=False, nullable=False)

    due_soon_reminder_sent = Column(Boolean, default=False, nullable=False)
    overdue_reminder_sent = Column(Boolean, default=False, nullable=False)
    ticket_id = Column(String(20), nullable=True)
    cancel_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_rentals_status", "status"),
        Index("idx_rentals_vehicle", "vehicle_id"),
        Index("idx_rentals_username", "username"),
    )


class TicketModel(Base):
    __tablename__ = "tickets"

    id = Column(String(20), primary_key=True)
    rental_id = Column(Integer, ForeignKey("rentals.id"), nullable=False)
    customer_name = Column(String(120), nullable=False)
    customer_contact = Column(String(255), default="")
    vehicle_info = Column(String(120), nullable=False)
    plate_no = Column(String(20), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_fee = Column(Float, nullable=False)
    insurance = Column(Boolean, default=False, nullable=False)
    generated_at = Column(DateTime, nullable=False)
    pickup_location = Column(String(255), default="")
    instructions = Column(Text, default="")
    used = Column(Boolean, default=False, nullable=False)
    used_at = Column(DateTime, nullable=True)

    __table_args__ = (Index("idx_tickets_rental", "rental_id"),)


class MaintenanceLogModel(Base):
    __tablename__ = "maintenance_logs"

    id = Column(Integer, primary_key=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    category = Column(Enum(MaintenanceCategory), nullable=False)
    description = Column(Text, nullable=False)
    severity = Column(Integer, nullable=False)
    reported_by = Column(String(64), nullable=False)
    status = Column(Enum(IssueStatus), default=IssueStatus.OPEN, nullable=False)
    cost = Column(Float, default=0.0, nullable=False)
    resolved_by = Column(String(64), nullable=True)
    reported_at = Column(DateTime, nullable=True)
    resolved_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_maintenance_vehicle", "vehicle_id"),
        Index("idx_maintenance_status", "status"),
    )
