"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from rental_engine.domain.enums import (
    FuelType,
    IssueStatus,
    MaintenanceCategory,
    RentalStatus,
    VehicleStatus,
    VehicleType,
)


# ── Requests ──────────────────────────────────────────────────────────


class RentalCreateRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    vehicle_id: int
    start_date: date
    end_date: date
    insurance: bool = False


class RentalExtendRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    vehicle_id: int
    new_end_date: date
    insurance: bool = False


class ReasonRequest(BaseModel):
    reason: str = Field("No reason provided", max_length=500)


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class DamageItem(BaseModel):
    description: str = Field(..., min_length=1, max_length=1000)
    severity: int = Field(3, ge=1, le=5)
    category: MaintenanceCategory = MaintenanceCategory.DAMAGE


class ReturnRequest(BaseModel):
    damages: list[DamageItem] = []


class TicketValidateRequest(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=120)


class VehicleCreateRequest(BaseModel):
    plate_no: str = Field(..., min_length=1, max_length=20)
    brand: str = Field(..., min_length=1, max_length=60)
    model: str = Field(..., min_length=1, max_length=60)
    vehicle_type: VehicleType = VehicleType.SEDAN
    fuel_type: FuelType = FuelType.PETROL
    color: str = ""
    year: int = Field(0, ge=0, le=2100)
    daily_rate: float = Field(..., gt=0)
    insurance_rate: float = Field(0.0, ge=0, lt=1)
    discount_tiers: dict[int, float] = Field(
        default_factory=dict,
        description="Minimum rental days -> discount fraction, e.g. {7: 0.1}.",
    )


class OverrideRequest(BaseModel):
    status: VehicleStatus


class IssueCreateRequest(BaseModel):
    category: MaintenanceCategory = MaintenanceCategory.REPAIR
    description: str = Field(..., min_length=1, max_length=1000)
    severity: int = Field(3, ge=1, le=5)
    reported_by: str = Field(..., min_length=1, max_length=64)


class IssueResolveRequest(BaseModel):
    cost: float = Field(0.0, ge=0)
    resolved_by: str = Field(..., min_length=1, max_length=64)


# ── Responses ─────────────────────────────────────────────────────────


class CustomerResponse(BaseModel):
    name: str
    contact: str = ""

    model_config = {"from_attributes": True}


class RentalResponse(BaseModel):
    id: int
    customer: CustomerResponse
    username: str
    vehicle_id: int
    start_date: date
    end_date: date
    status: RentalStatus
    fee: float
    actual_fee: float = 0.0
    late_fee: float = 0.0
    insurance: bool
    ticket_id: Optional[str] = None
    cancel_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ExtendResponse(BaseModel):
    extended: bool
    rental: Optional[RentalResponse] = None


class TicketResponse(BaseModel):
    id: str
    rental_id: int
    customer_name: str
    vehicle_info: str
    plate_no: str
    start_date: date
    end_date: date
    total_fee: float
    insurance: bool
    generated_at: datetime
    pickup_location: str
    instructions: str
    used: bool
    used_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class IssueResponse(BaseModel):
    id: int
    vehicle_id: int
    category: MaintenanceCategory
    description: str
    severity: int
    reported_by: str
    status: IssueStatus
    cost: float
    resolved_by: Optional[str] = None
    reported_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class VehicleResponse(BaseModel):
    id: int
    plate_no: str
    brand: str
    model: str
    vehicle_type: VehicleType
    fuel_type: FuelType
    color: str
    year: int
    daily_rate: float
    insurance_rate: float
    discount_tiers: dict[int, float]
    status: VehicleStatus
    override: Optional[VehicleStatus] = None
    archived: bool
    issues: list[IssueResponse] = []

    model_config = {"from_attributes": True}


class QuoteResponse(BaseModel):
    vehicle_id: int
    start_date: date
    end_date: date
    days: int
    discount: float
    insurance: bool
    fee: float


class PeriodResponse(BaseModel):
    start: date
    end: date


class ScheduleResponse(BaseModel):
    vehicle_id: int
    buffer_days: int
    unavailable: list[PeriodResponse]


class FailureResponse(BaseModel):
    operation: str
    collaborator: str
    detail: str
    at: datetime

    model_config = {"from_attributes": True}


class ReminderRunResponse(BaseModel):
    sent: int


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str


class ConflictResponse(ErrorResponse):
    rental_id: Optional[int] = None
    holder: Optional[str] = None
    window_start: Optional[date] = None
    window_end: Optional[date] = None


class TicketRejectedResponse(ErrorResponse):
    reason: str
    ticket_id: str
