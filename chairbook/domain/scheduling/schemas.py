"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_discount_percent, validate_price, validate_timezone

Frequency = Literal["DAILY", "WEEKLY", "MONTHLY"]
AppointmentStatus = Literal["pending", "done", "cancelled"]
PaymentMethod = Literal["cash", "card", "transfer"]
PaymentStatus = Literal["pending", "paid", "cancelled"]


class RecurrenceRuleSchema(BaseModel):
    """Declarative recurrence: weekdays use 0=Monday .. 6=Sunday"""

    freq: Frequency
    interval: int = Field(1, ge=1)
    byweekday: Optional[list[int]] = None
    until: Optional[Union[datetime, date]] = None
    count: Optional[int] = Field(None, ge=1)

    @field_validator("byweekday")
    @classmethod
    def validate_weekdays(cls, v):
        if v is None:
            return v
        for day in v:
            if not 0 <= day <= 6:
                raise ValueError("byweekday values must be between 0 (Monday) and 6 (Sunday)")
        return sorted(set(v))

    def to_storage(self) -> dict:
        """JSON-safe dict as stored on the appointment"""
        data = self.model_dump(exclude_none=True)
        if self.until is not None:
            data["until"] = self.until.isoformat()
        return data


class AppointmentFields(BaseModel):
    """Fields shared by create and update payloads"""

    title: Optional[str] = None
    clientId: Optional[int] = None
    serviceId: Optional[int] = None
    serviceName: Optional[str] = None
    servicePrice: Optional[float] = None
    timezone: Optional[str] = None
    notes: Optional[str] = None
    assignedTo: Optional[int] = None
    paymentMethod: Optional[PaymentMethod] = None
    discount: Optional[float] = None
    paymentStatus: Optional[PaymentStatus] = None
    paymentNotes: Optional[str] = None

    @field_validator("servicePrice")
    @classmethod
    def validate_service_price(cls, v):
        return validate_price(v)

    @field_validator("discount")
    @classmethod
    def validate_discount(cls, v):
        return validate_discount_percent(v)

    @field_validator("timezone")
    @classmethod
    def validate_zone(cls, v):
        return validate_timezone(v)


class AppointmentCreate(AppointmentFields):
    """Schema for creating a new appointment"""

    startDateTime: datetime
    durationMin: int = Field(..., gt=0)
    isRecurring: bool = False
    rrule: Optional[RecurrenceRuleSchema] = None
    status: AppointmentStatus = "pending"
    paymentMethod: PaymentMethod = "cash"
    paymentStatus: PaymentStatus = "pending"

    @model_validator(mode="after")
    def validate_recurrence(self):
        if self.isRecurring and self.rrule is None:
            raise ValueError("Recurring appointments need a recurrence rule")
        if not self.isRecurring and self.rrule is not None:
            raise ValueError("Only recurring appointments can have a recurrence rule")
        return self


class AppointmentUpdate(AppointmentFields):
    """Schema for updating an appointment; omitted fields keep their value"""

    startDateTime: Optional[datetime] = None
    durationMin: Optional[int] = Field(None, gt=0)
    isRecurring: Optional[bool] = None
    rrule: Optional[RecurrenceRuleSchema] = None
    status: Optional[AppointmentStatus] = None


class MoveOccurrenceRequest(BaseModel):
    newStart: datetime
    newDurationMin: Optional[int] = Field(None, gt=0)


class CancelOccurrenceRequest(BaseModel):
    reason: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    status: AppointmentStatus


class AppointmentResponse(BaseModel):
    """Schema for appointment response; timestamps are ISO-8601 with explicit offset"""

    id: int
    title: Optional[str]
    clientId: Optional[int] = None
    serviceId: Optional[int] = None
    serviceName: Optional[str] = None
    startDateTime: str
    durationMin: int
    isRecurring: bool
    rrule: Optional[dict] = None
    timezone: Optional[str] = None
    notes: Optional[str] = None
    status: str
    assignedTo: Optional[int] = None
    paymentMethod: Optional[str] = None
    listPrice: Optional[float] = None
    discount: Optional[float] = None
    finalPrice: Optional[float] = None
    paymentStatus: Optional[str] = None
    paymentNotes: Optional[str] = None
    startedAt: Optional[str] = None
    completedAt: Optional[str] = None
    actualDurationMin: Optional[int] = None


class OccurrenceResponse(BaseModel):
    id: str
    baseId: int
    originalStart: str
    start: str
    end: str
    isRecurring: bool
    status: str
    title: Optional[str] = None
    clientId: Optional[int] = None
    serviceId: Optional[int] = None
    serviceName: Optional[str] = None
    assignedTo: Optional[int] = None
    paymentMethod: Optional[str] = None
    listPrice: Optional[float] = None
    discount: Optional[float] = None
    finalPrice: Optional[float] = None
    paymentStatus: Optional[str] = None
    startedAt: Optional[str] = None
    completedAt: Optional[str] = None
    actualDurationMin: Optional[int] = None


class RuleErrorResponse(BaseModel):
    appointmentId: int
    reason: str


class OccurrenceListResponse(BaseModel):
    occurrences: list[OccurrenceResponse]
    ruleErrors: list[RuleErrorResponse] = []


class AvailabilityResponse(BaseModel):
    available: bool
    conflicts: list[OccurrenceResponse] = []
