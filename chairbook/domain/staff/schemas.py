"""Staff domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_name, validate_time_of_day

StaffRole = Literal["admin", "staff"]


class StaffCreate(BaseModel):
    name: str
    role: StaffRole = "staff"

    @field_validator("name")
    @classmethod
    def validate_staff_name(cls, v):
        return validate_name(v)


class StaffUpdate(BaseModel):
    name: Optional[str] = None
    role: Optional[StaffRole] = None

    @field_validator("name")
    @classmethod
    def validate_staff_name(cls, v):
        if v is not None:
            return validate_name(v)
        return v


class ScheduleEntry(BaseModel):
    """Working hours for one weekday (0=Monday .. 6=Sunday)"""

    dayOfWeek: int = Field(..., ge=0, le=6)
    startTime: str
    endTime: str
    isActive: bool = True

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_times(cls, v):
        return validate_time_of_day(v)

    @model_validator(mode="after")
    def validate_range(self):
        # Zero-padded HH:MM strings compare in time order
        if self.startTime >= self.endTime:
            raise ValueError("startTime must be before endTime")
        return self


class ScheduleUpdate(BaseModel):
    schedules: list[ScheduleEntry]

    @model_validator(mode="after")
    def validate_unique_days(self):
        days = [entry.dayOfWeek for entry in self.schedules]
        if len(days) != len(set(days)):
            raise ValueError("Each weekday may only appear once")
        return self


class ScheduleResponse(BaseModel):
    id: int
    dayOfWeek: int
    startTime: str
    endTime: str
    isActive: bool


class StaffResponse(BaseModel):
    id: int
    name: str
    role: str
    createdAt: Optional[datetime] = None
    schedules: list[ScheduleResponse] = []
