"""Client domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_name, validate_phone

ContactMethod = Literal["whatsapp", "instagram", "phone"]


class ClientCreate(BaseModel):
    """Schema for creating a new client"""

    name: str
    phone: Optional[str] = None
    contactMethod: Optional[ContactMethod] = None
    contactHandle: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_client_name(cls, v):
        return validate_name(v)

    @field_validator("phone")
    @classmethod
    def validate_client_phone(cls, v):
        if v:
            return validate_phone(v)
        return v


class ClientUpdate(BaseModel):
    """Schema for updating an existing client"""

    name: Optional[str] = None
    phone: Optional[str] = None
    contactMethod: Optional[ContactMethod] = None
    contactHandle: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_client_name(cls, v):
        if v is not None:
            return validate_name(v)
        return v

    @field_validator("phone")
    @classmethod
    def validate_client_phone(cls, v):
        if v:
            return validate_phone(v)
        return v


class ClientResponse(BaseModel):
    """Schema for client response"""

    id: int
    name: str
    phone: Optional[str] = None
    contactMethod: Optional[str] = None
    contactHandle: Optional[str] = None
    notes: Optional[str] = None
    totalVisits: int = 0
    totalCancellations: int = 0
    lastVisit: Optional[datetime] = None
    reminderSent: Optional[datetime] = None
    createdAt: Optional[datetime] = None


class ClientHistoryResponse(BaseModel):
    id: int
    clientId: int
    eventType: str
    appointmentId: Optional[int] = None
    occurrenceStart: Optional[datetime] = None
    timestamp: datetime
    notes: Optional[str] = None


class ClientAtRiskResponse(ClientResponse):
    daysSinceLastVisit: int
    riskLevel: Literal["low", "medium", "high"]


class ClientStatsResponse(BaseModel):
    totalClients: int
    activeClients: int
    atRisk: int
    totalVisits: int
    totalCancellations: int
    cancellationRate: int


class ReminderRequest(BaseModel):
    method: ContactMethod
