"""Catalog domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_name, validate_price


class ServiceCreate(BaseModel):
    """Schema for creating a catalog service"""

    name: str
    price: float

    @field_validator("name")
    @classmethod
    def validate_service_name(cls, v):
        return validate_name(v)

    @field_validator("price")
    @classmethod
    def validate_service_price(cls, v):
        return validate_price(v)


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = None

    @field_validator("name")
    @classmethod
    def validate_service_name(cls, v):
        if v is not None:
            return validate_name(v)
        return v

    @field_validator("price")
    @classmethod
    def validate_service_price(cls, v):
        return validate_price(v)


class ServiceResponse(BaseModel):
    id: int
    name: str
    price: float
    createdBy: Optional[int] = None
    createdAt: Optional[datetime] = None
