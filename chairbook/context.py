"""Explicit business (tenant) context passed to every repository and service call"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException


@dataclass(frozen=True)
class BusinessContext:
    business_id: str
    staff_id: Optional[int] = None


def get_business_context(
    x_business_id: Optional[str] = Header(None),
    x_staff_id: Optional[int] = Header(None),
) -> BusinessContext:
    """Build the context from request headers; every route depends on it"""
    if not x_business_id or not x_business_id.strip():
        raise HTTPException(status_code=400, detail="Missing X-Business-Id header")
    return BusinessContext(business_id=x_business_id.strip(), staff_id=x_staff_id)
