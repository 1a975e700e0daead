"""Shared validation utilities"""

import re
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

TIME_OF_DAY_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number.

    Accepts digits with an optional leading +, spaces, dashes and
    parentheses. Separators are stripped from the stored value.

    Raises:
        ValueError: If the number has unexpected characters or fewer than 8 digits
    """
    if not phone:
        return phone

    phone = phone.strip()
    if not re.match(r"^\+?[\d\s\-\(\)]+$", phone):
        raise ValueError("Phone number may only contain digits, spaces, dashes and parentheses")

    digits = re.sub(r"\D", "", phone)
    if len(digits) < 8:
        raise ValueError("Phone number must have at least 8 digits")

    return f"+{digits}" if phone.startswith("+") else digits


def validate_name(name: str) -> str:
    """Names are trimmed and must be 2-100 characters long"""
    name = (name or "").strip()
    if not 2 <= len(name) <= 100:
        raise ValueError("Name must be between 2 and 100 characters")
    return name


def validate_price(price: Optional[float]) -> Optional[float]:
    if price is None:
        return price
    if not 0 < price <= 1_000_000:
        raise ValueError("Price must be greater than 0 and at most 1,000,000")
    return price


def validate_discount_percent(discount: Optional[float]) -> Optional[float]:
    if discount is None:
        return discount
    if not 0 <= discount <= 100:
        raise ValueError("Discount must be between 0 and 100 percent")
    return discount


def validate_time_of_day(value: str) -> str:
    """Validate an HH:MM (24h) time string"""
    value = (value or "").strip()
    if not TIME_OF_DAY_PATTERN.match(value):
        raise ValueError("Time must use the HH:MM 24-hour format")
    return value


def validate_timezone(name: Optional[str]) -> Optional[str]:
    """Validate an IANA timezone name such as 'America/Argentina/Buenos_Aires'"""
    if not name:
        return name
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {name}") from None
    return name
