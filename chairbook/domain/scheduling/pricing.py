"""Final price computation for appointment payments"""

import math
from typing import Optional, Tuple

from ...config import CASH_DISCOUNT_PERCENT
from ...shared.validators import validate_discount_percent

PAYMENT_METHODS = ("cash", "card", "transfer")


def default_discount(payment_method: Optional[str]) -> float:
    """Cash gets the configured discount; other methods pay list price"""
    return CASH_DISCOUNT_PERCENT if payment_method == "cash" else 0


def calculate_final_price(
    list_price: float, payment_method: Optional[str], custom_discount: Optional[float] = None
) -> Tuple[int, float]:
    """
    Returns (final_price, discount_percent).

    The final price is rounded half-up to whole currency units.
    """
    discount_percent = custom_discount if custom_discount is not None else default_discount(payment_method)
    validate_discount_percent(discount_percent)

    final_price = list_price - (list_price * discount_percent) / 100
    return math.floor(final_price + 0.5), discount_percent
