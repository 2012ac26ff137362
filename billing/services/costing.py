from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from billing.models import Service
from billing.services.stay import DateLike, calculate_24_hour_periods, calculate_stay_days

CENT = Decimal('0.01')


def money(value) -> Decimal:
    """Quantize to cents, half up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class CostingResult:
    total_amount: Decimal
    billing_quantity: Decimal
    details: str


def calculate_billing(price: Decimal, billing_type: str, *, quantity: Optional[Decimal] = None,
                      start: Optional[DateLike] = None, end: Optional[DateLike] = None) -> CostingResult:
    """Amount to bill for one service instance.

    Time based types derive the quantity from ``start``/``end`` and fall
    back to one unit when no start is known.  ``per_instance`` and
    ``per_hour`` multiply by the given quantity.
    """
    price = Decimal(price)
    if billing_type == Service.BILLING_PER_24_HOURS:
        units = Decimal(calculate_24_hour_periods(start, end)) if start is not None else Decimal('1')
        label = 'day'
    elif billing_type == Service.BILLING_PER_DATE:
        units = Decimal(calculate_stay_days(start, end)) if start is not None else Decimal('1')
        label = 'date'
    elif billing_type == Service.BILLING_PER_HOUR:
        units = Decimal(quantity if quantity is not None else 1)
        label = 'hour'
    else:
        units = Decimal(quantity if quantity is not None else 1)
        label = 'instance'

    total = money(price * units)
    plural = '' if units == 1 else 's'
    return CostingResult(
        total_amount=total,
        billing_quantity=units,
        details=f"{price} x {units:f} {label}{plural} = {total}",
    )
