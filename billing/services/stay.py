"""
Day counting for admission billing.

Two policies exist.  ``calculate_stay_days`` counts calendar days in the
billing time zone, inclusive of both ends, so any started day is a
billable day: admitted on the 1st at 18:00 and discharged on the 3rd at
11:00 bills three days.  ``calculate_24_hour_periods`` counts elapsed
24 hour blocks rounded up: the same stay is 41 hours, two periods.
Both return at least 1.
"""
from __future__ import annotations

import math
from datetime import date, datetime, time, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo

from django.conf import settings
from django.utils import timezone

DateLike = Union[date, datetime]


def billing_zone() -> tzinfo:
    return ZoneInfo(getattr(settings, 'BILLING_TIME_ZONE', None) or settings.TIME_ZONE)


def _as_aware(value: DateLike, tz: tzinfo) -> datetime:
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if timezone.is_naive(value):
        value = timezone.make_aware(value, tz)
    return value


def local_day(value: DateLike, tz: Optional[tzinfo] = None) -> date:
    """Calendar day of ``value`` in the billing zone."""
    if not isinstance(value, datetime):
        return value
    tz = tz or billing_zone()
    return timezone.localtime(_as_aware(value, tz), tz).date()


def calculate_stay_days(admission_date: DateLike, end_date: Optional[DateLike] = None,
                        tz: Optional[tzinfo] = None) -> int:
    """Number of calendar days to bill for a stay.

    ``end_date`` is the discharge time; an ongoing stay passes ``None``
    and is counted up to now.
    """
    tz = tz or billing_zone()
    start = local_day(admission_date, tz)
    end = local_day(end_date if end_date is not None else timezone.now(), tz)
    return max(1, (end - start).days + 1)


def calculate_24_hour_periods(start: DateLike, end: Optional[DateLike] = None,
                              tz: Optional[tzinfo] = None) -> int:
    tz = tz or billing_zone()
    began = _as_aware(start, tz)
    finished = _as_aware(end, tz) if end is not None else timezone.now()
    hours = (finished - began).total_seconds() / 3600
    return max(1, math.ceil(hours / 24))
