from datetime import date, datetime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
from django.utils import timezone

from billing.services.costing import calculate_billing, money
from billing.services.stay import calculate_24_hour_periods, calculate_stay_days

IST = ZoneInfo('Asia/Kolkata')


def at(day, hour=0, minute=0):
    return datetime(2024, 3, day, hour, minute, tzinfo=IST)


@pytest.mark.parametrize('start,end,days', [
    (at(10, 9), at(10, 18), 1),
    (at(10, 23), at(11, 1), 2),
    (at(10, 10), at(12, 14), 3),
    (at(10, 18), at(12, 11), 3),
])
def test_stay_days_count_calendar_days_inclusive(start, end, days):
    assert calculate_stay_days(start, end) == days


def test_stay_days_use_billing_zone_not_utc():
    # 23:30 and 00:30 IST fall on the same UTC day but on two local days
    start = at(10, 23, 30)
    end = start + timedelta(hours=1)
    assert start.astimezone(ZoneInfo('UTC')).date() == end.astimezone(ZoneInfo('UTC')).date()
    assert calculate_stay_days(start, end) == 2


def test_stay_days_never_below_one():
    assert calculate_stay_days(at(12, 10), at(10, 10)) == 1
    assert calculate_stay_days(date(2024, 3, 10), date(2024, 3, 10)) == 1


def test_ongoing_stay_counts_up_to_now():
    start = timezone.now() - timedelta(days=2)
    assert calculate_stay_days(start) == 3
    assert calculate_stay_days(timezone.now()) == 1


@pytest.mark.parametrize('start,end,periods', [
    (at(10, 10), at(10, 10), 1),
    (at(10, 10), at(11, 10), 1),
    (at(10, 10), at(11, 11), 2),
    (at(10, 18), at(12, 11), 2),
])
def test_24_hour_periods_round_up(start, end, periods):
    assert calculate_24_hour_periods(start, end) == periods


def test_money_rounds_half_up():
    assert money('10.005') == Decimal('10.01')
    assert money(Decimal('2.344')) == Decimal('2.34')


def test_per_date_billing_uses_stay_days():
    result = calculate_billing(Decimal('1000'), 'per_date', start=at(10, 10), end=at(12, 14))
    assert result.total_amount == Decimal('3000.00')
    assert result.billing_quantity == 3
    assert result.details == '1000 x 3 dates = 3000.00'


def test_per_24_hours_billing_uses_elapsed_periods():
    result = calculate_billing(Decimal('1000'), 'per_24_hours', start=at(10, 18), end=at(12, 11))
    assert result.total_amount == Decimal('2000.00')


def test_per_hour_and_per_instance_use_quantity():
    hourly = calculate_billing(Decimal('100'), 'per_hour', quantity=Decimal('2.5'))
    assert hourly.total_amount == Decimal('250.00')
    single = calculate_billing(Decimal('450'), 'per_instance')
    assert single.total_amount == Decimal('450.00')
    assert single.billing_quantity == 1
