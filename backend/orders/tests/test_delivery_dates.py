"""
Delivery Date Tests

Tests for delivery date resolution:
- Lead time by weekday and cut-off time
- Weekends and clinic days off are skipped
- Explicit and "empty" preferred dates
"""
import pytest
from datetime import date, datetime, time, timedelta

import pytz

from orders.delivery import (
    DeliveryDateResolver,
    add_weekdays,
    get_preferred_delivery_date,
)
from orders.exceptions import DeliveryDateUnavailable
from settings.models import ClinicDayOff

NEW_YORK = pytz.timezone("America/New_York")


def local(year, month, day, hour, minute=0):
    return NEW_YORK.localize(datetime(year, month, day, hour, minute))


def resolver(days_off=(), max_scan_days=None):
    return DeliveryDateResolver(
        timezone_name="America/New_York",
        cutoff=time(14, 30),
        clinic_days_off=list(days_off),
        max_scan_days=max_scan_days,
    )


class TestEarliestDeliveryDate:
    """2026-11-09 is a Monday."""

    def test_weekday_before_cutoff(self):
        assert resolver().earliest(local(2026, 11, 9, 10)) == date(2026, 11, 11)

    def test_weekday_after_cutoff(self):
        assert resolver().earliest(local(2026, 11, 9, 15)) == date(2026, 11, 12)

    def test_cutoff_time_itself_counts_as_late(self):
        assert resolver().earliest(local(2026, 11, 9, 14, 30)) == date(2026, 11, 12)

    def test_thursday_before_cutoff(self):
        assert resolver().earliest(local(2026, 11, 12, 10)) == date(2026, 11, 16)

    def test_friday_after_cutoff(self):
        assert resolver().earliest(local(2026, 11, 13, 15)) == date(2026, 11, 18)

    def test_saturday(self):
        assert resolver().earliest(local(2026, 11, 14, 9)) == date(2026, 11, 18)

    def test_sunday(self):
        assert resolver().earliest(local(2026, 11, 15, 9)) == date(2026, 11, 18)

    def test_utc_time_is_converted_to_checkout_timezone(self):
        # 02:00 UTC on Tuesday is still Monday evening in New York
        now = pytz.utc.localize(datetime(2026, 11, 10, 2, 0))

        assert resolver().earliest(now) == date(2026, 11, 12)

    def test_clinic_day_off_is_skipped(self):
        r = resolver(days_off=["2026-11-11", "2026-11-12"])

        assert r.earliest(local(2026, 11, 9, 10)) == date(2026, 11, 13)

    def test_landing_on_weekend_moves_to_monday(self):
        r = resolver(days_off=["2026-11-13"])

        # Wednesday after cut-off: +3 lands on Saturday
        assert r.earliest(local(2026, 11, 11, 16)) == date(2026, 11, 16)

    def test_never_weekend_or_day_off(self):
        days_off = ["2026-12-24", "2026-12-25", "2026-12-31", "2027-01-01"]
        r = resolver(days_off=days_off)
        start = local(2026, 12, 1, 0)

        for hours in range(0, 24 * 40, 5):
            result = r.earliest(start + timedelta(hours=hours))
            assert result.weekday() < 5
            assert result.isoformat() not in days_off

    def test_no_date_within_scan_window(self):
        days_off = [(date(2026, 11, 11) + timedelta(days=n)).isoformat() for n in range(10)]
        r = resolver(days_off=days_off, max_scan_days=5)

        with pytest.raises(DeliveryDateUnavailable):
            r.earliest(local(2026, 11, 9, 10))


class TestPreferredDeliveryDate:
    def test_explicit_date_wins(self):
        assert resolver().resolve("2026-12-01", now=local(2026, 11, 9, 10)) == date(2026, 12, 1)

    def test_date_instance(self):
        assert resolver().resolve(date(2026, 12, 2)) == date(2026, 12, 2)

    def test_empty_marker_means_no_date(self):
        assert resolver().resolve("empty") is None

    def test_unparsable_value_means_no_date(self):
        assert resolver().resolve("not a date at all") is None

    def test_missing_preference_uses_earliest(self):
        assert resolver().resolve(None, now=local(2026, 11, 9, 10)) == date(2026, 11, 11)

    @pytest.mark.django_db
    def test_clinic_days_off_are_read_from_the_database(self):
        ClinicDayOff.objects.create(date=date(2026, 11, 11), reason="Training")

        assert get_preferred_delivery_date(now=local(2026, 11, 9, 10)) == date(2026, 11, 12)


class TestAddWeekdays:
    def test_skips_weekend(self):
        # Friday + 2 business days
        assert add_weekdays(date(2026, 11, 13), 2) == date(2026, 11, 17)

    def test_zero(self):
        assert add_weekdays(date(2026, 11, 14), 0) == date(2026, 11, 14)
