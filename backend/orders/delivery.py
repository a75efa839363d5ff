"""
Delivery date resolution.

A client may pick a delivery date at checkout. When they don't, the earliest
date the lab can receive a kit is computed from the current time in the
checkout timezone, skipping weekends and clinic days off.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union

import pytz
from dateutil import parser as date_parser
from django.utils import timezone

from settings.config import app_settings
from .exceptions import DeliveryDateUnavailable

logger = logging.getLogger(__name__)

EMPTY_PREFERRED_DATE = "empty"

THURSDAY = 3
FRIDAY = 4
SATURDAY = 5
SUNDAY = 6

WEEKEND = (SATURDAY, SUNDAY)


def add_weekdays(start: date, count: int) -> date:
    """`start` moved forward by `count` days, counting Monday to Friday only."""
    current = start
    added = 0
    while added < count:
        current += timedelta(days=1)
        if current.weekday() not in WEEKEND:
            added += 1
    return current


class DeliveryDateResolver:
    def __init__(
        self,
        timezone_name: Optional[str] = None,
        cutoff=None,
        clinic_days_off: Optional[Iterable[str]] = None,
        max_scan_days: Optional[int] = None,
    ):
        self.timezone = pytz.timezone(timezone_name or app_settings.timezone)
        self.cutoff = cutoff or app_settings.cutoff_time
        self.max_scan_days = max_scan_days or app_settings.delivery_date_max_scan_days
        self._clinic_days_off = set(clinic_days_off) if clinic_days_off is not None else None

    @property
    def clinic_days_off(self) -> set:
        if self._clinic_days_off is None:
            self._clinic_days_off = set(app_settings.get_clinic_days_off())
        return self._clinic_days_off

    def resolve(self, preferred: Union[str, date, None] = None, now: Optional[datetime] = None) -> Optional[date]:
        """
        The delivery date for an order.

        An explicit `preferred` date wins; the "empty" marker and values that
        cannot be parsed mean no date. Without a preference the earliest
        deliverable date is computed from `now`.
        """
        if preferred:
            return self.parse(preferred)
        return self.earliest(now=now)

    def parse(self, preferred: Union[str, date]) -> Optional[date]:
        if isinstance(preferred, datetime):
            return preferred.date()
        if isinstance(preferred, date):
            return preferred
        if preferred == EMPTY_PREFERRED_DATE:
            return None

        try:
            return date_parser.parse(str(preferred)).date()
        except (ValueError, OverflowError) as e:
            logger.info(f"Ignoring unparsable preferred delivery date {preferred!r}: {e}")
            return None

    def earliest(self, now: Optional[datetime] = None) -> date:
        """
        Earliest deliverable date.

        Lead time from the local weekday: Sunday +3 days, Saturday +4; on
        weekdays +2, or +4 on Thursday and Friday. Orders at or after the
        cut-off time take one more day. The candidate then moves forward
        past weekends and clinic days off.
        """
        now = now or timezone.now()
        if timezone.is_naive(now):
            now = pytz.utc.localize(now)
        local = now.astimezone(self.timezone)

        weekday = local.weekday()
        late_week = weekday in (THURSDAY, FRIDAY)

        if weekday == SUNDAY:
            lead_days = 3
        elif weekday == SATURDAY:
            lead_days = 4
        elif local.time() >= self.cutoff:
            lead_days = 5 if late_week else 3
        else:
            lead_days = 4 if late_week else 2

        candidate = local.date() + timedelta(days=lead_days)

        for _ in range(self.max_scan_days):
            if self.is_deliverable(candidate):
                return candidate
            candidate += timedelta(days=1)

        raise DeliveryDateUnavailable(
            f"No delivery date available in the next {self.max_scan_days} days."
        )

    def is_deliverable(self, day: date) -> bool:
        return day.weekday() not in WEEKEND and day.isoformat() not in self.clinic_days_off


def get_preferred_delivery_date(preferred=None, now=None) -> Optional[date]:
    return DeliveryDateResolver().resolve(preferred, now=now)
