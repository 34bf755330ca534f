"""
Calendar policy: which dates are instructional days.

A date is instructional when it is neither a weekend nor covered by a
scheduled day off. Weekends are always Saturday and Sunday.
"""
import re
from datetime import date
from typing import Iterable, Optional, Union

from attendance_rollup.core.exceptions import InvalidDateError
from attendance_rollup.models.schedule import ScheduledDayOff
from attendance_rollup.repositories.base import DayOffStore

DateLike = Union[str, date]

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: DateLike) -> date:
    """Parse a strict YYYY-MM-DD string into a date."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _ISO_DATE.match(value):
        raise InvalidDateError(value)
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidDateError(value) from None


def is_weekend(day: DateLike) -> bool:
    return parse_iso_date(day).weekday() >= 5


def find_day_off(
    day: DateLike,
    scheduled_offs: Iterable[ScheduledDayOff],
    group_id: Optional[str] = None
) -> Optional[ScheduledDayOff]:
    """The scheduled day off covering ``day`` for a student in ``group_id``."""
    date_iso = parse_iso_date(day).isoformat()
    for day_off in scheduled_offs:
        if day_off.date_iso == date_iso and day_off.covers(group_id):
            return day_off
    return None


def is_instructional_day(
    day: DateLike,
    scheduled_offs: Iterable[ScheduledDayOff],
    group_id: Optional[str] = None
) -> bool:
    if is_weekend(day):
        return False
    return find_day_off(day, scheduled_offs, group_id) is None


class CalendarPolicy:
    """Calendar policy bound to a scheduled day-off store."""

    def __init__(self, day_off_store: DayOffStore):
        self.day_off_store = day_off_store

    def is_instructional_day(self, day: DateLike, group_id: Optional[str] = None) -> bool:
        return is_instructional_day(day, self.day_off_store.list(), group_id)

    def day_off_for(self, day: DateLike, group_id: Optional[str] = None) -> Optional[ScheduledDayOff]:
        return find_day_off(day, self.day_off_store.list(), group_id)
