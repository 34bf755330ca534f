"""
Bucket aggregation of attendance records.

Records are grouped into daily, weekly (Monday-start) or monthly buckets.
Only instructional days contribute, and a date without a record contributes
nothing: it is neither counted as absent nor emitted as an empty bucket.
"""
import logging
from collections import Counter
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from attendance_rollup.core.exceptions import InvalidDateError, InvalidRangeError
from attendance_rollup.models.attendance import AttendanceRecord, AttendanceStatus
from attendance_rollup.repositories.base import AttendanceStore, DayOffStore, StudentDirectory
from attendance_rollup.schemas.attendance import (
    Granularity, TimeBucket, YearToDateSummary, ReportSummary, StatusCounts
)
from attendance_rollup.services.calendar_policy import parse_iso_date, is_instructional_day

logger = logging.getLogger(__name__)

_STATUS_FIELDS = {
    AttendanceStatus.PRESENT: "present",
    AttendanceStatus.ABSENT: "absent",
    AttendanceStatus.LATE: "late",
    AttendanceStatus.EXCUSED: "excused",
}


def status_field(status: AttendanceStatus) -> str:
    """Bucket counter incremented by a record with ``status``."""
    try:
        return _STATUS_FIELDS[AttendanceStatus(status)]
    except (KeyError, ValueError):
        raise ValueError(f"Unknown attendance status: {status}") from None


def period_key(day: date, granularity: Granularity) -> str:
    if granularity == Granularity.DAILY:
        return day.isoformat()
    if granularity == Granularity.WEEKLY:
        return (day - timedelta(days=day.weekday())).isoformat()
    if granularity == Granularity.MONTHLY:
        return f"{day.year:04d}-{day.month:02d}"
    raise ValueError(f"Unknown granularity: {granularity}")


def attendance_rate(present: int, late: int, total: int) -> float:
    """Percentage of records where the student attended (present or late)."""
    if total <= 0:
        return 0.0
    return round((present + late) / total * 100, 1)


def build_bucket(key: str, counts: Counter) -> TimeBucket:
    total = counts["present"] + counts["absent"] + counts["late"] + counts["excused"]
    return TimeBucket(
        period_key=key,
        present=counts["present"],
        absent=counts["absent"],
        late=counts["late"],
        excused=counts["excused"],
        early_dismissal=counts["early_dismissal"],
        total=total,
        rate=attendance_rate(counts["present"], counts["late"], total)
    )


def summarize(buckets: Iterable[StatusCounts]) -> StatusCounts:
    """Sum status counts across buckets."""
    totals = StatusCounts()
    for bucket in buckets:
        totals.present += bucket.present
        totals.absent += bucket.absent
        totals.late += bucket.late
        totals.excused += bucket.excused
        totals.early_dismissal += bucket.early_dismissal
    return totals


class BucketAggregator:
    """Read-only rollups over the attendance store."""

    def __init__(
        self,
        attendance_store: AttendanceStore,
        day_off_store: DayOffStore,
        directory: Optional[StudentDirectory] = None
    ):
        self.attendance_store = attendance_store
        self.day_off_store = day_off_store
        self.directory = directory

    def rollup(
        self,
        student_id: str,
        granularity: Granularity,
        start_iso: Optional[str] = None,
        end_iso: Optional[str] = None
    ) -> List[TimeBucket]:
        """
        Buckets for a student in ascending ``period_key`` order.

        Omitted bounds leave that side of the range open. Weekly buckets
        only aggregate days that fall inside the range.
        """
        granularity = Granularity(granularity)
        start = parse_iso_date(start_iso) if start_iso is not None else None
        end = parse_iso_date(end_iso) if end_iso is not None else None
        if start is not None and end is not None and start > end:
            raise InvalidRangeError(start, end)

        records = self.attendance_store.get_records(
            student_id,
            start.isoformat() if start else None,
            end.isoformat() if end else None
        ) or []
        if not records:
            return []

        group_id = self.directory.group_of(student_id) if self.directory else None
        scheduled_offs = self.day_off_store.list()

        buckets: Dict[str, Counter] = {}
        for record in records:
            day = parse_iso_date(record.date_iso)
            if start is not None and day < start:
                continue
            if end is not None and day > end:
                continue
            if not is_instructional_day(day, scheduled_offs, group_id):
                continue

            counts = buckets.setdefault(period_key(day, granularity), Counter())
            counts[status_field(record.status)] += 1
            if record.early_dismissal:
                counts["early_dismissal"] += 1

        return [build_bucket(key, buckets[key]) for key in sorted(buckets)]

    def year_to_date_summary(
        self,
        student_id: str,
        year: Optional[int] = None,
        today: Optional[str] = None
    ) -> YearToDateSummary:
        """
        Instructional-day totals from January 1 of ``year`` through the
        earlier of December 31 and ``today`` (defaults to the current date).
        """
        today_date = parse_iso_date(today) if today is not None else date.today()
        if year is None:
            year = today_date.year
        if isinstance(year, bool) or not isinstance(year, int) or not 1 <= year <= 9999:
            raise InvalidDateError(year)

        start = date(year, 1, 1)
        end = min(date(year, 12, 31), today_date)
        if end < start:
            # A future year has no records yet
            return YearToDateSummary(year=year, through_iso=end.isoformat())

        totals = summarize(
            self.rollup(student_id, Granularity.DAILY, start.isoformat(), end.isoformat())
        )
        return YearToDateSummary(year=year, through_iso=end.isoformat(), **totals.model_dump())

    def report(
        self,
        student_id: str,
        granularity: Granularity,
        start_iso: Optional[str] = None,
        end_iso: Optional[str] = None,
        year: Optional[int] = None
    ) -> ReportSummary:
        """Buckets for the range together with year-to-date totals."""
        buckets = self.rollup(student_id, granularity, start_iso, end_iso)
        ytd = self.year_to_date_summary(student_id, year)
        logger.debug(f"Report for {student_id}: {len(buckets)} {granularity} buckets")
        return ReportSummary(
            student_id=student_id,
            granularity=Granularity(granularity),
            start_iso=start_iso,
            end_iso=end_iso,
            buckets=buckets,
            ytd=ytd
        )

    # === RECORD LISTS ===

    def filter_attendance(
        self,
        last_name: Optional[str] = None,
        status: Optional[AttendanceStatus] = None,
        date_iso: Optional[str] = None,
        early_dismissal: Optional[bool] = None
    ) -> List[AttendanceRecord]:
        """
        Records across all students matching every given filter, ordered by
        date then student id. ``last_name`` matches case-insensitively and
        may resolve to several students.
        """
        student_ids = None
        if last_name:
            if self.directory is None:
                raise RuntimeError("Filtering by last name requires a StudentDirectory")
            student_ids = list(self.directory.student_ids_by_last_name(last_name))
            if not student_ids:
                return []

        return list(self.attendance_store.filter_records(
            student_ids=student_ids,
            status=AttendanceStatus(status) if status is not None else None,
            date_iso=parse_iso_date(date_iso).isoformat() if date_iso is not None else None,
            early_dismissal=early_dismissal
        ))

    def late_list(
        self,
        last_name: Optional[str] = None,
        date_iso: Optional[str] = None
    ) -> List[AttendanceRecord]:
        return self.filter_attendance(last_name, AttendanceStatus.LATE, date_iso)

    def early_dismissal_list(
        self,
        last_name: Optional[str] = None,
        date_iso: Optional[str] = None
    ) -> List[AttendanceRecord]:
        """Records flagged as early dismissals, whatever their status."""
        return self.filter_attendance(last_name, date_iso=date_iso, early_dismissal=True)
