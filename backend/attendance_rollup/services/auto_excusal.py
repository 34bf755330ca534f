"""
Auto-excusal of scheduled days off.

Applying a day off writes an EXCUSED record for every student it covers,
overwriting whatever was recorded before. Afterwards every attendance write
goes through ``guard_write`` so that a day off can never hold anything but
EXCUSED.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from attendance_rollup.core.exceptions import InvalidDateError
from attendance_rollup.models.attendance import AttendanceRecord, AttendanceStatus
from attendance_rollup.models.schedule import (
    ScheduledDayOff, DayOffReason, DayOffScope, DayOffStatus
)
from attendance_rollup.repositories.base import AttendanceStore, DayOffStore, StudentDirectory
from attendance_rollup.schemas.attendance import AttendanceMark, DayOffRequest
from attendance_rollup.services.calendar_policy import parse_iso_date, find_day_off

logger = logging.getLogger(__name__)


class AutoExcusalPropagator:
    """Plans and applies scheduled days off, and guards writes on them."""

    def __init__(
        self,
        attendance_store: AttendanceStore,
        day_off_store: DayOffStore,
        directory: StudentDirectory
    ):
        self.attendance_store = attendance_store
        self.day_off_store = day_off_store
        self.directory = directory

    def plan_day_off(
        self,
        date_iso: str,
        reason: DayOffReason = DayOffReason.OTHER,
        scope: DayOffScope = DayOffScope.ALL_STUDENTS,
        group_id: Optional[str] = None
    ) -> ScheduledDayOff:
        """
        Record a PLANNED day off. Planning a date that already has one
        returns the existing entry unchanged.
        """
        date_iso = parse_iso_date(date_iso).isoformat()
        request = DayOffRequest(date_iso=date_iso, reason=reason, scope=scope, group_id=group_id)

        existing = self.day_off_store.get(date_iso)
        if existing is not None:
            logger.info(f"Day off already scheduled for {date_iso} ({existing.reason.value})")
            return existing

        day_off = ScheduledDayOff(
            date_iso=request.date_iso,
            reason=request.reason,
            scope=request.scope,
            group_id=request.group_id if request.scope == DayOffScope.GROUP else None,
            status=DayOffStatus.PLANNED
        )
        self.day_off_store.add(day_off)
        logger.info(f"Planned {request.reason.value} day off on {date_iso} for {request.scope.value}")
        return day_off

    def students_in_scope(
        self,
        day_off: ScheduledDayOff,
        student_ids: Optional[Iterable[str]] = None
    ) -> List[str]:
        """Student ids the day off applies to, narrowed from ``student_ids`` if given."""
        if day_off.scope == DayOffScope.ALL_STUDENTS:
            if student_ids is None:
                return list(self.directory.all_student_ids())
            return list(dict.fromkeys(student_ids))
        if day_off.scope == DayOffScope.GROUP:
            if student_ids is None:
                return list(self.directory.student_ids_in_group(day_off.group_id))
            return [
                student_id for student_id in dict.fromkeys(student_ids)
                if self.directory.group_of(student_id) == day_off.group_id
            ]
        raise ValueError(f"Unknown day-off scope: {day_off.scope}")

    def apply_day_off(
        self,
        scheduled_off: ScheduledDayOff,
        all_student_ids: Optional[Iterable[str]] = None
    ) -> int:
        """
        Write EXCUSED for every covered student on the day off and mark it
        APPLIED. Safe to call again: students added since the last run get
        their EXCUSED record, existing ones are re-asserted.

        Returns the number of records written.
        """
        date_iso = parse_iso_date(scheduled_off.date_iso).isoformat()
        if self.day_off_store.get(date_iso) is None:
            self.day_off_store.add(scheduled_off)

        student_ids = self.students_in_scope(scheduled_off, all_student_ids)
        for student_id in student_ids:
            # Prior PRESENT/LATE/ABSENT marks are overwritten on purpose
            self.attendance_store.upsert(
                AttendanceMark(
                    student_id=student_id,
                    date_iso=date_iso,
                    status=AttendanceStatus.EXCUSED,
                    early_dismissal=False
                )
            )

        already_applied = scheduled_off.status == DayOffStatus.APPLIED
        self.day_off_store.mark_applied(date_iso)

        logger.info(
            f"{'Re-applied' if already_applied else 'Applied'} day off {date_iso}: "
            f"{len(student_ids)} students excused"
        )
        return len(student_ids)

    def apply_planned(self) -> Dict[str, int]:
        """Apply every day off that is still PLANNED. Returns date -> records written."""
        results = {}
        for day_off in self.day_off_store.list():
            if day_off.status == DayOffStatus.PLANNED:
                results[day_off.date_iso] = self.apply_day_off(day_off)
        return results

    def guard_write(self, mark: AttendanceMark) -> AttendanceMark:
        """
        Coerce a requested write to EXCUSED when its date is a scheduled day
        off covering the student. Must be consulted before every write.
        """
        date_iso = parse_iso_date(mark.date_iso).isoformat()
        group_id = self.directory.group_of(mark.student_id)
        day_off = find_day_off(date_iso, self.day_off_store.list(), group_id)
        if day_off is None:
            return mark

        if mark.status != AttendanceStatus.EXCUSED or mark.early_dismissal:
            logger.info(
                f"Coercing {mark.status.value} to EXCUSED for {mark.student_id} on "
                f"{date_iso} ({day_off.reason.value} day off)"
            )
        return mark.model_copy(
            update={
                "date_iso": date_iso,
                "status": AttendanceStatus.EXCUSED,
                "early_dismissal": False
            }
        )


class AttendanceMarker:
    """Attendance-marking path. Every write is passed through the day-off guard."""

    def __init__(self, attendance_store: AttendanceStore, propagator: AutoExcusalPropagator):
        self.attendance_store = attendance_store
        self.propagator = propagator

    def mark(
        self,
        student_id: str,
        date_iso: str,
        status: AttendanceStatus,
        early_dismissal: bool = False
    ) -> AttendanceRecord:
        requested = AttendanceMark(
            student_id=student_id,
            date_iso=date_iso,
            status=status,
            early_dismissal=early_dismissal
        )
        return self.attendance_store.upsert(self.propagator.guard_write(requested))

    def mark_bulk(
        self,
        date_iso: str,
        status: AttendanceStatus,
        student_ids: Iterable[str],
        early_dismissal: bool = False
    ) -> Dict[str, Any]:
        """
        Mark the same status for several students on one date.
        An invalid date fails the whole call; per-student failures are collected.
        """
        parse_iso_date(date_iso)

        processed_count = 0
        failed_count = 0
        failed_students = []

        for student_id in student_ids:
            try:
                self.mark(student_id, date_iso, status, early_dismissal)
                processed_count += 1
            except InvalidDateError:
                raise
            except ValueError as e:
                failed_count += 1
                failed_students.append({"student_id": student_id, "error": str(e)})
                logger.error(f"Failed to mark {student_id} on {date_iso}: {e}")

        return {
            "processed_count": processed_count,
            "failed_count": failed_count,
            "failed_students": failed_students
        }
