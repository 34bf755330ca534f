"""
Collaborator contracts consumed by the engine.

The engine only reads and writes through these protocols; the SQLAlchemy
repositories in this package are the shipped implementations. Upserts must
be atomic per (student_id, date_iso) key.
"""
from typing import Iterable, List, Optional, Protocol, Sequence

from attendance_rollup.models.attendance import AttendanceRecord, AttendanceStatus
from attendance_rollup.models.schedule import ScheduledDayOff
from attendance_rollup.models.alerts import AlertThreshold, AttendanceAlert, AlertStatus
from attendance_rollup.schemas.attendance import AttendanceMark


class AttendanceStore(Protocol):
    def get_records(
        self,
        student_id: str,
        start_iso: Optional[str] = None,
        end_iso: Optional[str] = None
    ) -> Sequence[AttendanceRecord]:
        ...

    def upsert(self, mark: AttendanceMark) -> AttendanceRecord:
        ...

    def filter_records(
        self,
        student_ids: Optional[Iterable[str]] = None,
        status: Optional[AttendanceStatus] = None,
        date_iso: Optional[str] = None,
        early_dismissal: Optional[bool] = None
    ) -> Sequence[AttendanceRecord]:
        ...


class DayOffStore(Protocol):
    def list(self) -> Sequence[ScheduledDayOff]:
        ...

    def get(self, date_iso: str) -> Optional[ScheduledDayOff]:
        ...

    def add(self, day_off: ScheduledDayOff) -> ScheduledDayOff:
        ...

    def mark_applied(self, date_iso: str) -> None:
        ...


class StudentDirectory(Protocol):
    def all_student_ids(self) -> Sequence[str]:
        ...

    def student_ids_in_group(self, group_id: str) -> Sequence[str]:
        ...

    def group_of(self, student_id: str) -> Optional[str]:
        ...

    def exists(self, student_id: str) -> bool:
        ...

    def student_ids_by_last_name(self, last_name: str) -> Sequence[str]:
        ...


class AlertStore(Protocol):
    def get(self, alert_id: str) -> Optional[AttendanceAlert]:
        ...

    def find_active(self, student_id: str, threshold_id: str) -> Optional[AttendanceAlert]:
        ...

    def add(self, alert: AttendanceAlert) -> AttendanceAlert:
        ...

    def save(self, alert: AttendanceAlert) -> AttendanceAlert:
        ...

    def list(
        self,
        student_id: Optional[str] = None,
        statuses: Optional[Iterable[AlertStatus]] = None
    ) -> List[AttendanceAlert]:
        ...


class ThresholdStore(Protocol):
    def get(self, threshold_id: str) -> Optional[AlertThreshold]:
        ...

    def add(self, threshold: AlertThreshold) -> AlertThreshold:
        ...

    def save(self, threshold: AlertThreshold) -> AlertThreshold:
        ...

    def list_for(self, student_id: Optional[str] = None) -> List[AlertThreshold]:
        ...
