from .base import (
    AttendanceStore, DayOffStore, StudentDirectory, AlertStore, ThresholdStore
)
from .attendance_repository import AttendanceRepository
from .schedule_repository import ScheduleRepository
from .student_repository import StudentRepository
from .alert_repository import AlertRepository, ThresholdRepository

__all__ = [
    "AttendanceStore",
    "DayOffStore",
    "StudentDirectory",
    "AlertStore",
    "ThresholdStore",
    "AttendanceRepository",
    "ScheduleRepository",
    "StudentRepository",
    "AlertRepository",
    "ThresholdRepository",
]
