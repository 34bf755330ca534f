from .attendance import AttendanceRecord, AttendanceStatus
from .schedule import ScheduledDayOff, DayOffReason, DayOffScope, DayOffStatus
from .student import Student
from .alerts import (
    AlertThreshold, AttendanceAlert, AlertType, AlertPeriod, AlertStatus, rule_field_for
)

__all__ = [
    "AttendanceRecord",
    "AttendanceStatus",
    "ScheduledDayOff",
    "DayOffReason",
    "DayOffScope",
    "DayOffStatus",
    "Student",
    "AlertThreshold",
    "AttendanceAlert",
    "AlertType",
    "AlertPeriod",
    "AlertStatus",
    "rule_field_for",
]
