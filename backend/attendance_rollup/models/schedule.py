"""
Scheduled days off (holidays, professional development, report card days).
A day off is planned first and becomes effective once applied.
"""
from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum
from datetime import datetime
import enum

from attendance_rollup.core.database import Base


class DayOffReason(str, enum.Enum):
    HOLIDAY = "HOLIDAY"
    PROF_DEV = "PROF_DEV"
    REPORT_CARD = "REPORT_CARD"
    OTHER = "OTHER"


class DayOffScope(str, enum.Enum):
    ALL_STUDENTS = "ALL_STUDENTS"
    GROUP = "GROUP"


class DayOffStatus(str, enum.Enum):
    PLANNED = "PLANNED"
    APPLIED = "APPLIED"


class ScheduledDayOff(Base):
    __tablename__ = "scheduled_days_off"

    id = Column(Integer, primary_key=True, index=True)

    date_iso = Column(String(10), nullable=False, unique=True, index=True)
    reason = Column(SQLEnum(DayOffReason), nullable=False, default=DayOffReason.OTHER)
    scope = Column(SQLEnum(DayOffScope), nullable=False, default=DayOffScope.ALL_STUDENTS)
    group_id = Column(String(64), nullable=True)  # set only when scope is GROUP

    status = Column(SQLEnum(DayOffStatus), nullable=False, default=DayOffStatus.PLANNED)
    applied_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def is_applied(self) -> bool:
        return self.status == DayOffStatus.APPLIED

    def covers(self, group_id=None) -> bool:
        """Whether this day off applies to a student in ``group_id``."""
        if self.scope == DayOffScope.ALL_STUDENTS:
            return True
        if self.scope == DayOffScope.GROUP:
            return group_id is not None and group_id == self.group_id
        raise ValueError(f"Unknown day-off scope: {self.scope}")

    def __repr__(self):
        return f"<ScheduledDayOff {self.date_iso} {self.reason} {self.status}>"
