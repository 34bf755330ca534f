from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from enum import Enum

from attendance_rollup.models.attendance import AttendanceStatus
from attendance_rollup.models.schedule import DayOffReason, DayOffScope


class Granularity(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class AttendanceMark(BaseModel):
    """A requested attendance write, before the day-off guard runs."""
    student_id: str = Field(..., min_length=1)
    date_iso: str = Field(..., description="YYYY-MM-DD")
    status: AttendanceStatus
    early_dismissal: bool = False


class DayOffRequest(BaseModel):
    date_iso: str = Field(..., description="YYYY-MM-DD")
    reason: DayOffReason = DayOffReason.OTHER
    scope: DayOffScope = DayOffScope.ALL_STUDENTS
    group_id: Optional[str] = None

    @model_validator(mode="after")
    def group_required_for_group_scope(self):
        if self.scope == DayOffScope.GROUP and not self.group_id:
            raise ValueError("group_id is required when scope is GROUP")
        return self


class StatusCounts(BaseModel):
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
    early_dismissal: int = 0


class TimeBucket(StatusCounts):
    period_key: str
    total: int = 0
    rate: float = 0.0


class YearToDateSummary(StatusCounts):
    year: int
    through_iso: str


class ReportSummary(BaseModel):
    student_id: str
    granularity: Granularity
    start_iso: Optional[str] = None
    end_iso: Optional[str] = None
    buckets: List[TimeBucket] = []
    ytd: YearToDateSummary
