from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum as SQLEnum, UniqueConstraint
from datetime import datetime
import enum

from attendance_rollup.core.database import Base


class AttendanceStatus(str, enum.Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    EXCUSED = "EXCUSED"


class AttendanceRecord(Base):
    """One attendance mark per student per calendar day."""
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("student_id", "date_iso", name="uq_attendance_records_student_date"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Natural key
    student_id = Column(String(64), nullable=False, index=True)
    date_iso = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD

    # Attendance details
    status = Column(SQLEnum(AttendanceStatus), nullable=False)
    early_dismissal = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<AttendanceRecord {self.student_id} {self.date_iso} {self.status}>"
