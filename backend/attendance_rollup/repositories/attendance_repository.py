"""
SQLAlchemy-backed attendance store.
Writes are upserts keyed by (student_id, date_iso).
"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from attendance_rollup.models.attendance import AttendanceRecord, AttendanceStatus
from attendance_rollup.schemas.attendance import AttendanceMark

logger = logging.getLogger(__name__)


class AttendanceRepository:
    """Attendance store over a synchronous SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def find(self, student_id: str, date_iso: str) -> Optional[AttendanceRecord]:
        return self.db.query(AttendanceRecord).filter(
            and_(
                AttendanceRecord.student_id == student_id,
                AttendanceRecord.date_iso == date_iso
            )
        ).first()

    def get_records(
        self,
        student_id: str,
        start_iso: Optional[str] = None,
        end_iso: Optional[str] = None
    ) -> List[AttendanceRecord]:
        """Records for a student in ascending date order, optionally bounded."""
        query = self.db.query(AttendanceRecord).filter(
            AttendanceRecord.student_id == student_id
        )
        # ISO dates compare correctly as strings
        if start_iso is not None:
            query = query.filter(AttendanceRecord.date_iso >= start_iso)
        if end_iso is not None:
            query = query.filter(AttendanceRecord.date_iso <= end_iso)
        return query.order_by(AttendanceRecord.date_iso).all()

    def get_records_for_date(self, date_iso: str) -> List[AttendanceRecord]:
        return self.db.query(AttendanceRecord).filter(
            AttendanceRecord.date_iso == date_iso
        ).order_by(AttendanceRecord.student_id).all()

    def filter_records(
        self,
        student_ids: Optional[Iterable[str]] = None,
        status: Optional[AttendanceStatus] = None,
        date_iso: Optional[str] = None,
        early_dismissal: Optional[bool] = None
    ) -> List[AttendanceRecord]:
        """Records across students, ordered by date then student id."""
        query = self.db.query(AttendanceRecord)
        if student_ids is not None:
            query = query.filter(AttendanceRecord.student_id.in_(list(student_ids)))
        if status is not None:
            query = query.filter(AttendanceRecord.status == status)
        if date_iso is not None:
            query = query.filter(AttendanceRecord.date_iso == date_iso)
        if early_dismissal is not None:
            query = query.filter(AttendanceRecord.early_dismissal == early_dismissal)
        return query.order_by(AttendanceRecord.date_iso, AttendanceRecord.student_id).all()

    def upsert(self, mark: AttendanceMark) -> AttendanceRecord:
        """Insert or replace the record for (student_id, date_iso)."""
        try:
            record = self._apply(mark)
            self.db.commit()
        except IntegrityError:
            # A concurrent writer inserted the same key first; overwrite it.
            self.db.rollback()
            logger.warning(
                f"Concurrent insert for {mark.student_id} on {mark.date_iso}, retrying as update"
            )
            record = self._apply(mark)
            self.db.commit()
        return record

    def _apply(self, mark: AttendanceMark) -> AttendanceRecord:
        record = self.find(mark.student_id, mark.date_iso)
        if record is None:
            record = AttendanceRecord(
                student_id=mark.student_id,
                date_iso=mark.date_iso,
                status=mark.status,
                early_dismissal=mark.early_dismissal
            )
            self.db.add(record)
        else:
            record.status = mark.status
            record.early_dismissal = mark.early_dismissal
            record.updated_at = datetime.utcnow()
        self.db.flush()
        return record
