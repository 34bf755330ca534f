from typing import Iterable, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from attendance_rollup.models.alerts import AlertThreshold, AttendanceAlert, AlertStatus


class AlertRepository:
    """Alert store over a synchronous SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, alert_id: str) -> Optional[AttendanceAlert]:
        return self.db.get(AttendanceAlert, alert_id)

    def find_active(self, student_id: str, threshold_id: str) -> Optional[AttendanceAlert]:
        return self.db.query(AttendanceAlert).filter(
            and_(
                AttendanceAlert.student_id == student_id,
                AttendanceAlert.threshold_id == threshold_id,
                AttendanceAlert.status == AlertStatus.ACTIVE
            )
        ).first()

    def add(self, alert: AttendanceAlert) -> AttendanceAlert:
        self.db.add(alert)
        self.db.commit()
        return alert

    def save(self, alert: AttendanceAlert) -> AttendanceAlert:
        self.db.commit()
        return alert

    def list(
        self,
        student_id: Optional[str] = None,
        statuses: Optional[Iterable[AlertStatus]] = None
    ) -> List[AttendanceAlert]:
        query = self.db.query(AttendanceAlert)
        if student_id is not None:
            query = query.filter(AttendanceAlert.student_id == student_id)
        if statuses is not None:
            query = query.filter(AttendanceAlert.status.in_(list(statuses)))
        return query.order_by(AttendanceAlert.created_at, AttendanceAlert.id).all()


class ThresholdRepository:
    """Alert threshold store over a synchronous SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, threshold_id: str) -> Optional[AlertThreshold]:
        return self.db.get(AlertThreshold, threshold_id)

    def add(self, threshold: AlertThreshold) -> AlertThreshold:
        self.db.add(threshold)
        self.db.commit()
        return threshold

    def save(self, threshold: AlertThreshold) -> AlertThreshold:
        self.db.commit()
        return threshold

    def list_for(self, student_id: Optional[str] = None) -> List[AlertThreshold]:
        """Global thresholds, plus the student's own when ``student_id`` is given."""
        query = self.db.query(AlertThreshold)
        if student_id is None:
            query = query.filter(AlertThreshold.student_id.is_(None))
        else:
            query = query.filter(
                or_(
                    AlertThreshold.student_id.is_(None),
                    AlertThreshold.student_id == student_id
                )
            )
        return query.order_by(AlertThreshold.created_at, AlertThreshold.id).all()
