from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from attendance_rollup.models.schedule import ScheduledDayOff, DayOffStatus


class ScheduleRepository:
    """Scheduled day-off store over a synchronous SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def list(self) -> List[ScheduledDayOff]:
        return self.db.query(ScheduledDayOff).order_by(ScheduledDayOff.date_iso).all()

    def get(self, date_iso: str) -> Optional[ScheduledDayOff]:
        return self.db.query(ScheduledDayOff).filter(
            ScheduledDayOff.date_iso == date_iso
        ).first()

    def add(self, day_off: ScheduledDayOff) -> ScheduledDayOff:
        self.db.add(day_off)
        self.db.commit()
        return day_off

    def mark_applied(self, date_iso: str) -> None:
        day_off = self.get(date_iso)
        if day_off is None:
            return
        if day_off.status != DayOffStatus.APPLIED:
            day_off.status = DayOffStatus.APPLIED
            day_off.applied_at = datetime.utcnow()
        self.db.commit()
