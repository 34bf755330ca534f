"""
Alert thresholds and the alerts they raise.
Thresholds are configured per school (global) or per student; an alert is
raised when a student's metric reaches a threshold and is only ever
status-transitioned afterwards, never deleted.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, Enum as SQLEnum, Index
from datetime import datetime
from typing import Optional
import enum

from attendance_rollup.core.database import Base
from attendance_rollup.schemas.alerts import AlertRuleSet


class AlertType(str, enum.Enum):
    """Kind of attendance problem a threshold watches."""
    ABSENCE = "ABSENCE"
    LATENESS = "LATENESS"


class AlertPeriod(str, enum.Enum):
    """Time span a threshold is measured over."""
    THIRTY_DAYS = "THIRTY_DAYS"  # rolling window ending at the reference date
    CUMULATIVE = "CUMULATIVE"  # year to date


class AlertStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    DISMISSED = "DISMISSED"


def rule_field_for(alert_type: AlertType, period: AlertPeriod) -> str:
    """Name of the AlertRuleSet field a (type, period) pair is compared against."""
    if alert_type == AlertType.ABSENCE:
        if period == AlertPeriod.THIRTY_DAYS:
            return "absences30"
        if period == AlertPeriod.CUMULATIVE:
            return "absences_total"
    elif alert_type == AlertType.LATENESS:
        if period == AlertPeriod.THIRTY_DAYS:
            return "lates30"
        if period == AlertPeriod.CUMULATIVE:
            return "lates_total"
    raise ValueError(f"Unsupported alert type/period: {alert_type}/{period}")


class AlertThreshold(Base):
    __tablename__ = "alert_thresholds"

    id = Column(String(64), primary_key=True)

    type = Column(SQLEnum(AlertType), nullable=False)
    period = Column(SQLEnum(AlertPeriod), nullable=False)
    count = Column(Integer, nullable=False)

    # None applies the threshold to every student
    student_id = Column(String(64), nullable=True, index=True)
    notify_parents = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    @property
    def rule_field(self) -> str:
        return rule_field_for(self.type, self.period)

    def to_rule_set(self) -> AlertRuleSet:
        """Rule set that evaluates this threshold and nothing else."""
        return AlertRuleSet(**{self.rule_field: self.count})

    def update(self, count: Optional[int] = None, notify_parents: Optional[bool] = None):
        if count is not None:
            self.count = count
        if notify_parents is not None:
            self.notify_parents = notify_parents
        self.updated_at = datetime.utcnow()


class AttendanceAlert(Base):
    """
    An alert raised for a student whose metric reached a threshold.
    At most one ACTIVE alert exists per (student_id, threshold_id).
    """
    __tablename__ = "attendance_alerts"
    __table_args__ = (
        Index("ix_attendance_alerts_student_threshold", "student_id", "threshold_id"),
    )

    id = Column(String(64), primary_key=True)

    student_id = Column(String(64), nullable=False, index=True)
    threshold_id = Column(String(64), nullable=False)

    type = Column(SQLEnum(AlertType), nullable=False)
    period = Column(SQLEnum(AlertPeriod), nullable=False)
    count = Column(Integer, nullable=False)
    notify_parents = Column(Boolean, nullable=False, default=False)

    # Status tracking
    status = Column(SQLEnum(AlertStatus), nullable=False, default=AlertStatus.ACTIVE)
    dismiss_reason = Column(Text, nullable=True)
    acknowledged_by = Column(String(64), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == AlertStatus.ACTIVE

    def update_count(self, count: int):
        self.count = count
        self.updated_at = datetime.utcnow()

    def dismiss(self, reason: Optional[str] = None) -> bool:
        """Mark alert as dismissed. Returns False when it was not active."""
        if not self.is_active:
            return False
        self.status = AlertStatus.DISMISSED
        self.dismiss_reason = reason
        self.updated_at = datetime.utcnow()
        return True

    def acknowledge(self, user_id: Optional[str] = None) -> bool:
        """Mark alert as acknowledged. Returns False when it was not active."""
        if not self.is_active:
            return False
        self.status = AlertStatus.ACKNOWLEDGED
        self.acknowledged_by = user_id
        self.updated_at = datetime.utcnow()
        return True

    def __repr__(self):
        return f"<AttendanceAlert {self.id} {self.student_id} {self.type} {self.status}>"
