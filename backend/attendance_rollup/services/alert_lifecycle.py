"""
Alert lifecycle: threshold management, alert creation with per
(student, threshold) deduplication, acknowledgement and dismissal.

States: ACTIVE -> ACKNOWLEDGED | DISMISSED. There is no way back to ACTIVE;
a later breach raises a new alert.
"""
import logging
import uuid
from typing import Iterable, List, Optional

from attendance_rollup.core.config import settings
from attendance_rollup.core.exceptions import NotFoundError, InvalidThresholdError
from attendance_rollup.models.alerts import (
    AlertThreshold, AttendanceAlert, AlertType, AlertPeriod, AlertStatus
)
from attendance_rollup.repositories.base import AlertStore, ThresholdStore, StudentDirectory
from attendance_rollup.schemas.alerts import AlertProcessingResult
from attendance_rollup.services.calendar_policy import parse_iso_date
from attendance_rollup.services.threshold_evaluator import ThresholdRuleEvaluator, evaluate_metrics

logger = logging.getLogger(__name__)


def generate_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class AlertLifecycleService:
    """Creates and transitions attendance alerts."""

    def __init__(
        self,
        alert_store: AlertStore,
        threshold_store: ThresholdStore,
        evaluator: Optional[ThresholdRuleEvaluator] = None,
        directory: Optional[StudentDirectory] = None
    ):
        self.alert_store = alert_store
        self.threshold_store = threshold_store
        self.evaluator = evaluator
        self.directory = directory

    # === THRESHOLDS ===

    def save_threshold(
        self,
        type: AlertType,
        period: AlertPeriod,
        count: int,
        student_id: Optional[str] = None,
        notify_parents: bool = False,
        threshold_id: Optional[str] = None
    ) -> AlertThreshold:
        """Create a threshold, or update count/notify_parents of an existing one."""
        try:
            type = AlertType(type)
            period = AlertPeriod(period)
        except ValueError as e:
            raise InvalidThresholdError(str(e)) from e
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise InvalidThresholdError(f"Threshold count must be a non-negative integer, got {count!r}")
        if student_id is not None and self.directory is not None and not self.directory.exists(student_id):
            raise InvalidThresholdError(f"Student with ID {student_id} not found")

        if threshold_id is not None:
            existing = self.threshold_store.get(threshold_id)
            if existing is not None:
                if existing.type != type or existing.period != period:
                    raise InvalidThresholdError(
                        f"Threshold {threshold_id} is {existing.type.value}/{existing.period.value}; "
                        "type and period cannot change"
                    )
                existing.update(count=count, notify_parents=notify_parents)
                return self.threshold_store.save(existing)

        threshold = AlertThreshold(
            id=threshold_id or generate_id(settings.THRESHOLD_ID_PREFIX),
            type=type,
            period=period,
            count=count,
            student_id=student_id,
            notify_parents=notify_parents
        )
        self.threshold_store.add(threshold)
        logger.info(f"Saved {type.value}/{period.value} threshold {threshold.id} at {count}")
        return threshold

    def get_threshold(self, threshold_id: str) -> AlertThreshold:
        threshold = self.threshold_store.get(threshold_id)
        if threshold is None:
            raise NotFoundError("Threshold", threshold_id)
        return threshold

    def thresholds_for(self, student_id: str) -> List[AlertThreshold]:
        """
        Thresholds that apply to the student. Within each period the
        student's own thresholds replace the global ones; periods without
        an override fall back to the global thresholds.
        """
        candidates = self.threshold_store.list_for(student_id)
        applicable = []
        for period in AlertPeriod:
            in_period = [t for t in candidates if t.period == period]
            own = [t for t in in_period if t.student_id == student_id]
            applicable.extend(own or [t for t in in_period if t.student_id is None])
        return applicable

    # === ALERTS ===

    def raise_alert(
        self,
        student_id: str,
        threshold: AlertThreshold,
        count: int
    ) -> AttendanceAlert:
        """
        Creation hook for a detected breach. An ACTIVE alert for the same
        (student, threshold) is refreshed instead of duplicated.
        """
        existing = self.alert_store.find_active(student_id, threshold.id)
        if existing is not None:
            if existing.count != count:
                existing.update_count(count)
                self.alert_store.save(existing)
            return existing

        alert = AttendanceAlert(
            id=generate_id(settings.ALERT_ID_PREFIX),
            student_id=student_id,
            threshold_id=threshold.id,
            type=threshold.type,
            period=threshold.period,
            count=count,
            status=AlertStatus.ACTIVE,
            notify_parents=threshold.notify_parents
        )
        self.alert_store.add(alert)
        logger.info(
            f"Raised {threshold.type.value} alert {alert.id} for {student_id} "
            f"({count} >= {threshold.count})"
        )
        return alert

    def process_student(self, student_id: str, reference_date_iso: str) -> AlertProcessingResult:
        """
        Evaluate every threshold that applies to the student and raise
        alerts for the breached ones.
        """
        if self.evaluator is None:
            raise RuntimeError("process_student requires a ThresholdRuleEvaluator")

        reference = parse_iso_date(reference_date_iso).isoformat()
        metrics = self.evaluator.compute_metrics(student_id, reference)
        result = AlertProcessingResult(student_id=student_id)

        for threshold in self.thresholds_for(student_id):
            result.processed += 1
            try:
                breaches = evaluate_metrics(
                    metrics, threshold.to_rule_set(), self.evaluator.window_days
                )
            except ValueError as e:
                result.errors.append({"threshold_id": threshold.id, "error": str(e)})
                logger.error(f"Could not evaluate threshold {threshold.id}: {e}")
                continue

            if breaches:
                alert = self.raise_alert(student_id, threshold, breaches[0].value)
                result.triggered += 1
                result.alert_ids.append(alert.id)

        return result

    def process_students(
        self,
        student_ids: Iterable[str],
        reference_date_iso: str
    ) -> List[AlertProcessingResult]:
        return [self.process_student(student_id, reference_date_iso) for student_id in student_ids]

    def get_alert(self, alert_id: str) -> AttendanceAlert:
        alert = self.alert_store.get(alert_id)
        if alert is None:
            logger.warning(f"Alert {alert_id} not found")
            raise NotFoundError("Alert", alert_id)
        return alert

    def list_alerts(
        self,
        student_id: Optional[str] = None,
        statuses: Optional[Iterable[AlertStatus]] = None
    ) -> List[AttendanceAlert]:
        """Alerts matching the filters; only ACTIVE ones unless statuses are given."""
        if not statuses:
            statuses = [AlertStatus.ACTIVE]
        return self.alert_store.list(student_id=student_id, statuses=statuses)

    def dismiss(self, alert_id: str, reason: Optional[str] = None) -> AttendanceAlert:
        """Dismiss an ACTIVE alert. Alerts in any other state are left unchanged."""
        alert = self.get_alert(alert_id)
        if alert.dismiss(reason):
            self.alert_store.save(alert)
            logger.info(f"Dismissed alert {alert_id}")
        return alert

    def acknowledge(self, alert_id: str, acknowledged_by: Optional[str] = None) -> AttendanceAlert:
        """Acknowledge an ACTIVE alert. Alerts in any other state are left unchanged."""
        alert = self.get_alert(alert_id)
        if alert.acknowledge(acknowledged_by):
            self.alert_store.save(alert)
            logger.info(f"Alert {alert_id} acknowledged by {acknowledged_by}")
        return alert
