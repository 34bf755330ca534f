"""
Threshold rule evaluation.

Computes rolling-window and year-to-date absence/lateness counts for a
student and compares them against an explicit AlertRuleSet. Evaluation has
no side effects; creating alerts from the result is up to the caller.
"""
import logging
from datetime import timedelta
from typing import Iterable, List, Optional

from attendance_rollup.core.config import settings
from attendance_rollup.schemas.alerts import (
    AlertRuleSet, EvaluationMetrics, EvaluationResult, ThresholdBreach
)
from attendance_rollup.schemas.attendance import Granularity
from attendance_rollup.services.calendar_policy import parse_iso_date
from attendance_rollup.services.rollup import BucketAggregator, summarize

logger = logging.getLogger(__name__)

# Evaluation order and reason wording for each rule field
RULE_LABELS = (
    ("absences30", "absences in last {days} days"),
    ("lates30", "lates in last {days} days"),
    ("absences_total", "total absences"),
    ("lates_total", "total lates"),
)


def evaluate_metrics(
    metrics: EvaluationMetrics,
    rules: AlertRuleSet,
    window_days: int = 30
) -> List[ThresholdBreach]:
    """
    Compare metrics with every defined threshold. Reaching a threshold
    triggers (``>=``); undefined thresholds are skipped.
    """
    breaches = []
    for field, label in RULE_LABELS:
        threshold = getattr(rules, field)
        if threshold is None:
            continue
        value = getattr(metrics, field)
        if value >= threshold:
            breaches.append(
                ThresholdBreach(
                    metric=field,
                    value=value,
                    threshold=threshold,
                    reason=f"{label.format(days=window_days)} ({value}) >= threshold ({threshold})"
                )
            )
    return breaches


class ThresholdRuleEvaluator:
    """Evaluates alert rules for students over the bucket aggregator."""

    def __init__(self, aggregator: BucketAggregator, window_days: Optional[int] = None):
        self.aggregator = aggregator
        if window_days is None:
            window_days = settings.ROLLING_WINDOW_DAYS
        if isinstance(window_days, bool) or not isinstance(window_days, int) or window_days <= 0:
            raise ValueError(f"window_days must be a positive integer, got {window_days!r}")
        self.window_days = window_days

    def compute_metrics(self, student_id: str, reference_date_iso: str) -> EvaluationMetrics:
        reference = parse_iso_date(reference_date_iso)
        window_start = reference - timedelta(days=self.window_days - 1)

        window = summarize(
            self.aggregator.rollup(
                student_id,
                Granularity.DAILY,
                window_start.isoformat(),
                reference.isoformat()
            )
        )
        ytd = self.aggregator.year_to_date_summary(
            student_id, year=reference.year, today=reference.isoformat()
        )

        return EvaluationMetrics(
            absences30=window.absent,
            lates30=window.late,
            absences_total=ytd.absent,
            lates_total=ytd.late
        )

    def evaluate(
        self,
        student_id: str,
        reference_date_iso: str,
        rules: AlertRuleSet
    ) -> EvaluationResult:
        """Decide whether ``student_id`` should be alerted as of the reference date."""
        reference = parse_iso_date(reference_date_iso)
        metrics = self.compute_metrics(student_id, reference.isoformat())
        breaches = evaluate_metrics(metrics, rules, self.window_days)

        if breaches:
            logger.info(
                f"Student {student_id} breached {len(breaches)} threshold(s) as of {reference.isoformat()}"
            )

        return EvaluationResult(
            student_id=student_id,
            reference_date=reference.isoformat(),
            should_alert=len(breaches) > 0,
            reasons=[breach.reason for breach in breaches],
            metrics=metrics,
            breaches=breaches
        )

    def evaluate_many(
        self,
        student_ids: Iterable[str],
        reference_date_iso: str,
        rules: AlertRuleSet
    ) -> List[EvaluationResult]:
        reference = parse_iso_date(reference_date_iso).isoformat()
        return [self.evaluate(student_id, reference, rules) for student_id in student_ids]
