from .calendar_policy import CalendarPolicy, parse_iso_date, is_weekend, is_instructional_day
from .auto_excusal import AutoExcusalPropagator, AttendanceMarker
from .rollup import BucketAggregator
from .threshold_evaluator import ThresholdRuleEvaluator
from .alert_lifecycle import AlertLifecycleService

__all__ = [
    "CalendarPolicy",
    "parse_iso_date",
    "is_weekend",
    "is_instructional_day",
    "AutoExcusalPropagator",
    "AttendanceMarker",
    "BucketAggregator",
    "ThresholdRuleEvaluator",
    "AlertLifecycleService",
]
