"""
Test cases for threshold rule evaluation

Covers the rolling window, year-to-date totals, the >= boundary, reason
wording and evaluation idempotence.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import attendance_rollup.models  # noqa: F401
from attendance_rollup.core.database import Base
from attendance_rollup.core.exceptions import InvalidDateError
from attendance_rollup.models.attendance import AttendanceStatus
from attendance_rollup.models.schedule import DayOffReason
from attendance_rollup.models.student import Student
from attendance_rollup.repositories import AttendanceRepository, ScheduleRepository, StudentRepository
from attendance_rollup.schemas.alerts import AlertRuleSet, EvaluationMetrics
from attendance_rollup.schemas.attendance import AttendanceMark
from attendance_rollup.services.auto_excusal import AutoExcusalPropagator
from attendance_rollup.services.rollup import BucketAggregator
from attendance_rollup.services.threshold_evaluator import ThresholdRuleEvaluator, evaluate_metrics

REFERENCE = "2025-09-30"


@pytest.fixture
def db_session():
    """Create test database session"""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = SessionLocal()

    yield session

    session.close()


@pytest.fixture
def attendance_repo(db_session):
    return AttendanceRepository(db_session)


@pytest.fixture
def schedule_repo(db_session):
    return ScheduleRepository(db_session)


@pytest.fixture
def student_repo(db_session):
    repo = StudentRepository(db_session)
    repo.add(Student(id="s1", first_name="Ada", last_name="Lovelace"))
    return repo


@pytest.fixture
def evaluator(attendance_repo, schedule_repo, student_repo):
    return ThresholdRuleEvaluator(BucketAggregator(attendance_repo, schedule_repo, student_repo))


@pytest.fixture
def record(attendance_repo):
    def _record(dates, status, student_id="s1"):
        for date_iso in dates:
            attendance_repo.upsert(AttendanceMark(student_id=student_id, date_iso=date_iso, status=status))
    return _record


@pytest.fixture
def january_absences(record):
    """Five absences early in the year, outside the rolling window"""
    record(["2025-01-06", "2025-01-07", "2025-01-08", "2025-01-09", "2025-01-10"], AttendanceStatus.ABSENT)


class TestMetrics:
    """Test metric computation"""

    def test_no_records(self, evaluator):
        result = evaluator.evaluate("s1", REFERENCE, AlertRuleSet(absences30=1, absences_total=1))

        assert result.should_alert is False
        assert result.reasons == []
        assert result.metrics == EvaluationMetrics()

    def test_window_is_thirty_days_inclusive(self, evaluator, record):
        record(["2025-09-01", "2025-09-30"], AttendanceStatus.ABSENT)
        record(["2025-08-29"], AttendanceStatus.ABSENT)  # day 31, outside the window
        record(["2025-10-01"], AttendanceStatus.ABSENT)  # after the reference date

        metrics = evaluator.compute_metrics("s1", REFERENCE)

        assert metrics.absences30 == 2
        assert metrics.absences_total == 3

    def test_lates_and_totals(self, evaluator, record, january_absences):
        record(["2025-09-22", "2025-09-23"], AttendanceStatus.LATE)
        record(["2025-02-03"], AttendanceStatus.LATE)

        metrics = evaluator.compute_metrics("s1", REFERENCE)

        assert metrics == EvaluationMetrics(absences30=0, lates30=2, absences_total=5, lates_total=3)

    def test_excused_day_off_does_not_count(self, evaluator, record, attendance_repo, schedule_repo, student_repo):
        record(["2025-09-15", "2025-09-16"], AttendanceStatus.ABSENT)
        propagator = AutoExcusalPropagator(attendance_repo, schedule_repo, student_repo)
        propagator.apply_day_off(propagator.plan_day_off("2025-09-15", DayOffReason.HOLIDAY))

        metrics = evaluator.compute_metrics("s1", REFERENCE)

        assert metrics.absences30 == 1
        assert metrics.absences_total == 1


class TestThresholds:
    """Test threshold comparison"""

    def test_reaching_the_threshold_triggers(self, evaluator, record):
        record(["2025-09-01", "2025-09-02", "2025-09-03"], AttendanceStatus.ABSENT)

        result = evaluator.evaluate("s1", REFERENCE, AlertRuleSet(absences30=3))

        assert result.should_alert is True
        assert result.reasons == ["absences in last 30 days (3) >= threshold (3)"]

    def test_one_below_the_threshold_does_not(self, evaluator, record):
        record(["2025-09-01", "2025-09-02", "2025-09-03"], AttendanceStatus.ABSENT)

        result = evaluator.evaluate("s1", REFERENCE, AlertRuleSet(absences30=4))

        assert result.should_alert is False
        assert result.reasons == []

    def test_total_absences(self, evaluator, january_absences):
        result = evaluator.evaluate("s1", REFERENCE, AlertRuleSet(absences_total=5))

        assert result.should_alert is True
        assert "total absences (5) >= threshold (5)" in result.reasons

        raised = evaluator.evaluate("s1", REFERENCE, AlertRuleSet(absences_total=100))
        assert raised.should_alert is False

    def test_undefined_thresholds_are_not_evaluated(self, evaluator, january_absences):
        result = evaluator.evaluate("s1", REFERENCE, AlertRuleSet())

        assert result.should_alert is False
        assert result.metrics.absences_total == 5

    def test_zero_threshold_always_triggers(self, evaluator):
        result = evaluator.evaluate("s1", REFERENCE, AlertRuleSet(lates30=0))

        assert result.reasons == ["lates in last 30 days (0) >= threshold (0)"]

    def test_reasons_follow_a_fixed_order(self, evaluator, record, january_absences):
        record(["2025-09-29", "2025-09-30"], AttendanceStatus.LATE)
        record(["2025-09-26"], AttendanceStatus.ABSENT)
        rules = AlertRuleSet(lates_total=2, absences_total=6, lates30=2, absences30=1)

        result = evaluator.evaluate("s1", REFERENCE, rules)

        assert result.reasons == [
            "absences in last 30 days (1) >= threshold (1)",
            "lates in last 30 days (2) >= threshold (2)",
            "total absences (6) >= threshold (6)",
            "total lates (2) >= threshold (2)",
        ]
        assert [b.metric for b in result.breaches] == [
            "absences30", "lates30", "absences_total", "lates_total"
        ]

    def test_negative_thresholds_are_rejected(self):
        with pytest.raises(ValueError):
            AlertRuleSet(absences30=-1)

    def test_evaluate_metrics_is_pure(self):
        metrics = EvaluationMetrics(absences30=2, lates30=0, absences_total=9, lates_total=1)

        breaches = evaluate_metrics(metrics, AlertRuleSet(absences30=2, lates_total=2))

        assert [(b.metric, b.value, b.threshold) for b in breaches] == [("absences30", 2, 2)]


class TestEvaluationContract:
    """Test purity, idempotence and input validation"""

    def test_evaluation_is_idempotent(self, evaluator, record, attendance_repo, january_absences):
        record(["2025-09-10"], AttendanceStatus.LATE)
        rules = AlertRuleSet(absences30=1, absences_total=5, lates30=1)
        before = attendance_repo.get_records("s1")

        first = evaluator.evaluate("s1", REFERENCE, rules)
        second = evaluator.evaluate("s1", REFERENCE, rules)

        assert first == second
        assert (first.should_alert, first.reasons) == (second.should_alert, second.reasons)
        assert len(attendance_repo.get_records("s1")) == len(before)

    def test_invalid_reference_date(self, evaluator):
        with pytest.raises(InvalidDateError):
            evaluator.evaluate("s1", "2025-09-31", AlertRuleSet(absences30=1))

    def test_missing_reference_date_is_not_defaulted(self, evaluator):
        with pytest.raises(InvalidDateError):
            evaluator.evaluate("s1", None, AlertRuleSet(absences30=1))

    def test_evaluate_many(self, evaluator, record):
        record(["2025-09-17"], AttendanceStatus.ABSENT, student_id="s2")

        results = evaluator.evaluate_many(["s1", "s2"], REFERENCE, AlertRuleSet(absences30=1))

        assert [r.student_id for r in results] == ["s1", "s2"]
        assert [r.should_alert for r in results] == [False, True]

    def test_custom_window_length(self, attendance_repo, schedule_repo, record):
        record(["2025-09-22", "2025-09-30"], AttendanceStatus.ABSENT)
        evaluator = ThresholdRuleEvaluator(BucketAggregator(attendance_repo, schedule_repo), window_days=7)

        result = evaluator.evaluate("s1", REFERENCE, AlertRuleSet(absences30=1))

        assert result.metrics.absences30 == 1
        assert result.reasons == ["absences in last 7 days (1) >= threshold (1)"]

    def test_default_window_comes_from_settings(self, attendance_repo, schedule_repo):
        evaluator = ThresholdRuleEvaluator(BucketAggregator(attendance_repo, schedule_repo))

        assert evaluator.window_days == 30

    @pytest.mark.parametrize("window_days", [0, -7, True, 2.5])
    def test_window_must_be_positive(self, attendance_repo, schedule_repo, window_days):
        with pytest.raises(ValueError):
            ThresholdRuleEvaluator(BucketAggregator(attendance_repo, schedule_repo), window_days=window_days)
