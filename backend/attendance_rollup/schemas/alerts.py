from pydantic import BaseModel, Field
from typing import Optional, List, Dict


class AlertRuleSet(BaseModel):
    """
    Thresholds to evaluate. A field left as None is not evaluated;
    there is no implicit default.
    """
    absences30: Optional[int] = Field(None, ge=0, description="Absences in the rolling window")
    lates30: Optional[int] = Field(None, ge=0, description="Lates in the rolling window")
    absences_total: Optional[int] = Field(None, ge=0, description="Absences year to date")
    lates_total: Optional[int] = Field(None, ge=0, description="Lates year to date")


class EvaluationMetrics(BaseModel):
    absences30: int = 0
    lates30: int = 0
    absences_total: int = 0
    lates_total: int = 0


class ThresholdBreach(BaseModel):
    metric: str
    value: int
    threshold: int
    reason: str


class EvaluationResult(BaseModel):
    student_id: str
    reference_date: str
    should_alert: bool
    reasons: List[str] = []
    metrics: EvaluationMetrics
    breaches: List[ThresholdBreach] = []


class AlertProcessingResult(BaseModel):
    student_id: str
    processed: int = 0
    triggered: int = 0
    alert_ids: List[str] = []
    errors: List[Dict[str, str]] = []
