"""
Exception hierarchy for the attendance rollup engine.

Validation errors are raised where bad input is detected and propagate to
the caller; "no data" is never an error.
"""
from datetime import date
from typing import Any, Optional, Union


class AttendanceEngineError(Exception):
    """Base exception for attendance engine errors."""
    pass


class InvalidDateError(AttendanceEngineError, ValueError):
    """Raised when a value is not a valid ISO calendar date (YYYY-MM-DD)."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f'Invalid ISO date (YYYY-MM-DD): "{value}"')


class InvalidRangeError(AttendanceEngineError, ValueError):
    """Raised when a query range starts after it ends."""

    def __init__(self, start: Union[str, date], end: Union[str, date]):
        self.start = str(start)
        self.end = str(end)
        super().__init__(f"Invalid date range: start {self.start} is after end {self.end}")


class NotFoundError(AttendanceEngineError, LookupError):
    """Raised when a referenced alert or threshold does not exist."""

    def __init__(self, entity: str, entity_id: Optional[str]):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidThresholdError(AttendanceEngineError, ValueError):
    """Raised when an alert threshold definition fails validation."""
    pass
