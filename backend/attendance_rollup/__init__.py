"""
Attendance rollup and alert-rule evaluation engine.
"""

__version__ = "1.0.0"
