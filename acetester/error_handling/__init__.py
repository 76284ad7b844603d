"""
Error taxonomy for AceTester runs.

Fatal categories end a run early; step and persistence failures are
captured into the result instead of crossing the caller boundary.
"""

from .exceptions import (
    AceTesterError,
    FatalRunError,
    ValidationError,
    PlanningError,
    SessionError,
    ReportError,
    StepFailure,
    PersistenceError,
)

__all__ = [
    "AceTesterError",
    "FatalRunError",
    "ValidationError",
    "PlanningError",
    "SessionError",
    "ReportError",
    "StepFailure",
    "PersistenceError",
]
