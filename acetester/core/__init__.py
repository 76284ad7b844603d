"""
Core module exports.
"""

from acetester.core.interfaces import (
    BrowserDriver,
    LogFormatter,
    PageDriver,
    Planner,
    ReportStore,
    ReportSynthesizer,
)
from acetester.core.types import (
    ExecutionRecord,
    Outcome,
    PersistenceResult,
    PersistenceStatus,
    Plan,
    RunRequest,
    RunResult,
    RunState,
    SessionConfig,
    Step,
    StepCommand,
    StepFailed,
    StepSucceeded,
)

__all__ = [
    # Interfaces
    "PageDriver",
    "BrowserDriver",
    "Planner",
    "LogFormatter",
    "ReportSynthesizer",
    "ReportStore",
    # Types
    "StepCommand",
    "RunState",
    "Step",
    "Plan",
    "StepSucceeded",
    "StepFailed",
    "Outcome",
    "ExecutionRecord",
    "SessionConfig",
    "RunRequest",
    "RunResult",
    "PersistenceStatus",
    "PersistenceResult",
]
