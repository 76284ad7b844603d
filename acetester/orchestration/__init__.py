"""
Orchestration components for a single test run.
"""

from acetester.orchestration.coordinator import RunCoordinator, RunTrace
from acetester.orchestration.executor import StepExecutor
from acetester.orchestration.log_aggregator import LogAggregator, describe_outcome

__all__ = [
    "RunCoordinator",
    "RunTrace",
    "StepExecutor",
    "LogAggregator",
    "describe_outcome",
]
