"""
AI collaborator exports.
"""

from acetester.agents.base_agent import BaseAgent
from acetester.agents.log_formatter import ActionLogFormatterAgent
from acetester.agents.planner import StepPlannerAgent
from acetester.agents.report_synthesizer import TestingReportAgent

__all__ = [
    "BaseAgent",
    "StepPlannerAgent",
    "ActionLogFormatterAgent",
    "TestingReportAgent",
]
