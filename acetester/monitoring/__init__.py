"""
Monitoring module exports.
"""

from acetester.monitoring.logger import (
    ContextLogAdapter,
    JSONFormatter,
    SanitizingHandler,
    get_logger,
    log_performance_metric,
    log_run_event,
    setup_logging,
)
from acetester.monitoring.report_store import FileReportStore

__all__ = [
    # Logger
    "setup_logging",
    "get_logger",
    "log_run_event",
    "log_performance_metric",
    "JSONFormatter",
    "SanitizingHandler",
    "ContextLogAdapter",

    # Reports
    "FileReportStore",
]
