"""
Tests for AceTester logging utilities.
"""

import io
import json
import logging

import pytest
from rich.logging import RichHandler

from acetester.monitoring.logger import (
    ContextLogAdapter,
    JSONFormatter,
    SanitizingHandler,
    get_logger,
    log_performance_metric,
    log_run_event,
    setup_logging,
)
from acetester.security.sanitizer import get_sanitizer


@pytest.fixture()
def restore_root_logger():
    """Undo handler changes made by setup_logging."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="acetester.orchestration.executor",
        level=logging.INFO,
        pathname=__file__,
        lineno=12,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_run_context() -> None:
    """Context fields attached by adapters should surface in JSON output."""
    formatter = JSONFormatter(sanitize=False)
    record = _record("Step failed", run_id="run-1", step_index=3, command="click")

    data = json.loads(formatter.format(record))

    assert data["message"] == "Step failed"
    assert data["level"] == "INFO"
    assert data["logger"] == "acetester.orchestration.executor"
    assert data["run_id"] == "run-1"
    assert data["step_index"] == 3
    assert data["command"] == "click"
    assert "session_id" not in data


def test_json_formatter_sanitizes_registered_secrets() -> None:
    """Registered credentials never reach the JSON output."""
    sanitizer = get_sanitizer()
    sanitizer.register_secret("hunter22")
    try:
        output = JSONFormatter(sanitize=True).format(_record("typed hunter22 into #password"))
    finally:
        sanitizer.forget_secret("hunter22")

    assert "hunter22" not in output
    assert "[SECRET]" in output


def test_sanitizing_handler_wraps_target() -> None:
    """Records reach the wrapped handler already sanitized."""
    emitted = []

    class ListHandler(logging.Handler):
        def emit(self, record):
            emitted.append(record.getMessage())

    handler = SanitizingHandler(ListHandler())
    handler.emit(_record("Authorization: Bearer abc123"))

    assert emitted == ["Authorization: Bearer [REDACTED]"]


def test_get_logger_with_context_returns_adapter(caplog) -> None:
    """Context passed to get_logger is added to each record."""
    logger = get_logger("acetester.test", run_id="run-9")
    assert isinstance(logger, ContextLogAdapter)

    with caplog.at_level(logging.INFO):
        logger.info("hello", extra={"step_index": 1})

    record = caplog.records[-1]
    assert record.run_id == "run-9"
    assert record.step_index == 1


def test_get_logger_without_context_returns_logger() -> None:
    assert isinstance(get_logger("acetester.plain"), logging.Logger)


def test_log_run_event(caplog) -> None:
    """Run events carry the event type, run id and step index."""
    with caplog.at_level(logging.INFO, logger="acetester.run_events"):
        log_run_event("executing", "run-1", step_index=2, data={"command": "click"})

    record = caplog.records[-1]
    assert record.name == "acetester.run_events"
    assert record.getMessage() == "Run event: executing"
    assert record.event_type == "executing"
    assert record.run_id == "run-1"
    assert record.step_index == 2
    assert record.command == "click"


def test_log_performance_metric(caplog) -> None:
    """Performance metrics are emitted at debug level."""
    with caplog.at_level(logging.DEBUG, logger="acetester.performance"):
        log_performance_metric("step_execution", 12.5, context={"command": "fill"})

    record = caplog.records[-1]
    assert record.levelno == logging.DEBUG
    assert record.metric_name == "step_execution"
    assert record.value == 12.5
    assert record.unit == "ms"
    assert record.command == "fill"


def test_setup_logging_json(restore_root_logger, tmp_path) -> None:
    """JSON mode logs to stdout and to the optional file."""
    log_file = tmp_path / "acetester.log"

    root = setup_logging(log_level="debug", log_format="json", log_file=str(log_file))

    assert root.level == logging.DEBUG
    assert len(root.handlers) == 2
    assert all(isinstance(h.formatter, JSONFormatter) for h in root.handlers)
    assert logging.getLogger("playwright").level == logging.WARNING
    assert log_file.exists()


def test_setup_logging_text_uses_rich(restore_root_logger) -> None:
    """Text mode wraps a RichHandler in the sanitizing handler."""
    root = setup_logging(log_level="INFO", log_format="text", sanitize_logs=True)

    assert len(root.handlers) == 1
    handler = root.handlers[0]
    assert isinstance(handler, SanitizingHandler)
    assert isinstance(handler.handler, RichHandler)


def test_setup_logging_text_without_sanitizing(restore_root_logger) -> None:
    root = setup_logging(log_level="WARNING", log_format="text", sanitize_logs=False)

    assert isinstance(root.handlers[0], RichHandler)
    assert root.level == logging.WARNING


def test_setup_logging_json_stream_override(restore_root_logger) -> None:
    """JSON console output can be sent to another stream, keeping stdout clean."""
    buffer = io.StringIO()

    setup_logging(log_level="INFO", log_format="json", stream=buffer)
    logging.getLogger("acetester.test").info("Routed elsewhere")

    lines = [json.loads(line) for line in buffer.getvalue().splitlines()]
    assert any(line["message"] == "Routed elsewhere" for line in lines)
