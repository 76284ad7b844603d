"""
Exception hierarchy for AceTester error handling.

Separates the fatal run-level categories (validation, planning, session,
report) from the per-step and persistence failures that are recovered locally.
"""

from typing import Optional, Dict, Any, List
from datetime import datetime, timezone


class AceTesterError(Exception):
    """Base exception for all AceTester errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None
        }


class FatalRunError(AceTesterError):
    """Base class for errors that end a run with success=False."""
    pass


class ValidationError(FatalRunError):
    """Caller input was malformed; raised before any resource is touched."""

    def __init__(
        self,
        message: str,
        failed_fields: Optional[List[str]] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.failed_fields = failed_fields or []
        self.details.update({
            "failed_fields": self.failed_fields
        })


class PlanningError(FatalRunError):
    """The planner produced no usable plan."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.url = url
        self.details.update({
            "url": url
        })


class SessionError(FatalRunError):
    """The browser session could not be acquired or torn down."""

    def __init__(
        self,
        message: str,
        phase: str,
        session_id: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.phase = phase
        self.session_id = session_id
        self.details.update({
            "phase": phase,
            "session_id": session_id
        })


class ReportError(FatalRunError):
    """The report synthesizer returned no report."""
    pass


class StepFailure(AceTesterError):
    """
    A single step's precondition or execution failed.

    Never propagates past the step executor; it is converted into a
    failed outcome there.
    """

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        selector: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.command = command
        self.selector = selector
        self.details.update({
            "command": command,
            "selector": selector
        })


class PersistenceError(AceTesterError):
    """A report could not be saved. Logged only."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.path = path
        self.details.update({
            "path": path
        })
