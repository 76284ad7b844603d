"""
Core data models and types for the AceTester step execution engine.
"""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    AnyHttpUrl,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


class StepCommand(str, Enum):
    """Browser commands the step executor understands."""

    NAVIGATE = "navigate"
    CLICK = "click"
    FILL = "fill"
    WAIT_FOR_PAGE_LOAD = "waitForPageLoad"


class RunState(str, Enum):
    """States of a single test run."""

    PLANNING = "planning"
    SESSION_STARTING = "session_starting"
    EXECUTING = "executing"
    LOG_NARRATING = "log_narrating"
    REPORT_SYNTHESIZING = "report_synthesizing"
    DONE = "done"
    FAILED = "failed"


class Step(BaseModel):
    """A single declarative browser action produced by the planner."""

    model_config = ConfigDict(frozen=True)

    command: str = Field(..., description="Command to execute (see StepCommand)")
    selector: Optional[str] = Field(None, description="CSS selector of the target element")
    value: Optional[str] = Field(
        None, description="Fill text, or the target URL for navigate"
    )
    description: str = Field(..., description="Human-readable description of the step")

    @property
    def known_command(self) -> Optional[StepCommand]:
        """Return the matching StepCommand, or None when unsupported."""
        try:
            return StepCommand(self.command)
        except ValueError:
            return None


class Plan(BaseModel):
    """An ordered, non-empty sequence of steps for one run."""

    model_config = ConfigDict(frozen=True)

    plan_id: UUID = Field(default_factory=uuid4)
    steps: List[Step] = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def __len__(self) -> int:
        return len(self.steps)


class StepSucceeded(BaseModel):
    """Outcome of a step that completed."""

    model_config = ConfigDict(frozen=True)

    status: Literal["succeeded"] = "succeeded"
    description: str


class StepFailed(BaseModel):
    """Outcome of a step that could not be completed."""

    model_config = ConfigDict(frozen=True)

    status: Literal["failed"] = "failed"
    description: str
    reason: str


Outcome = Annotated[Union[StepSucceeded, StepFailed], Field(discriminator="status")]


class ExecutionRecord(BaseModel):
    """A step paired with its outcome and position in the plan."""

    model_config = ConfigDict(frozen=True)

    step: Step
    outcome: Outcome
    sequence_index: int = Field(..., ge=0)
    execution_time_ms: int = Field(0, ge=0)

    @property
    def succeeded(self) -> bool:
        return isinstance(self.outcome, StepSucceeded)


class SessionConfig(BaseModel):
    """Browser session parameters threaded into the session manager."""

    model_config = ConfigDict(frozen=True)

    headless: bool = True
    viewport_width: int = Field(1280, ge=320)
    viewport_height: int = Field(800, ge=240)
    launch_timeout_ms: int = Field(30000, ge=1000, description="Browser startup ceiling")
    action_timeout_ms: int = Field(10000, ge=100, description="Default wait ceiling")

    @classmethod
    def from_settings(cls, settings: Any) -> "SessionConfig":
        """Build a session config from application settings."""
        return cls(
            headless=settings.browser_headless,
            viewport_width=settings.browser_viewport_width,
            viewport_height=settings.browser_viewport_height,
            launch_timeout_ms=settings.browser_launch_timeout,
            action_timeout_ms=settings.browser_timeout,
        )


class RunRequest(BaseModel):
    """Caller input for a single test run."""

    url: AnyHttpUrl
    prompt: str = Field(..., min_length=10)
    username: Optional[str] = None
    password: Optional[str] = Field(None, repr=False)

    @field_validator("username", "password", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        """Treat empty form fields as absent credentials."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def target_url(self) -> str:
        return str(self.url)


class RunResult(BaseModel):
    """The engine's final, caller-facing result."""

    success: bool
    action_log: Optional[str] = Field(None, serialization_alias="actionLog")
    report: Optional[str] = None
    error: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        """Serialize to the caller-facing shape."""
        return self.model_dump(by_alias=True, exclude_none=True)


class PersistenceStatus(str, Enum):
    """Status of a report save."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PersistenceResult(BaseModel):
    """Result of handing a report to the report store."""

    status: PersistenceStatus
    path: Optional[Path] = None
    error: Optional[str] = None
