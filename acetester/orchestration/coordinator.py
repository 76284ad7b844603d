"""
Run coordinator: drives a single test run from instruction to report.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from acetester.browser.session import Session, SessionManager
from acetester.core.interfaces import Planner, ReportStore, ReportSynthesizer
from acetester.core.types import (
    ExecutionRecord,
    Plan,
    RunRequest,
    RunResult,
    RunState,
    SessionConfig,
)
from acetester.error_handling import (
    PlanningError,
    ReportError,
    SessionError,
    ValidationError,
)
from acetester.monitoring.logger import get_logger, log_run_event
from acetester.orchestration.executor import StepExecutor
from acetester.orchestration.log_aggregator import LogAggregator
from acetester.security.sanitizer import get_sanitizer

logger = get_logger(__name__)


VALID_TRANSITIONS: Dict[RunState, List[RunState]] = {
    RunState.PLANNING: [RunState.SESSION_STARTING, RunState.FAILED],
    RunState.SESSION_STARTING: [RunState.EXECUTING, RunState.FAILED],
    RunState.EXECUTING: [RunState.EXECUTING, RunState.LOG_NARRATING, RunState.FAILED],
    RunState.LOG_NARRATING: [RunState.REPORT_SYNTHESIZING, RunState.FAILED],
    RunState.REPORT_SYNTHESIZING: [RunState.DONE, RunState.FAILED],
    RunState.DONE: [],
    RunState.FAILED: [],
}


@dataclass
class RunTrace:
    """Per-run state, kept off the coordinator so overlapping runs stay apart."""

    run_id: str
    state: Optional[RunState] = None
    history: List[Dict[str, Any]] = field(default_factory=list)
    action_log: Optional[str] = None


class RunCoordinator:
    """
    Orchestrates planning, execution, narration and report synthesis.

    Runs are strictly linear: each collaborator call is awaited before the
    next is issued. The browser session is scoped to execution and
    narration and is released before the report is synthesized.
    """

    def __init__(
        self,
        planner: Planner,
        synthesizer: ReportSynthesizer,
        executor: Optional[StepExecutor] = None,
        aggregator: Optional[LogAggregator] = None,
        session_manager: Optional[SessionManager] = None,
        report_store: Optional[ReportStore] = None,
        session_config: Optional[SessionConfig] = None,
        reports_dir: Optional[Path] = None,
    ):
        """
        Initialize the run coordinator.

        Args:
            planner: Turns the instruction into a plan
            synthesizer: Writes the final report from the narrated log
            executor: Step executor (a default one is created if omitted)
            aggregator: Log aggregator; without one, outcome projections are
                used as log lines
            session_manager: Owner of browser sessions
            report_store: Where synthesized reports are saved; None disables saving
            session_config: Browser session parameters
            reports_dir: Directory for saved reports
        """
        self.planner = planner
        self.synthesizer = synthesizer
        self.executor = executor or StepExecutor()
        self.aggregator = aggregator or LogAggregator()
        self.session_manager = session_manager or SessionManager()
        self.report_store = report_store
        self.session_config = session_config or SessionConfig()
        self.reports_dir = Path(reports_dir) if reports_dir else Path("reports")

        self._last_run: Optional[RunTrace] = None

    @classmethod
    def from_settings(cls, settings: Any = None, **overrides: Any) -> "RunCoordinator":
        """
        Build a coordinator wired with the OpenAI-backed collaborators.

        Args:
            settings: Application settings (defaults to get_settings())
            **overrides: Constructor arguments that replace the defaults

        Returns:
            Configured RunCoordinator
        """
        from acetester.agents import (
            ActionLogFormatterAgent,
            StepPlannerAgent,
            TestingReportAgent,
        )
        from acetester.config.settings import get_settings
        from acetester.monitoring.report_store import FileReportStore

        settings = settings or get_settings()

        components: Dict[str, Any] = {
            "session_config": SessionConfig.from_settings(settings),
            "reports_dir": settings.reports_dir,
        }
        if "planner" not in overrides:
            components["planner"] = StepPlannerAgent()
        if "synthesizer" not in overrides:
            components["synthesizer"] = TestingReportAgent()
        if "aggregator" not in overrides:
            formatter = ActionLogFormatterAgent() if settings.narrate_with_ai else None
            components["aggregator"] = LogAggregator(formatter=formatter)
        if "report_store" not in overrides and settings.save_reports:
            components["report_store"] = FileReportStore()

        components.update(overrides)
        return cls(**components)

    @property
    def last_run(self) -> Optional[RunTrace]:
        """Trace of the most recently started run."""
        return self._last_run

    @property
    def state(self) -> Optional[RunState]:
        """State of the most recently started run."""
        return self._last_run.state if self._last_run else None

    @property
    def state_history(self) -> List[Dict[str, Any]]:
        return list(self._last_run.history) if self._last_run else []

    async def run(self, request: Union[RunRequest, Dict[str, Any]]) -> RunResult:
        """
        Execute one test run end to end.

        Runs may overlap on one coordinator; each keeps its own trace.

        Args:
            request: RunRequest, or a dict with url, prompt, username, password

        Returns:
            RunResult; every failure is reported here rather than raised
        """
        try:
            run_request = self._validate(request)
        except ValidationError as e:
            logger.warning("Rejected run request", extra={"failed_fields": e.failed_fields})
            return RunResult(success=False, error=e.message)

        trace = RunTrace(run_id=uuid4().hex)
        self._last_run = trace

        sanitizer = get_sanitizer()
        sanitizer.register_secret(run_request.password)

        try:
            self._transition(trace, RunState.PLANNING)
            plan = await self._create_plan(run_request)

            self._transition(trace, RunState.SESSION_STARTING, num_steps=len(plan))
            action_log = await self._execute_and_narrate(trace, plan, run_request)

            self._transition(trace, RunState.REPORT_SYNTHESIZING)
            report = await self._synthesize(run_request, action_log)

            await self._persist(trace.run_id, run_request, report, action_log)

            self._transition(trace, RunState.DONE)
            return RunResult(success=True, action_log=action_log, report=report)

        except PlanningError as e:
            return self._fail(trace, e.message)
        except (SessionError, ReportError) as e:
            return self._fail(trace, e.message, action_log=trace.action_log)
        except Exception as e:
            logger.exception("Unexpected error during run", extra={"run_id": trace.run_id})
            return self._fail(trace, f"Unexpected error: {e}", action_log=trace.action_log)
        finally:
            sanitizer.forget_secret(run_request.password)

    def _validate(self, request: Union[RunRequest, Dict[str, Any]]) -> RunRequest:
        """Validate caller input before any resource is touched."""
        if isinstance(request, RunRequest):
            return request
        try:
            return RunRequest.model_validate(request)
        except PydanticValidationError as e:
            failed_fields = sorted({
                ".".join(str(part) for part in error["loc"]) or "request"
                for error in e.errors()
            })
            raise ValidationError(
                f"Invalid input data. Invalid fields: {', '.join(failed_fields)}",
                failed_fields=failed_fields,
                cause=e,
            ) from e

    async def _create_plan(self, request: RunRequest) -> Plan:
        try:
            plan = await self.planner.create_plan(
                request.target_url,
                request.prompt,
                username=request.username,
                password=request.password,
            )
        except PlanningError:
            raise
        except Exception as e:
            raise PlanningError(
                f"Planning failed: {e}", url=request.target_url, cause=e
            ) from e

        if plan is None or not plan.steps:
            raise PlanningError(
                "Planning failed: the planner returned no steps",
                url=request.target_url,
            )
        return plan

    async def _execute_and_narrate(self, trace: RunTrace, plan: Plan, request: RunRequest) -> str:
        """
        Run every step inside one session scope, then narrate the records.

        The session is released when this returns, on every exit path. The
        narrated log is kept on the trace so that it survives a teardown
        failure.
        """
        async with self.session_manager.session(self.session_config) as session:
            records = await self._execute_plan(trace, session, plan)

            self._transition(trace, RunState.LOG_NARRATING, failed_steps=sum(
                1 for record in records if not record.succeeded
            ))
            trace.action_log = await self.aggregator.narrate(
                records, request.target_url, request.prompt
            )

        return trace.action_log

    async def _execute_plan(
        self, trace: RunTrace, session: Session, plan: Plan
    ) -> List[ExecutionRecord]:
        records: List[ExecutionRecord] = []
        loop = asyncio.get_running_loop()

        for index, step in enumerate(plan.steps):
            self._transition(trace, RunState.EXECUTING, step_index=index, command=step.command)
            started = loop.time()
            outcome = await self.executor.execute(session, step)
            records.append(ExecutionRecord(
                step=step,
                outcome=outcome,
                sequence_index=index,
                execution_time_ms=int((loop.time() - started) * 1000),
            ))

        return records

    async def _synthesize(self, request: RunRequest, action_log: str) -> str:
        try:
            report = await self.synthesizer.synthesize(
                request.target_url, request.prompt, action_log
            )
        except Exception as e:
            raise ReportError(
                f"Report generation failed: {e}", cause=e
            ) from e

        if not report:
            raise ReportError("Report generation failed: no report was produced")
        return report

    async def _persist(
        self,
        run_id: str,
        request: RunRequest,
        report: str,
        action_log: str,
    ) -> None:
        """Hand the report to the store. Failures are logged only."""
        if self.report_store is None:
            return

        path = self.reports_dir / f"report_{run_id}.md"
        try:
            result = await self.report_store.save(
                path,
                report,
                metadata={
                    "run_id": run_id,
                    "url": request.target_url,
                    "instruction": request.prompt,
                    "action_log": action_log,
                },
            )
        except Exception:
            logger.warning("Report store raised while saving", exc_info=True)
            return

        if result.error:
            logger.warning(
                "Report could not be saved",
                extra={"path": str(path), "error": result.error},
            )

    def _transition(
        self,
        trace: RunTrace,
        state: RunState,
        step_index: Optional[int] = None,
        **data: Any,
    ) -> None:
        """Move the run to ``state`` and emit a run event."""
        if trace.state is not None and state not in VALID_TRANSITIONS[trace.state]:
            logger.warning(
                "Unexpected run state transition",
                extra={"from_state": trace.state.value, "to_state": state.value},
            )

        trace.state = state
        trace.history.append({
            "state": state.value,
            "step_index": step_index,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })
        log_run_event(state.value, trace.run_id, step_index=step_index, data=data)

    def _fail(
        self,
        trace: RunTrace,
        message: str,
        action_log: Optional[str] = None,
    ) -> RunResult:
        failed_in = trace.state.value if trace.state else None
        self._transition(trace, RunState.FAILED, failed_in=failed_in, error=message)
        logger.error("Run failed", extra={"run_id": trace.run_id, "error": message})
        return RunResult(success=False, action_log=action_log, error=message)
