"""
Step executor: runs one planned action against a browser session.
"""

import asyncio
from typing import Awaitable, Callable, Dict, Optional

from acetester.browser.session import Session
from acetester.core.interfaces import PageDriver
from acetester.core.types import (
    Outcome,
    Step,
    StepCommand,
    StepFailed,
    StepSucceeded,
)
from acetester.error_handling import SessionError, StepFailure
from acetester.monitoring.logger import get_logger, log_performance_metric

logger = get_logger(__name__)

CommandHandler = Callable[[PageDriver, Step, int], Awaitable[None]]


class StepExecutor:
    """
    Executes steps one at a time and classifies each result.

    Every fault raised while resolving, waiting on, or interacting with a
    target becomes a failed outcome. Only session-level faults propagate.
    """

    def __init__(self) -> None:
        self._handlers: Dict[StepCommand, CommandHandler] = {
            StepCommand.NAVIGATE: self._navigate,
            StepCommand.CLICK: self._click,
            StepCommand.FILL: self._fill,
            StepCommand.WAIT_FOR_PAGE_LOAD: self._wait_for_page_load,
        }

    async def execute(
        self,
        session: Session,
        step: Step,
        timeout_ms: Optional[int] = None,
    ) -> Outcome:
        """
        Execute a single step.

        Args:
            session: The run's browser session
            step: Step to execute
            timeout_ms: Per-call wait ceiling; defaults to the session's. Must be
                positive when given

        Returns:
            StepSucceeded or StepFailed

        Raises:
            SessionError: If the session itself is unusable
            ValueError: If timeout_ms is not positive
        """
        if timeout_ms is not None and timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {timeout_ms}")

        command = step.known_command
        if command is None:
            return self._fail(step, f"Unsupported command: '{step.command}'")

        page = session.page
        timeout = session.action_timeout_ms if timeout_ms is None else timeout_ms
        start_time = asyncio.get_running_loop().time()

        try:
            await self._handlers[command](page, step, timeout)
        except SessionError:
            raise
        except StepFailure as failure:
            return self._fail(step, failure.message)
        except Exception as exc:
            return self._fail(step, str(exc) or exc.__class__.__name__)
        finally:
            elapsed_ms = (asyncio.get_running_loop().time() - start_time) * 1000
            log_performance_metric(
                "step_execution",
                elapsed_ms,
                context={"command": step.command, "session_id": session.session_id},
            )

        logger.info(
            "Step succeeded",
            extra={"command": step.command, "description": step.description},
        )
        return StepSucceeded(description=step.description)

    def _fail(self, step: Step, reason: str) -> StepFailed:
        logger.warning(
            "Step failed",
            extra={"command": step.command, "description": step.description, "reason": reason},
        )
        return StepFailed(description=step.description, reason=reason)

    async def _navigate(self, page: PageDriver, step: Step, timeout_ms: int) -> None:
        if not step.value:
            raise StepFailure(
                "navigate requires a target URL in 'value'", command=step.command
            )
        await page.navigate(step.value, timeout_ms)

    async def _click(self, page: PageDriver, step: Step, timeout_ms: int) -> None:
        selector = self._require_selector(step)
        await page.click(selector, timeout_ms)

    async def _fill(self, page: PageDriver, step: Step, timeout_ms: int) -> None:
        selector = self._require_selector(step)
        if step.value is None:
            raise StepFailure(
                "fill requires a 'value'", command=step.command, selector=selector
            )
        await page.fill(selector, step.value, timeout_ms)

    async def _wait_for_page_load(self, page: PageDriver, step: Step, timeout_ms: int) -> None:
        await page.wait_for_load_state(timeout_ms)

    @staticmethod
    def _require_selector(step: Step) -> str:
        if not step.selector or not step.selector.strip():
            raise StepFailure(
                f"{step.command} requires a non-empty 'selector'", command=step.command
            )
        return step.selector
