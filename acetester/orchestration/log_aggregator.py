"""
Log aggregator: narrates execution records into the ordered action log.
"""

from typing import List, Optional, Sequence

from acetester.core.interfaces import LogFormatter
from acetester.core.types import ExecutionRecord, Outcome, StepFailed
from acetester.monitoring.logger import get_logger

logger = get_logger(__name__)


def describe_outcome(outcome: Outcome) -> str:
    """Project an outcome into the narration text handed to the formatter."""
    if isinstance(outcome, StepFailed):
        return f"FAILURE: {outcome.description}. Error: {outcome.reason}"
    return f"SUCCESS: {outcome.description}"


def _single_line(text: str) -> str:
    return " ".join(text.split())


class LogAggregator:
    """
    Turns execution records into one log line each, in execution order.

    Formatter calls are awaited one at a time: downstream report synthesis
    infers before/after relationships from line order alone, so lines must
    never be reordered by completion time.
    """

    def __init__(self, formatter: Optional[LogFormatter] = None) -> None:
        self.formatter = formatter

    async def narrate(
        self,
        records: Sequence[ExecutionRecord],
        url: str,
        instruction: str,
    ) -> str:
        """
        Narrate records into a newline-joined log.

        Args:
            records: Execution records for the run
            url: Website under test
            instruction: The run's testing instruction

        Returns:
            One line per record, ordered by sequence index
        """
        lines: List[str] = []
        for record in sorted(records, key=lambda r: r.sequence_index):
            narration = describe_outcome(record.outcome)
            line = await self._format_line(record, narration, url, instruction)
            lines.append(line)

        logger.info(
            "Action log narrated",
            extra={
                "entries": len(lines),
                "failed_steps": sum(1 for r in records if not r.succeeded),
            },
        )
        return "\n".join(lines)

    async def _format_line(
        self,
        record: ExecutionRecord,
        narration: str,
        url: str,
        instruction: str,
    ) -> str:
        if self.formatter is None:
            return _single_line(narration)

        try:
            formatted = await self.formatter.format_entry(url, instruction, narration)
        except Exception:
            logger.warning(
                "Log formatter failed; recording an empty entry",
                extra={"step_index": record.sequence_index},
                exc_info=True,
            )
            return ""

        if not formatted:
            logger.warning(
                "Log formatter returned no entry",
                extra={"step_index": record.sequence_index},
            )
            return ""

        return _single_line(formatted)
