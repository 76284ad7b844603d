"""Testing Report Synthesizer Agent implementation."""

from typing import Optional

from acetester.agents.base_agent import BaseAgent
from acetester.config.agent_prompts import (
    REPORT_SYNTHESIZER_SYSTEM_PROMPT,
    REPORT_SYNTHESIZER_USER_TEMPLATE,
)
from acetester.core.interfaces import ReportSynthesizer
from acetester.monitoring.logger import get_logger

logger = get_logger(__name__)


class TestingReportAgent(BaseAgent, ReportSynthesizer):
    """
    Writes the developer-facing testing report from the narrated action log.

    The report focuses on failure conditions and steps to reproduce them.
    """

    settings_key = "report_synthesizer"

    def __init__(self, name: str = "TestingReporter", **kwargs):
        kwargs.setdefault("system_prompt", REPORT_SYNTHESIZER_SYSTEM_PROMPT)
        super().__init__(name=name, **kwargs)

    async def synthesize(
        self, url: str, instruction: str, action_log: str
    ) -> Optional[str]:
        """
        Generate the testing report.

        Args:
            url: Website that was tested
            instruction: Testing prompt that was used
            action_log: Narrated log, one line per step in execution order

        Returns:
            Report text, or None when the model produced no report
        """
        user_message = REPORT_SYNTHESIZER_USER_TEMPLATE.format(
            url=url,
            prompt=instruction,
            action_logs=action_log,
        )

        response = await self.call_openai(
            messages=self.build_messages(user_message),
            response_format={"type": "json_object"},
        )

        try:
            content = self.parse_json_content(response)
        except ValueError:
            logger.warning("Report synthesizer returned unreadable output", exc_info=True)
            return None

        report = content.get("report")
        if not isinstance(report, str) or not report.strip():
            return None

        usage = response.get("usage", {})
        logger.info("Testing report synthesized", extra={
            "report_length": len(report),
            "total_tokens": usage.get("total_tokens", 0),
        })
        return report.strip()
