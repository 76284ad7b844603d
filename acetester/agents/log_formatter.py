"""Action Log Formatter Agent implementation."""

import json
from datetime import datetime, timezone
from typing import Optional

from acetester.agents.base_agent import BaseAgent
from acetester.config.agent_prompts import (
    LOG_FORMATTER_SYSTEM_PROMPT,
    LOG_FORMATTER_USER_TEMPLATE,
)
from acetester.core.interfaces import LogFormatter


class ActionLogFormatterAgent(BaseAgent, LogFormatter):
    """Formats one step's narration into a single timestamped log entry."""

    settings_key = "log_formatter"

    def __init__(self, name: str = "ActionLogFormatter", **kwargs):
        kwargs.setdefault("system_prompt", LOG_FORMATTER_SYSTEM_PROMPT)
        super().__init__(name=name, **kwargs)

    async def format_entry(
        self, url: str, instruction: str, action_description: str
    ) -> Optional[str]:
        """Return the formatted entry, or None if the model produced none."""
        user_message = LOG_FORMATTER_USER_TEMPLATE.format(
            current_date=datetime.now(timezone.utc).isoformat(),
            url=url,
            prompt=instruction,
            action_description=action_description,
        )

        response = await self.call_openai(
            messages=self.build_messages(user_message),
            response_format={"type": "json_object"},
        )

        try:
            content = self.parse_json_content(response)
        except ValueError:
            self.logger.warning("Log formatter returned unreadable output", exc_info=True)
            return None

        entry = content.get("actionLog")
        if isinstance(entry, dict):
            # Some models return the entry object itself rather than its text
            return self._compact_json(entry)
        if not isinstance(entry, str) or not entry.strip():
            return None
        return entry.strip()

    @staticmethod
    def _compact_json(entry: dict) -> str:
        return json.dumps(entry, separators=(", ", ": "))
