"""Step Planner Agent implementation.

Translates a natural-language testing instruction into an ordered plan of
browser steps.
"""

from typing import Any, Dict, List, Optional

from acetester.agents.base_agent import BaseAgent
from acetester.config.agent_prompts import PLANNER_SYSTEM_PROMPT
from acetester.core.interfaces import Planner
from acetester.core.types import Plan, Step
from acetester.error_handling import PlanningError
from acetester.monitoring.logger import get_logger

logger = get_logger(__name__)

PASSWORD_PLACEHOLDER = "{{password}}"
USERNAME_PLACEHOLDER = "{{username}}"

# Command names emitted by earlier prompt revisions
COMMAND_ALIASES: Dict[str, str] = {
    "goto": "navigate",
    "waitForNavigation": "waitForPageLoad",
}


class StepPlannerAgent(BaseAgent, Planner):
    """
    AI agent that turns testing instructions into executable browser steps.

    The password is never sent to the model: the model is told one was
    provided and writes a placeholder, which is resolved after parsing.
    """

    settings_key = "planner"

    def __init__(self, name: str = "StepPlanner", **kwargs):
        """Initialize the Step Planner Agent."""
        kwargs.setdefault("system_prompt", PLANNER_SYSTEM_PROMPT)
        super().__init__(name=name, **kwargs)

    async def create_plan(
        self,
        url: str,
        instruction: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Plan:
        """
        Create a plan of browser steps.

        Args:
            url: Website under test
            instruction: Natural-language testing instruction
            username: Optional login username
            password: Optional login password (never sent to the model)

        Returns:
            Plan: Non-empty ordered plan

        Raises:
            PlanningError: If the model call fails or yields no steps
        """
        logger.info("Creating plan from instruction", extra={
            "url": url,
            "instruction_length": len(instruction),
            "has_credentials": username is not None,
        })

        user_message = self._build_instruction_message(
            url=url,
            instruction=instruction,
            username=username,
            has_password=bool(password),
        )

        try:
            response = await self.call_openai(
                messages=self.build_messages(user_message),
                response_format={"type": "json_object"},
            )
        except Exception as exc:
            raise PlanningError(
                f"Planner call failed: {exc}", url=url, cause=exc
            ) from exc

        steps = self._parse_steps(response, url)
        if not steps:
            raise PlanningError(
                "Planning failed: the planner returned no steps", url=url
            )

        steps = self._resolve_credentials(steps, username, password)
        plan = Plan(steps=steps)

        usage = response.get("usage", {}) if isinstance(response, dict) else {}
        logger.info("Plan created", extra={
            "plan_id": str(plan.plan_id),
            "num_steps": len(plan.steps),
            "commands": [step.command for step in plan.steps],
            "total_tokens": usage.get("total_tokens", 0),
        })

        return plan

    def _build_instruction_message(
        self,
        url: str,
        instruction: str,
        username: Optional[str],
        has_password: bool,
    ) -> str:
        """Build the user message with URL, instruction and credential hints."""
        message_parts: List[str] = [
            "Based on the provided URL, prompt, and credentials, generate a sequence of browser steps.",
            "",
            f"Website URL: {url}",
            f"User Prompt: {instruction}",
        ]

        if username:
            message_parts.append(f"Username: {username}")
        if has_password:
            message_parts.append(
                f"Password: [provided] (fill it with the literal value {PASSWORD_PLACEHOLDER})"
            )

        message_parts.append("")
        message_parts.append("Generate the steps now.")
        return "\n".join(message_parts)

    def _parse_steps(self, response: Dict[str, Any], url: str) -> List[Step]:
        """Parse the AI response into Step objects."""
        try:
            plan_data = self.parse_json_content(response)
        except ValueError as e:
            logger.error("Failed to parse plan response", extra={"error": str(e)})
            raise PlanningError(
                f"Planning failed: unreadable planner output ({e})", url=url, cause=e
            ) from e

        raw_steps = plan_data.get("steps") or []
        if not isinstance(raw_steps, list):
            raise PlanningError(
                "Planning failed: 'steps' is not a list", url=url
            )

        steps: List[Step] = []
        for index, step_data in enumerate(raw_steps):
            if not isinstance(step_data, dict):
                logger.warning("Skipping malformed step", extra={"step_index": index})
                continue

            command = str(step_data.get("command", "")).strip()
            command = COMMAND_ALIASES.get(command, command)
            value = step_data.get("value")

            steps.append(Step(
                command=command,
                selector=step_data.get("selector") or None,
                value=None if value is None else str(value),
                description=step_data.get("description") or f"{command} step {index + 1}",
            ))

        return steps

    def _resolve_credentials(
        self,
        steps: List[Step],
        username: Optional[str],
        password: Optional[str],
    ) -> List[Step]:
        """Substitute credential placeholders with the real values."""
        resolved: List[Step] = []
        for step in steps:
            value = step.value
            if value is not None:
                if password is not None:
                    value = value.replace(PASSWORD_PLACEHOLDER, password)
                if username is not None:
                    value = value.replace(USERNAME_PLACEHOLDER, username)
            resolved.append(step if value == step.value else step.model_copy(update={"value": value}))
        return resolved
