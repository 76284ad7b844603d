"""
Base implementation for the AI collaborators used by AceTester.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from acetester.config.settings import get_settings
from acetester.models.openai_client import OpenAIClient


class BaseAgent:
    """Base implementation of an AI agent with OpenAI integration."""

    settings_key: Optional[str] = None

    def __init__(
        self,
        name: str,
        model: Optional[str] = None,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        reasoning_level: Optional[str] = None,
        client: Optional[OpenAIClient] = None,
    ) -> None:
        """
        Initialize the base agent.

        Args:
            name: Name identifier for the agent
            model: OpenAI model to use (defaults to the agent's configured model)
            system_prompt: System prompt for the agent
            temperature: Temperature for model responses
            reasoning_level: Reasoning effort for reasoning models
            client: Pre-built client, mainly for tests
        """
        agent_config = get_settings().get_agent_model_config(self.settings_key or name)

        self.name = name
        self.model = model or agent_config.model
        self.temperature = agent_config.temperature if temperature is None else temperature
        self.reasoning_level = reasoning_level or agent_config.reasoning_level
        self.logger = logging.getLogger(f"agent.{name}")
        self.system_prompt = system_prompt or self._get_default_system_prompt()
        self._client = client

    def _get_default_system_prompt(self) -> str:
        """Get default system prompt for the agent."""
        return (
            f"You are {self.name}, an AI agent in the AceTester automated website testing system. "
            f"Always be precise, factual, and focused on your specific role."
        )

    @property
    def client(self) -> OpenAIClient:
        """Lazy-load OpenAI client."""
        if self._client is None:
            self._client = OpenAIClient(
                model=self.model,
                reasoning_level=self.reasoning_level,
            )
        return self._client

    async def call_openai(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        response_format: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Make a call to OpenAI API.

        Args:
            messages: List of message dictionaries
            temperature: Override default temperature
            response_format: Optional response format specification

        Returns:
            API response
        """
        return await self.client.call(
            messages=messages,
            temperature=self.temperature if temperature is None else temperature,
            system_prompt=self.system_prompt,
            response_format=response_format,
        )

    def build_messages(self, user_content: str) -> List[Dict[str, str]]:
        """Build message list for OpenAI API."""
        return [{"role": "user", "content": user_content}]

    def parse_json_content(self, response: Dict[str, Any]) -> Dict[str, Any]:
        """
        Extract the JSON object from an API response.

        Content is already a dict when the JSON response format was honoured;
        otherwise it is parsed here.

        Raises:
            ValueError: If the content is not a JSON object
        """
        content = response.get("content", {})
        if isinstance(content, str):
            content = json.loads(content) if content.strip() else {}
        if not isinstance(content, dict):
            raise ValueError(f"Expected a JSON object, got {type(content).__name__}")
        return content
