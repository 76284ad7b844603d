"""OpenAI API client used by the planner, log formatter and report synthesizer."""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import openai
from openai import AsyncOpenAI

from acetester.config.settings import get_settings

JSON_OBJECT = "json_object"


class OpenAIClient:
    """
    Thin async wrapper over the OpenAI SDK.

    GPT-5 and GPT-4.1 models are called through the Responses API, everything
    else through Chat Completions. Both paths return the same dict shape:
    ``content``, ``usage``, ``model`` and ``finish_reason``.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        max_retries: Optional[int] = None,
        reasoning_level: str = "medium",
        request_timeout: Optional[float] = None,
    ) -> None:
        """
        Initialize OpenAI client.

        Args:
            model: Model to use for completions
            api_key: Optional API key (defaults to env/config)
            max_retries: Maximum number of retry attempts
            reasoning_level: Reasoning effort for GPT-5 models
            request_timeout: Per-request timeout in seconds
        """
        settings = get_settings()
        self.model = model
        self.max_retries = max_retries or settings.openai_max_retries
        self.reasoning_level = reasoning_level
        self.request_timeout = request_timeout or float(
            settings.openai_request_timeout_seconds
        )
        self.logger = logging.getLogger("openai_client")

        self.api_key = api_key or settings.openai_api_key
        if not self.api_key:
            raise ValueError(
                "OpenAI API key not provided. Set OPENAI_API_KEY environment variable."
            )

        self.client = AsyncOpenAI(api_key=self.api_key, max_retries=self.max_retries)

    @property
    def uses_responses_api(self) -> bool:
        return self.model.startswith(("gpt-5", "gpt-4.1"))

    @property
    def is_reasoning_model(self) -> bool:
        # Reasoning models reject temperature and accept an effort level instead
        return self.model.startswith("gpt-5")

    async def call(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.7,
        system_prompt: Optional[str] = None,
        response_format: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Send user messages to the model.

        Args:
            messages: User messages, in order
            temperature: Sampling temperature (ignored by reasoning models)
            system_prompt: Optional system instructions
            response_format: ``{"type": "json_object"}`` to request and decode JSON

        Returns:
            Response dict; ``content`` is a dict when JSON was requested

        Raises:
            ValueError: If JSON was requested and the model returned invalid JSON
            openai.APIError: If the API call fails after retries
        """
        want_json = bool(response_format) and response_format.get("type") == JSON_OBJECT

        self.logger.debug(
            f"OpenAI API call: model={self.model}, messages={len(messages)}, json={want_json}"
        )

        try:
            if self.uses_responses_api:
                text, usage, finish_reason, model = await self._respond(
                    messages, temperature, system_prompt, want_json
                )
            else:
                text, usage, finish_reason, model = await self._complete(
                    messages, temperature, system_prompt, want_json
                )
        except openai.APIError as e:
            self.logger.error(f"OpenAI API error: {e}")
            raise

        return {
            "content": self._decode(text) if want_json else text,
            "usage": usage,
            "model": model,
            "finish_reason": finish_reason,
        }

    async def _complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float,
        system_prompt: Optional[str],
        want_json: bool,
    ) -> Tuple[str, Dict[str, int], Optional[str], str]:
        chat_messages: List[Dict[str, str]] = []
        if system_prompt:
            chat_messages.append({"role": "system", "content": system_prompt})
        chat_messages.extend(messages)

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": chat_messages,
            "temperature": temperature,
        }
        if want_json:
            kwargs["response_format"] = {"type": JSON_OBJECT}

        response = await self.client.chat.completions.create(
            timeout=self.request_timeout, **kwargs
        )

        choice = response.choices[0]
        usage = {
            "prompt_tokens": response.usage.prompt_tokens,
            "completion_tokens": response.usage.completion_tokens,
            "total_tokens": response.usage.total_tokens,
        }
        return choice.message.content or "", usage, choice.finish_reason, response.model

    async def _respond(
        self,
        messages: List[Dict[str, str]],
        temperature: float,
        system_prompt: Optional[str],
        want_json: bool,
    ) -> Tuple[str, Dict[str, int], Optional[str], str]:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "input": [
                {"role": "user", "content": [{"type": "input_text", "text": m["content"]}]}
                for m in messages
            ],
        }
        if system_prompt:
            kwargs["instructions"] = system_prompt
        if want_json:
            kwargs["text"] = {"format": {"type": JSON_OBJECT}}
        if self.is_reasoning_model:
            kwargs["reasoning"] = {"effort": self.reasoning_level}
        else:
            kwargs["temperature"] = temperature

        response = await self.client.responses.create(
            timeout=self.request_timeout, **kwargs
        )

        raw_usage = getattr(response, "usage", None)
        usage = {
            "prompt_tokens": self._usage_value(raw_usage, "input_tokens"),
            "completion_tokens": self._usage_value(raw_usage, "output_tokens"),
            "total_tokens": self._usage_value(raw_usage, "total_tokens"),
        }
        return (
            self._output_text(response),
            usage,
            getattr(response, "status", None),
            getattr(response, "model", self.model),
        )

    def _decode(self, text: str) -> Any:
        """Decode a JSON-mode reply; an empty reply decodes to an empty object."""
        if not text.strip():
            return {}
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            self.logger.error(f"Failed to parse JSON response: {exc}")
            raise ValueError(f"Model returned invalid JSON: {exc}") from exc

    @staticmethod
    def _output_text(response: Any) -> str:
        if getattr(response, "output_text", None):
            return response.output_text

        texts: List[str] = []
        for segment in getattr(response, "output", None) or []:
            for piece in getattr(segment, "content", None) or []:
                text_value = getattr(piece, "text", None)
                if text_value:
                    texts.append(text_value)
        return "\n".join(texts)

    @staticmethod
    def _usage_value(usage: Any, key: str) -> int:
        if usage is None:
            return 0
        if isinstance(usage, dict):
            return int(usage.get(key, 0))
        return int(getattr(usage, key, 0) or 0)
