"""Configuration management for AceTester."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


AGENT_ENV_PREFIX: Dict[str, str] = {
    "planner": "ACETESTER_PLANNER",
    "log_formatter": "ACETESTER_LOG_FORMATTER",
    "report_synthesizer": "ACETESTER_REPORT_SYNTHESIZER",
}


class AgentModelConfig(BaseModel):
    """Per-agent model configuration."""

    model: str
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    reasoning_level: str = Field(default="medium")

    @field_validator("reasoning_level")
    @classmethod
    def validate_reasoning_level(cls, value: str) -> str:
        """Ensure reasoning level is valid."""
        allowed = {"low", "medium", "high"}
        if value not in allowed:
            raise ValueError(
                f"Invalid reasoning level: {value}. Allowed values: {sorted(allowed)}"
            )
        return value


DEFAULT_AGENT_MODELS: Dict[str, AgentModelConfig] = {
    "planner": AgentModelConfig(
        model="gpt-4.1",
        temperature=0.2,
        reasoning_level="medium",
    ),
    "log_formatter": AgentModelConfig(
        model="gpt-4o-mini",
        temperature=0.1,
        reasoning_level="low",
    ),
    "report_synthesizer": AgentModelConfig(
        model="gpt-4.1",
        temperature=0.4,
        reasoning_level="medium",
    ),
}


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # OpenAI Configuration
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_model: str = Field(
        default="gpt-4o-mini", description="Default OpenAI model"
    )
    openai_temperature: float = Field(
        default=0.7, ge=0.0, le=2.0, description="Default temperature"
    )
    openai_max_retries: int = Field(
        default=3, ge=1, description="Maximum API retry attempts"
    )
    openai_request_timeout_seconds: int = Field(
        default=120,
        ge=10,
        description="Request timeout for OpenAI API calls in seconds",
    )
    agent_models: Dict[str, AgentModelConfig] = Field(
        default_factory=dict,
        description="Per-agent OpenAI model configuration",
    )

    # Browser Configuration
    browser_headless: bool = Field(
        default=True, description="Run browser in headless mode"
    )
    browser_launch_timeout: int = Field(
        default=30000, ge=1000, description="Browser startup timeout (ms)"
    )
    browser_timeout: int = Field(
        default=10000, ge=100, description="Default action wait ceiling (ms)"
    )
    browser_viewport_width: int = Field(
        default=1280, ge=320, description="Browser viewport width"
    )
    browser_viewport_height: int = Field(
        default=800, ge=240, description="Browser viewport height"
    )

    # Narration Configuration
    narrate_with_ai: bool = Field(
        default=True,
        description="Format each action log line with the AI log formatter",
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: str = Field(
        default="text",
        description="Log format (json or text)",
    )
    log_file: Optional[str] = Field(
        default=None, description="Log file path"
    )
    sanitize_logs: bool = Field(
        default=True, description="Redact credentials from log output"
    )

    # Storage Configuration
    reports_dir: Path = Field(
        default=Path("reports"), description="Reports output directory"
    )
    save_reports: bool = Field(
        default=True, description="Persist synthesized reports to disk"
    )

    # Development Configuration
    debug_mode: bool = Field(
        default=False, description="Enable debug mode"
    )

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("log_format")
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in ["json", "text"]:
            raise ValueError(f"Invalid log format: {v}")
        return v

    @model_validator(mode="after")
    def validate_timeouts(self) -> "Settings":
        """Session start must be allowed at least as long as a single wait."""
        if self.browser_timeout > self.browser_launch_timeout:
            raise ValueError(
                "browser_timeout must not exceed browser_launch_timeout "
                f"({self.browser_timeout} > {self.browser_launch_timeout})"
            )
        return self

    @model_validator(mode="after")
    def populate_agent_models(self) -> "Settings":
        """Populate agent model configurations from defaults and environment."""
        env = os.environ

        configured_models: Dict[str, AgentModelConfig] = {}
        openai_model_env_set = "OPENAI_MODEL" in env

        existing_models = self.agent_models.copy()

        for agent_name, prefix in AGENT_ENV_PREFIX.items():
            base_config = existing_models.get(agent_name, DEFAULT_AGENT_MODELS[agent_name])
            config_payload = base_config.model_dump()

            model_override = env.get(f"{prefix}_MODEL")
            if model_override:
                config_payload["model"] = model_override
            elif openai_model_env_set:
                config_payload["model"] = self.openai_model

            temperature_override = env.get(f"{prefix}_TEMPERATURE")
            if temperature_override:
                try:
                    config_payload["temperature"] = float(temperature_override)
                except ValueError as exc:
                    raise ValueError(
                        f"Invalid temperature for {agent_name}: {temperature_override}"
                    ) from exc

            reasoning_override = env.get(f"{prefix}_REASONING_LEVEL")
            if reasoning_override:
                config_payload["reasoning_level"] = reasoning_override.lower()

            configured_models[agent_name] = AgentModelConfig(**config_payload)

        for agent_name, config in existing_models.items():
            if agent_name not in configured_models:
                configured_models[agent_name] = config

        self.agent_models = configured_models
        return self

    def get_agent_model_config(self, agent_name: str) -> AgentModelConfig:
        """Return agent-specific model configuration."""
        if agent_name in self.agent_models:
            return self.agent_models[agent_name]

        return AgentModelConfig(
            model=self.openai_model,
            temperature=self.openai_temperature,
            reasoning_level="medium",
        )

    def create_directories(self) -> None:
        """Create required directories if they don't exist."""
        if self.save_reports:
            self.reports_dir.mkdir(parents=True, exist_ok=True)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    env_file = Path(".env")
    if env_file.exists():
        load_dotenv(env_file)

    return Settings()
