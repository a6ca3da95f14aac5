"""
Configuration management.

PagePilotSettings reads PAGEPILOT_* environment variables (and .env), and
can be loaded from a YAML file. parse_llm_config() fills model-client
defaults for values left unset.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from pagepilot.core.domain.models import MAX_STEPS
from pagepilot.core.i18n import SupportedLanguage

DEFAULT_MODEL_NAME = "gpt-4.1-mini"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 4096
LLM_MAX_RETRIES = 2
DEFAULT_STEP_DELAY = 0.1


class LLMConfig(BaseModel):
    """Resolved model client configuration."""

    base_url: str | None = None
    api_key: str | None = None
    model: str = DEFAULT_MODEL_NAME
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    max_retries: int = LLM_MAX_RETRIES


def parse_llm_config(config: dict[str, Any] | None = None) -> LLMConfig:
    """Fill defaults for every model client option that is missing or None."""
    values = {k: v for k, v in (config or {}).items() if v is not None}
    return LLMConfig(**{k: v for k, v in values.items() if k in LLMConfig.model_fields})


class PagePilotSettings(BaseSettings):
    """Settings with environment variable support."""

    # Model client
    base_url: str | None = Field(default=None, description="OpenAI-compatible endpoint")
    api_key: str | None = Field(default=None, description="API key for the model provider")
    model: str = Field(default=DEFAULT_MODEL_NAME, description="Model name (LiteLLM notation)")
    temperature: float = Field(default=DEFAULT_TEMPERATURE)
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS)
    max_retries: int = Field(default=LLM_MAX_RETRIES, ge=0)

    # Agent
    max_steps: int = Field(default=MAX_STEPS, ge=1, description="Step ceiling per task")
    language: SupportedLanguage = Field(default="en-US", description="Narrative language")
    step_delay: float = Field(default=DEFAULT_STEP_DELAY, ge=0)
    disabled_tools: list[str] = Field(default_factory=list, description="Built-in tools to remove")

    # Logging
    debug: bool = Field(default=False)

    model_config = {
        "env_file": ".env",
        "env_prefix": "PAGEPILOT_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @classmethod
    def load_from_file(cls, config_path: Path) -> "PagePilotSettings":
        """Load settings from a YAML configuration file."""
        if not config_path.exists():
            return cls()

        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)

    def llm_config(self) -> LLMConfig:
        return parse_llm_config(
            {
                "base_url": self.base_url,
                "api_key": self.api_key,
                "model": self.model,
                "temperature": self.temperature,
                "max_tokens": self.max_tokens,
                "max_retries": self.max_retries,
            }
        )
