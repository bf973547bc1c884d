# config.py
# Environment-backed configuration. Read once at startup, validated by
# pydantic, then passed explicitly; nothing below reads os.environ again.

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError
from rich.logging import RichHandler


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


class AgentConfig(BaseModel):
    """Knobs recognised by AgentLoop at construction."""

    max_iterations: int = Field(default=15, ge=1, description="Model calls allowed per query.")
    tracing_enabled: bool = Field(default=False, description="Flush prompt/response traces to the sink.")
    use_history: bool = Field(default=True, description="Render conversation history into prompts.")
    verbose: bool = Field(default=False, description="Print prompts and responses to the console.")
    trace_dir: str = Field(default="scripts/logs", description="Directory for JSONL trace files.")


class ModelConfig(BaseModel):
    api_key: str = Field(..., min_length=1)
    model: str = "gpt-3.5-turbo"
    embedding_model: str = "text-embedding-ada-002"
    base_url: str | None = None
    temperature: float = 0.0
    timeout: float = Field(default=60.0, gt=0)


_AGENT_ENV = {
    "max_iterations": "AGENT_MAX_ITERATIONS",
    "tracing_enabled": "AGENT_TRACING_ENABLED",
    "use_history": "AGENT_USE_HISTORY",
    "verbose": "AGENT_VERBOSE",
    "trace_dir": "AGENT_TRACE_DIR",
}

_MODEL_ENV = {
    "api_key": "OPENAI_API_KEY",
    "model": "OPENAI_MODEL",
    "embedding_model": "OPENAI_EMBEDDING_MODEL",
    "base_url": "OPENAI_BASE_URL",
}


def _from_env(mapping: dict[str, str]) -> dict[str, str]:
    # Unset and empty variables fall back to the model defaults.
    return {field: os.environ[var] for field, var in mapping.items() if os.environ.get(var)}


def load_agent_config() -> AgentConfig:
    load_dotenv()
    try:
        return AgentConfig.model_validate(_from_env(_AGENT_ENV))
    except ValidationError as exc:
        raise ConfigError(f"Invalid agent configuration:\n{exc}") from exc


def load_model_config() -> ModelConfig:
    """
    Load the model backend settings.

    Raises ConfigError immediately if OPENAI_API_KEY is missing; the agent
    cannot do anything useful without it.
    """
    load_dotenv()
    values = _from_env(_MODEL_ENV)
    if "api_key" not in values:
        raise ConfigError("Missing required environment variable: OPENAI_API_KEY")
    try:
        return ModelConfig.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid model configuration:\n{exc}") from exc


def configure_logging(level: str | None = None) -> None:
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
