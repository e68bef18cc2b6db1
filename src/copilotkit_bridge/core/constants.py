"""
Constants and configuration for the CopilotKit bridge.
Centralizes all magic numbers and configuration values.
Includes Pydantic validation for environment variables.
"""

from __future__ import annotations

import os
import threading

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import (
    DotEnvSettingsSource,
    PydanticBaseSettingsSource,
)

from copilotkit_bridge.core.prompts import DEFAULT_CHAT_SYSTEM_PROMPT, DEFAULT_GENERATE_SYSTEM_PROMPT

# ============================================================================
# Project Paths
# ============================================================================

#: Project root directory (parent of src/)
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

# ============================================================================
# Model Configuration
# ============================================================================

#: Default chat model when neither settings nor environment name one.
DEFAULT_MODEL = "gpt-4.1-mini"

# ============================================================================
# Tool-Calling Loop Configuration
# ============================================================================

#: Maximum number of model turns per loop run.
#: A run that still requests tools after this many turns ends as exhausted.
MAX_TOOL_ITERATIONS = 10

#: Prefix for synthesized tool call ids (used when the model omits one).
TOOL_CALL_ID_PREFIX = "call_"

#: Simulated network latency of the demo weather tool (seconds).
WEATHER_TOOL_LATENCY = 0.1

# ============================================================================
# Logging Configuration
# ============================================================================

#: Maximum size in bytes for log files before rotation (10MB).
LOG_MAX_SIZE = 10 * 1024 * 1024

#: Number of conversation log backups to retain during rotation.
LOG_BACKUP_COUNT_CONVERSATIONS = 5

#: Number of error log backups to retain during rotation.
LOG_BACKUP_COUNT_ERRORS = 3

#: Maximum characters to show in log previews for user input/response.
LOG_PREVIEW_LENGTH = 50

#: Length of generated logger instance ids (hex characters).
LOGGER_ID_LENGTH = 8

# ============================================================================
# Wire Protocol Constants
# ============================================================================

#: Streamed event type for incremental assistant text.
STREAM_EVENT_RESPONSE_TEXT = "response-text"

#: Streamed event type for a failed model request.
STREAM_EVENT_ERROR = "error"

#: Server-Sent-Events terminator written after a successful stream.
SSE_DONE_MARKER = "[DONE]"

#: HTTP status used to signal a failed model request on the streaming path.
#: Lets the CopilotKit client surface a retry/backoff status.
STREAM_FAILURE_STATUS_CODE = 429

#: Prefix for user-visible model failure descriptions.
MODEL_FAILURE_PREFIX = "OpenAI request failed: "

#: GraphQL operation names recognized in the ``query`` field.
GRAPHQL_AVAILABLE_AGENTS = "availableAgents"
GRAPHQL_LOAD_AGENT_STATE = "loadAgentState"
GRAPHQL_GENERATE_RESPONSE = "generateCopilotResponse"

#: Marker placed on action execution records for tools run by this backend.
ACTION_SCOPE_SERVER = "server"

# ============================================================================
# Error Messages
# ============================================================================

#: Error message when the plain-chat payload carries no messages.
ERROR_MISSING_MESSAGES = "The request must include chat messages."

#: Error message when generateCopilotResponse variables carry no messages.
ERROR_MISSING_GENERATE_MESSAGES = "Missing messages in generateCopilotResponse variables."

#: Error message template for an unregistered tool (use .format(name=...)).
ERROR_TOOL_NOT_FOUND = "Tool {name} not found."

#: Error message template for a failing tool executor.
ERROR_TOOL_FAILED = "Tool {name} failed: {error}"


class EntryPoint(str, Enum):
    """Inbound paths that run the tool-calling loop.

    Each path injects its own default system prompt.
    """

    CHAT = "chat"
    GENERATE = "generate"


# ============================================================================
# Environment Configuration with Pydantic Validation
# ============================================================================

#: Valid environment names for configuration loading
Environment = Literal["development", "production", "test"]

#: Directory holding .env files (project root)
_ENV_DIR = PROJECT_ROOT


def _get_env_files() -> list[Path]:
    """Determine which .env files to load based on APP_ENV.

    Load order (later files override earlier - pydantic-settings last-wins):
    1. .env (base defaults) - lowest priority
    2. .env.{environment} (environment-specific overrides)
    3. .env.local (local developer overrides, gitignored) - highest priority

    Returns:
        List of Path objects for env files that exist.
    """
    env_name = os.getenv("APP_ENV", "development").lower()
    if env_name not in ("development", "production", "test"):
        env_name = "development"

    candidates = [
        _ENV_DIR / ".env",
        _ENV_DIR / f".env.{env_name}",
        _ENV_DIR / ".env.local",
    ]
    return [p for p in candidates if p.exists()]


class Settings(BaseSettings):
    """Environment settings with validation and environment-specific file support.

    Configuration priority (highest to lowest):
    1. Values passed to Settings() constructor
    2. Environment variables (OPENAI_API_KEY, OPENAI_MODEL, ...)
    3. .env.local > .env.{APP_ENV} > .env (dotenv files, last wins)

    Validates at startup to fail fast when the OpenAI credential is missing.
    """

    app_env: Environment = Field(default="development", description="Application environment")

    # OpenAI
    openai_api_key: str | None = Field(default=None, description="OpenAI API key for authentication")
    openai_model: str = Field(default=DEFAULT_MODEL, description="Chat completion model name")
    openai_base_url: str | None = Field(default=None, description="Optional OpenAI-compatible endpoint")

    # Debug and logging
    debug: bool = Field(default=False, description="Enable debug logging")
    enable_content_logging: bool = Field(
        default=False,
        description="Log redacted previews of user input, model output and tool arguments",
    )

    # HTTP client timeouts
    http_read_timeout: float = Field(default=600.0, description="HTTP read timeout for streaming (seconds)")

    # Tool-calling loop
    max_tool_iterations: int = Field(
        default=MAX_TOOL_ITERATIONS,
        ge=1,
        description="Maximum model turns per request before the loop gives up",
    )
    chat_system_prompt: str = Field(
        default=DEFAULT_CHAT_SYSTEM_PROMPT,
        description="System prompt injected on the streaming chat path",
    )
    generate_system_prompt: str = Field(
        default=DEFAULT_GENERATE_SYSTEM_PROMPT,
        description="System prompt injected on the generateCopilotResponse path",
    )

    # API server
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=5000, description="API port")
    app_version: str = Field(default="1.0.0", description="Application version")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "https://localhost:3000"],
        description="Origins allowed to call the API (frontend dev server)",
    )

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings source priority for environment-specific config.

        Priority (highest to lowest):
        1. init_settings - Values passed to Settings() constructor
        2. env_settings - Environment variables
        3. dotenv files - .env.local > .env.{APP_ENV} > .env (last-wins in list)
        """
        dotenv_source = DotEnvSettingsSource(
            settings_cls,
            env_file=_get_env_files(),
            env_file_encoding="utf-8",
        )
        return (init_settings, env_settings, dotenv_source)

    @field_validator("app_env", mode="before")
    @classmethod
    def validate_app_env(cls, v: str | None) -> str:
        """Validate and normalize APP_ENV value."""
        if v is None:
            return "development"
        normalized = str(v).lower()
        if normalized not in ("development", "production", "test"):
            raise ValueError(f"app_env must be 'development', 'production', or 'test', got '{v}'")
        return normalized

    @field_validator("openai_model")
    @classmethod
    def validate_model(cls, v: str) -> str:
        """Fall back to the default model for blank values."""
        return v.strip() or DEFAULT_MODEL

    @model_validator(mode="after")
    def validate_credentials(self) -> Settings:
        """Fail fast when the OpenAI credential is absent."""
        if not self.openai_api_key or not self.openai_api_key.strip():
            raise ValueError(
                "Missing OPENAI_API_KEY. Set it as an environment variable or in your .env file "
                "before running the API."
            )
        return self

    def system_prompt_for(self, entry_point: EntryPoint) -> str:
        """Resolve the default system prompt for an inbound path."""
        if entry_point is EntryPoint.GENERATE:
            return self.generate_system_prompt
        return self.chat_system_prompt

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"


# ============================================================================
# Settings Management (Thread-safe singleton)
# ============================================================================


class _SettingsManager:
    """Thread-safe settings manager.

    Uses a class to avoid global statement warnings from linters.
    """

    __slots__ = ("_instance", "_lock")

    def __init__(self) -> None:
        self._instance: Settings | None = None
        self._lock = threading.Lock()

    def get(self) -> Settings:
        """Get the cached settings instance, loading it on first use.

        Raises:
            ValueError: If required configuration is missing or invalid.
        """
        if self._instance is not None:
            return self._instance

        with self._lock:
            if self._instance is None:
                self._instance = Settings()
            return self._instance

    def reload(self) -> Settings:
        """Force reload settings from environment and dotenv files."""
        with self._lock:
            self._instance = Settings()
            return self._instance

    def clear(self) -> None:
        """Clear cached settings instance."""
        with self._lock:
            self._instance = None


# Module-level singleton manager
_settings_manager = _SettingsManager()


def get_settings() -> Settings:
    """Get the validated, cached settings instance.

    This is the primary entry point for accessing application settings.

    Raises:
        ValueError: If required configuration is missing or invalid.
    """
    return _settings_manager.get()


def reload_settings() -> Settings:
    """Force reload settings from environment files."""
    return _settings_manager.reload()


def clear_settings_cache() -> None:
    """Clear cached settings instance.

    Primarily useful for testing to ensure fresh settings on each test.
    """
    _settings_manager.clear()
