"""Typed runtime settings for the todo agent, read from the environment."""
from typing import Dict, Mapping, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator
import math
import os

from todo_agent.domain.errors import AgentConfigurationError


DEFAULT_ENV_PASSTHROUGH: Tuple[str, ...] = (
    "PATH",
    "HOME",
    "USER",
    "LANG",
    "TMPDIR",
    "NODE_PATH",
    "npm_config_cache",
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_BASE_URL",
    "ANTHROPIC_AUTH_TOKEN",
)


class Settings(BaseModel):
    """Immutable settings; build with ``from_env()`` or pass explicitly in tests"""
    model_config = ConfigDict(frozen=True)

    # Economical, low-latency tier
    model: str = "haiku"
    max_turns: int = Field(default=50, gt=0)

    db_path: str = "todo.db"
    filesystem_root: str = "."
    provider_command: str = "npx"

    env_passthrough: Tuple[str, ...] = DEFAULT_ENV_PASSTHROUGH
    idle_timeout_seconds: Optional[float] = None

    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("idle_timeout_seconds")
    @classmethod
    def _idle_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is None:
            return None
        if not math.isfinite(value) or value < 0:
            raise ValueError("idle timeout must be a finite, non-negative number of seconds")
        # 0 disables the timeout
        return value or None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        values: Dict[str, object] = {}

        def _set(field: str, name: str, convert=str):
            raw = env.get(name)
            if raw is None or raw.strip() == "":
                return
            try:
                values[field] = convert(raw.strip())
            except ValueError as e:
                raise AgentConfigurationError(f"Invalid value for {name}: {raw!r}") from e

        _set("model", "TODO_AGENT_MODEL")
        _set("max_turns", "TODO_AGENT_MAX_TURNS", int)
        _set("db_path", "TODO_AGENT_DB_PATH")
        _set("filesystem_root", "TODO_AGENT_FS_ROOT")
        _set("provider_command", "TODO_AGENT_PROVIDER_COMMAND")
        _set("env_passthrough", "TODO_AGENT_ENV_PASSTHROUGH", _split_names)
        _set("idle_timeout_seconds", "TODO_AGENT_IDLE_TIMEOUT", float)
        _set("log_level", "LOG_LEVEL")
        _set("log_format", "LOG_FORMAT")

        if "max_turns" in values and values["max_turns"] <= 0:
            raise AgentConfigurationError("TODO_AGENT_MAX_TURNS must be positive")
        timeout = values.get("idle_timeout_seconds")
        if timeout is not None and (not math.isfinite(timeout) or timeout < 0):
            raise AgentConfigurationError(
                "TODO_AGENT_IDLE_TIMEOUT must be a finite, non-negative number of seconds"
            )
        return cls(**values)

    def session_env(self, environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Minimal environment handed to the session and its providers"""
        env = os.environ if environ is None else environ
        return {name: env[name] for name in self.env_passthrough if name in env}


def _split_names(raw: str) -> Tuple[str, ...]:
    return tuple(name.strip() for name in raw.split(",") if name.strip())
