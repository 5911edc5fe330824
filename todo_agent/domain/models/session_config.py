from types import MappingProxyType
from typing import Any, Dict, Literal, Mapping, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from claude_agent_sdk import ClaudeAgentOptions

from todo_agent.domain.tool.tool_validator import ToolGrantValidator


def _frozen(value: Mapping[str, Any]) -> Mapping[str, Any]:
    """Read-only copy, so a frozen model cannot be changed through its mappings"""
    return MappingProxyType(dict(value))


class McpServerDescriptor(BaseModel):
    """How to start one capability provider as a stdio child process"""
    model_config = ConfigDict(frozen=True)

    name: str
    type: Literal["stdio"] = "stdio"
    command: str
    args: Tuple[str, ...] = ()
    env: Mapping[str, str] = Field(default_factory=dict, validate_default=True)

    @field_validator("env")
    @classmethod
    def _freeze_env(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return _frozen(value)

    def to_sdk_config(self) -> Dict[str, Any]:
        config: Dict[str, Any] = {
            "type": self.type,
            "command": self.command,
            "args": list(self.args),
        }
        if self.env:
            config["env"] = dict(self.env)
        return config


class SessionConfiguration(BaseModel):
    """Everything a single agent session is started with"""
    model_config = ConfigDict(frozen=True)

    env: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    system_prompt: str
    model: str
    max_turns: int = Field(gt=0)
    allowed_tools: Tuple[str, ...]
    mcp_servers: Mapping[str, McpServerDescriptor] = Field(default_factory=dict, validate_default=True)

    @field_validator("env", "mcp_servers")
    @classmethod
    def _freeze_mappings(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return _frozen(value)

    @model_validator(mode="after")
    def _check_grant(self) -> "SessionConfiguration":
        validator = ToolGrantValidator()
        validator.validate_grant(self.allowed_tools)
        validator.validate_providers(self.mcp_servers)
        return self

    @property
    def standalone(self) -> bool:
        return bool(self.mcp_servers)

    def to_agent_options(self) -> ClaudeAgentOptions:
        """Translate into the options object the agent SDK consumes"""
        options: Dict[str, Any] = {
            "env": dict(self.env),
            "system_prompt": self.system_prompt,
            "model": self.model,
            "allowed_tools": list(self.allowed_tools),
            "max_turns": self.max_turns,
        }
        if self.mcp_servers:
            options["mcp_servers"] = {
                name: descriptor.to_sdk_config()
                for name, descriptor in self.mcp_servers.items()
            }
        return ClaudeAgentOptions(**options)
