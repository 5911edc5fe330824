from typing import Iterable, Optional, Tuple

from todo_agent.domain.errors import AgentConfigurationError
from todo_agent.domain.tool.tool_registry import ToolRegistry, tool_registry


class ToolGrantValidator:
    """Checks that a capability grant stays inside the registry"""
    
    def __init__(self, registry: Optional[ToolRegistry] = None):
        self.registry = registry or tool_registry
        
    def validate_grant(self, tool_ids: Iterable[str]) -> Tuple[str, ...]:
        """Return the grant as a tuple, or raise for any unknown identifier"""
        
        granted = tuple(tool_ids)
        unknown = [tool_id for tool_id in granted if tool_id not in self.registry]
        if unknown:
            raise AgentConfigurationError(
                f"Capabilities not in registry: {', '.join(unknown)}",
                unknown_tools=unknown,
            )
        if len(set(granted)) != len(granted):
            raise AgentConfigurationError("Capability grant contains duplicates")
        return granted
        
    def validate_providers(self, provider_names: Iterable[str]) -> None:
        """Connection descriptors may only be supplied for known providers"""
        
        unknown = [name for name in provider_names if name not in self.registry.providers()]
        if unknown:
            raise AgentConfigurationError(
                f"Unknown capability providers: {', '.join(unknown)}"
            )


def validate_grant(tool_ids: Iterable[str]) -> Tuple[str, ...]:
    return ToolGrantValidator().validate_grant(tool_ids)
