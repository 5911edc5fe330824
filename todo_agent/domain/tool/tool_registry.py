from typing import Dict, Iterator, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict


MCP_PREFIX = "mcp"


class Capability(BaseModel):
    """A tool served by an external capability provider"""
    model_config = ConfigDict(frozen=True)

    provider: str
    name: str
    description: str

    @property
    def id(self) -> str:
        return f"{MCP_PREFIX}__{self.provider}__{self.name}"


SQLITE_PROVIDER = "sqlite"
FILESYSTEM_PROVIDER = "filesystem"

_CAPABILITIES: Tuple[Capability, ...] = (
    Capability(provider=SQLITE_PROVIDER, name="read_query",
               description="Execute SELECT queries to retrieve data"),
    Capability(provider=SQLITE_PROVIDER, name="write_query",
               description="Execute INSERT, UPDATE, DELETE queries to modify data"),
    Capability(provider=SQLITE_PROVIDER, name="create_table",
               description="Create new tables"),
    Capability(provider=SQLITE_PROVIDER, name="describe_table",
               description="Show the schema of a table"),
    Capability(provider=SQLITE_PROVIDER, name="list_tables",
               description="List all tables in the database"),
    Capability(provider=FILESYSTEM_PROVIDER, name="read_file",
               description="Read file contents"),
    Capability(provider=FILESYSTEM_PROVIDER, name="write_file",
               description="Write content to files"),
    Capability(provider=FILESYSTEM_PROVIDER, name="list_directory",
               description="List directory contents"),
    Capability(provider=FILESYSTEM_PROVIDER, name="create_directory",
               description="Create new directories"),
)


class ToolRegistry:
    """Fixed, ordered set of capabilities the agent may be granted"""
    
    def __init__(self, capabilities: Tuple[Capability, ...] = _CAPABILITIES):
        self._tools: Dict[str, Capability] = {}
        self._tool_categories: Dict[str, List[str]] = {}
        for capability in capabilities:
            self._register_tool(capability)
            
    def _register_tool(self, capability: Capability):
        """Only used while the registry is being built"""
        
        if capability.id in self._tools:
            raise ValueError(f"Duplicate capability: {capability.id}")
        self._tools[capability.id] = capability
        self._tool_categories.setdefault(capability.provider, []).append(capability.id)
        
    def identifiers(self) -> Tuple[str, ...]:
        """All capability identifiers in registration order"""
        
        return tuple(self._tools)
        
    def providers(self) -> Tuple[str, ...]:
        """Provider names in registration order"""
        
        return tuple(self._tool_categories)
        
    def get(self, tool_id: str) -> Optional[Capability]:
        return self._tools.get(tool_id)
        
    def by_provider(self, provider: str) -> Tuple[Capability, ...]:
        """Capabilities served by one provider"""
        
        tool_ids = self._tool_categories.get(provider, [])
        return tuple(self._tools[tool_id] for tool_id in tool_ids)
        
    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._tools
        
    def __iter__(self) -> Iterator[Capability]:
        return iter(self._tools.values())
        
    def __len__(self) -> int:
        return len(self._tools)


# Shared instance; the registry exposes no mutators once built
tool_registry = ToolRegistry()
ALLOWED_TOOLS: Tuple[str, ...] = tool_registry.identifiers()
