from typing import Dict, Optional
import structlog

from todo_agent.domain.models.session_config import McpServerDescriptor, SessionConfiguration
from todo_agent.domain.prompt.behavior_contract import SYSTEM_PROMPT
from todo_agent.domain.tool.tool_registry import (
    ALLOWED_TOOLS, FILESYSTEM_PROVIDER, SQLITE_PROVIDER
)
from todo_agent.infrastructure.config import Settings

logger = structlog.get_logger(__name__)

SQLITE_SERVER_PACKAGE = "@modelcontextprotocol/server-sqlite"
FILESYSTEM_SERVER_PACKAGE = "@modelcontextprotocol/server-filesystem"


def build_provider_descriptors(
    settings: Settings,
    env: Dict[str, str],
) -> Dict[str, McpServerDescriptor]:
    """Connection descriptors for the store and filesystem providers"""
    
    return {
        SQLITE_PROVIDER: McpServerDescriptor(
            name=SQLITE_PROVIDER,
            command=settings.provider_command,
            args=("-y", SQLITE_SERVER_PACKAGE, "--db-path", settings.db_path),
            env=env,
        ),
        FILESYSTEM_PROVIDER: McpServerDescriptor(
            name=FILESYSTEM_PROVIDER,
            command=settings.provider_command,
            args=("-y", FILESYSTEM_SERVER_PACKAGE, settings.filesystem_root),
            env=env,
        ),
    }


def build_configuration(
    standalone: bool = False,
    settings: Optional[Settings] = None,
    env: Optional[Dict[str, str]] = None,
) -> SessionConfiguration:
    """Assemble a fresh session configuration.

    Standalone sessions carry their own provider descriptors; embedded ones
    rely on the host to supply providers for the same tool identifiers.
    Nothing is started here.
    """
    
    settings = settings or Settings.from_env()
    session_env = settings.session_env() if env is None else dict(env)
    
    mcp_servers = build_provider_descriptors(settings, session_env) if standalone else {}
    
    config = SessionConfiguration(
        env=session_env,
        system_prompt=SYSTEM_PROMPT,
        model=settings.model,
        max_turns=settings.max_turns,
        allowed_tools=ALLOWED_TOOLS,
        mcp_servers=mcp_servers,
    )
    
    logger.debug(
        "Built session configuration",
        standalone=standalone,
        model=config.model,
        max_turns=config.max_turns,
        tools=len(config.allowed_tools),
        providers=list(mcp_servers),
    )
    return config
