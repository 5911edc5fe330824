from todo_agent.domain.orchestration.config_builder import build_configuration
from todo_agent.domain.orchestration.core.main_agent import AgentOrchestrator, stream_agent

__all__ = ["AgentOrchestrator", "build_configuration", "stream_agent"]
