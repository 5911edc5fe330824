from typing import Iterable, Optional


class TodoAgentError(Exception):
    """Base error for the todo agent"""


class AgentConfigurationError(TodoAgentError):
    """Raised when a session configuration or setting is invalid.

    Always raised before a session is started.
    """

    def __init__(self, message: str, unknown_tools: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.unknown_tools = tuple(unknown_tools or ())


class AgentStreamError(TodoAgentError):
    """Raised when the agent session transport fails mid-stream"""

    def __init__(self, message: str, session_id: Optional[str] = None):
        super().__init__(message)
        self.session_id = session_id
