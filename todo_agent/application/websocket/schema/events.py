from typing import Annotated, Any, Dict, Literal, Optional, Union
from pydantic import BaseModel, Field, TypeAdapter
from datetime import datetime
from enum import Enum


class EventType(str, Enum):
    """Normalized agent event kinds"""
    TEXT = "text"
    TOOL = "tool"
    USAGE = "usage"
    RESULT = "result"
    DONE = "done"


class ClientEventType(str, Enum):
    """WebSocket-only event types"""
    ERROR = "error"
    CONNECTION = "connection"
    USER_MESSAGE = "user_message"


class BaseEvent(BaseModel):
    """Base event model for all streamed messages"""
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    session_id: Optional[str] = None


class TextEvent(BaseEvent):
    """Assistant text fragment, verbatim"""
    type: Literal[EventType.TEXT] = EventType.TEXT
    text: str


class ToolEvent(BaseEvent):
    """A capability the assistant invoked; arguments and results are not surfaced"""
    type: Literal[EventType.TOOL] = EventType.TOOL
    name: str


class UsageEvent(BaseEvent):
    """Token accounting attached to one message"""
    type: Literal[EventType.USAGE] = EventType.USAGE
    input: int = 0
    output: int = 0


class ResultEvent(BaseEvent):
    """Final result text of the session"""
    type: Literal[EventType.RESULT] = EventType.RESULT
    text: str


class DoneEvent(BaseEvent):
    """End-of-stream marker, always last"""
    type: Literal[EventType.DONE] = EventType.DONE


AgentEvent = Annotated[
    Union[TextEvent, ToolEvent, UsageEvent, ResultEvent, DoneEvent],
    Field(discriminator="type"),
]

_agent_event_adapter = TypeAdapter(AgentEvent)


def parse_event(data: Dict[str, Any]) -> BaseEvent:
    """Rebuild an agent event from its JSON form"""
    return _agent_event_adapter.validate_python(data)


class ErrorEvent(BaseEvent):
    """Error event"""
    type: Literal[ClientEventType.ERROR] = ClientEventType.ERROR
    payload: Dict[str, Any]
    error_code: Optional[str] = None
    
    
class ConnectionEvent(BaseEvent):
    """Connection status event"""
    type: Literal[ClientEventType.CONNECTION] = ClientEventType.CONNECTION
    status: Literal["connected", "disconnected"]
    

class UserMessage(BaseEvent):
    """User prompt sent over the websocket"""
    type: Literal[ClientEventType.USER_MESSAGE] = ClientEventType.USER_MESSAGE
    content: str = Field(min_length=1)
