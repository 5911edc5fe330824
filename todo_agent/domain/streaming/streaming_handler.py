from typing import Any, Iterator, List, Optional
import structlog

from todo_agent.application.websocket.schema.events import (
    BaseEvent, ResultEvent, TextEvent, ToolEvent, UsageEvent
)
from todo_agent.domain.streaming.message_decoder import (
    ContentShape, MessageShape, ResultShape, UsageShape, decode_message
)

logger = structlog.get_logger(__name__)


class StreamingHandler:
    """Translates raw agent messages into normalized events"""
    
    def __init__(self, session_id: Optional[str] = None):
        self.session_id = session_id
        self.messages_seen = 0
        self.events_emitted = 0
        
    def handle_message(self, message: Any) -> List[BaseEvent]:
        """All events for one raw message, in order"""
        
        return list(self.iter_events(message))
        
    def iter_events(self, message: Any) -> Iterator[BaseEvent]:
        self.messages_seen += 1
        for shape in decode_message(message):
            for event in self._process_shape(shape):
                self.events_emitted += 1
                yield event
                
    def _process_shape(self, shape: MessageShape) -> Iterator[BaseEvent]:
        """Dispatch on the decoded shape"""
        
        if isinstance(shape, ContentShape):
            yield from self._handle_content(shape)
        elif isinstance(shape, UsageShape):
            yield self._handle_usage(shape)
        elif isinstance(shape, ResultShape):
            yield self._handle_result(shape)
            
    def _handle_content(self, shape: ContentShape) -> Iterator[BaseEvent]:
        for text in shape.texts:
            yield TextEvent(text=text, session_id=self.session_id)
        for name in shape.tools:
            logger.debug("Tool invoked", tool=name)
            yield ToolEvent(name=name, session_id=self.session_id)
            
    def _handle_usage(self, shape: UsageShape) -> UsageEvent:
        return UsageEvent(
            input=shape.input_tokens,
            output=shape.output_tokens,
            session_id=self.session_id,
        )
        
    def _handle_result(self, shape: ResultShape) -> ResultEvent:
        return ResultEvent(text=shape.text, session_id=self.session_id)
