from typing import Any, AsyncGenerator, AsyncIterator, Callable, Optional
from claude_agent_sdk import ClaudeAgentOptions, query
import asyncio
import structlog
import time
import uuid

from todo_agent.application.websocket.schema.events import BaseEvent, DoneEvent, EventType, UsageEvent
from todo_agent.domain.errors import AgentStreamError
from todo_agent.domain.orchestration.config_builder import build_configuration
from todo_agent.domain.streaming.streaming_handler import StreamingHandler
from todo_agent.infrastructure.config import Settings
from todo_agent.infrastructure.observability.logging import agent_logger, metrics

logger = structlog.get_logger(__name__)

SessionFactory = Callable[..., AsyncIterator[Any]]


class AgentOrchestrator:
    """Runs one agent session per prompt and streams normalized events"""
    
    def __init__(
        self,
        settings: Optional[Settings] = None,
        session_factory: Optional[SessionFactory] = None
    ):
        self.settings = settings or Settings.from_env()
        # Called as session_factory(prompt=..., options=ClaudeAgentOptions)
        self.session_factory = session_factory or query
        
    async def stream_agent(self, prompt: str) -> AsyncGenerator[BaseEvent, None]:
        """Yield events for one prompt as the session produces them.

        The stream always ends with exactly one ``done`` event. A transport
        failure is raised as ``AgentStreamError`` after ``done`` has been
        yielded. Closing the stream early releases the session.
        """
        
        # Configuration errors surface here, before any session starts
        config = build_configuration(standalone=True, settings=self.settings)
        options = config.to_agent_options()
        
        session_id = uuid.uuid4().hex
        handler = StreamingHandler(session_id=session_id)
        started = time.monotonic()
        failure: Optional[BaseException] = None
        
        agent_logger.log_session_started(
            session_id=session_id,
            model=config.model,
            max_turns=config.max_turns,
            tools=len(config.allowed_tools),
            standalone=config.standalone
        )
        
        messages: Optional[AsyncIterator[Any]] = None
        try:
            messages = self._open_session(prompt, options)
            iterator = messages.__aiter__()
            while True:
                try:
                    message = await self._next_message(iterator)
                except StopAsyncIteration:
                    break
                    
                for event in handler.iter_events(message):
                    self._record(session_id, event)
                    yield event
                    
        except Exception as e:
            failure = e
            logger.error(
                "Agent session failed",
                session_id=session_id,
                error=self._describe_failure(e),
                error_type=type(e).__name__
            )
        finally:
            if messages is not None:
                await self._close_session(messages, session_id)
            
        duration_ms = (time.monotonic() - started) * 1000
        metrics.record_latency("agent_stream", duration_ms)
        agent_logger.log_session_finished(
            session_id=session_id,
            messages=handler.messages_seen,
            events=handler.events_emitted + 1,
            duration_ms=duration_ms,
            error=self._describe_failure(failure) if failure is not None else None
        )
        
        done = DoneEvent(session_id=session_id)
        self._record(session_id, done)
        yield done
        
        if failure is not None:
            raise AgentStreamError(
                self._describe_failure(failure), session_id=session_id
            ) from failure
            
    def _open_session(self, prompt: str, options: ClaudeAgentOptions) -> AsyncIterator[Any]:
        return self.session_factory(prompt=prompt, options=options)
        
    async def _next_message(self, iterator: AsyncIterator[Any]) -> Any:
        timeout = self.settings.idle_timeout_seconds
        if timeout is None:
            return await iterator.__anext__()
        async with asyncio.timeout(timeout):
            return await iterator.__anext__()
            
    def _describe_failure(self, failure: BaseException) -> str:
        timeout = self.settings.idle_timeout_seconds
        if isinstance(failure, TimeoutError) and timeout is not None:
            return f"No message from agent session within {timeout:g}s"
        return f"Agent session failed: {failure}"
        
    async def _close_session(self, messages: AsyncIterator[Any], session_id: str):
        aclose = getattr(messages, "aclose", None)
        if aclose is None:
            return
        try:
            await aclose()
        except Exception as e:
            logger.warning("Error closing agent session", session_id=session_id, error=str(e))
            
    def _record(self, session_id: str, event: BaseEvent):
        event_type = event.type.value if isinstance(event.type, EventType) else str(event.type)
        metrics.increment_counter(f"events.{event_type}")
        if isinstance(event, UsageEvent):
            metrics.increment_counter("tokens.input", event.input)
            metrics.increment_counter("tokens.output", event.output)
        agent_logger.log_agent_event(
            event_type,
            session_id,
            data=event.model_dump(mode="json", exclude={"timestamp", "session_id", "type"})
        )


def stream_agent(prompt: str) -> AsyncGenerator[BaseEvent, None]:
    """Stream normalized events for one prompt in a self-provisioned session"""
    
    return AgentOrchestrator().stream_agent(prompt)
