from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from typing import Callable, Optional
import uuid
from datetime import datetime
import structlog

from .connection_manager import ConnectionManager
from .schema.events import ClientEventType, UserMessage
from todo_agent.domain.errors import AgentStreamError, TodoAgentError
from todo_agent.domain.orchestration.core.main_agent import AgentOrchestrator
from todo_agent.infrastructure.config import Settings
from todo_agent.infrastructure.observability.logging import setup_logging

logger = structlog.get_logger(__name__)


def create_app(orchestrator: Optional[AgentOrchestrator] = None) -> FastAPI:
    """Build the WebSocket front end around an orchestrator"""
    
    app = FastAPI(title="Todo Agent WebSocket Server")
    
    connection_manager = ConnectionManager()
    app.state.connection_manager = connection_manager
    app.state.orchestrator = orchestrator
    
    def get_orchestrator() -> AgentOrchestrator:
        if app.state.orchestrator is None:
            app.state.orchestrator = AgentOrchestrator()
        return app.state.orchestrator
    
    @app.websocket("/ws/agent/{session_id}")
    async def agent_websocket(websocket: WebSocket, session_id: str):
        """Main WebSocket endpoint for agent interaction"""
        
        try:
            uuid.UUID(session_id)
        except ValueError:
            await websocket.close(code=1008, reason="Invalid session ID format")
            return
            
        await connection_manager.connect(websocket, session_id)
        
        try:
            while True:
                data = await websocket.receive_json()
                
                event_type = data.get("type") if isinstance(data, dict) else None
                if event_type != ClientEventType.USER_MESSAGE.value:
                    await connection_manager.send_error(
                        session_id, f"Unsupported event type: {event_type}", "unsupported"
                    )
                    continue
                    
                try:
                    message = UserMessage(**data)
                except ValidationError as e:
                    await connection_manager.send_error(session_id, str(e), "invalid_message")
                    continue
                    
                connection_manager.mark_prompt(session_id)
                await process_user_message(session_id, message, get_orchestrator, connection_manager)
                
        except WebSocketDisconnect:
            logger.info("Client disconnected", session_id=session_id)
        finally:
            await connection_manager.disconnect(session_id)
    
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "active_connections": len(connection_manager.active_connections),
            "timestamp": datetime.utcnow().isoformat()
        }
    
    return app


async def process_user_message(
    session_id: str,
    message: UserMessage,
    get_orchestrator: Callable[[], AgentOrchestrator],
    connection_manager: ConnectionManager
):
    """Forward every agent event for one prompt to the client"""
    
    stream = None
    try:
        stream = get_orchestrator().stream_agent(message.content)
        async for event in stream:
            event.session_id = session_id
            if not await connection_manager.send_event(session_id, event):
                break
    except AgentStreamError as e:
        await connection_manager.send_error(session_id, str(e), "agent_stream_failed")
    except TodoAgentError as e:
        logger.error("Agent request rejected", error=str(e), session_id=session_id)
        await connection_manager.send_error(session_id, str(e), "agent_configuration")
    finally:
        if stream is not None:
            await stream.aclose()


def main():
    import uvicorn
    
    settings = Settings.from_env()
    setup_logging(settings.log_level, settings.log_format, service_name="todo-agent-ws")
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
