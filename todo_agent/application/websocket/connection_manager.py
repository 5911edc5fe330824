from typing import Dict, Optional
from fastapi import WebSocket
from pydantic import BaseModel, Field
import asyncio
from datetime import datetime
import structlog

from .schema.events import BaseEvent, ConnectionEvent, ErrorEvent

logger = structlog.get_logger(__name__)


class ConnectionInfo(BaseModel):
    """Bookkeeping for one open socket"""
    connected_at: datetime = Field(default_factory=datetime.utcnow)
    last_activity: datetime = Field(default_factory=datetime.utcnow)
    prompts: int = 0


class ConnectionManager:
    """Tracks open agent sockets and delivers events to them"""
    
    def __init__(self):
        self.active_connections: Dict[str, WebSocket] = {}
        self.connection_info: Dict[str, ConnectionInfo] = {}
        self._lock = asyncio.Lock()
        
    async def connect(self, websocket: WebSocket, session_id: str):
        await websocket.accept()
        async with self._lock:
            self.active_connections[session_id] = websocket
            self.connection_info[session_id] = ConnectionInfo()
        await self.send_event(session_id, ConnectionEvent(status="connected", session_id=session_id))
        logger.info("WebSocket connected", session_id=session_id)
        
    async def disconnect(self, session_id: str):
        """Forget a connection; the endpoint owns closing the socket"""
        async with self._lock:
            self.active_connections.pop(session_id, None)
            info = self.connection_info.pop(session_id, None)
        logger.info(
            "WebSocket disconnected",
            session_id=session_id,
            prompts=info.prompts if info else 0
        )
        
    def mark_prompt(self, session_id: str):
        info = self.connection_info.get(session_id)
        if info is not None:
            info.prompts += 1
            
    async def send_event(self, session_id: str, event: BaseEvent) -> bool:
        """Serialize and send; False once the client is gone"""
        websocket = self.active_connections.get(session_id)
        if websocket is None:
            logger.warning("Dropping event for closed session", session_id=session_id, event_type=event.type)
            return False
        
        try:
            await websocket.send_json(event.model_dump(mode="json"))
        except Exception as e:
            logger.error("Failed to send event", session_id=session_id, error=str(e))
            await self.disconnect(session_id)
            return False
        
        info = self.connection_info.get(session_id)
        if info is not None:
            info.last_activity = datetime.utcnow()
        return True
        
    async def send_error(self, session_id: str, error_message: str, error_code: Optional[str] = None):
        await self.send_event(
            session_id,
            ErrorEvent(payload={"message": error_message}, error_code=error_code, session_id=session_id)
        )
