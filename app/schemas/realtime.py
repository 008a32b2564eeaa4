"""
Schemas de los sobres WebSocket y presencia.
"""
from pydantic import BaseModel
from typing import Any, Dict, Optional
from uuid import UUID
from datetime import datetime


class WsInbound(BaseModel):
    """Cliente → Servidor."""

    type: str  # join-conversation | leave-conversation | typing-start | typing-stop | message-read | ping
    data: Dict[str, Any] = {}


class WsOutbound(BaseModel):
    """Servidor → Cliente."""

    type: str  # new-message | quote-status-update | messages-read | user-typing | pong | error ...
    data: Dict[str, Any] = {}


class PresenceResponse(BaseModel):
    """Estado de conexión de un usuario."""

    user_id: UUID
    online: bool
    last_seen: Optional[datetime] = None
