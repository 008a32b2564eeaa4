"""
Endpoints de tiempo real: WebSocket y presencia.
"""
import logging
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.deps import get_db, get_current_active_user, user_id_from_token
from app.models.user import User
from app.schemas.realtime import PresenceResponse
from app.services.realtime_service import realtime_hub

logger = logging.getLogger(__name__)

router = APIRouter()

# Códigos de cierre propios (rango 4000-4999)
WS_CLOSE_UNAUTHORIZED = 4401
WS_CLOSE_FORBIDDEN = 4403


def _load_user(db: Session, user_id: UUID):
    try:
        return db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()
    finally:
        # La sesión no se mantiene abierta durante la conexión
        db.close()


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: str = Query(""),
    db: Session = Depends(get_db)
):
    """
    Conexión WebSocket autenticada con ?token=<access token>.

    Mensajes entrantes: {"type": ..., "data": {...}} con type en
    join-conversation, leave-conversation, typing-start, typing-stop,
    message-read, ping.
    """
    user_id = user_id_from_token(token)
    if user_id is None:
        logger.info("Conexión WebSocket rechazada: token inválido")
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
        return

    user = _load_user(db, user_id)
    if user is None:
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
        return
    if not user.is_active:
        await websocket.close(code=WS_CLOSE_FORBIDDEN)
        return

    await websocket.accept()
    await realtime_hub.connect(websocket, user.id, user.full_name)
    try:
        while True:
            try:
                raw = await websocket.receive_json()
            except ValueError:
                await realtime_hub.send(websocket, "error", {"detail": "JSON inválido"})
                continue
            await realtime_hub.handle_inbound(websocket, raw)
    except WebSocketDisconnect:
        pass
    finally:
        await realtime_hub.disconnect(websocket)


@router.get(
    "/realtime/presence/{user_id}",
    response_model=PresenceResponse,
    status_code=status.HTTP_200_OK
)
async def get_presence(
    user_id: UUID,
    current_user: User = Depends(get_current_active_user)
):
    """
    Estado de conexión de un usuario (en línea y última actividad).
    """
    return await realtime_hub.get_presence(user_id)
