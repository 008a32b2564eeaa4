"""
Hub de tiempo real sobre WebSockets.

Cada conexión entra a la sala personal "user:<id>" y puede unirse a salas
"conversation:<id>". Los eventos se envían como {"type": ..., "data": ...}.
La entrega es best-effort: un socket que falla se descarta.

Las salas viven en memoria del proceso; la presencia se guarda en el
CacheStore para poder consultarla desde cualquier worker.
"""
import logging
import time
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Optional, Set
from uuid import UUID

from fastapi import WebSocket

from app.config import get_settings
from app.core.cache import CacheStore, get_cache_store
from app.schemas.realtime import PresenceResponse, WsInbound, WsOutbound
from app.services.conversation_service import is_participant

logger = logging.getLogger(__name__)

PRESENCE_KEY = "presence:online:{user_id}"
LAST_SEEN_KEY = "presence:last_seen"


def user_room(user_id: Any) -> str:
    return f"user:{user_id}"


def conversation_room(conversation_id: str) -> str:
    return f"conversation:{conversation_id}"


class RealtimeHub:
    """Registro de conexiones y salas con emisión de eventos."""

    def __init__(self, cache: Optional[CacheStore] = None, presence_ttl: Optional[int] = None):
        self._cache = cache
        self._presence_ttl = presence_ttl
        self.rooms: Dict[str, Set[WebSocket]] = defaultdict(set)
        self.connections: Dict[WebSocket, str] = {}
        self.user_names: Dict[str, str] = {}

    @property
    def cache(self) -> CacheStore:
        if self._cache is None:
            self._cache = get_cache_store()
        return self._cache

    @property
    def presence_ttl(self) -> int:
        if self._presence_ttl is None:
            self._presence_ttl = get_settings().PRESENCE_TTL_SECONDS
        return self._presence_ttl

    # ==================== Conexiones ====================

    async def connect(self, websocket: WebSocket, user_id: Any, user_name: str = "") -> None:
        """
        Registrar un socket ya aceptado y marcar al usuario como conectado.

        Args:
            websocket: Conexión aceptada
            user_id: ID del usuario autenticado
            user_name: Nombre visible del usuario
        """
        uid = str(user_id)
        self.connections[websocket] = uid
        self.user_names[uid] = user_name
        self.join(websocket, user_room(uid))
        await self.touch(uid)
        logger.info("Usuario %s conectado (%d conexiones)", uid, len(self.connections))

    async def disconnect(self, websocket: WebSocket) -> None:
        """Quitar el socket de todas las salas y actualizar presencia."""
        uid = self.connections.pop(websocket, None)
        for room in list(self.rooms):
            self.rooms[room].discard(websocket)
            if not self.rooms[room]:
                del self.rooms[room]

        if uid is None:
            return

        if not self._user_connected(uid):
            self.user_names.pop(uid, None)
            await self.cache.delete(PRESENCE_KEY.format(user_id=uid))
            await self.cache.zadd(LAST_SEEN_KEY, {uid: time.time()})
        logger.info("Usuario %s desconectado", uid)

    def _user_connected(self, user_id: str) -> bool:
        return any(uid == user_id for uid in self.connections.values())

    async def touch(self, user_id: str) -> None:
        """Renovar la presencia del usuario y su última actividad."""
        await self.cache.set(PRESENCE_KEY.format(user_id=user_id), "online", ttl=self.presence_ttl)
        await self.cache.zadd(LAST_SEEN_KEY, {user_id: time.time()})

    def join(self, websocket: WebSocket, room: str) -> None:
        self.rooms[room].add(websocket)

    def leave(self, websocket: WebSocket, room: str) -> None:
        members = self.rooms.get(room)
        if members is None:
            return
        members.discard(websocket)
        if not members:
            del self.rooms[room]

    # ==================== Emisión ====================

    async def send(self, websocket: WebSocket, event: str, data: Dict[str, Any]) -> bool:
        """
        Enviar un evento a un socket.

        Returns:
            False si el envío falló y el socket fue descartado
        """
        envelope = WsOutbound(type=event, data=data)
        try:
            await websocket.send_json(envelope.model_dump(mode="json"))
            return True
        except Exception as e:
            logger.warning("Fallo al enviar '%s', se descarta el socket: %s", event, e)
            await self.disconnect(websocket)
            return False

    async def emit(
        self,
        room: str,
        event: str,
        data: Dict[str, Any],
        exclude: Optional[WebSocket] = None
    ) -> int:
        """
        Enviar un evento a todos los sockets de una sala.

        Args:
            room: Nombre de la sala
            event: Nombre del evento
            data: Datos del evento
            exclude: Socket que no debe recibirlo (el emisor)

        Returns:
            Cantidad de sockets que recibieron el evento
        """
        delivered = 0
        for websocket in list(self.rooms.get(room, ())):
            if websocket is exclude:
                continue
            if await self.send(websocket, event, data):
                delivered += 1
        return delivered

    # ==================== Eventos de dominio ====================

    async def notify_new_message(self, payload: Dict[str, Any]) -> None:
        """
        Emitir un mensaje nuevo a la conversación y avisar al receptor.

        Args:
            payload: {"conversation_id", "message"} con el mensaje serializado
        """
        conversation_id = payload["conversation_id"]
        message = payload["message"]
        now = datetime.utcnow().isoformat()

        await self.emit(conversation_room(conversation_id), "new-message", {
            "message": message,
            "conversation_id": conversation_id,
            "timestamp": now,
        })

        sender = message.get("sender") or {}
        listing = message.get("listing") or {}
        await self.emit(user_room(message["receiver_id"]), "message-notification", {
            "message_id": message["id"],
            "sender_id": message["sender_id"],
            "sender_name": f"{sender.get('first_name', '')} {sender.get('last_name', '')}".strip(),
            "listing_title": listing.get("title"),
            "content": message["content"],
            "message_type": message["message_type"],
            "conversation_id": conversation_id,
            "timestamp": message.get("created_at"),
        })

    async def notify_quote_status_update(self, payload: Dict[str, Any]) -> None:
        """
        Emitir el cambio de estado de una cotización a la conversación y
        avisar a la contraparte de quien lo realizó.
        """
        now = datetime.utcnow().isoformat()
        await self.emit(conversation_room(payload["conversation_id"]), "quote-status-update", {
            "message_id": payload["message_id"],
            "quote_status": payload["quote_status"],
            "quote_amount": payload.get("quote_amount"),
            "quote_terms": payload.get("quote_terms"),
            "updated_by": payload["updated_by"],
            "timestamp": now,
        })
        await self.emit(user_room(payload["notify_user_id"]), "quote-notification", {
            "message_id": payload["message_id"],
            "listing_title": payload.get("listing_title"),
            "quote_status": payload["quote_status"],
            "quote_amount": payload.get("quote_amount"),
            "updated_by": payload.get("updated_by_name"),
            "timestamp": now,
        })

    async def notify_messages_read(self, payload: Dict[str, Any]) -> None:
        """Emitir a la conversación que un participante leyó sus mensajes."""
        await self.emit(conversation_room(payload["conversation_id"]), "messages-read", {
            "conversation_id": payload["conversation_id"],
            "read_by": payload["reader_id"],
            "count": payload["count"],
            "read_at": payload["read_at"],
        })

    # ==================== Mensajes entrantes ====================

    async def handle_inbound(self, websocket: WebSocket, raw: Any) -> None:
        """
        Procesar un mensaje recibido del cliente.

        Args:
            websocket: Socket emisor (ya registrado)
            raw: JSON recibido
        """
        uid = self.connections.get(websocket)
        if uid is None:
            return

        await self.touch(uid)

        try:
            inbound = WsInbound.model_validate(raw)
        except ValueError:
            await self.send(websocket, "error", {"detail": "Mensaje inválido"})
            return

        data = inbound.data
        if inbound.type == "ping":
            await self.send(websocket, "pong", {"timestamp": datetime.utcnow().isoformat()})
            return

        conversation_id = data.get("conversation_id")
        if not isinstance(conversation_id, str) or not is_participant(conversation_id, uid):
            await self.send(websocket, "error", {
                "detail": "Conversación no encontrada",
                "type": inbound.type,
            })
            return

        room = conversation_room(conversation_id)
        if inbound.type == "join-conversation":
            self.join(websocket, room)
            logger.debug("Usuario %s se unió a %s", uid, room)
        elif inbound.type == "leave-conversation":
            self.leave(websocket, room)
        elif inbound.type == "typing-start":
            await self.emit(room, "user-typing", {
                "user_id": uid,
                "user_name": self.user_names.get(uid, ""),
                "conversation_id": conversation_id,
            }, exclude=websocket)
        elif inbound.type == "typing-stop":
            await self.emit(room, "user-stopped-typing", {
                "user_id": uid,
                "conversation_id": conversation_id,
            }, exclude=websocket)
        elif inbound.type == "message-read":
            await self.emit(room, "message-read-receipt", {
                "message_id": data.get("message_id"),
                "read_by": uid,
                "read_at": datetime.utcnow().isoformat(),
            }, exclude=websocket)
        else:
            await self.send(websocket, "error", {"detail": f"Tipo desconocido: {inbound.type}"})

    # ==================== Presencia ====================

    async def is_user_online(self, user_id: Any) -> bool:
        uid = str(user_id)
        if self._user_connected(uid):
            # Conectado a este proceso aunque la clave haya vencido
            await self.touch(uid)
            return True
        return await self.cache.get(PRESENCE_KEY.format(user_id=user_id)) is not None

    async def get_presence(self, user_id: UUID) -> PresenceResponse:
        """Estado de conexión y última actividad conocida de un usuario."""
        online = await self.is_user_online(user_id)
        score = await self.cache.zscore(LAST_SEEN_KEY, str(user_id))
        last_seen = datetime.utcfromtimestamp(score) if score is not None else None
        return PresenceResponse(user_id=user_id, online=online, last_seen=last_seen)


# Instancia global del hub
realtime_hub = RealtimeHub()
