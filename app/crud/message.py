"""
CRUD para mensajes.

Los métodos de escritura NO hacen commit: la capa de servicios confirma la
transacción junto con los eventos de outbox.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence
from sqlalchemy.orm import Session
from sqlalchemy import asc, desc, func, or_
from uuid import UUID
from app.crud.base import CRUDBase
from app.models.message import Message, MessageType, QuoteStatus, DELETED_MESSAGE_PLACEHOLDER
from pydantic import BaseModel


class MessageCreate(BaseModel):
    """Los mensajes se crean con create_message()."""
    pass


class MessageUpdate(BaseModel):
    """Schema para actualizar mensaje."""
    pass


class CRUDMessage(CRUDBase[Message, MessageCreate, MessageUpdate]):
    """CRUD específico para mensajes."""

    def create_message(
        self,
        db: Session,
        *,
        conversation_id: str,
        sender_id: UUID,
        receiver_id: UUID,
        listing_id: UUID,
        content: str,
        attachments: Optional[List[str]] = None,
        message_type: MessageType = MessageType.TEXT,
        quote_amount: Optional[Decimal] = None,
        quote_terms: Optional[str] = None,
    ) -> Message:
        """
        Insertar mensaje (sin commit).

        Las cotizaciones nacen en estado PENDING; los demás tipos no llevan
        datos de cotización.

        Args:
            db: Sesión de base de datos
            conversation_id: ID derivado de la conversación
            sender_id: ID del remitente
            receiver_id: ID del receptor
            listing_id: ID de la publicación
            content: Texto del mensaje
            attachments: URIs adjuntas
            message_type: Tipo de mensaje
            quote_amount: Monto cotizado
            quote_terms: Condiciones de la cotización

        Returns:
            Mensaje creado (con ID asignado)
        """
        is_quote = message_type == MessageType.QUOTE
        db_obj = Message(
            conversation_id=conversation_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            listing_id=listing_id,
            content=content,
            attachments=list(attachments or []),
            message_type=message_type,
            quote_amount=quote_amount if is_quote else None,
            quote_terms=quote_terms if is_quote else None,
            quote_status=QuoteStatus.PENDING if is_quote else None,
        )
        db.add(db_obj)
        db.flush()
        return db_obj

    def get_by_conversation(
        self, db: Session, *, conversation_id: str, skip: int = 0, limit: int = 50
    ) -> List[Message]:
        """
        Obtener una página de mensajes de una conversación.
        La página se selecciona desde el más reciente y se retorna en orden
        cronológico (más antiguo primero).

        Args:
            db: Sesión de base de datos
            conversation_id: ID de la conversación
            skip: Cantidad de mensajes recientes a saltar
            limit: Límite de registros (default 50)

        Returns:
            Lista de mensajes
        """
        messages = (
            db.query(Message)
            .filter(Message.conversation_id == conversation_id)
            .order_by(desc(Message.created_at))
            .offset(skip)
            .limit(limit)
            .all()
        )
        messages.reverse()
        return messages

    def count_by_conversation(self, db: Session, *, conversation_id: str) -> int:
        """Cantidad total de mensajes de una conversación."""
        return db.query(Message).filter(Message.conversation_id == conversation_id).count()

    def mark_as_read(
        self, db: Session, *, conversation_id: str, user_id: UUID
    ) -> int:
        """
        Marcar como leídos los mensajes recibidos por el usuario (sin commit).
        Solo toca mensajes con read_at vacío, por lo que repetir la llamada
        no cambia nada.

        Args:
            db: Sesión de base de datos
            conversation_id: ID de la conversación
            user_id: ID del receptor que lee

        Returns:
            Cantidad de mensajes marcados
        """
        return (
            db.query(Message)
            .filter(
                Message.conversation_id == conversation_id,
                Message.receiver_id == user_id,
                Message.read_at.is_(None)
            )
            .update({"read_at": datetime.utcnow()}, synchronize_session=False)
        )

    def get_unread_count(self, db: Session, *, user_id: UUID) -> int:
        """
        Cantidad global de mensajes no leídos donde el usuario es receptor.

        Args:
            db: Sesión de base de datos
            user_id: ID del usuario

        Returns:
            Cantidad de mensajes no leídos
        """
        return (
            db.query(Message)
            .filter(Message.receiver_id == user_id, Message.read_at.is_(None))
            .count()
        )

    def get_unread_counts_by_conversation(
        self, db: Session, *, user_id: UUID, conversation_ids: Sequence[str]
    ) -> Dict[str, int]:
        """
        Mensajes no leídos del usuario agrupados por conversación.

        Args:
            db: Sesión de base de datos
            user_id: ID del receptor
            conversation_ids: Conversaciones a considerar

        Returns:
            Diccionario conversation_id -> cantidad
        """
        if not conversation_ids:
            return {}
        rows = (
            db.query(Message.conversation_id, func.count(Message.id))
            .filter(
                Message.conversation_id.in_(list(conversation_ids)),
                Message.receiver_id == user_id,
                Message.read_at.is_(None)
            )
            .group_by(Message.conversation_id)
            .all()
        )
        return {conversation_id: count for conversation_id, count in rows}

    def _ranked_conversation_messages(self, db: Session, user_id: UUID):
        """
        Mensajes del usuario numerados dentro de su conversación, del más
        reciente al más antiguo. Los empates de created_at se rompen por id.
        """
        rank = func.row_number().over(
            partition_by=Message.conversation_id,
            order_by=(desc(Message.created_at), desc(Message.id)),
        )
        return (
            db.query(Message.id.label("id"), rank.label("rank"))
            .filter(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
            .subquery()
        )

    def get_latest_per_conversation(
        self, db: Session, *, user_id: UUID, skip: int = 0, limit: int = 20
    ) -> List[Message]:
        """
        Último mensaje de cada conversación del usuario, ordenadas por
        actividad más reciente.

        Args:
            db: Sesión de base de datos
            user_id: ID del usuario
            skip: Conversaciones a saltar
            limit: Límite de conversaciones

        Returns:
            Lista con un mensaje por conversación
        """
        ranked = self._ranked_conversation_messages(db, user_id)
        return (
            db.query(Message)
            .join(ranked, Message.id == ranked.c.id)
            .filter(ranked.c.rank == 1)
            .order_by(desc(Message.created_at), asc(Message.conversation_id))
            .offset(skip)
            .limit(limit)
            .all()
        )

    def transition_quote(
        self,
        db: Session,
        *,
        message_id: UUID,
        expected_status: QuoteStatus,
        new_status: QuoteStatus,
        quote_amount: Optional[Decimal] = None,
        quote_terms: Optional[str] = None,
    ) -> int:
        """
        Cambiar el estado de una cotización solo si el estado guardado
        coincide con expected_status (compare-and-swap, sin commit).

        Args:
            db: Sesión de base de datos
            message_id: ID del mensaje
            expected_status: Estado que se espera encontrar
            new_status: Nuevo estado
            quote_amount: Nuevo monto (opcional)
            quote_terms: Nuevas condiciones (opcional)

        Returns:
            Filas actualizadas (0 si el estado ya había cambiado)
        """
        values = {"quote_status": new_status}
        if quote_amount is not None:
            values["quote_amount"] = quote_amount
        if quote_terms is not None:
            values["quote_terms"] = quote_terms

        return (
            db.query(Message)
            .filter(
                Message.id == message_id,
                Message.message_type == MessageType.QUOTE,
                Message.quote_status == expected_status,
            )
            .update(values, synchronize_session=False)
        )

    def soft_delete(self, db: Session, *, db_obj: Message) -> Message:
        """
        Reemplazar el contenido por el marcador de eliminado (sin commit).
        La fila, sus timestamps y la conversación se conservan.

        Args:
            db: Sesión de base de datos
            db_obj: Mensaje a eliminar

        Returns:
            Mensaje actualizado
        """
        db_obj.content = DELETED_MESSAGE_PLACEHOLDER
        db_obj.attachments = []
        db.add(db_obj)
        db.flush()
        return db_obj


# Instancia global del CRUD
message = CRUDMessage(Message)
