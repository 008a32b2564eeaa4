"""
Servicio de mensajes.
Creación, lectura, marcado como leído y borrado lógico de mensajes.
"""
import logging
from datetime import datetime
from uuid import UUID
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundException, ForbiddenException
from app.crud.listing import listing as crud_listing
from app.crud.message import message as crud_message
from app.crud.user import user as crud_user
from app.models.message import Message
from app.models.user import User
from app.schemas.message import MessageCreate, MessageResponse
from app.services.conversation_service import build_conversation_id, is_participant
from app.services.outbox_service import (
    enqueue_event,
    EVENT_NOTIFICATION_NEW_MESSAGE,
    EVENT_NOTIFICATION_QUOTE,
    EVENT_REALTIME_MESSAGES_READ,
    EVENT_REALTIME_NEW_MESSAGE,
)

logger = logging.getLogger(__name__)


def create_message(db: Session, sender: User, message_in: MessageCreate) -> MessageResponse:
    """
    Enviar un mensaje sobre una publicación.

    El mensaje y sus efectos secundarios (push en tiempo real y notificación
    al receptor) se confirman en la misma transacción; el despacho lo hace
    el worker de outbox.

    Args:
        db: Sesión de base de datos
        sender: Usuario remitente
        message_in: Datos del mensaje

    Returns:
        Mensaje creado con resúmenes de remitente, receptor y publicación

    Raises:
        NotFoundException: Si la publicación o el receptor no existen
    """
    listing = crud_listing.get(db, id=message_in.listing_id)
    if not listing:
        raise NotFoundException("Publicación no encontrada")

    # El vendedor de la publicación existe por FK; cualquier otro receptor se verifica
    if str(message_in.receiver_id) != str(listing.seller_id):
        receiver = crud_user.get(db, id=message_in.receiver_id)
        if not receiver:
            raise NotFoundException("Usuario receptor no encontrado")

    conversation_id = build_conversation_id(listing.id, sender.id, message_in.receiver_id)

    message = crud_message.create_message(
        db,
        conversation_id=conversation_id,
        sender_id=sender.id,
        receiver_id=message_in.receiver_id,
        listing_id=listing.id,
        content=message_in.content,
        attachments=[str(url) for url in message_in.attachments],
        message_type=message_in.message_type,
        quote_amount=message_in.quote_amount,
        quote_terms=message_in.quote_terms,
    )
    response = MessageResponse.model_validate(message)

    enqueue_event(db, EVENT_REALTIME_NEW_MESSAGE, {
        "conversation_id": conversation_id,
        "message": response.model_dump(mode="json"),
    }, aggregate_id=str(message.id))

    notification_payload = {
        "receiver_id": str(message.receiver_id),
        "sender_name": sender.full_name,
        "listing_title": listing.title,
        "message_id": str(message.id),
        "conversation_id": conversation_id,
    }
    if message.is_quote() and message.quote_amount is not None:
        notification_payload.update({
            "quote_amount": str(message.quote_amount),
            "quote_status": message.quote_status.value,
        })
        enqueue_event(db, EVENT_NOTIFICATION_QUOTE, notification_payload, aggregate_id=str(message.id))
    else:
        notification_payload["content"] = message.content
        enqueue_event(db, EVENT_NOTIFICATION_NEW_MESSAGE, notification_payload, aggregate_id=str(message.id))

    db.commit()
    logger.info(
        "Mensaje %s (%s) enviado en conversación %s",
        response.id, response.message_type.value, conversation_id
    )
    return response


def mark_messages_as_read(db: Session, conversation_id: str, reader_id: UUID) -> int:
    """
    Marcar como leídos los mensajes que el lector recibió en la conversación.

    Repetir la llamada no tiene efecto adicional.

    Args:
        db: Sesión de base de datos
        conversation_id: ID de la conversación
        reader_id: ID del usuario que lee

    Returns:
        Cantidad de mensajes marcados

    Raises:
        ForbiddenException: Si el usuario no participa en la conversación
    """
    if not is_participant(conversation_id, reader_id):
        raise ForbiddenException("No participas en esta conversación")

    updated = crud_message.mark_as_read(db, conversation_id=conversation_id, user_id=reader_id)
    if updated > 0:
        enqueue_event(db, EVENT_REALTIME_MESSAGES_READ, {
            "conversation_id": conversation_id,
            "reader_id": str(reader_id),
            "count": updated,
            "read_at": datetime.utcnow().isoformat(),
        }, aggregate_id=conversation_id)
    db.commit()
    return updated


def get_unread_count(db: Session, user_id: UUID) -> int:
    """Cantidad total de mensajes no leídos del usuario."""
    return crud_message.get_unread_count(db, user_id=user_id)


def get_message_by_id(db: Session, message_id: UUID, user_id: UUID) -> Message:
    """
    Obtener un mensaje visible para el usuario.

    Raises:
        NotFoundException: Si el mensaje no existe
        ForbiddenException: Si el usuario no es remitente ni receptor
    """
    message = crud_message.get(db, id=message_id)
    if not message:
        raise NotFoundException("Mensaje no encontrado")
    if not message.is_participant(user_id):
        raise ForbiddenException("No tienes acceso a este mensaje")
    return message


def delete_message(db: Session, message_id: UUID, requester_id: UUID) -> Message:
    """
    Borrar lógicamente un mensaje: el contenido se reemplaza por un
    marcador y se quitan los adjuntos. Solo el remitente puede hacerlo.

    Args:
        db: Sesión de base de datos
        message_id: ID del mensaje
        requester_id: ID de quien solicita el borrado

    Returns:
        Mensaje actualizado

    Raises:
        NotFoundException: Si el mensaje no existe
        ForbiddenException: Si quien solicita no es el remitente
    """
    message = crud_message.get(db, id=message_id)
    if not message:
        raise NotFoundException("Mensaje no encontrado")
    if str(message.sender_id) != str(requester_id):
        raise ForbiddenException("Solo el remitente puede eliminar el mensaje")

    crud_message.soft_delete(db, db_obj=message)
    db.commit()
    db.refresh(message)
    logger.info("Mensaje %s eliminado por su remitente", message_id)
    return message
