"""
Servicio de notificaciones.
Crea notificaciones persistentes para los usuarios.
"""
import logging
import math
from decimal import Decimal
from typing import Optional, Dict, Any, Union
from uuid import UUID
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundException
from app.crud.notification import notification as crud_notification
from app.models.message import QuoteStatus
from app.models.notification import Notification
from app.schemas.common import PageMeta
from app.schemas.notification import NotificationCreate, NotificationListResponse, NotificationResponse

logger = logging.getLogger(__name__)

# Tipos de notificación
NOTIFICATION_NEW_MESSAGE = "new_message"
NOTIFICATION_QUOTE_UPDATE = "quote_update"
NOTIFICATION_SYSTEM = "system"

# Largo máximo del extracto del mensaje en la notificación
PREVIEW_LENGTH = 100


def create_notification(
    db: Session,
    user_id: UUID,
    notification_type: str,
    title: str,
    content: Optional[str] = None,
    reference_id: Optional[str] = None,
    reference_type: Optional[str] = None,
    action_url: Optional[str] = None,
    extra_data: Optional[Dict[str, Any]] = None
) -> Notification:
    """
    Crear notificación para un usuario.

    Args:
        db: Sesión de base de datos
        user_id: ID del usuario
        notification_type: Tipo de notificación
        title: Título
        content: Contenido
        reference_id: ID de referencia
        reference_type: Tipo de referencia
        action_url: URL de acción
        extra_data: Datos adicionales en formato JSON

    Returns:
        Notificación creada
    """
    notification = crud_notification.create(db, obj_in=NotificationCreate(
        user_id=user_id,
        type=notification_type,
        title=title,
        content=content,
        reference_id=reference_id,
        reference_type=reference_type,
        action_url=action_url,
        extra_data=extra_data,
    ))
    logger.debug("Notificación %s creada para usuario %s", notification_type, user_id)
    return notification


def truncate_preview(content: str, length: int = PREVIEW_LENGTH) -> str:
    """Recortar el contenido agregando '...' si excede el largo."""
    if len(content) > length:
        return content[:length] + "..."
    return content


def format_amount(amount: Union[Decimal, float, str, None]) -> str:
    """Formatear un monto como '$10000' o '$10000.50'."""
    if amount is None:
        return "$0"
    value = Decimal(str(amount))
    if value == value.to_integral_value():
        return f"${value.quantize(Decimal(1))}"
    return f"${value.quantize(Decimal('0.01'))}"


def notify_new_message(
    db: Session,
    receiver_id: UUID,
    sender_name: str,
    listing_title: str,
    content: str,
    message_id: Optional[str] = None,
    conversation_id: Optional[str] = None
) -> Notification:
    """
    Notificar al receptor que recibió un mensaje.

    Args:
        db: Sesión de base de datos
        receiver_id: ID del receptor
        sender_name: Nombre del remitente
        listing_title: Título de la publicación
        content: Contenido del mensaje
        message_id: ID del mensaje
        conversation_id: ID de la conversación

    Returns:
        Notificación creada
    """
    return create_notification(
        db,
        user_id=receiver_id,
        notification_type=NOTIFICATION_NEW_MESSAGE,
        title="Nuevo mensaje",
        content=f'{sender_name} te envió un mensaje sobre "{listing_title}": {truncate_preview(content)}',
        reference_id=message_id,
        reference_type="message",
        action_url=f"/messages/{conversation_id}" if conversation_id else None,
        extra_data={
            "sender_name": sender_name,
            "listing_title": listing_title,
            "message_content": content,
            "conversation_id": conversation_id,
        },
    )


def notify_quote(
    db: Session,
    receiver_id: UUID,
    sender_name: str,
    listing_title: str,
    quote_amount: Union[Decimal, float, str, None],
    quote_status: str,
    message_id: Optional[str] = None,
    conversation_id: Optional[str] = None
) -> Notification:
    """
    Notificar una cotización nueva o un cambio de estado.

    Args:
        db: Sesión de base de datos
        receiver_id: ID de quien recibe la notificación
        sender_name: Nombre de quien realizó la acción
        listing_title: Título de la publicación
        quote_amount: Monto cotizado
        quote_status: Estado de la cotización
        message_id: ID del mensaje
        conversation_id: ID de la conversación

    Returns:
        Notificación creada
    """
    amount = format_amount(quote_amount)
    status = QuoteStatus(quote_status)

    if status == QuoteStatus.PENDING:
        title = "Nueva cotización recibida"
        content = f'{sender_name} te envió una cotización de {amount} por "{listing_title}"'
    elif status == QuoteStatus.ACCEPTED:
        title = "Cotización aceptada"
        content = f'Tu cotización de {amount} por "{listing_title}" fue aceptada'
    elif status == QuoteStatus.REJECTED:
        title = "Cotización rechazada"
        content = f'Tu cotización de {amount} por "{listing_title}" fue rechazada'
    else:
        title = "Contraoferta recibida"
        content = f'{sender_name} respondió tu cotización con {amount} por "{listing_title}"'

    return create_notification(
        db,
        user_id=receiver_id,
        notification_type=NOTIFICATION_QUOTE_UPDATE,
        title=title,
        content=content,
        reference_id=message_id,
        reference_type="quote",
        action_url=f"/messages/{conversation_id}" if conversation_id else None,
        extra_data={
            "sender_name": sender_name,
            "listing_title": listing_title,
            "quote_amount": str(quote_amount) if quote_amount is not None else None,
            "quote_status": status.value,
            "conversation_id": conversation_id,
        },
    )


def list_notifications(
    db: Session, user_id: UUID, page: int = 1, limit: int = 20
) -> NotificationListResponse:
    """
    Notificaciones del usuario paginadas por número de página.

    Args:
        db: Sesión de base de datos
        user_id: ID del usuario
        page: Número de página (desde 1)
        limit: Notificaciones por página

    Returns:
        Página de notificaciones con sus metadatos
    """
    total = crud_notification.count_by_user(db, user_id=user_id)
    items = crud_notification.get_page_by_user(
        db, user_id=user_id, skip=(page - 1) * limit, limit=limit
    )
    total_pages = math.ceil(total / limit) if total else 0
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in items],
        pagination=PageMeta(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_more=page < total_pages,
        ),
    )


def get_owned_notification(db: Session, notification_id: UUID, user_id: UUID) -> Notification:
    """
    Notificación del usuario.

    Raises:
        NotFoundException: Si no existe o pertenece a otro usuario
    """
    notification = crud_notification.get_owned(db, notification_id=notification_id, user_id=user_id)
    if notification is None:
        raise NotFoundException("Notificación no encontrada")
    return notification


def mark_notification_read(db: Session, notification_id: UUID, user_id: UUID) -> Notification:
    notification = get_owned_notification(db, notification_id, user_id)
    return crud_notification.mark_as_read(db, db_obj=notification)


def delete_notification(db: Session, notification_id: UUID, user_id: UUID) -> None:
    notification = get_owned_notification(db, notification_id, user_id)
    crud_notification.remove(db, db_obj=notification)
    logger.debug("Notificación %s eliminada por usuario %s", notification_id, user_id)
