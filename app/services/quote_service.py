"""
Máquina de estados de cotizaciones.

Una cotización es un mensaje de tipo QUOTE. Solo existen transiciones desde
PENDING; ACCEPTED, REJECTED y COUNTERED son finales para ese mensaje. El
cambio se aplica como compare-and-swap sobre el estado esperado, de modo
que una decisión ya tomada no puede ser sobrescrita por una petición
concurrente con información vieja.
"""
import logging
from decimal import Decimal
from typing import Dict, FrozenSet, Optional
from uuid import UUID
from sqlalchemy.orm import Session

from app.core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from app.crud.message import message as crud_message
from app.models.message import QuoteStatus
from app.models.user import User
from app.schemas.message import MessageResponse
from app.services.outbox_service import (
    enqueue_event,
    EVENT_NOTIFICATION_QUOTE,
    EVENT_REALTIME_QUOTE_STATUS,
)

logger = logging.getLogger(__name__)

QUOTE_TRANSITIONS: Dict[QuoteStatus, FrozenSet[QuoteStatus]] = {
    QuoteStatus.PENDING: frozenset({
        QuoteStatus.ACCEPTED,
        QuoteStatus.REJECTED,
        QuoteStatus.COUNTERED,
    }),
    QuoteStatus.ACCEPTED: frozenset(),
    QuoteStatus.REJECTED: frozenset(),
    QuoteStatus.COUNTERED: frozenset(),
}

# Estados que solo el receptor de la cotización puede aplicar
RECEIVER_DECISIONS = frozenset({QuoteStatus.ACCEPTED, QuoteStatus.REJECTED})


def can_transition(current: QuoteStatus, new: QuoteStatus) -> bool:
    """Verificar si la transición está definida."""
    return new in QUOTE_TRANSITIONS.get(current, frozenset())


def update_quote_status(
    db: Session,
    message_id: UUID,
    actor: User,
    quote_status: QuoteStatus,
    expected_status: QuoteStatus = QuoteStatus.PENDING,
    quote_amount: Optional[Decimal] = None,
    quote_terms: Optional[str] = None
) -> MessageResponse:
    """
    Cambiar el estado de una cotización.

    Args:
        db: Sesión de base de datos
        message_id: ID del mensaje de cotización
        actor: Usuario que realiza la acción
        quote_status: Nuevo estado
        expected_status: Estado que el actor espera encontrar
        quote_amount: Nuevo monto (contraoferta)
        quote_terms: Nuevas condiciones (contraoferta)

    Returns:
        Mensaje actualizado

    Raises:
        NotFoundException: Si el mensaje no existe
        ValidationException: Si el mensaje no es una cotización o el estado destino es PENDING
        ForbiddenException: Si el actor no tiene el rol requerido
        ConflictException: Si la transición no aplica al estado actual
    """
    message = crud_message.get(db, id=message_id)
    if not message:
        raise NotFoundException("Mensaje no encontrado")

    if not message.is_quote():
        raise ValidationException("El mensaje no es una cotización")

    if quote_status == QuoteStatus.PENDING:
        raise ValidationException("Una cotización no puede volver a PENDING")

    actor_id = str(actor.id)
    if quote_status in RECEIVER_DECISIONS:
        if actor_id != str(message.receiver_id):
            raise ForbiddenException("Solo el receptor puede aceptar o rechazar la cotización")
    elif actor_id != str(message.sender_id):
        raise ForbiddenException("Solo el remitente puede hacer una contraoferta")

    if not can_transition(expected_status, quote_status):
        raise ConflictException(
            f"La cotización no puede pasar de {expected_status.value} a {quote_status.value}"
        )

    updated = crud_message.transition_quote(
        db,
        message_id=message.id,
        expected_status=expected_status,
        new_status=quote_status,
        quote_amount=quote_amount,
        quote_terms=quote_terms,
    )
    if updated == 0:
        db.rollback()
        raise ConflictException("El estado de la cotización cambió; recarga la conversación")

    db.refresh(message)
    response = MessageResponse.model_validate(message)

    # La contraparte de quien actúa es la que recibe el aviso
    if quote_status == QuoteStatus.COUNTERED:
        notify_user_id = message.receiver_id
    else:
        notify_user_id = message.sender_id

    enqueue_event(db, EVENT_REALTIME_QUOTE_STATUS, {
        "conversation_id": message.conversation_id,
        "message_id": str(message.id),
        "quote_status": quote_status.value,
        "quote_amount": str(message.quote_amount) if message.quote_amount is not None else None,
        "quote_terms": message.quote_terms,
        "updated_by": actor_id,
        "updated_by_name": actor.full_name,
        "notify_user_id": str(notify_user_id),
        "listing_title": message.listing.title if message.listing else None,
    }, aggregate_id=str(message.id))

    enqueue_event(db, EVENT_NOTIFICATION_QUOTE, {
        "receiver_id": str(notify_user_id),
        "sender_name": actor.full_name,
        "listing_title": message.listing.title if message.listing else "",
        "quote_amount": str(message.quote_amount) if message.quote_amount is not None else None,
        "quote_status": quote_status.value,
        "message_id": str(message.id),
        "conversation_id": message.conversation_id,
    }, aggregate_id=str(message.id))

    db.commit()
    logger.info(
        "Cotización %s: %s -> %s por usuario %s",
        message.id, expected_status.value, quote_status.value, actor_id
    )
    return response
