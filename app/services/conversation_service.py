"""
Servicio de conversaciones.

Una conversación no se almacena: su ID se deriva de la publicación y de los
dos participantes, ordenados para que no importe quién escribió primero.
"""
import math
from typing import Tuple, Union
from uuid import UUID
from sqlalchemy.orm import Session

from app.crud.listing import listing as crud_listing
from app.crud.message import message as crud_message
from app.crud.user import user as crud_user
from app.core.exceptions import BadRequestException
from app.schemas.common import PageMeta
from app.schemas.conversation import (
    ConversationListResponse,
    ConversationSummary,
    LastMessage,
)
from app.schemas.listing import ListingSummary
from app.schemas.message import ConversationMessagesResponse, MessageResponse
from app.schemas.user import UserSummary

IdLike = Union[UUID, str]


def build_conversation_id(listing_id: IdLike, user_a: IdLike, user_b: IdLike) -> str:
    """
    Construir el ID canónico de una conversación.

    Args:
        listing_id: ID de la publicación
        user_a: ID de un participante
        user_b: ID del otro participante

    Returns:
        "<listing>_<menor>_<mayor>", igual para (a, b) y (b, a)
    """
    first, second = sorted([str(user_a), str(user_b)])
    return f"{listing_id}_{first}_{second}"


def parse_conversation_id(conversation_id: str) -> Tuple[UUID, UUID, UUID]:
    """
    Separar un ID de conversación en publicación y participantes.

    Raises:
        BadRequestException: Si el ID no tiene el formato esperado
    """
    parts = conversation_id.split("_")
    if len(parts) != 3:
        raise BadRequestException("ID de conversación inválido")
    try:
        return UUID(parts[0]), UUID(parts[1]), UUID(parts[2])
    except ValueError:
        raise BadRequestException("ID de conversación inválido")


def is_participant(conversation_id: str, user_id: IdLike) -> bool:
    """Verificar si el usuario es uno de los dos participantes."""
    try:
        _, user_a, user_b = parse_conversation_id(conversation_id)
    except BadRequestException:
        return False
    return str(user_id) in (str(user_a), str(user_b))


def get_user_conversations(
    db: Session,
    user_id: UUID,
    page: int = 1,
    limit: int = 20
) -> ConversationListResponse:
    """
    Listar las conversaciones del usuario, más recientes primero.

    Cada entrada lleva el último mensaje como vista previa, la cantidad de
    mensajes no leídos por el usuario en esa conversación y los resúmenes del
    otro participante y de la publicación.

    Args:
        db: Sesión de base de datos
        user_id: ID del usuario
        page: Número de página (desde 1)
        limit: Conversaciones por página

    Returns:
        Conversaciones paginadas
    """
    skip = (page - 1) * limit
    latest = crud_message.get_latest_per_conversation(
        db, user_id=user_id, skip=skip, limit=limit + 1
    )
    has_more = len(latest) > limit
    latest = latest[:limit]

    unread = crud_message.get_unread_counts_by_conversation(
        db, user_id=user_id, conversation_ids=[m.conversation_id for m in latest]
    )

    conversations = []
    for last in latest:
        other_id = last.receiver_id if str(last.sender_id) == str(user_id) else last.sender_id
        other_user = crud_user.get(db, id=other_id, include_deleted=True)
        listing = crud_listing.get(db, id=last.listing_id, include_deleted=True)

        conversations.append(ConversationSummary(
            conversation_id=last.conversation_id,
            listing_id=last.listing_id,
            last_message=LastMessage.model_validate(last),
            other_user=UserSummary.model_validate(other_user) if other_user else None,
            listing=ListingSummary.model_validate(listing) if listing else None,
            unread_count=unread.get(last.conversation_id, 0),
        ))

    return ConversationListResponse(
        conversations=conversations,
        pagination=PageMeta(page=page, limit=limit, has_more=has_more),
    )


def get_conversation(
    db: Session,
    listing_id: UUID,
    user_id: UUID,
    other_user_id: UUID,
    page: int = 1,
    limit: int = 50
) -> ConversationMessagesResponse:
    """
    Obtener una página de mensajes entre dos usuarios sobre una publicación.

    La página se toma desde el mensaje más reciente y se retorna en orden
    cronológico.

    Args:
        db: Sesión de base de datos
        listing_id: ID de la publicación
        user_id: ID del usuario que consulta
        other_user_id: ID del otro participante
        page: Número de página (desde 1)
        limit: Mensajes por página

    Returns:
        Mensajes paginados

    Raises:
        BadRequestException: Si el usuario consulta una conversación consigo mismo
    """
    if str(user_id) == str(other_user_id):
        raise BadRequestException("No puedes tener una conversación contigo mismo")

    conversation_id = build_conversation_id(listing_id, user_id, other_user_id)
    total = crud_message.count_by_conversation(db, conversation_id=conversation_id)
    messages = crud_message.get_by_conversation(
        db, conversation_id=conversation_id, skip=(page - 1) * limit, limit=limit
    )
    total_pages = math.ceil(total / limit) if total else 0

    return ConversationMessagesResponse(
        conversation_id=conversation_id,
        messages=[MessageResponse.model_validate(m) for m in messages],
        pagination=PageMeta(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_more=page < total_pages,
        ),
    )
