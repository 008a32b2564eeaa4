"""
Endpoints de mensajes y cotizaciones.
"""
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from uuid import UUID

from app.core.deps import get_db, get_current_active_user
from app.core.exceptions import BadRequestException
from app.schemas.conversation import ConversationListResponse
from app.schemas.message import (
    ConversationMessagesResponse,
    MarkReadResponse,
    MessageCreate,
    MessageResponse,
    QuoteStatusUpdate,
)
from app.schemas.notification import UnreadCountResponse
from app.models.user import User
from app.services import conversation_service, message_service, quote_service

router = APIRouter()


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def send_message(
    message_in: MessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Enviar un mensaje (texto, cotización o sistema) sobre una publicación.

    Las cotizaciones nacen en estado PENDING.
    """
    if str(message_in.receiver_id) == str(current_user.id):
        raise BadRequestException("No puedes enviarte mensajes a ti mismo")

    return message_service.create_message(db, current_user, message_in)


@router.get("/unread-count", response_model=UnreadCountResponse)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Cantidad de mensajes no leídos del usuario en todas sus conversaciones.
    """
    count = message_service.get_unread_count(db, current_user.id)
    return UnreadCountResponse(unread_count=count)


@router.get("/conversations", response_model=ConversationListResponse)
def get_conversations(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Listar conversaciones del usuario, más recientes primero.
    """
    return conversation_service.get_user_conversations(
        db, current_user.id, page=page, limit=limit
    )


@router.get(
    "/conversations/{listing_id}/{other_user_id}",
    response_model=ConversationMessagesResponse
)
def get_conversation(
    listing_id: UUID,
    other_user_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Obtener mensajes con otro usuario sobre una publicación.

    Los mensajes recibidos por el usuario actual quedan marcados como leídos.
    """
    result = conversation_service.get_conversation(
        db, listing_id, current_user.id, other_user_id, page=page, limit=limit
    )
    message_service.mark_messages_as_read(db, result.conversation_id, current_user.id)
    return result


@router.put("/conversations/{conversation_id}/read", response_model=MarkReadResponse)
def mark_conversation_as_read(
    conversation_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Marcar como leídos los mensajes recibidos en una conversación.
    """
    updated = message_service.mark_messages_as_read(db, conversation_id, current_user.id)
    return MarkReadResponse(conversation_id=conversation_id, updated_count=updated)


@router.put("/{message_id}/quote-status", response_model=MessageResponse)
def update_quote_status(
    message_id: UUID,
    update_in: QuoteStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Aceptar, rechazar o contraofertar una cotización.

    - ACCEPTED / REJECTED: solo el receptor
    - COUNTERED: solo el remitente, opcionalmente con nuevo monto y condiciones

    Retorna 409 si la cotización ya no está en expected_status.
    """
    return quote_service.update_quote_status(
        db,
        message_id=message_id,
        actor=current_user,
        quote_status=update_in.quote_status,
        expected_status=update_in.expected_status,
        quote_amount=update_in.quote_amount,
        quote_terms=update_in.quote_terms,
    )


@router.get("/{message_id}", response_model=MessageResponse)
def get_message(
    message_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Obtener un mensaje. Solo remitente o receptor.
    """
    return message_service.get_message_by_id(db, message_id, current_user.id)


@router.delete("/{message_id}", response_model=MessageResponse)
def delete_message(
    message_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Eliminar un mensaje propio.

    El contenido se reemplaza por un marcador y se quitan los adjuntos;
    el mensaje sigue formando parte de la conversación.
    """
    return message_service.delete_message(db, message_id, current_user.id)
