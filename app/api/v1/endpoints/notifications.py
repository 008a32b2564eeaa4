"""
Endpoints de notificaciones del usuario autenticado.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from uuid import UUID

from app.core.deps import get_db, get_current_active_user
from app.crud.notification import notification as crud_notification
from app.schemas.notification import (
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from app.schemas.common import MessageResponse
from app.services import notification_service
from app.models.user import User

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Listar notificaciones, más recientes primero.

    - **page**: Número de página (desde 1)
    - **limit**: Notificaciones por página (máx. 100)
    """
    return notification_service.list_notifications(
        db, current_user.id, page=page, limit=limit
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    count = crud_notification.get_unread_count(db, user_id=current_user.id)
    return UnreadCountResponse(unread_count=count)


@router.post("/mark-all-read", response_model=MessageResponse)
def mark_all_notifications_as_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    count = crud_notification.mark_all_as_read(db, user_id=current_user.id)
    return MessageResponse(message=f"{count} notificaciones marcadas como leídas")


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
def mark_notification_as_read(
    notification_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Marcar una notificación propia como leída.

    Las notificaciones de otros usuarios responden 404.
    """
    return notification_service.mark_notification_read(db, notification_id, current_user.id)


@router.delete("/{notification_id}", response_model=MessageResponse)
def delete_notification(
    notification_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Eliminar una notificación propia.

    Las notificaciones de otros usuarios responden 404.
    """
    notification_service.delete_notification(db, notification_id, current_user.id)
    return MessageResponse(message="Notificación eliminada")
