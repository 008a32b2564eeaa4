"""
CRUD para notificaciones.

Las lecturas y escrituras sobre una notificación puntual siempre se filtran
por su dueño: para cualquier otro usuario la notificación no existe.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import desc
from uuid import UUID
from app.crud.base import CRUDBase
from app.models.notification import Notification
from app.schemas.notification import NotificationCreate
from pydantic import BaseModel


class NotificationUpdate(BaseModel):
    """Las notificaciones solo cambian al marcarse como leídas."""
    pass


class CRUDNotification(CRUDBase[Notification, NotificationCreate, NotificationUpdate]):
    """CRUD específico para notificaciones."""

    def _owned_query(self, db: Session, user_id: UUID):
        return db.query(Notification).filter(Notification.user_id == user_id)

    def get_page_by_user(
        self, db: Session, *, user_id: UUID, skip: int = 0, limit: int = 20
    ) -> List[Notification]:
        """
        Página de notificaciones de un usuario, más recientes primero.

        Args:
            db: Sesión de base de datos
            user_id: ID del usuario
            skip: Registros a saltar
            limit: Tamaño de la página

        Returns:
            Lista de notificaciones
        """
        return (
            self._owned_query(db, user_id)
            .order_by(desc(Notification.created_at), desc(Notification.id))
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_by_user(self, db: Session, *, user_id: UUID) -> int:
        return self._owned_query(db, user_id).count()

    def get_unread_count(self, db: Session, *, user_id: UUID) -> int:
        return (
            self._owned_query(db, user_id)
            .filter(Notification.is_read.is_(False))
            .count()
        )

    def get_owned(
        self, db: Session, *, notification_id: UUID, user_id: UUID
    ) -> Optional[Notification]:
        """Notificación por ID solo si pertenece al usuario."""
        return (
            self._owned_query(db, user_id)
            .filter(Notification.id == notification_id)
            .first()
        )

    def mark_as_read(self, db: Session, *, db_obj: Notification) -> Notification:
        """
        Marcar una notificación como leída.

        Marcar una ya leída no cambia su read_at.
        """
        if not db_obj.is_read:
            db_obj.mark_as_read()
            db.commit()
            db.refresh(db_obj)
        return db_obj

    def mark_all_as_read(self, db: Session, *, user_id: UUID) -> int:
        """
        Marcar todas las notificaciones no leídas de un usuario.

        Returns:
            Cantidad de notificaciones marcadas
        """
        updated = (
            self._owned_query(db, user_id)
            .filter(Notification.is_read.is_(False))
            .update({"is_read": True, "read_at": datetime.utcnow()}, synchronize_session=False)
        )
        db.commit()
        return updated

    def remove(self, db: Session, *, db_obj: Notification) -> None:
        """Eliminar definitivamente una notificación."""
        db.delete(db_obj)
        db.commit()


# Instancia global del CRUD
notification = CRUDNotification(Notification)
