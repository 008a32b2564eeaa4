"""
CRUD para la bandeja de salida (outbox) de efectos secundarios.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_, asc, or_
from pydantic import BaseModel
from app.crud.base import CRUDBase
from app.models.outbox import OutboxEvent, OutboxStatus


class OutboxEventCreate(BaseModel):
    """Schema para encolar un evento."""

    event_type: str
    aggregate_id: Optional[str] = None
    payload: Dict[str, Any]


class OutboxEventUpdate(BaseModel):
    """Schema para actualizar evento."""
    pass


class CRUDOutboxEvent(CRUDBase[OutboxEvent, OutboxEventCreate, OutboxEventUpdate]):
    """CRUD específico para eventos de outbox."""

    def enqueue(self, db: Session, *, obj_in: OutboxEventCreate) -> OutboxEvent:
        """
        Agregar evento a la sesión actual (sin commit).
        Se confirma junto con la escritura principal.

        Args:
            db: Sesión de base de datos
            obj_in: Datos del evento

        Returns:
            Evento encolado
        """
        now = datetime.utcnow()
        db_obj = OutboxEvent(
            event_type=obj_in.event_type,
            aggregate_id=obj_in.aggregate_id,
            payload=obj_in.payload,
            status=OutboxStatus.PENDING,
            attempts=0,
            next_attempt_at=now,
            created_at=now,
        )
        db.add(db_obj)
        return db_obj

    def claim_due(
        self, db: Session, *, limit: int = 50, claim_timeout: int = 120
    ) -> List[OutboxEvent]:
        """
        Reservar eventos listos para despacho y marcarlos como 'processing'.

        Incluye eventos 'processing' cuya reserva venció (worker caído).
        En PostgreSQL usa FOR UPDATE SKIP LOCKED para que varios workers no
        tomen el mismo evento.

        Args:
            db: Sesión de base de datos
            limit: Máximo de eventos a reservar
            claim_timeout: Segundos tras los cuales una reserva se considera vencida

        Returns:
            Eventos reservados
        """
        now = datetime.utcnow()
        stale_before = now - timedelta(seconds=claim_timeout)
        events = (
            db.query(OutboxEvent)
            .filter(
                or_(
                    and_(
                        OutboxEvent.status == OutboxStatus.PENDING,
                        OutboxEvent.next_attempt_at <= now,
                    ),
                    and_(
                        OutboxEvent.status == OutboxStatus.PROCESSING,
                        OutboxEvent.claimed_at < stale_before,
                    ),
                )
            )
            .order_by(asc(OutboxEvent.id))
            .limit(limit)
            .with_for_update(skip_locked=True)
            .all()
        )
        for event in events:
            event.status = OutboxStatus.PROCESSING
            event.claimed_at = now
        db.commit()
        return events

    def mark_done(self, db: Session, *, event_id: int) -> None:
        """Marcar evento como despachado."""
        event = self.get(db, id=event_id)
        if event:
            event.status = OutboxStatus.DONE
            event.attempts += 1
            event.processed_at = datetime.utcnow()
            event.last_error = None
            db.commit()

    def mark_attempt_failed(
        self, db: Session, *, event_id: int, error: str, retry_in: Optional[float], max_attempts: int
    ) -> Optional[OutboxEvent]:
        """
        Registrar un intento fallido.

        Reprograma el evento tras retry_in segundos o lo marca como 'failed'
        si agotó los intentos.

        Args:
            db: Sesión de base de datos
            event_id: ID del evento
            error: Descripción del error
            retry_in: Segundos hasta el siguiente intento
            max_attempts: Intentos máximos permitidos

        Returns:
            Evento actualizado
        """
        event = self.get(db, id=event_id)
        if not event:
            return None
        event.attempts += 1
        event.last_error = error[:2000]
        event.claimed_at = None
        if event.attempts >= max_attempts or retry_in is None:
            event.status = OutboxStatus.FAILED
            event.processed_at = datetime.utcnow()
        else:
            event.status = OutboxStatus.PENDING
            event.next_attempt_at = datetime.utcnow() + timedelta(seconds=retry_in)
        db.commit()
        db.refresh(event)
        return event


# Instancia global del CRUD
outbox = CRUDOutboxEvent(OutboxEvent)
