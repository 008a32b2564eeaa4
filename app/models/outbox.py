"""
Modelo ORM para la bandeja de salida (outbox) de efectos secundarios.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, Index
from app.db.base import Base, JSONType


class OutboxStatus:
    """Estados de un evento de outbox."""
    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


class OutboxEvent(Base):
    """
    Evento pendiente de despacho (notificación o push en tiempo real).

    Se inserta en la misma transacción que la escritura principal y lo
    consume el OutboxDispatcher en segundo plano.
    """

    __tablename__ = "outbox_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_type = Column(String(50), nullable=False, index=True)
    aggregate_id = Column(String(120), index=True)
    payload = Column(JSONType, nullable=False)
    status = Column(String(20), nullable=False, default=OutboxStatus.PENDING)
    attempts = Column(Integer, nullable=False, default=0)
    next_attempt_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    claimed_at = Column(DateTime)
    last_error = Column(Text)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    processed_at = Column(DateTime)

    __table_args__ = (
        Index("ix_outbox_events_status_next_attempt", "status", "next_attempt_at"),
    )

    def __repr__(self):
        return f"<OutboxEvent {self.id} {self.event_type} status={self.status}>"
