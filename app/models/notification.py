"""
Modelo ORM para Notificaciones.
"""
from datetime import datetime
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from app.db.base import Base, JSONType


class Notification(Base):
    """Modelo de Notificaciones persistentes de un usuario."""

    __tablename__ = "notifications"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(50), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    content = Column(Text)
    reference_id = Column(String(120))
    reference_type = Column(String(50))
    is_read = Column(Boolean, default=False, index=True)
    read_at = Column(DateTime(timezone=True))
    action_url = Column(String(500))
    extra_data = Column(JSONType)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="notifications")

    def __repr__(self):
        return f"<Notification {self.type} for user {self.user_id}>"

    def mark_as_read(self):
        """Marcar notificación como leída."""
        self.is_read = True
        self.read_at = datetime.utcnow()
