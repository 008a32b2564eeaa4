"""
Modelo ORM para Mensajes y cotizaciones.
"""
from datetime import datetime
from sqlalchemy import Column, String, Text, Numeric, DateTime, Enum, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
import uuid
from app.db.base import Base, JSONType


class MessageType(str, enum.Enum):
    """Tipos de mensaje."""
    TEXT = "TEXT"
    QUOTE = "QUOTE"
    SYSTEM = "SYSTEM"


class QuoteStatus(str, enum.Enum):
    """Estados de una cotización."""
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    COUNTERED = "COUNTERED"


# Contenido que reemplaza a un mensaje eliminado por su remitente
DELETED_MESSAGE_PLACEHOLDER = "[Mensaje eliminado]"


class Message(Base):
    """
    Modelo de Mensajes del chat.

    La conversación no es una tabla: conversation_id se deriva de la
    publicación y los dos participantes. Los mensajes nunca se borran
    físicamente; el borrado reemplaza el contenido.
    """

    __tablename__ = "messages"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    conversation_id = Column(String(120), nullable=False, index=True)
    sender_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    receiver_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    listing_id = Column(Uuid(as_uuid=True), ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    attachments = Column(JSONType, default=list)
    message_type = Column(Enum(MessageType, name="message_type"), default=MessageType.TEXT, nullable=False)

    # Cotización (solo para message_type = QUOTE)
    quote_amount = Column(Numeric(14, 2))
    quote_terms = Column(Text)
    quote_status = Column(Enum(QuoteStatus, name="quote_status"))

    read_at = Column(DateTime(timezone=True))
    # default en Python para tener resolución de microsegundos al ordenar
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, server_default=func.now(), index=True)

    __table_args__ = (
        Index("ix_messages_receiver_unread", "receiver_id", "read_at"),
        Index("ix_messages_conversation_created", "conversation_id", "created_at"),
    )

    # Relationships
    sender = relationship("User", back_populates="messages_sent", foreign_keys=[sender_id])
    receiver = relationship("User", back_populates="messages_received", foreign_keys=[receiver_id])
    listing = relationship("Listing", back_populates="messages")

    def __repr__(self):
        return f"<Message {self.id} from {self.sender_id} to {self.receiver_id}>"

    def is_quote(self) -> bool:
        """Verificar si el mensaje es una cotización."""
        return self.message_type == MessageType.QUOTE

    def is_participant(self, user_id) -> bool:
        """Verificar si el usuario es remitente o receptor."""
        return str(user_id) in (str(self.sender_id), str(self.receiver_id))
