"""
Módulo de modelos ORM.
Importa todos los modelos para que SQLAlchemy los reconozca.
"""
from app.db.base import Base

# Usuarios
from app.models.user import User, UserRole, KycStatus

# Publicaciones
from app.models.listing import Listing, ListingStatus

# Chat y cotizaciones
from app.models.message import Message, MessageType, QuoteStatus, DELETED_MESSAGE_PLACEHOLDER

# Notificaciones
from app.models.notification import Notification

# Outbox de efectos secundarios
from app.models.outbox import OutboxEvent, OutboxStatus

__all__ = [
    "Base",
    # Usuarios
    "User",
    "UserRole",
    "KycStatus",
    # Publicaciones
    "Listing",
    "ListingStatus",
    # Chat
    "Message",
    "MessageType",
    "QuoteStatus",
    "DELETED_MESSAGE_PLACEHOLDER",
    # Notificaciones
    "Notification",
    # Outbox
    "OutboxEvent",
    "OutboxStatus",
]
