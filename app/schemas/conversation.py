"""
Schemas para conversaciones.
"""
from pydantic import BaseModel
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from app.models.message import MessageType, QuoteStatus
from app.schemas.common import PageMeta
from app.schemas.listing import ListingSummary
from app.schemas.user import UserSummary


class LastMessage(BaseModel):
    """Vista previa del último mensaje de una conversación."""

    id: UUID
    content: str
    message_type: MessageType
    quote_status: Optional[QuoteStatus] = None
    sender_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class ConversationSummary(BaseModel):
    """Schema de respuesta de conversación."""

    conversation_id: str
    listing_id: UUID
    last_message: LastMessage
    other_user: Optional[UserSummary] = None
    listing: Optional[ListingSummary] = None
    unread_count: int = 0


class ConversationListResponse(BaseModel):
    """Conversaciones del usuario, más recientes primero."""

    conversations: List[ConversationSummary]
    pagination: PageMeta
