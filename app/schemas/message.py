"""
Schemas para mensajes y cotizaciones.
"""
from pydantic import BaseModel, Field, AnyUrl
from decimal import Decimal
from uuid import UUID
from datetime import datetime
from typing import List, Optional

from app.models.message import MessageType, QuoteStatus
from app.schemas.common import PageMeta
from app.schemas.listing import ListingSummary
from app.schemas.user import UserSummary


class MessageCreate(BaseModel):
    """Schema para crear mensaje."""

    receiver_id: UUID
    listing_id: UUID
    content: str = Field(..., min_length=1, max_length=2000)
    attachments: List[AnyUrl] = Field(default_factory=list, max_length=5)
    message_type: MessageType = MessageType.TEXT
    quote_amount: Optional[Decimal] = Field(None, gt=0, max_digits=14, decimal_places=2)
    quote_terms: Optional[str] = Field(None, max_length=500)

    model_config = {"from_attributes": True}


class QuoteStatusUpdate(BaseModel):
    """
    Schema para cambiar el estado de una cotización.

    expected_status es el estado que el cliente vio por última vez; si ya
    cambió en el servidor la transición se rechaza con 409.
    """

    quote_status: QuoteStatus
    expected_status: QuoteStatus = QuoteStatus.PENDING
    quote_amount: Optional[Decimal] = Field(None, gt=0, max_digits=14, decimal_places=2)
    quote_terms: Optional[str] = Field(None, max_length=500)

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    """Schema de respuesta de mensaje."""

    id: UUID
    conversation_id: str
    sender_id: UUID
    receiver_id: UUID
    listing_id: UUID
    content: str
    attachments: List[str] = []
    message_type: MessageType
    quote_amount: Optional[Decimal] = None
    quote_terms: Optional[str] = None
    quote_status: Optional[QuoteStatus] = None
    read_at: Optional[datetime] = None
    created_at: datetime

    # Info adicional
    sender: Optional[UserSummary] = None
    receiver: Optional[UserSummary] = None
    listing: Optional[ListingSummary] = None

    model_config = {"from_attributes": True}


class ConversationMessagesResponse(BaseModel):
    """Página de mensajes de una conversación (más antiguos primero)."""

    conversation_id: str
    messages: List[MessageResponse]
    pagination: PageMeta


class MarkReadResponse(BaseModel):
    """Resultado de marcar una conversación como leída."""

    conversation_id: str
    updated_count: int
    success: bool = True
