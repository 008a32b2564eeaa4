"""
Schemas para publicaciones.
"""
from pydantic import BaseModel
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from app.models.listing import ListingStatus


class ListingSummary(BaseModel):
    """Resumen público de una publicación."""

    id: UUID
    title: str
    price: Decimal
    images: List[str] = []
    status: Optional[ListingStatus] = None

    model_config = {"from_attributes": True}
