"""
Schemas comunes reutilizables.
"""
from pydantic import BaseModel
from typing import Optional


class MessageResponse(BaseModel):
    """Schema de respuesta con mensaje simple."""

    message: str
    success: bool = True

    model_config = {"from_attributes": True}


class ErrorResponse(BaseModel):
    """Schema de respuesta de error."""

    detail: str
    error_code: Optional[str] = None

    model_config = {"from_attributes": True}


class PageMeta(BaseModel):
    """Metadatos de paginación por número de página."""

    page: int
    limit: int
    total: Optional[int] = None
    total_pages: Optional[int] = None
    has_more: bool = False
