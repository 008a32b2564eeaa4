"""
Schemas para usuarios.
"""
from pydantic import BaseModel
from typing import Optional
from uuid import UUID

from app.models.user import KycStatus


class UserSummary(BaseModel):
    """Perfil público resumido de un usuario."""

    id: UUID
    first_name: str
    last_name: str
    trust_score: Optional[int] = None
    kyc_status: Optional[KycStatus] = None

    model_config = {"from_attributes": True}
