"""
Schemas para autenticación.
"""
from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    """Schema para solicitud de login."""

    email: EmailStr
    password: str = Field(..., min_length=1)

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    """Schema de respuesta de token JWT."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int  # segundos

    model_config = {"from_attributes": True}
