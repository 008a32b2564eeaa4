"""
Endpoints de autenticación.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.schemas.auth import LoginRequest, TokenResponse
from app.services import auth_service

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Autenticar usuario y obtener token.

    Requiere:
    - Email
    - Contraseña

    Retorna:
    - access_token: Token de acceso (válido ACCESS_TOKEN_EXPIRE_MINUTES)
    """
    return auth_service.login_user(db, login_data)
