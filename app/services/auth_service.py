"""
Servicio de autenticación.
Maneja el login y la emisión de access tokens.
"""
import logging
from datetime import datetime
from sqlalchemy.orm import Session

from app.core.security import create_access_token
from app.core.exceptions import UnauthorizedException
from app.crud.user import user as crud_user
from app.schemas.auth import LoginRequest, TokenResponse
from app.config import settings

logger = logging.getLogger(__name__)


def login_user(db: Session, login_data: LoginRequest) -> TokenResponse:
    """
    Autenticar usuario y generar access token.

    Args:
        db: Sesión de base de datos
        login_data: Credenciales de login

    Returns:
        Token de acceso

    Raises:
        UnauthorizedException: Si las credenciales son inválidas o la cuenta está inactiva
    """
    user = crud_user.authenticate(
        db, email=login_data.email, password=login_data.password
    )

    if not user:
        logger.info("Login fallido para %s", login_data.email)
        raise UnauthorizedException("Email o contraseña incorrectos")

    if not user.is_active:
        raise UnauthorizedException("Tu cuenta está desactivada")

    # Actualizar último login
    user.last_login = datetime.utcnow()
    db.commit()

    access_token = create_access_token(data={"sub": str(user.id)})

    return TokenResponse(
        access_token=access_token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    )
