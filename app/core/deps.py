"""
Dependencias comunes de FastAPI.
"""
from typing import Generator, Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from jose import JWTError

from app.db.session import SessionLocal
from app.core.security import decode_token

security = HTTPBearer()


def get_db() -> Generator:
    """
    Dependencia que proporciona una sesión de base de datos.

    Yields:
        Session: Sesión de SQLAlchemy
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def user_id_from_token(token: str) -> Optional[UUID]:
    """
    Extraer el ID de usuario de un access token.

    Args:
        token: JWT recibido

    Returns:
        UUID del usuario o None si el token no es válido
    """
    try:
        payload = decode_token(token)
    except JWTError:
        return None

    user_id: Optional[str] = payload.get("sub")
    token_type: Optional[str] = payload.get("type")
    if user_id is None or token_type != "access":
        return None

    try:
        return UUID(str(user_id))
    except ValueError:
        return None


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> UUID:
    """
    Obtener el ID del usuario actual desde el JWT.

    Args:
        credentials: Credenciales HTTP Bearer

    Returns:
        ID del usuario

    Raises:
        HTTPException: Si el token es inválido
    """
    user_id = user_id_from_token(credentials.credentials)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No se pudieron validar las credenciales",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


async def get_current_user(
    db: Session = Depends(get_db),
    user_id: UUID = Depends(get_current_user_id)
):
    """
    Obtener el usuario actual completo desde la base de datos.

    Args:
        db: Sesión de base de datos
        user_id: ID del usuario desde el token

    Returns:
        Usuario actual

    Raises:
        HTTPException: Si el usuario no existe
    """
    # Importar aquí para evitar importación circular
    from app.models.user import User

    user = db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuario no encontrado",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


async def get_current_active_user(
    current_user = Depends(get_current_user)
):
    """
    Verificar que el usuario actual esté activo.

    Args:
        current_user: Usuario actual

    Returns:
        Usuario activo

    Raises:
        HTTPException: Si el usuario no está activo
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Usuario inactivo"
        )

    return current_user
