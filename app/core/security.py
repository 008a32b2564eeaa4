"""
Utilidades de seguridad: hashing de contraseñas y access tokens JWT.
"""
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import jwt
from passlib.context import CryptContext
from app.config import settings

# Configurar contexto de hash de contraseñas
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verificar que una contraseña en texto plano coincida con su hash.

    Un hash con formato desconocido (usuarios importados sin contraseña)
    nunca coincide.

    Args:
        plain_password: Contraseña en texto plano
        hashed_password: Hash almacenado

    Returns:
        True si coinciden, False en caso contrario
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    """Generar hash bcrypt de una contraseña."""
    return pwd_context.hash(password)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Crear un JWT access token.

    Args:
        data: Claims a codificar (al menos "sub" con el ID del usuario)
        expires_delta: Tiempo de expiración personalizado

    Returns:
        Token JWT codificado
    """
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    claims = dict(data)
    claims.update({"iat": now, "exp": expire, "type": ACCESS_TOKEN_TYPE})
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decodificar y validar un JWT.

    Args:
        token: Token JWT a decodificar

    Returns:
        Claims del token

    Raises:
        JWTError: Si el token es inválido, expiró o no tiene expiración
    """
    payload = jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[settings.ALGORITHM],
        options={"require_exp": True},
    )
    return payload
