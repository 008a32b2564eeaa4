"""
CRUD para usuarios con soporte para Soft Delete.
"""
from typing import Optional
from sqlalchemy.orm import Session
from pydantic import BaseModel
from app.crud.base import CRUDBase
from app.models.user import User
from app.core.security import verify_password


class UserCreate(BaseModel):
    """Los usuarios se crean fuera de este servicio."""
    pass


class UserUpdate(BaseModel):
    """Schema para actualizar usuario."""
    pass


class CRUDUser(CRUDBase[User, UserCreate, UserUpdate]):
    """CRUD específico para usuarios con soporte para soft delete."""

    def get_by_email(
        self, db: Session, *, email: str, include_deleted: bool = False
    ) -> Optional[User]:
        """
        Obtener usuario por email.
        Por defecto excluye usuarios eliminados (soft delete).

        Args:
            db: Sesión de base de datos
            email: Email del usuario
            include_deleted: Incluir usuarios eliminados

        Returns:
            Usuario encontrado o None
        """
        query = db.query(User).filter(User.email == email.lower())

        if not include_deleted:
            query = query.filter(User.deleted_at.is_(None))

        return query.first()

    def authenticate(self, db: Session, *, email: str, password: str) -> Optional[User]:
        """
        Autenticar usuario.
        Solo autentica usuarios no eliminados (soft delete).

        Args:
            db: Sesión de base de datos
            email: Email del usuario
            password: Contraseña en texto plano

        Returns:
            Usuario autenticado o None
        """
        user = self.get_by_email(db, email=email)
        if not user:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user


# Instancia global del CRUD
user = CRUDUser(User)
