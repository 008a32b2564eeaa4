"""
Base declarativa de SQLAlchemy con soporte para Soft Delete.
Todos los modelos heredan de esta clase base.
"""
from sqlalchemy import Column, DateTime, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base


# JSONB en PostgreSQL, JSON genérico en otros motores (SQLite en tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class SoftDeleteMixin:
    """
    Mixin que agrega soporte para soft delete a los modelos.

    Los registros con deleted_at distinto de NULL se excluyen de las
    consultas normales del CRUD base.
    """

    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None, index=True)

    @property
    def is_deleted(self) -> bool:
        """Verifica si el registro está eliminado."""
        return self.deleted_at is not None


# Base declarativa de SQLAlchemy
Base = declarative_base()
