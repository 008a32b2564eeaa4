"""
CRUD base genérico con operaciones comunes y soporte para Soft Delete.
"""
from typing import Generic, TypeVar, Type, Optional, Any
from sqlalchemy.orm import Session
from pydantic import BaseModel
from app.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    Clase base para operaciones CRUD con soporte para Soft Delete.

    Las consultas filtran automáticamente los registros eliminados
    (deleted_at IS NULL) en los modelos que tienen esa columna.
    """

    def __init__(self, model: Type[ModelType]):
        """
        Inicializar CRUD con el modelo ORM.

        Args:
            model: Modelo ORM de SQLAlchemy
        """
        self.model = model

    def _base_query(self, db: Session, include_deleted: bool = False):
        """
        Crear query base con filtro de soft delete.

        Args:
            db: Sesión de base de datos
            include_deleted: Si es True, incluye registros eliminados

        Returns:
            Query filtrado
        """
        query = db.query(self.model)
        if not include_deleted and hasattr(self.model, 'deleted_at'):
            query = query.filter(self.model.deleted_at.is_(None))
        return query

    def get(
        self,
        db: Session,
        id: Any,
        include_deleted: bool = False
    ) -> Optional[ModelType]:
        """
        Obtener un registro por ID.

        Args:
            db: Sesión de base de datos
            id: ID del registro
            include_deleted: Si es True, incluye registros eliminados

        Returns:
            Registro encontrado o None
        """
        return self._base_query(db, include_deleted).filter(
            self.model.id == id
        ).first()

    def create(self, db: Session, *, obj_in: CreateSchemaType) -> ModelType:
        """
        Crear un nuevo registro.

        Args:
            db: Sesión de base de datos
            obj_in: Schema con datos de entrada

        Returns:
            Registro creado
        """
        obj_in_data = obj_in.model_dump()
        db_obj = self.model(**obj_in_data)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj
