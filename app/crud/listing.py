"""
CRUD de solo lectura para publicaciones.
La gestión de publicaciones vive fuera de este servicio.
"""
from pydantic import BaseModel
from app.crud.base import CRUDBase
from app.models.listing import Listing


class ListingCreate(BaseModel):
    """Las publicaciones se crean fuera de este servicio."""
    pass


class ListingUpdate(BaseModel):
    """Las publicaciones se actualizan fuera de este servicio."""
    pass


class CRUDListing(CRUDBase[Listing, ListingCreate, ListingUpdate]):
    """Lookup de publicaciones por ID (excluye eliminadas)."""
    pass


# Instancia global del CRUD
listing = CRUDListing(Listing)
