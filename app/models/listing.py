"""
Modelo ORM para Publicaciones de equipos.
"""
from sqlalchemy import Column, String, Numeric, DateTime, Enum, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
import uuid
from app.db.base import Base, SoftDeleteMixin, JSONType


class ListingStatus(str, enum.Enum):
    """Estados de una publicación."""
    ACTIVE = "active"
    PENDING = "pending"
    SOLD = "sold"
    INACTIVE = "inactive"


class Listing(Base, SoftDeleteMixin):
    """Modelo de Publicaciones (equipos en venta) con soporte para soft delete."""

    __tablename__ = "listings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    seller_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    price = Column(Numeric(14, 2), nullable=False)
    images = Column(JSONType, default=list)
    status = Column(Enum(ListingStatus, name="listing_status"), default=ListingStatus.ACTIVE, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    # deleted_at viene del SoftDeleteMixin

    # Relationships
    seller = relationship("User", back_populates="listings", foreign_keys=[seller_id])
    messages = relationship("Message", back_populates="listing")

    def __repr__(self):
        return f"<Listing {self.title} by user {self.seller_id}>"
