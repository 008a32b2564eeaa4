"""
Modelo ORM para Usuarios.
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Enum, CheckConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
import uuid
from app.db.base import Base, SoftDeleteMixin


class UserRole(str, enum.Enum):
    """Roles de usuario del marketplace."""
    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"


class KycStatus(str, enum.Enum):
    """Estado de verificación KYC (calculado fuera de este servicio)."""
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class User(Base, SoftDeleteMixin):
    """Modelo de Usuarios del sistema con soporte para soft delete."""

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(Enum(UserRole, name="user_role"), default=UserRole.BUYER, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    trust_score = Column(Integer, default=0)
    kyc_status = Column(Enum(KycStatus, name="kyc_status"), default=KycStatus.PENDING)
    last_login = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    # deleted_at viene del SoftDeleteMixin

    # Constraints
    __table_args__ = (
        CheckConstraint('trust_score >= 0', name='check_trust_score_positive'),
    )

    # Relationships
    listings = relationship("Listing", back_populates="seller")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")
    messages_sent = relationship("Message", back_populates="sender", foreign_keys="Message.sender_id")
    messages_received = relationship("Message", back_populates="receiver", foreign_keys="Message.receiver_id")

    def __repr__(self):
        return f"<User {self.email}>"

    @property
    def full_name(self) -> str:
        """Nombre completo para mostrar en notificaciones."""
        return f"{self.first_name} {self.last_name}"
