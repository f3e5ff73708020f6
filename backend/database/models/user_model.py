"""
Modelo de Base de Datos: User
Compradores, vendedores (pasteleros) y administradores del marketplace.
"""
import uuid
from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, SmallInteger, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from backend.database.models.base import Base, utcnow


class UserRole:
    """Constantes para roles de usuario."""
    ADMIN = 1
    BUYER = 2
    SELLER = 3


class User(Base):
    __tablename__ = "users"

    # ID y Tiempos
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Información del Usuario
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Rol del sistema
    # 1 = Admin | 2 = Comprador | 3 = Vendedor
    role: Mapped[int] = mapped_column(
        SmallInteger, nullable=False, default=UserRole.BUYER, server_default=text("2")
    )

    # Estado
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )

    @property
    def is_seller(self) -> bool:
        return self.role == UserRole.SELLER

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, role={self.role})>"
