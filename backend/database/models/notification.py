"""
Modelo de Base de Datos: Notification
Avisos para compradores y vendedores.
"""
import uuid
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from backend.database.models.base import Base, utcnow


class NotificationKind:
    """Constantes para tipos de notificación."""
    DESIGN_REQUEST = "design_request"    # Nueva solicitud (directa o broadcast)
    ORDER_UPDATE = "order_update"        # Cambio de estado de la solicitud / pedido
    DESIGN_RESPONSE = "design_response"  # Respuesta del comprador a una cotización
    SYSTEM = "system"


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    kind: Mapped[str] = mapped_column(String(30), nullable=False, default=NotificationKind.ORDER_UPDATE)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    # Diseño o pedido relacionado
    related_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)

    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, user={self.user_id}, kind={self.kind})>"
