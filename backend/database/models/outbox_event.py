"""
Modelo de Base de Datos: OutboxEvent
Intenciones de efectos secundarios (chat, notificaciones) escritas en la misma
transacción que el cambio de estado y entregadas después por el despachador.
"""
import uuid
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from backend.database.models.base import Base, utcnow


class OutboxEventType:
    """Tipos de intención."""
    NOTIFY_USER = "notify_user"                  # Notificación a un usuario
    NOTIFY_SELLERS = "notify_sellers"            # Fan-out a todos los vendedores
    ENSURE_CONVERSATION = "ensure_conversation"  # Asegura el hilo comprador/vendedor
    SYSTEM_MESSAGE = "system_message"            # Mensaje de sistema en el hilo


class OutboxStatus:
    PENDING = "pending"
    PROCESSING = "processing"
    DELIVERED = "delivered"
    FAILED = "failed"


class OutboxEvent(Base):
    __tablename__ = "outbox_events"
    __table_args__ = (
        Index("ix_outbox_events_status_created", "status", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    design_submission_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True, index=True)

    event_type: Mapped[str] = mapped_column(String(40), nullable=False)

    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=OutboxStatus.PENDING)

    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<OutboxEvent(id={self.id}, type={self.event_type}, "
            f"status={self.status}, attempts={self.attempts})>"
        )
