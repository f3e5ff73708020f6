"""
Modelos de Base de Datos: Conversation y Message
Hilo de chat entre comprador y vendedor ligado a una solicitud de diseño.
"""
import uuid
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.database.models.base import Base, utcnow


class MessageKind:
    """Constantes para tipos de mensaje en el chat."""
    STANDARD = "standard"      # Mensaje normal / apertura de discusión
    QUOTATION = "quotation"    # Cotización enviada por el vendedor
    APPROVAL = "approval"      # El comprador aprobó la cotización
    DECLINED = "declined"      # El comprador rechazó la cotización

    ALL = (STANDARD, QUOTATION, APPROVAL, DECLINED)


class Conversation(Base):
    """
    Conversación de una solicitud de diseño.

    Existe como máximo una conversación por (diseño, vendedor): si una
    solicitud broadcast vuelve a la bolsa y la toma otro vendedor, se abre
    un hilo nuevo.
    """

    __tablename__ = "conversations"
    __table_args__ = (
        UniqueConstraint("design_submission_id", "seller_id", name="uq_conversation_design_seller"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    design_submission_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("design_submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    buyer_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    seller_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    # Resumen para la lista de chats
    last_message: Mapped[str] = mapped_column(
        String(100), nullable=False, default="Nueva conversación iniciada."
    )

    last_message_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    messages: Mapped[List["Message"]] = relationship(
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="Message.created_at",
    )

    def __repr__(self) -> str:
        return (
            f"<Conversation(id={self.id}, design={self.design_submission_id}, "
            f"buyer={self.buyer_id}, seller={self.seller_id})>"
        )


class Message(Base):
    """Mensaje dentro de una conversación."""

    __tablename__ = "messages"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    conversation_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    sender_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    design_submission_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("design_submissions.id", ondelete="SET NULL"), nullable=True
    )

    kind: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=MessageKind.STANDARD,
        comment=f"Tipo de mensaje: {', '.join(MessageKind.ALL)}"
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)

    is_read: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    conversation: Mapped["Conversation"] = relationship(back_populates="messages")

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, kind={self.kind}, sender={self.sender_id})>"
