"""
Modelo de Base de Datos: DesignSubmission
Solicitud de pastel personalizado enviada por un comprador.
"""
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from backend.database.models.base import Base, utcnow


class DesignStatus:
    """Constantes para estados de una solicitud de diseño."""
    PENDING = "pending"          # Recién creada / devuelta a la bolsa
    DISCUSSION = "discussion"    # El vendedor abrió conversación
    QUOTED = "quoted"            # El vendedor fijó un precio final
    APPROVED = "approved"        # El comprador aceptó la cotización
    DECLINED = "declined"        # Terminal
    ORDERED = "ordered"          # Terminal: convertida en pedido

    # Etiqueta de transición (no es un estado persistido)
    RELEASED = "released"

    ALL = (PENDING, DISCUSSION, QUOTED, APPROVED, DECLINED, ORDERED)
    TERMINAL = (DECLINED, ORDERED)


class RequestType:
    """Tipo de solicitud."""
    DIRECT = "direct"        # Dirigida a un vendedor concreto
    BROADCAST = "broadcast"  # Visible para todos los vendedores hasta que alguien la tome


# Transiciones que puede pedir el vendedor asignado (o quien la reclama)
SELLER_TRANSITIONS: dict[str, tuple[str, ...]] = {
    DesignStatus.PENDING: (
        DesignStatus.DISCUSSION, DesignStatus.QUOTED, DesignStatus.DECLINED, DesignStatus.RELEASED,
    ),
    DesignStatus.DISCUSSION: (
        DesignStatus.DISCUSSION, DesignStatus.QUOTED, DesignStatus.DECLINED, DesignStatus.RELEASED,
    ),
    DesignStatus.QUOTED: (DesignStatus.DECLINED, DesignStatus.RELEASED),
    DesignStatus.APPROVED: (),
    DesignStatus.DECLINED: (),
    DesignStatus.ORDERED: (),
}

# Estados desde los que el comprador puede rechazar
BUYER_DECLINABLE = (DesignStatus.QUOTED, DesignStatus.DISCUSSION)


class DesignSubmission(Base):
    """
    Solicitud de diseño.

    Invariantes:
    - `final_price` existe solo si la solicitud pasó por `quoted`.
    - `ordered` es terminal: ningún campo vuelve a cambiar.
    - broadcast sin vendedor asignado siempre está en `pending`.
    """

    __tablename__ = "design_submissions"
    __table_args__ = (
        Index("ix_design_submissions_seller_status", "assigned_seller_id", "status"),
    )

    # =========================================================================
    # CAMPOS DE IDENTIFICACIÓN Y TIMESTAMPS
    # =========================================================================

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    # =========================================================================
    # PROPIEDAD
    # =========================================================================

    buyer_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Comprador (fijo desde la creación)"
    )

    assigned_seller_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="Vendedor asignado (null mientras una broadcast no sea reclamada)"
    )

    request_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RequestType.DIRECT
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=DesignStatus.PENDING,
        comment=f"Estado: {', '.join(DesignStatus.ALL)}"
    )

    # =========================================================================
    # DISEÑO
    # =========================================================================

    config: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, comment="DesignConfig serializado"
    )

    snapshot_image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    target_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    user_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # =========================================================================
    # COTIZACIÓN
    # =========================================================================

    estimated_price: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
        comment="Precio estimado (informativo, nunca se usa para cobrar)"
    )

    final_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2), nullable=True, comment="Precio fijado por el vendedor"
    )

    shipping_fee: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )

    downpayment_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )

    payment_preference: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    baker_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # =========================================================================
    # PROPIEDADES CALCULADAS
    # =========================================================================

    @property
    def is_broadcast(self) -> bool:
        return self.request_type == RequestType.BROADCAST

    @property
    def is_locked(self) -> bool:
        """Una vez convertida en pedido no admite más cambios."""
        return self.status == DesignStatus.ORDERED

    @property
    def is_claimed(self) -> bool:
        return self.assigned_seller_id is not None

    @property
    def short_ref(self) -> str:
        """Referencia corta para mensajes (#últimos 4)."""
        return str(self.id)[-4:]

    def can_seller_transition_to(self, new_status: str) -> bool:
        """Verifica si el vendedor puede llevar la solicitud al nuevo estado."""
        return new_status in SELLER_TRANSITIONS.get(self.status, ())

    def __repr__(self) -> str:
        return (
            f"<DesignSubmission(id={self.id}, type={self.request_type}, "
            f"status={self.status}, seller={self.assigned_seller_id})>"
        )
