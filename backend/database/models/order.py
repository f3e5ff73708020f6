"""
Modelo de Base de Datos: Order
Pedido generado a partir de un diseño aprobado.
"""
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.database.models.base import Base, utcnow

if TYPE_CHECKING:
    from backend.database.models.order_item import OrderItem


class OrderStatus:
    """Constantes para estados de pedido."""
    PENDING_REVIEW = "pending_review"  # Recién creado, el pastelero aún no lo acepta
    ACCEPTED = "accepted"
    BAKING = "baking"
    READY_TO_SHIP = "ready_to_ship"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod:
    """Métodos de pago declarados por el comprador."""
    COD = "cod"                 # Contra entrega
    ELECTRONIC = "electronic"   # Billetera electrónica (requiere comprobante)

    ALL = (COD, ELECTRONIC)


class PaymentStatus:
    """Estado del pago declarado."""
    UNPAID = "unpaid"
    PENDING_VERIFICATION = "pending_verification"
    VERIFIED = "verified"
    FAILED = "failed"


class Order(Base):
    """
    Cabecera de pedidos.

    Se crea como máximo un pedido por diseño (`design_submission_id` único).
    Es inmutable tras su creación salvo los campos de cumplimiento.
    """

    __tablename__ = "orders"

    # =========================================================================
    # CAMPOS DE IDENTIFICACIÓN Y TIMESTAMPS
    # =========================================================================

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="ID único del pedido"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        comment="Fecha de creación del pedido"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
        comment="Fecha de última actualización"
    )

    # =========================================================================
    # RELACIONES CON USUARIO Y DISEÑO
    # =========================================================================

    buyer_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Comprador que realizó el pedido"
    )

    design_submission_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("design_submissions.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
        comment="Diseño origen (máximo un pedido por diseño)"
    )

    # =========================================================================
    # ESTADO DEL PEDIDO
    # =========================================================================

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=OrderStatus.PENDING_REVIEW,
    )

    # =========================================================================
    # INFORMACIÓN MONETARIA
    # =========================================================================

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Total calculado en servidor (precio final + envío)"
    )

    shipping_cost: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        comment="Costo de envío fijado en la cotización"
    )

    amount_due: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Monto mínimo a pagar ahora (anticipo o total)"
    )

    declared_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Monto declarado por el cliente (solo informativo)"
    )

    # =========================================================================
    # INFORMACIÓN DE ENVÍO
    # =========================================================================

    shipping_address: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Dirección completa de envío"
    )

    date_needed: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    special_requests: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # =========================================================================
    # INFORMACIÓN DE PAGO
    # =========================================================================

    payment_method: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Método de pago: cod, electronic"
    )

    payment_status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=PaymentStatus.UNPAID,
        comment="Estado del pago: unpaid, pending_verification, verified, failed"
    )

    payment_reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    proof_of_payment_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # =========================================================================
    # RELACIONES
    # =========================================================================

    items: Mapped[List["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    # =========================================================================
    # PROPIEDADES CALCULADAS
    # =========================================================================

    @property
    def item_count(self) -> int:
        """Cantidad total de items (suma de cantidades)."""
        return sum(item.quantity for item in self.items) if self.items else 0

    @property
    def balance_due(self) -> Decimal:
        """Saldo pendiente tras el anticipo (cero si se paga completo)."""
        balance = self.total_amount - self.amount_due
        return balance if balance > 0 else Decimal("0")

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, buyer={self.buyer_id}, design={self.design_submission_id}, "
            f"payment={self.payment_status}, total=₱{self.total_amount})>"
        )
