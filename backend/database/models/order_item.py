"""
Modelo de Base de Datos: OrderItem
Línea de pedido (un pastel personalizado, precio congelado).
"""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.database.models.base import Base, utcnow

if TYPE_CHECKING:
    from backend.database.models.order import Order


class OrderItem(Base):
    """
    Línea de pedido.

    Guarda el precio final cotizado al momento de la compra, de modo que
    cambios posteriores en el catálogo no afecten pedidos históricos.
    """

    __tablename__ = "order_items"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # =========================================================================
    # RELACIÓN CON ORDER (CABECERA)
    # =========================================================================

    order_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        comment="Pedido al que pertenece esta línea"
    )

    order: Mapped["Order"] = relationship(back_populates="items")

    # =========================================================================
    # ORIGEN (DISEÑO Y PASTELERO)
    # =========================================================================

    design_submission_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("design_submissions.id", ondelete="RESTRICT"),
        nullable=False,
    )

    baker_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Vendedor que fabrica el pastel"
    )

    # =========================================================================
    # INFORMACIÓN CONGELADA
    # =========================================================================

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Precio final cotizado (congelado)"
    )

    @property
    def subtotal(self) -> Decimal:
        """Cantidad × Precio unitario."""
        return self.unit_price * self.quantity

    def __repr__(self) -> str:
        return (
            f"<OrderItem(id={self.id}, title={self.title}, "
            f"qty={self.quantity}, unit=₱{self.unit_price})>"
        )
