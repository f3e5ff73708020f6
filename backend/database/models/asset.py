"""
Modelo de Base de Datos: Asset
Catálogo modular de piezas con precio (formas, sabores, toppings, texturas, alturas).
"""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Boolean, DateTime, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from backend.database.models.base import Base, utcnow


class AssetType:
    """Constantes para tipos de asset del catálogo."""
    LAYER = "Layer"
    TOPPER = "Topper"
    DECORATION = "Decoration"
    SHAPE = "Shape"
    FROSTING = "Frosting"
    FLAVOR = "Flavor"
    SIZE = "Size"
    TEXTURE = "Texture"
    LAYER_HEIGHT = "LayerHeight"

    ALL = (LAYER, TOPPER, DECORATION, SHAPE, FROSTING, FLAVOR, SIZE, TEXTURE, LAYER_HEIGHT)


class Asset(Base):
    """
    Entrada del catálogo de assets.

    La combinación (type, name) es única. Solo las entradas con
    `is_available = true` participan en el cálculo de precios.
    """

    __tablename__ = "assets"
    __table_args__ = (
        UniqueConstraint("type", "name", name="uq_assets_type_name"),
    )

    # =========================================================================
    # CAMPOS DE IDENTIFICACIÓN Y TIMESTAMPS
    # =========================================================================

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="ID único del asset"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    # =========================================================================
    # DATOS DEL ASSET
    # =========================================================================

    type: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        comment=f"Tipo de asset: {', '.join(AssetType.ALL)}"
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Nombre visible (clave de búsqueda en el motor de precios)"
    )

    price_modifier: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        comment="Recargo del asset (ej. sabor Ube, costo de un topper)"
    )

    is_available: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    metadata_json: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
        comment="Metadatos: multiplier (Shape), value (LayerHeight/Size), tab, color..."
    )

    model_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    thumbnail_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Asset(type={self.type}, name={self.name}, "
            f"modifier={self.price_modifier}, available={self.is_available})>"
        )
