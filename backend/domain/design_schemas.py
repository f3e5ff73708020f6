"""
Esquemas Pydantic para solicitudes de diseño (DesignConfig y operaciones).
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator


# ============================================================================
# CONFIGURACIÓN DEL PASTEL
# ============================================================================

class Layer(BaseModel):
    """Un piso del pastel."""
    width: float = Field(default=6, gt=0, description="Diámetro del piso")
    flavor: str = "Vanilla"
    height: Optional[float] = Field(default=4, description="Altura; 4 si no se indica")


class MessageConfig(BaseModel):
    """Mensaje escrito sobre el pastel."""
    text: str = ""
    color: str = "#4A403A"
    position: str = "top"
    font: str = "sans-serif"


class ToppingSelection(BaseModel):
    """
    Selección de un topping: Off | On | Quantity(n).

    En el wire llega como `bool | number` por clave:
    `true` cobra el costo plano, un número positivo cobra costo × n,
    cualquier otro valor no suma nada.
    """
    model_config = ConfigDict(frozen=True)

    kind: Literal["off", "on", "quantity"]
    quantity: Optional[Decimal] = None

    @classmethod
    def off(cls) -> "ToppingSelection":
        return cls(kind="off")

    @classmethod
    def on(cls) -> "ToppingSelection":
        return cls(kind="on")

    @classmethod
    def of_quantity(cls, quantity) -> "ToppingSelection":
        return cls(kind="quantity", quantity=Decimal(str(quantity)))

    @classmethod
    def from_raw(cls, value: Any) -> "ToppingSelection":
        if isinstance(value, ToppingSelection):
            return value
        if isinstance(value, dict) and "kind" in value:
            return cls.model_validate(value)
        # bool antes que número: en Python bool es subclase de int
        if isinstance(value, bool):
            return cls.on() if value else cls.off()
        if isinstance(value, (int, float, Decimal)) and value > 0:
            return cls.of_quantity(value)
        return cls.off()

    def cost(self, unit_cost: Decimal) -> Decimal:
        """Costo aportado por esta selección."""
        if self.kind == "on":
            return unit_cost
        if self.kind == "quantity" and self.quantity is not None and self.quantity > 0:
            return unit_cost * self.quantity
        return Decimal("0")

    def to_raw(self) -> bool | int | float:
        if self.kind == "on":
            return True
        if self.kind == "quantity" and self.quantity is not None:
            return int(self.quantity) if self.quantity == self.quantity.to_integral_value() else float(self.quantity)
        return False


class DesignConfig(BaseModel):
    """Configuración completa del pastel diseñado por el comprador."""
    shape: str = "Round"
    layers: List[Layer] = Field(default_factory=list)
    frosting: Optional[str] = None
    frosting_coverage: Optional[str] = None
    toppings: Dict[str, ToppingSelection] = Field(default_factory=dict)
    texture: Optional[str] = None
    message_config: MessageConfig = Field(default_factory=MessageConfig)

    @field_validator("toppings", mode="before")
    @classmethod
    def _parse_toppings(cls, value: Any) -> Dict[str, ToppingSelection]:
        if value is None:
            return {}
        return {str(key): ToppingSelection.from_raw(raw) for key, raw in dict(value).items()}

    @field_serializer("toppings")
    def _serialize_toppings(self, toppings: Dict[str, ToppingSelection]) -> Dict[str, Any]:
        return {key: selection.to_raw() for key, selection in toppings.items()}

    @property
    def summary_title(self) -> str:
        """Título para la línea de pedido."""
        return f"Pastel personalizado: {self.shape} ({len(self.layers)} pisos)"


# ============================================================================
# OPERACIONES DEL COMPRADOR
# ============================================================================

class DesignSubmitRequest(BaseModel):
    """Nueva solicitud de diseño."""
    request_type: Literal["direct", "broadcast"] = "direct"
    seller_id: Optional[UUID] = None
    config: DesignConfig
    estimated_price: Optional[int] = Field(
        default=None, description="Estimado calculado por el cliente (solo informativo)"
    )
    user_note: Optional[str] = None
    snapshot_image: Optional[str] = Field(
        default=None, description="Data URL de la vista previa o URL ya alojada"
    )
    target_date: Optional[date] = None

    @model_validator(mode="after")
    def _check_target(self) -> "DesignSubmitRequest":
        if self.request_type == "direct" and self.seller_id is None:
            raise ValueError("Una solicitud directa requiere seller_id")
        if self.request_type == "broadcast" and self.seller_id is not None:
            raise ValueError("Una solicitud broadcast no puede tener seller_id")
        return self


class DesignEditRequest(BaseModel):
    """Edición de una solicitud aún no tomada por ningún vendedor."""
    config: Optional[DesignConfig] = None
    estimated_price: Optional[int] = None
    user_note: Optional[str] = None
    snapshot_image: Optional[str] = None
    target_date: Optional[date] = None


# ============================================================================
# OPERACIONES DEL VENDEDOR
# ============================================================================

class SellerStatusUpdate(BaseModel):
    """
    Cambio de estado pedido por el vendedor.

    `status` se valida en el servicio (discussion, quoted, declined, released)
    para responder con el error de dominio adecuado.
    """
    status: str
    final_price: Optional[Decimal] = None
    baker_note: Optional[str] = None
    shipping_fee: Optional[Decimal] = None
    payment_preference: Optional[str] = None
    downpayment_amount: Optional[Decimal] = None


# ============================================================================
# RESPUESTAS
# ============================================================================

class DesignSchema(BaseModel):
    """Schema completo para respuestas de DesignSubmission."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime
    buyer_id: UUID
    assigned_seller_id: Optional[UUID] = None
    request_type: str
    status: str
    config: Dict[str, Any]
    estimated_price: int
    final_price: Optional[Decimal] = None
    shipping_fee: Decimal
    downpayment_amount: Decimal
    payment_preference: Optional[str] = None
    baker_note: Optional[str] = None
    user_note: Optional[str] = None
    target_date: Optional[date] = None
    snapshot_image_url: Optional[str] = None
