"""
Esquemas Pydantic para el catálogo de assets y la estimación de precios.
"""
from decimal import Decimal
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from backend.domain.design_schemas import DesignConfig


class AssetEntry(BaseModel):
    """Snapshot de solo lectura de una entrada del catálogo."""
    model_config = ConfigDict(frozen=True)

    type: str
    name: str
    price_modifier: Decimal = Decimal("0")
    is_available: bool = True
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_model(cls, asset) -> "AssetEntry":
        """Construye la entrada desde el modelo ORM `Asset`."""
        return cls(
            type=asset.type,
            name=asset.name,
            price_modifier=asset.price_modifier if asset.price_modifier is not None else Decimal("0"),
            is_available=asset.is_available,
            metadata=dict(asset.metadata_json or {}),
        )


class PriceEstimateRequest(BaseModel):
    """Solicitud de vista previa de precio."""
    config: DesignConfig


class PriceEstimateResponse(BaseModel):
    """Precio calculado y constantes usadas."""
    price: int
    base_fee: int
    layer_diameter_cost: int
    currency: str = "PHP"
