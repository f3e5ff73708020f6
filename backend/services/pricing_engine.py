"""
Motor de Precios.

Función pura: (DesignConfig, snapshot del catálogo) -> precio entero.
Sin I/O ni estado oculto; la lectura del catálogo la hace el llamador.

Política "fail open": una forma, sabor, textura, altura o topping que no
existe en el catálogo usa su valor por defecto (1.0 / 0 / 0 / 0 / 0) y nunca
produce un error, para que los huecos del catálogo no bloqueen una cotización.
"""
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable

from backend.database.models.asset import AssetType
from backend.domain.asset_schemas import AssetEntry
from backend.domain.design_schemas import DesignConfig

DEFAULT_LAYER_HEIGHT = 4
DEFAULT_SHAPE = "Round"

TOPPING_TYPES = (AssetType.TOPPER, AssetType.DECORATION)


@dataclass(frozen=True)
class PricingRules:
    """Constantes fijas (no vienen del catálogo)."""
    base_fee: int = 300
    layer_diameter_cost: int = 60


@dataclass
class AssetLookups:
    """Tablas de búsqueda derivadas del catálogo."""
    shape_multipliers: dict[str, Decimal] = field(default_factory=dict)   # nombre en minúsculas
    flavor_surcharges: dict[str, Decimal] = field(default_factory=dict)   # nombre en minúsculas
    height_surcharges: dict[str, Decimal] = field(default_factory=dict)   # valor numérico como texto
    topping_costs: dict[str, Decimal] = field(default_factory=dict)       # nombre exacto
    texture_costs: dict[str, Decimal] = field(default_factory=dict)       # nombre en minúsculas


def _to_decimal(value: Any, default: Decimal) -> Decimal:
    """Convierte a Decimal; valores vacíos, cero o inválidos caen al default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = Decimal(str(value))
    except (ArithmeticError, ValueError):
        return default
    if not number.is_finite() or number == 0:
        return default
    return number


def height_key(value: Any) -> str | None:
    """
    Clave textual de una altura: 4, 4.0 y "4" producen "4"; 4.5 produce "4.5".

    Devuelve None si el valor no es numérico.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (ArithmeticError, ValueError):
        return None
    if not number.is_finite():
        return None
    if number == number.to_integral_value():
        return str(int(number))
    return format(number.normalize(), "f")


def build_asset_lookups(assets: Iterable[AssetEntry], include_unavailable: bool = False) -> AssetLookups:
    """
    Construye las tablas de búsqueda.

    Args:
        assets: Entradas del catálogo
        include_unavailable: Solo para llamadores privilegiados (vista previa
            de assets no publicados). Por defecto se ignoran los no disponibles.
    """
    lookups = AssetLookups()
    zero = Decimal("0")

    for asset in assets:
        if not asset.is_available and not include_unavailable:
            continue

        name_lower = asset.name.lower()
        metadata = asset.metadata or {}

        if asset.type == AssetType.SHAPE:
            lookups.shape_multipliers[name_lower] = _to_decimal(metadata.get("multiplier"), Decimal("1"))
        elif asset.type == AssetType.FLAVOR:
            lookups.flavor_surcharges[name_lower] = _to_decimal(asset.price_modifier, zero)
        elif asset.type in TOPPING_TYPES:
            lookups.topping_costs[asset.name] = _to_decimal(asset.price_modifier, zero)
        elif asset.type == AssetType.TEXTURE:
            lookups.texture_costs[name_lower] = _to_decimal(asset.price_modifier, zero)
        elif asset.type == AssetType.LAYER_HEIGHT:
            key = height_key(metadata.get("value"))
            if key is not None and metadata.get("value"):
                lookups.height_surcharges[key] = _to_decimal(asset.price_modifier, zero)

    return lookups


def compute_price_from_lookups(
    config: DesignConfig,
    lookups: AssetLookups,
    rules: PricingRules = PricingRules(),
) -> int:
    """Calcula el precio con tablas ya construidas."""
    zero = Decimal("0")
    price = Decimal(rules.base_fee)

    # Todos los pisos usan la forma única de la solicitud
    shape = (config.shape or DEFAULT_SHAPE).lower()
    shape_multiplier = lookups.shape_multipliers.get(shape, Decimal("1"))

    # A. Pisos (todos contribuyen, en orden)
    for layer in config.layers:
        layer_cost = Decimal(str(layer.width)) * rules.layer_diameter_cost
        layer_cost *= shape_multiplier

        flavor_cost = lookups.flavor_surcharges.get((layer.flavor or "").lower(), zero)

        key = height_key(layer.height or DEFAULT_LAYER_HEIGHT)
        height_cost = lookups.height_surcharges.get(key, zero) if key else zero

        price += layer_cost + flavor_cost + height_cost

    # B. Toppings (clave exacta, sensible a mayúsculas)
    for name, selection in config.toppings.items():
        price += selection.cost(lookups.topping_costs.get(name, zero))

    # C. Textura
    if config.texture:
        price += lookups.texture_costs.get(config.texture.lower(), zero)

    return math.ceil(price)


def compute_price(
    config: DesignConfig,
    assets: Iterable[AssetEntry],
    rules: PricingRules = PricingRules(),
    include_unavailable: bool = False,
) -> int:
    """
    Calcula el precio de un diseño.

    El costo de envío NO se incluye: es un concepto del pedido, no del diseño.

    Ejemplo:
        >>> compute_price(DesignConfig(shape="Round", layers=[Layer(width=6)]), [])
        660
    """
    lookups = build_asset_lookups(assets, include_unavailable=include_unavailable)
    return compute_price_from_lookups(config, lookups, rules)


class PricingEngine:
    """Envoltorio inyectable con las reglas de la configuración."""

    def __init__(self, rules: PricingRules | None = None) -> None:
        self.rules = rules or PricingRules()

    def compute(self, config: DesignConfig, assets: Iterable[AssetEntry], include_unavailable: bool = False) -> int:
        return compute_price(config, assets, self.rules, include_unavailable=include_unavailable)
