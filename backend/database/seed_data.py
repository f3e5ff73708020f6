"""
Datos iniciales: catálogo de assets por defecto y usuarios de prueba.
"""
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.database.models import Asset, AssetType, User, UserRole


def _asset(asset_type: str, name: str, price: int, **metadata) -> dict:
    return {"type": asset_type, "name": name, "price_modifier": Decimal(price), "metadata_json": metadata}


ASSETS_INICIALES = [
    # --- FORMAS ---
    _asset(AssetType.SHAPE, "Round", 0, multiplier=1.0),
    _asset(AssetType.SHAPE, "Square", 50, multiplier=1.2),
    _asset(AssetType.SHAPE, "Heart", 100, multiplier=1.4),
    _asset(AssetType.SHAPE, "Rectangle", 80, multiplier=1.3),

    # --- TAMAÑOS ---
    _asset(AssetType.SIZE, "6 Inch", 0, value=6),
    _asset(AssetType.SIZE, "8 Inch", 200, value=8),
    _asset(AssetType.SIZE, "10 Inch", 400, value=10),
    _asset(AssetType.SIZE, "12 Inch", 600, value=12),

    # --- SABORES ---
    _asset(AssetType.FLAVOR, "Vanilla", 0, color="#F9E4B7"),
    _asset(AssetType.FLAVOR, "Chocolate", 50, color="#5D4037"),
    _asset(AssetType.FLAVOR, "Red Velvet", 80, color="#9E2A2B"),
    _asset(AssetType.FLAVOR, "Ube", 60, color="#6A1B9A"),
    _asset(AssetType.FLAVOR, "Mocha", 40, color="#8D6E63"),
    _asset(AssetType.FLAVOR, "Strawberry", 50, color="#FFB7C5"),
    _asset(AssetType.FLAVOR, "Lemon", 40, color="#FFFACD"),

    # --- COBERTURAS ---
    _asset(AssetType.FROSTING, "Vanilla", 0, color="#FFFDD0"),
    _asset(AssetType.FROSTING, "Chocolate", 30, color="#3E2723"),
    _asset(AssetType.FROSTING, "Cream Cheese", 50, color="#F0F4C3"),
    _asset(AssetType.FROSTING, "Strawberry", 40, color="#FFB7C5"),
    _asset(AssetType.FROSTING, "Matcha", 60, color="#C1E1C1"),
    _asset(AssetType.FROSTING, "Caramel", 40, color="#C68E17"),

    # --- TEXTURAS ---
    _asset(AssetType.TEXTURE, "Smooth", 0, textureUrl=None),
    _asset(AssetType.TEXTURE, "Ribbed", 50, textureUrl="/textures/ribbed_normal.png"),
    _asset(AssetType.TEXTURE, "Wavy", 70, textureUrl="/textures/wavy_normal.png"),

    # --- DECORACIONES (bordes de glaseado) ---
    _asset(AssetType.DECORATION, "Cream Dollops", 20, tab="icing", isCountable=False),
    _asset(AssetType.DECORATION, "Icing Swirls", 25, tab="icing", isCountable=False),
    _asset(AssetType.DECORATION, "Rosettes", 30, tab="icing", isCountable=False),
    _asset(AssetType.DECORATION, "Shell Border", 25, tab="icing", isCountable=False),

    # --- DECORACIONES (contables) ---
    _asset(AssetType.DECORATION, "Macarons", 35, tab="decor", isCountable=True),
    _asset(AssetType.DECORATION, "Cherries", 15, tab="decor", isCountable=True),
    _asset(AssetType.DECORATION, "Flowers", 25, tab="decor", isCountable=True),
    _asset(AssetType.DECORATION, "Candles", 10, tab="decor", isCountable=True),
    _asset(AssetType.DECORATION, "Strawberries", 20, tab="decor", isCountable=True),
    _asset(AssetType.DECORATION, "Chocolates", 25, tab="decor", isCountable=True),

    # --- DECORACIONES (activar/desactivar) ---
    _asset(AssetType.DECORATION, "Sprinkles", 20, tab="decor", isCountable=False),
    _asset(AssetType.DECORATION, "Nuts", 25, tab="decor", isCountable=False),
    _asset(AssetType.DECORATION, "Cookies", 20, tab="decor", isCountable=False),
    _asset(AssetType.DECORATION, "Gold Flakes", 50, tab="decor", isCountable=False),
    _asset(AssetType.DECORATION, "Confetti", 20, tab="decor", isCountable=False),

    # --- TOPPERS ---
    _asset(AssetType.TOPPER, "Happy Birthday Sign", 150, tab="decor", isCountable=False),
    _asset(AssetType.TOPPER, "Mr & Mrs Sign", 200, tab="decor", isCountable=False),
    _asset(AssetType.TOPPER, "Number Topper", 80, tab="decor", isCountable=True),
    _asset(AssetType.TOPPER, "Generic Star", 50, tab="decor", isCountable=True),

    # --- ALTURAS DE PISO ---
    _asset(AssetType.LAYER_HEIGHT, "3 Inch", 0, value=3),
    _asset(AssetType.LAYER_HEIGHT, "4 Inch", 50, value=4),
    _asset(AssetType.LAYER_HEIGHT, "5 Inch", 100, value=5),
    _asset(AssetType.LAYER_HEIGHT, "6 Inch", 150, value=6),
]

USUARIOS_INICIALES = [
    {"username": "admin", "email": "admin@creake.com", "full_name": "Administrador General", "role": UserRole.ADMIN},
    {"username": "comprador1", "email": "comprador1@creake.com", "full_name": "Carla Compradora", "role": UserRole.BUYER},
    {"username": "pastelero1", "email": "pastelero1@creake.com", "full_name": "Pedro Pastelero", "role": UserRole.SELLER},
    {"username": "pastelero2", "email": "pastelero2@creake.com", "full_name": "Paula Pastelera", "role": UserRole.SELLER},
]


async def seed_assets(session_factory: async_sessionmaker[AsyncSession]) -> int:
    """Inserta el catálogo por defecto si la tabla está vacía. Devuelve cuántos insertó."""
    async with session_factory() as session:
        async with session.begin():
            count = await session.scalar(select(func.count()).select_from(Asset))
            if count:
                return 0
            session.add_all(Asset(**data) for data in ASSETS_INICIALES)
    return len(ASSETS_INICIALES)


async def seed_users(session_factory: async_sessionmaker[AsyncSession]) -> int:
    """Inserta los usuarios de prueba (incluido el admin) si la tabla está vacía."""
    async with session_factory() as session:
        async with session.begin():
            count = await session.scalar(select(func.count()).select_from(User))
            if count:
                return 0
            session.add_all(User(is_active=True, **data) for data in USUARIOS_INICIALES)
    return len(USUARIOS_INICIALES)
