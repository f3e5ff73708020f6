"""
Configuración global de pytest para el backend.
Define fixtures compartidos entre todos los tests.
"""
import os
import tempfile
import uuid
from decimal import Decimal
from typing import AsyncGenerator, List, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

# Configurar variables de entorno para tests
os.environ.setdefault(
    "PG_URL", f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'cake_marketplace_test.db')}"
)
os.environ.setdefault("LOG_LEVEL", "ERROR")
os.environ.setdefault("OUTBOX_WORKER_ENABLED", "false")

from backend.database.connection import create_async_engine
from backend.database.models import DesignSubmission, User, UserRole
from backend.database.models.base import Base
from backend.database.seed_data import seed_assets
from backend.domain.design_schemas import DesignConfig, DesignSubmitRequest, Layer, SellerStatusUpdate
from backend.services.asset_catalog_service import AssetCatalogService
from backend.services.conversation_service import ConversationService
from backend.services.design_service import DesignService
from backend.services.notification_service import NotificationService
from backend.services.order_service import OrderService
from backend.services.pricing_engine import PricingEngine
from backend.services.side_effect_dispatcher import SideEffectDispatcher
from backend.services.upload_service import UploadService, UploadServiceError


# ============================================================================
# DOBLES DE PRUEBA
# ============================================================================

class FakeUploadService(UploadService):
    """Servicio de subida en memoria: devuelve URLs deterministas."""

    def __init__(self) -> None:
        self.uploads: List[str] = []
        self.fail = False

    async def upload(self, raw_image: str, folder: Optional[str] = None) -> str:
        if self.fail:
            raise UploadServiceError("No se pudo subir la imagen. Revisa el tamaño o formato.")
        self.uploads.append(raw_image)
        return f"https://img.test/{folder or 'designs'}/{len(self.uploads)}.png"


# ============================================================================
# FIXTURES DE BASE DE DATOS
# ============================================================================

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Base SQLite nueva por test (archivo, para permitir conexiones concurrentes)."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'marketplace.db'}",
        poolclass=NullPool,  # Sin pool para tests
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def clean_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Sesión sobre una base vacía para preparar datos y verificar resultados."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# ============================================================================
# FIXTURES DE MODELOS
# ============================================================================

async def _create_user(session: AsyncSession, username: str, role: int, is_active: bool = True) -> User:
    user = User(
        id=uuid.uuid4(),
        username=username,
        email=f"{username}@example.com",
        full_name=username.capitalize(),
        role=role,
        is_active=is_active,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def buyer(clean_db: AsyncSession) -> User:
    """Comprador de prueba."""
    return await _create_user(clean_db, "buyer", UserRole.BUYER)


@pytest_asyncio.fixture
async def other_buyer(clean_db: AsyncSession) -> User:
    return await _create_user(clean_db, "intruder", UserRole.BUYER)


@pytest_asyncio.fixture
async def seller(clean_db: AsyncSession) -> User:
    """Vendedor (pastelero) de prueba."""
    return await _create_user(clean_db, "baker", UserRole.SELLER)


@pytest_asyncio.fixture
async def second_seller(clean_db: AsyncSession) -> User:
    return await _create_user(clean_db, "baker2", UserRole.SELLER)


@pytest_asyncio.fixture
async def inactive_seller(clean_db: AsyncSession) -> User:
    return await _create_user(clean_db, "retired_baker", UserRole.SELLER, is_active=False)


@pytest_asyncio.fixture
async def catalog(session_factory) -> int:
    """Catálogo de assets por defecto."""
    return await seed_assets(session_factory)


# ============================================================================
# FIXTURES DE SERVICIOS
# ============================================================================

@pytest.fixture
def upload_service() -> FakeUploadService:
    return FakeUploadService()


@pytest.fixture
def pricing_engine() -> PricingEngine:
    return PricingEngine()


@pytest.fixture
def catalog_service(session_factory) -> AssetCatalogService:
    return AssetCatalogService(session_factory)


@pytest.fixture
def notification_service(session_factory) -> NotificationService:
    return NotificationService(session_factory)


@pytest.fixture
def conversation_service(session_factory) -> ConversationService:
    return ConversationService(session_factory)


@pytest.fixture
def dispatcher(session_factory, conversation_service, notification_service) -> SideEffectDispatcher:
    return SideEffectDispatcher(session_factory, conversation_service, notification_service, max_attempts=3)


@pytest.fixture
def design_service(
    session_factory, catalog_service, pricing_engine, upload_service, dispatcher
) -> DesignService:
    """DesignService con despacho inmediato de efectos secundarios."""
    return DesignService(session_factory, catalog_service, pricing_engine, upload_service, dispatcher=dispatcher)


@pytest.fixture
def order_service(session_factory, upload_service, dispatcher) -> OrderService:
    return OrderService(session_factory, upload_service, dispatcher=dispatcher)


# ============================================================================
# FIXTURES DE DOMAIN
# ============================================================================

@pytest.fixture
def sample_config() -> DesignConfig:
    """Pastel redondo de un piso de chocolate con chispas y 3 velas."""
    return DesignConfig(
        shape="Round",
        layers=[Layer(width=6, flavor="Chocolate", height=4)],
        frosting="Vanilla",
        toppings={"Sprinkles": True, "Candles": 3},
        texture="Smooth",
    )


@pytest_asyncio.fixture
async def broadcast_design(design_service: DesignService, buyer: User, catalog, sample_config) -> DesignSubmission:
    """Solicitud broadcast recién creada."""
    return await design_service.submit_design(
        buyer.id, DesignSubmitRequest(request_type="broadcast", config=sample_config)
    )


@pytest_asyncio.fixture
async def direct_design(
    design_service: DesignService, buyer: User, seller: User, catalog, sample_config
) -> DesignSubmission:
    """Solicitud directa al vendedor de prueba."""
    return await design_service.submit_design(
        buyer.id, DesignSubmitRequest(request_type="direct", seller_id=seller.id, config=sample_config)
    )


@pytest.fixture
def quote_design(design_service: DesignService):
    """Cotiza una solicitud con términos por defecto (₱1500 + ₱100 de envío)."""

    async def _quote(seller: User, design: DesignSubmission, **terms) -> DesignSubmission:
        terms.setdefault("final_price", Decimal("1500"))
        terms.setdefault("shipping_fee", Decimal("100"))
        return await design_service.seller_update_status(
            seller.id, design.id, SellerStatusUpdate(status="quoted", **terms)
        )

    return _quote


@pytest_asyncio.fixture
async def approved_design(
    design_service: DesignService, quote_design, buyer: User, seller: User, broadcast_design: DesignSubmission
) -> DesignSubmission:
    """Broadcast reclamada, cotizada en ₱1500 + ₱100 y aprobada."""
    await quote_design(seller, broadcast_design)
    return await design_service.buyer_approve(buyer.id, broadcast_design.id)


# ============================================================================
# FIXTURES DE AUTENTICACIÓN
# ============================================================================

def _token_for(user: User) -> str:
    from backend.config.security.securityJWT import create_access_token

    user_data = {"id": str(user.id), "username": user.username, "role": int(user.role)}
    return create_access_token(data={}, user=user_data)


@pytest.fixture
def buyer_headers(buyer: User) -> dict:
    return {"Authorization": f"Bearer {_token_for(buyer)}"}


@pytest.fixture
def seller_headers(seller: User) -> dict:
    return {"Authorization": f"Bearer {_token_for(seller)}"}


@pytest.fixture
def other_buyer_headers(other_buyer: User) -> dict:
    return {"Authorization": f"Bearer {_token_for(other_buyer)}"}
