"""
Contenedor de Inyección de Dependencias.
Aquí es donde "fabricamos" y conectamos todos los servicios de la aplicación.
"""
from collections.abc import Iterable
from typing import Any, Optional

import aioinject
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.config import BusinessSettings, get_business_settings
from backend.database.session import get_session_factory
from backend.services.asset_catalog_service import AssetCatalogService
from backend.services.conversation_service import ConversationService
from backend.services.design_service import DesignService
from backend.services.notification_service import NotificationService
from backend.services.order_service import OrderService
from backend.services.pricing_engine import PricingEngine, PricingRules
from backend.services.side_effect_dispatcher import SideEffectDispatcher
from backend.services.upload_service import HttpUploadService, UploadService


async def create_settings() -> BusinessSettings:
    """Fabrica la configuración validada."""
    return get_business_settings()


async def create_session_factory() -> async_sessionmaker[AsyncSession]:
    """Fabrica el creador de sesiones de base de datos."""
    return get_session_factory()


async def create_pricing_engine(settings: BusinessSettings) -> PricingEngine:
    """Fabrica el motor de precios con las constantes de configuración."""
    return PricingEngine(
        PricingRules(base_fee=settings.base_fee, layer_diameter_cost=settings.layer_diameter_cost)
    )


async def create_catalog_service(
    session_factory: async_sessionmaker[AsyncSession],
    settings: BusinessSettings,
) -> AssetCatalogService:
    """Fabrica el servicio del catálogo conectándolo a la DB."""
    return AssetCatalogService(session_factory, timeout=settings.db_timeout_seconds)


async def create_upload_service(settings: BusinessSettings) -> UploadService:
    """Fabrica el cliente HTTP del servicio de imágenes."""
    if not settings.upload_endpoint:
        logger.warning("UPLOAD_ENDPOINT no configurado: solo se aceptarán imágenes ya alojadas")
    return HttpUploadService(
        settings.upload_endpoint,
        api_key=settings.upload_api_key,
        default_folder=settings.upload_folder,
    )


async def create_notification_service(
    session_factory: async_sessionmaker[AsyncSession],
) -> NotificationService:
    return NotificationService(session_factory)


async def create_conversation_service(
    session_factory: async_sessionmaker[AsyncSession],
) -> ConversationService:
    return ConversationService(session_factory)


async def create_dispatcher(
    session_factory: async_sessionmaker[AsyncSession],
    conversation_service: ConversationService,
    notification_service: NotificationService,
    settings: BusinessSettings,
) -> SideEffectDispatcher:
    """Fabrica el despachador del outbox (chat + notificaciones)."""
    return SideEffectDispatcher(
        session_factory,
        conversation_service,
        notification_service,
        max_attempts=settings.outbox_max_attempts,
    )


async def create_design_service(
    session_factory: async_sessionmaker[AsyncSession],
    catalog: AssetCatalogService,
    pricing: PricingEngine,
    upload_service: UploadService,
    dispatcher: SideEffectDispatcher,
    settings: BusinessSettings,
) -> DesignService:
    """Fabrica el servicio de solicitudes de diseño."""
    return DesignService(
        session_factory,
        catalog,
        pricing,
        upload_service,
        dispatcher=dispatcher,
        timeout=settings.db_timeout_seconds,
    )


async def create_order_service(
    session_factory: async_sessionmaker[AsyncSession],
    upload_service: UploadService,
    dispatcher: SideEffectDispatcher,
    settings: BusinessSettings,
) -> OrderService:
    """Fabrica el servicio de pedidos conectándolo a la DB."""
    return OrderService(
        session_factory,
        upload_service,
        dispatcher=dispatcher,
        timeout=settings.db_timeout_seconds,
    )


def providers(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    upload_service: Optional[UploadService] = None,
) -> Iterable[aioinject.Provider[Any]]:
    """
    Lista de instrucciones para crear todos los servicios.

    `session_factory` y `upload_service` permiten inyectar instancias ya
    construidas (tests, scripts) en lugar de las de configuración.
    """
    providers_list: list[aioinject.Provider[Any]] = []

    # 1. Configuración y datos
    providers_list.append(aioinject.Singleton(create_settings))
    if session_factory is not None:
        providers_list.append(aioinject.Object(session_factory, async_sessionmaker[AsyncSession]))
    else:
        providers_list.append(aioinject.Singleton(create_session_factory))

    # 2. Colaboradores
    providers_list.append(aioinject.Singleton(create_pricing_engine))
    providers_list.append(aioinject.Singleton(create_catalog_service))
    if upload_service is not None:
        providers_list.append(aioinject.Object(upload_service, UploadService))
    else:
        providers_list.append(aioinject.Singleton(create_upload_service))
    providers_list.append(aioinject.Singleton(create_notification_service))
    providers_list.append(aioinject.Singleton(create_conversation_service))
    providers_list.append(aioinject.Singleton(create_dispatcher))

    # 3. Servicios de dominio
    providers_list.append(aioinject.Singleton(create_design_service))
    providers_list.append(aioinject.Singleton(create_order_service))

    return providers_list


def create_business_container(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    upload_service: Optional[UploadService] = None,
) -> aioinject.Container:
    """Crea el contenedor final con todas las dependencias."""
    container = aioinject.Container()
    for provider in providers(session_factory, upload_service):
        container.register(provider)
    return container
