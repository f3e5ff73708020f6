"""
Servicio del Catálogo de Assets.
Lectura del catálogo modular que alimenta al motor de precios.
"""
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.config.logging_config import get_logger
from backend.database.models import Asset
from backend.domain.asset_schemas import AssetEntry
from backend.services.errors import run_storage_operation


class AssetCatalogService:
    """
    Servicio de solo lectura del catálogo.

    Devuelve snapshots inmutables (`AssetEntry`) para que el motor de precios
    no dependa de la sesión de base de datos.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        timeout: float = 10.0,
    ) -> None:
        self.session_factory = session_factory
        self.timeout = timeout
        self.logger = get_logger("asset_catalog_service")

    async def list_available_assets(self) -> List[AssetEntry]:
        """Assets publicados (los únicos que participan en una cotización)."""
        return await self.list_assets(include_unavailable=False)

    async def list_assets(self, include_unavailable: bool = False) -> List[AssetEntry]:
        """
        Lista el catálogo.

        Args:
            include_unavailable: Incluye assets no publicados (solo para
                llamadores privilegiados)

        Raises:
            StorageUnavailableError: Si la base de datos no responde
        """

        async def work() -> List[AssetEntry]:
            async with self.session_factory() as session:
                query = select(Asset).order_by(Asset.type, Asset.name)
                if not include_unavailable:
                    query = query.where(Asset.is_available.is_(True))
                result = await session.execute(query)
                return [AssetEntry.from_model(asset) for asset in result.scalars().all()]

        assets = await run_storage_operation(
            work, operation="list_assets", timeout=self.timeout, logger=self.logger
        )
        self.logger.debug("assets_listed", count=len(assets), include_unavailable=include_unavailable)
        return assets
