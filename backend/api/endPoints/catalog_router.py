"""
Endpoints del catálogo de assets y la vista previa de precios.
"""
from typing import Annotated, List

from fastapi import APIRouter, Depends, Request

from backend.api.dependencies import provide
from backend.api.types import ApiResponse
from backend.config.rate_limit_config import RateLimitConfig, limiter
from backend.domain.asset_schemas import AssetEntry, PriceEstimateRequest, PriceEstimateResponse
from backend.services.asset_catalog_service import AssetCatalogService
from backend.services.pricing_engine import PricingEngine

router = APIRouter(tags=["catalog"])


@router.get("/assets", response_model=ApiResponse[List[AssetEntry]])
@limiter.limit(RateLimitConfig.LIST_ASSETS)
async def list_assets(
    request: Request,
    catalog: Annotated[AssetCatalogService, Depends(provide(AssetCatalogService))],
):
    """Assets publicados del catálogo."""
    assets = await catalog.list_available_assets()
    return ApiResponse(data=assets)


@router.post("/pricing/estimate", response_model=ApiResponse[PriceEstimateResponse])
@limiter.limit(RateLimitConfig.PRICE_ESTIMATE)
async def estimate_price(
    request: Request,
    payload: PriceEstimateRequest,
    catalog: Annotated[AssetCatalogService, Depends(provide(AssetCatalogService))],
    pricing: Annotated[PricingEngine, Depends(provide(PricingEngine))],
):
    """Vista previa del precio de una configuración (no requiere sesión)."""
    assets = await catalog.list_available_assets()
    price = pricing.compute(payload.config, assets)
    return ApiResponse(
        data=PriceEstimateResponse(
            price=price,
            base_fee=pricing.rules.base_fee,
            layer_diameter_cost=pricing.rules.layer_diameter_cost,
        )
    )
