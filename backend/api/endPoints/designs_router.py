"""
Endpoints de solicitudes de diseño (comprador y vendedor).
"""
from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from loguru import logger

from backend.api.dependencies import provide
from backend.api.types import ApiResponse
from backend.config.rate_limit_config import RateLimitConfig, limiter
from backend.config.security.dependencies import current_user_id, get_current_active_user, require_seller
from backend.domain.design_schemas import (
    DesignEditRequest,
    DesignSchema,
    DesignSubmitRequest,
    SellerStatusUpdate,
)
from backend.services.design_service import DesignService

router = APIRouter(prefix="/designs", tags=["designs"])

CurrentUser = Annotated[dict, Depends(get_current_active_user)]
CurrentSeller = Annotated[dict, Depends(require_seller)]
Designs = Annotated[DesignService, Depends(provide(DesignService))]


# ============================================================================
# COMPRADOR
# ============================================================================

@router.post("", response_model=ApiResponse[DesignSchema], status_code=status.HTTP_201_CREATED)
@limiter.limit(RateLimitConfig.SUBMIT_DESIGN)
async def submit_design(request: Request, payload: DesignSubmitRequest, current_user: CurrentUser, service: Designs):
    design = await service.submit_design(current_user_id(current_user), payload)
    logger.info(f"Solicitud de diseño {design.id} creada ({design.request_type})")
    return ApiResponse(data=DesignSchema.model_validate(design), message="Solicitud enviada")


@router.get("/mine", response_model=ApiResponse[List[DesignSchema]])
@limiter.limit(RateLimitConfig.GET_DESIGNS)
async def list_my_designs(
    request: Request,
    current_user: CurrentUser,
    service: Designs,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    designs = await service.list_buyer_designs(current_user_id(current_user), limit, offset)
    return ApiResponse(data=[DesignSchema.model_validate(d) for d in designs])


@router.get("/inbox", response_model=ApiResponse[List[DesignSchema]])
@limiter.limit(RateLimitConfig.GET_DESIGNS)
async def seller_inbox(
    request: Request,
    current_user: CurrentSeller,
    service: Designs,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """Asignadas al vendedor más la bolsa de broadcast sin reclamar."""
    designs = await service.list_seller_inbox(current_user_id(current_user), limit, offset)
    return ApiResponse(data=[DesignSchema.model_validate(d) for d in designs])


@router.get("/{design_id}", response_model=ApiResponse[DesignSchema])
@limiter.limit(RateLimitConfig.GET_DESIGNS)
async def get_design(request: Request, design_id: UUID, current_user: CurrentUser, service: Designs):
    design = await service.get_design(current_user_id(current_user), design_id)
    return ApiResponse(data=DesignSchema.model_validate(design))


@router.put("/{design_id}", response_model=ApiResponse[DesignSchema])
@limiter.limit(RateLimitConfig.UPDATE_DESIGN)
async def edit_design(
    request: Request, design_id: UUID, payload: DesignEditRequest, current_user: CurrentUser, service: Designs
):
    design = await service.edit_request(current_user_id(current_user), design_id, payload)
    return ApiResponse(data=DesignSchema.model_validate(design), message="Solicitud actualizada")


@router.post("/{design_id}/approve", response_model=ApiResponse[DesignSchema])
@limiter.limit(RateLimitConfig.UPDATE_DESIGN)
async def approve_design(request: Request, design_id: UUID, current_user: CurrentUser, service: Designs):
    design = await service.buyer_approve(current_user_id(current_user), design_id)
    return ApiResponse(data=DesignSchema.model_validate(design), message="Cotización aprobada")


@router.post("/{design_id}/decline", response_model=ApiResponse[DesignSchema])
@limiter.limit(RateLimitConfig.UPDATE_DESIGN)
async def decline_design(request: Request, design_id: UUID, current_user: CurrentUser, service: Designs):
    design = await service.buyer_decline(current_user_id(current_user), design_id)
    return ApiResponse(data=DesignSchema.model_validate(design), message="Cotización rechazada")


# ============================================================================
# VENDEDOR
# ============================================================================

@router.put("/{design_id}/status", response_model=ApiResponse[DesignSchema])
@limiter.limit(RateLimitConfig.UPDATE_DESIGN)
async def update_design_status(
    request: Request, design_id: UUID, payload: SellerStatusUpdate, current_user: CurrentSeller, service: Designs
):
    """Reclamar, conversar, cotizar, rechazar o liberar una solicitud."""
    design = await service.seller_update_status(current_user_id(current_user), design_id, payload)
    return ApiResponse(data=DesignSchema.model_validate(design), message=f"Estado: {design.status}")
