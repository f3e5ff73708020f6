"""
Endpoints de pedidos generados desde diseños aprobados.
"""
from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from loguru import logger

from backend.api.dependencies import provide
from backend.api.types import ApiResponse
from backend.config.rate_limit_config import RateLimitConfig, limiter
from backend.config.security.dependencies import current_user_id, get_current_active_user, require_seller
from backend.domain.order_schemas import DesignOrderCreate, OrderSchema
from backend.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])

CurrentUser = Annotated[dict, Depends(get_current_active_user)]
Orders = Annotated[OrderService, Depends(provide(OrderService))]


@router.post("/from-design", response_model=ApiResponse[OrderSchema], status_code=status.HTTP_201_CREATED)
@limiter.limit(RateLimitConfig.CREATE_ORDER)
async def create_order_from_design(
    request: Request, payload: DesignOrderCreate, current_user: CurrentUser, service: Orders
):
    order = await service.convert_to_order(current_user_id(current_user), payload)
    logger.info(f"Pedido {order.id} creado desde el diseño {payload.design_id}")
    return ApiResponse(
        data=OrderSchema.model_validate(order),
        message=f"Pedido #{str(order.id)[:8]} creado. Total: ₱{order.total_amount:.2f}",
    )


@router.get("/mine", response_model=ApiResponse[List[OrderSchema]])
@limiter.limit(RateLimitConfig.GET_ORDERS)
async def list_my_orders(
    request: Request,
    current_user: CurrentUser,
    service: Orders,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    orders = await service.list_buyer_orders(current_user_id(current_user), limit, offset)
    return ApiResponse(data=[OrderSchema.model_validate(o) for o in orders])


@router.get("/seller", response_model=ApiResponse[List[OrderSchema]])
@limiter.limit(RateLimitConfig.GET_ORDERS)
async def list_seller_orders(
    request: Request,
    current_user: Annotated[dict, Depends(require_seller)],
    service: Orders,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    orders = await service.list_seller_orders(current_user_id(current_user), limit, offset)
    return ApiResponse(data=[OrderSchema.model_validate(o) for o in orders])


@router.get("/{order_id}", response_model=ApiResponse[OrderSchema])
@limiter.limit(RateLimitConfig.GET_ORDERS)
async def get_order(request: Request, order_id: UUID, current_user: CurrentUser, service: Orders):
    order = await service.get_order(current_user_id(current_user), order_id)
    return ApiResponse(data=OrderSchema.model_validate(order))
