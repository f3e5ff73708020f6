"""
Endpoints de notificaciones del usuario autenticado.
"""
from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from loguru import logger
from pydantic import BaseModel, ConfigDict

from backend.api.dependencies import provide
from backend.api.types import ApiResponse
from backend.config.rate_limit_config import RateLimitConfig, limiter
from backend.config.security.dependencies import current_user_id, get_current_active_user
from backend.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])

CurrentUser = Annotated[dict, Depends(get_current_active_user)]
Notifications = Annotated[NotificationService, Depends(provide(NotificationService))]


class NotificationSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    kind: str
    title: str
    message: str
    related_id: Optional[UUID] = None
    is_read: bool


class ReadAllResult(BaseModel):
    updated: int


@router.get("", response_model=ApiResponse[List[NotificationSchema]])
@limiter.limit(RateLimitConfig.GET_NOTIFICATIONS)
async def list_notifications(
    request: Request,
    current_user: CurrentUser,
    service: Notifications,
    limit: int = Query(50, ge=1, le=100),
):
    notifications = await service.list_for_user(current_user_id(current_user), limit)
    return ApiResponse(data=[NotificationSchema.model_validate(n) for n in notifications])


# Registrada antes de /{notification_id}/read para que "read-all" no se tome como ID
@router.put("/read-all", response_model=ApiResponse[ReadAllResult])
@limiter.limit(RateLimitConfig.UPDATE_NOTIFICATIONS)
async def mark_all_notifications_read(request: Request, current_user: CurrentUser, service: Notifications):
    updated = await service.mark_all_read(current_user_id(current_user))
    logger.debug(f"{updated} notificaciones marcadas como leídas")
    return ApiResponse(data=ReadAllResult(updated=updated), message="Todas las notificaciones marcadas como leídas")


@router.put("/{notification_id}/read", response_model=ApiResponse[NotificationSchema])
@limiter.limit(RateLimitConfig.UPDATE_NOTIFICATIONS)
async def mark_notification_read(
    request: Request, notification_id: UUID, current_user: CurrentUser, service: Notifications
):
    notification = await service.mark_read(current_user_id(current_user), notification_id)
    return ApiResponse(data=NotificationSchema.model_validate(notification))
