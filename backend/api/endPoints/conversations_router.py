"""
Endpoints de lectura de conversaciones comprador/vendedor.

Los mensajes los generan las transiciones de diseño; aquí solo se consultan.
"""
from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, ConfigDict

from backend.api.dependencies import provide
from backend.api.types import ApiResponse
from backend.config.rate_limit_config import RateLimitConfig, limiter
from backend.config.security.dependencies import current_user_id, get_current_active_user
from backend.services.conversation_service import ConversationService

router = APIRouter(prefix="/conversations", tags=["conversations"])

CurrentUser = Annotated[dict, Depends(get_current_active_user)]
Conversations = Annotated[ConversationService, Depends(provide(ConversationService))]


class ConversationSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    design_submission_id: UUID
    buyer_id: UUID
    seller_id: UUID
    last_message: str
    last_message_at: datetime


class MessageSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    conversation_id: UUID
    sender_id: UUID
    design_submission_id: Optional[UUID] = None
    kind: str
    text: str
    is_read: bool


@router.get("", response_model=ApiResponse[List[ConversationSchema]])
@limiter.limit(RateLimitConfig.GET_CONVERSATIONS)
async def list_conversations(
    request: Request,
    current_user: CurrentUser,
    service: Conversations,
    limit: int = Query(50, ge=1, le=100),
):
    conversations = await service.list_for_user(current_user_id(current_user), limit)
    return ApiResponse(data=[ConversationSchema.model_validate(c) for c in conversations])


@router.get("/{conversation_id}/messages", response_model=ApiResponse[List[MessageSchema]])
@limiter.limit(RateLimitConfig.GET_CONVERSATIONS)
async def list_messages(request: Request, conversation_id: UUID, current_user: CurrentUser, service: Conversations):
    messages = await service.list_messages(current_user_id(current_user), conversation_id)
    return ApiResponse(data=[MessageSchema.model_validate(m) for m in messages])
