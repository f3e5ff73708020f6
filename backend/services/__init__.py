"""Business Backend Services."""

from backend.services.asset_catalog_service import AssetCatalogService
from backend.services.conversation_service import ConversationService, ConversationServiceError
from backend.services.design_service import DesignService
from backend.services.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    MarketplaceError,
    NotFoundError,
    StorageUnavailableError,
)
from backend.services.notification_service import NotificationService
from backend.services.order_service import OrderService
from backend.services.pricing_engine import PricingEngine, PricingRules, compute_price
from backend.services.side_effect_dispatcher import SideEffectDispatcher
from backend.services.upload_service import HttpUploadService, UploadService, UploadServiceError

__all__ = [
    "AssetCatalogService",
    "ConversationService",
    "ConversationServiceError",
    "DesignService",
    "ConflictError",
    "ForbiddenError",
    "InvalidInputError",
    "InvalidStateError",
    "MarketplaceError",
    "NotFoundError",
    "StorageUnavailableError",
    "NotificationService",
    "OrderService",
    "PricingEngine",
    "PricingRules",
    "compute_price",
    "SideEffectDispatcher",
    "HttpUploadService",
    "UploadService",
    "UploadServiceError",
]
