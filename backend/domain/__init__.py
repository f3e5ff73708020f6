"""Business Backend Domain Models."""

from backend.domain.asset_schemas import AssetEntry, PriceEstimateRequest, PriceEstimateResponse
from backend.domain.design_schemas import (
    DesignConfig,
    DesignEditRequest,
    DesignSchema,
    DesignSubmitRequest,
    Layer,
    MessageConfig,
    SellerStatusUpdate,
    ToppingSelection,
)
from backend.domain.order_schemas import DesignOrderCreate, OrderItemSchema, OrderSchema

__all__ = [
    # Asset schemas
    "AssetEntry",
    "PriceEstimateRequest",
    "PriceEstimateResponse",
    # Design schemas
    "DesignConfig",
    "DesignEditRequest",
    "DesignSchema",
    "DesignSubmitRequest",
    "Layer",
    "MessageConfig",
    "SellerStatusUpdate",
    "ToppingSelection",
    # Order schemas
    "DesignOrderCreate",
    "OrderItemSchema",
    "OrderSchema",
]
