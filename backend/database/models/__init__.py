"""Business Backend Database Models."""

from backend.database.models.base import Base
from backend.database.models.asset import Asset, AssetType
from backend.database.models.conversation import Conversation, Message, MessageKind
from backend.database.models.design_submission import DesignStatus, DesignSubmission, RequestType
from backend.database.models.notification import Notification, NotificationKind
from backend.database.models.order import Order, OrderStatus, PaymentMethod, PaymentStatus
from backend.database.models.order_item import OrderItem
from backend.database.models.outbox_event import OutboxEvent, OutboxEventType, OutboxStatus
from backend.database.models.user_model import User, UserRole

__all__ = [
    "Base",
    "Asset",
    "AssetType",
    "Conversation",
    "Message",
    "MessageKind",
    "DesignStatus",
    "DesignSubmission",
    "RequestType",
    "Notification",
    "NotificationKind",
    "Order",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "OrderItem",
    "OutboxEvent",
    "OutboxEventType",
    "OutboxStatus",
    "User",
    "UserRole",
]
