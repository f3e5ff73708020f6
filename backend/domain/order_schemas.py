"""
Esquemas Pydantic para pedidos (Order y OrderItem).
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# CONVERSIÓN DISEÑO → PEDIDO
# ============================================================================

class DesignOrderCreate(BaseModel):
    """Datos declarados por el comprador para convertir un diseño aprobado en pedido."""
    design_id: UUID
    shipping_address: str = Field(min_length=5, description="Dirección completa")
    payment_method: str = Field(description="cod | electronic")
    declared_total_amount: Decimal = Field(description="Monto que el cliente dice pagar")
    proof_of_payment: Optional[str] = Field(
        default=None, description="Data URL del comprobante o URL ya alojada"
    )
    payment_reference: Optional[str] = None
    date_needed: Optional[date] = None
    special_requests: Optional[str] = None


# ============================================================================
# RESPUESTAS
# ============================================================================

class OrderItemSchema(BaseModel):
    """Schema para respuestas de OrderItem."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    design_submission_id: UUID
    baker_id: UUID
    title: str
    image_url: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class OrderSchema(BaseModel):
    """Schema completo para respuestas de Order."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime
    buyer_id: UUID
    design_submission_id: UUID

    status: str
    payment_method: str
    payment_status: str
    payment_reference: Optional[str] = None
    proof_of_payment_url: Optional[str] = None

    total_amount: Decimal
    shipping_cost: Decimal
    amount_due: Decimal
    declared_amount: Decimal
    balance_due: Decimal

    shipping_address: str
    date_needed: Optional[date] = None
    special_requests: Optional[str] = None

    items: List[OrderItemSchema]
    item_count: int
