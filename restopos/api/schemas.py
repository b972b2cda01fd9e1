"""
API schemas for checkout, stock, discounts, orders and loyalty
"""

from sqlmodel import SQLModel, Field
from datetime import datetime
from typing import Optional, List
from decimal import Decimal
from restopos.models import (
    KitchenStatus,
    LoyaltyTransactionType,
    OrderStatus,
    OrderType,
    PaymentMethod,
    PaymentStatus,
    StockLogType,
    DiscountType,
)
import uuid

# ============================================================================
# Checkout Schemas
# ============================================================================

class AddonSelection(SQLModel):
    id: uuid.UUID
    quantity: int = Field(default=1, ge=1)


class CheckoutItem(SQLModel):
    product_id: uuid.UUID
    quantity: int = Field(ge=1)
    price: Optional[Decimal] = Field(default=None, ge=0)
    size_id: Optional[uuid.UUID] = None
    addons: List[AddonSelection] = []
    notes: Optional[str] = Field(default=None, max_length=1000)


class CheckoutRequest(SQLModel):
    restaurant_id: uuid.UUID
    customer_id: Optional[uuid.UUID] = None
    table_id: Optional[uuid.UUID] = None
    items: List[CheckoutItem]
    discount_code: Optional[str] = Field(default=None, max_length=50)
    loyalty_points_redeemed: int = Field(default=0, ge=0)
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    payment_method: PaymentMethod
    order_type: OrderType = OrderType.DINE_IN
    notes: Optional[str] = Field(default=None, max_length=2000)


class CheckoutResponse(SQLModel):
    order_id: uuid.UUID
    order_number: str
    subtotal: Decimal
    tax: Decimal
    discount_amount: Decimal
    total: Decimal
    status: OrderStatus
    points_earned: int = 0
    points_redeemed: int = 0


# ============================================================================
# Stock Schemas
# ============================================================================

class StockAdjustRequest(SQLModel):
    quantity_change: int
    type: StockLogType = StockLogType.ADJUSTMENT
    note: Optional[str] = Field(default=None, max_length=255)


class StockLogRead(SQLModel):
    id: uuid.UUID
    product_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    order_id: Optional[uuid.UUID] = None
    quantity_before: int
    quantity_change: int
    quantity_after: int
    type: StockLogType
    note: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class StockSummary(SQLModel):
    total_tracked: int
    out: int
    low: int
    ok: int


# ============================================================================
# Discount Schemas
# ============================================================================

class DiscountApplyRequest(SQLModel):
    code: str = Field(min_length=1, max_length=50)
    subtotal: Decimal


class DiscountApplyResponse(SQLModel):
    discount_id: uuid.UUID
    discount_amount: Decimal
    code: str
    name: str
    type: DiscountType
    value: Decimal


# ============================================================================
# Order Schemas
# ============================================================================

class OrderStatusUpdate(SQLModel):
    status: OrderStatus


class KitchenStatusUpdate(SQLModel):
    kitchen_status: KitchenStatus


class AddonRead(SQLModel):
    id: uuid.UUID
    name: str
    price: Decimal
    quantity: int


class OrderItemRead(SQLModel):
    id: uuid.UUID
    product_id: uuid.UUID
    size_id: Optional[uuid.UUID] = None
    quantity: int
    price: Decimal
    total: Decimal
    notes: Optional[str] = None
    addons: Optional[List[AddonRead]] = None

    class Config:
        from_attributes = True


class PaymentRead(SQLModel):
    id: uuid.UUID
    method: PaymentMethod
    amount: Decimal
    status: PaymentStatus
    transaction_id: str
    processed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderRead(SQLModel):
    id: uuid.UUID
    order_number: str
    order_type: OrderType
    status: OrderStatus
    kitchen_status: KitchenStatus
    table_id: Optional[uuid.UUID] = None
    customer_id: Optional[uuid.UUID] = None
    discount_id: Optional[uuid.UUID] = None
    subtotal: Decimal
    tax: Decimal
    discount_amount: Decimal
    loyalty_amount: Decimal
    total: Decimal
    points_earned: int
    points_redeemed: int
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    items: List[OrderItemRead] = []
    payment: Optional[PaymentRead] = None

    class Config:
        from_attributes = True


class KitchenTicketRead(SQLModel):
    id: uuid.UUID
    order_number: str
    order_type: OrderType
    kitchen_status: KitchenStatus
    table_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# ============================================================================
# Loyalty Schemas
# ============================================================================

class LoyaltyTransactionRead(SQLModel):
    id: uuid.UUID
    order_id: Optional[uuid.UUID] = None
    type: LoyaltyTransactionType
    points: int
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class LoyaltyRead(SQLModel):
    customer_id: uuid.UUID
    name: str
    loyalty_points: int
    last_visit_at: Optional[datetime] = None
    transactions: List[LoyaltyTransactionRead] = []


class LoyaltyAdjustRequest(SQLModel):
    points: int
    description: Optional[str] = Field(default=None, max_length=255)
