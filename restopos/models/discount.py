"""
Discount model - tenant-scoped coupon codes
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import UniqueConstraint
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from enum import Enum
import uuid


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"   # value is a percent of the subtotal
    FIXED = "fixed"             # value is a flat amount


class Discount(SQLModel, table=True):
    """Coupon applied at checkout"""

    __tablename__ = "discounts"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "code", name="uq_discounts_restaurant_code"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    restaurant_id: uuid.UUID = Field(
        foreign_key="restaurants.id",
        index=True,
        description="Restaurant ID for multi-tenant isolation"
    )

    name: str = Field(max_length=100)
    code: str = Field(max_length=30, index=True, description="Upper-case code, e.g. SAVE10")
    type: DiscountType
    value: Decimal = Field(max_digits=10, decimal_places=2, description="10 = 10% or $10")

    min_order_amount: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=10,
        decimal_places=2,
        description="Minimum cart subtotal"
    )
    max_discount_amount: Optional[Decimal] = Field(
        default=None,
        max_digits=10,
        decimal_places=2,
        nullable=True,
        description="Cap for percentage discounts"
    )

    # Usage counter, only ever incremented by checkout
    usage_limit: Optional[int] = Field(default=None, nullable=True, description="None = unlimited")
    used_count: int = Field(default=0)

    is_active: bool = Field(default=True, index=True)
    starts_at: Optional[date] = Field(default=None, nullable=True)
    expires_at: Optional[date] = Field(default=None, nullable=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
