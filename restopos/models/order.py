"""
Order model for checkouts
Financial amounts are fixed at checkout; only status and kitchen_status change afterwards
"""

from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import UniqueConstraint
from datetime import datetime
from typing import Optional, TYPE_CHECKING, List
from decimal import Decimal
from enum import Enum
import uuid

if TYPE_CHECKING:
    from restopos.models.order_item import OrderItem
    from restopos.models.payment import Payment


class OrderType(str, Enum):
    DINE_IN = "dine_in"
    TAKEAWAY = "takeaway"
    DELIVERY = "delivery"


class OrderStatus(str, Enum):
    """Payment and service lifecycle"""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"
    PAID = "paid"
    CANCELLED = "cancelled"


class KitchenStatus(str, Enum):
    """Preparation lifecycle, independent of status"""
    PENDING = "pending"         # Just created
    PREPARING = "preparing"     # Kitchen acknowledged
    READY = "ready"             # Cooked, waiting for pickup/delivery
    COMPLETED = "completed"     # Served/delivered


# Forward order of the service lifecycle, used when transitions are restricted
STATUS_SEQUENCE = [
    OrderStatus.PENDING,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.SERVED,
    OrderStatus.PAID,
]


class Order(SQLModel, table=True):
    """One committed checkout"""

    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "order_number", name="uq_orders_restaurant_number"),
    )

    # Primary key
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    restaurant_id: uuid.UUID = Field(
        foreign_key="restaurants.id",
        index=True,
        description="Restaurant ID for multi-tenant isolation"
    )

    # Linkage
    user_id: Optional[uuid.UUID] = Field(
        default=None,
        nullable=True,
        index=True,
        description="Staff member who rang up the order"
    )
    table_id: Optional[uuid.UUID] = Field(default=None, foreign_key="tables.id", nullable=True, index=True)
    customer_id: Optional[uuid.UUID] = Field(default=None, foreign_key="customers.id", nullable=True, index=True)
    discount_id: Optional[uuid.UUID] = Field(default=None, foreign_key="discounts.id", nullable=True)

    order_number: str = Field(max_length=40, index=True, description="Human-readable number, e.g. ORD-5F1A2B3C4D5E")
    order_type: OrderType = Field(default=OrderType.DINE_IN, index=True)

    # Two independent lifecycles
    status: OrderStatus = Field(default=OrderStatus.PENDING, index=True)
    kitchen_status: KitchenStatus = Field(default=KitchenStatus.PENDING, index=True)

    # Financial amounts (immutable snapshots)
    subtotal: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)
    tax: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)
    discount_amount: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=10,
        decimal_places=2,
        description="Coupon discount plus loyalty redemption value"
    )
    loyalty_amount: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=10,
        decimal_places=2,
        description="Part of discount_amount paid with loyalty points"
    )
    total: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=10,
        decimal_places=2,
        description="subtotal + tax - discount_amount"
    )

    # Loyalty
    points_earned: int = Field(default=0)
    points_redeemed: int = Field(default=0)

    notes: Optional[str] = Field(default=None, max_length=2000, nullable=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: Optional[datetime] = Field(default=None, nullable=True)
    completed_at: Optional[datetime] = Field(
        default=None,
        nullable=True,
        description="When the kitchen completed the order"
    )

    # Relationships
    items: List["OrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    payment: Optional["Payment"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "uselist": False}
    )

    def totals_balance(self) -> bool:
        """Check total == subtotal + tax - discount_amount"""
        return self.total == self.subtotal + self.tax - self.discount_amount

    def can_transition_to(self, new_status: OrderStatus) -> tuple[bool, str]:
        """Forward-only check used when ORDER_STATUS_FORWARD_ONLY is enabled"""
        if new_status == self.status:
            return True, "Unchanged"
        if self.status in (OrderStatus.PAID, OrderStatus.CANCELLED):
            return False, f"Cannot transition from {self.status.value} to {new_status.value}"
        if new_status == OrderStatus.CANCELLED:
            return True, "Can transition"
        if STATUS_SEQUENCE.index(new_status) > STATUS_SEQUENCE.index(self.status):
            return True, "Can transition"
        return False, f"Cannot transition from {self.status.value} to {new_status.value}"
