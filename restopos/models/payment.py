"""
Payment model
Captured payment for an order; authorization happens before checkout
"""

from sqlmodel import Field, SQLModel, Relationship
from decimal import Decimal
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from enum import Enum
import uuid

if TYPE_CHECKING:
    from restopos.models.order import Order


class PaymentMethod(str, Enum):
    """Payment methods accepted at the POS"""
    CASH = "cash"
    CARD = "card"
    ONLINE = "online"


class PaymentStatus(str, Enum):
    """Status of a payment"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class Payment(SQLModel, table=True):
    """Payment transaction, one per order"""

    __tablename__ = "payments"

    # Primary key
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Order reference
    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        unique=True,
        index=True,
        description="Order this payment belongs to"
    )

    # Payment details
    method: PaymentMethod = Field(
        index=True,
        description="Payment method used (cash, card, online)"
    )
    amount: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=10,
        decimal_places=2,
        description="Payment amount"
    )
    status: PaymentStatus = Field(
        default=PaymentStatus.PENDING,
        index=True,
        description="Current status of payment"
    )
    transaction_id: str = Field(
        max_length=64,
        index=True,
        description="Generated transaction reference, e.g. TXN-5F1A2B3C4D5E"
    )

    # Status timestamps
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When payment record was created"
    )
    processed_at: Optional[datetime] = Field(
        default=None,
        nullable=True,
        description="When payment was captured"
    )

    order: Optional["Order"] = Relationship(back_populates="payment")
