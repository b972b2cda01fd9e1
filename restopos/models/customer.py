"""
Customer and loyalty ledger models
"""

from sqlmodel import Field, SQLModel, Relationship
from datetime import datetime
from typing import Optional, List
from enum import Enum
import uuid


class LoyaltyTransactionType(str, Enum):
    EARNED = "earned"
    REDEEMED = "redeemed"
    ADJUSTMENT = "adjustment"
    REFUND = "refund"


class Customer(SQLModel, table=True):
    """Restaurant customer holding a loyalty balance"""

    __tablename__ = "customers"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    restaurant_id: uuid.UUID = Field(
        foreign_key="restaurants.id",
        index=True,
        description="Restaurant ID for multi-tenant isolation"
    )

    name: str = Field(max_length=255)
    email: Optional[str] = Field(default=None, max_length=255, nullable=True)
    phone: Optional[str] = Field(default=None, max_length=20, nullable=True)
    address: Optional[str] = Field(default=None, max_length=500, nullable=True)

    # Always equals the sum of this customer's loyalty transactions
    loyalty_points: int = Field(default=0)
    last_visit_at: Optional[datetime] = Field(default=None, nullable=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    loyalty_transactions: List["LoyaltyTransaction"] = Relationship(
        back_populates="customer",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )


class LoyaltyTransaction(SQLModel, table=True):
    """Append-only loyalty ledger row"""

    __tablename__ = "loyalty_transactions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    customer_id: uuid.UUID = Field(foreign_key="customers.id", index=True)
    order_id: Optional[uuid.UUID] = Field(
        default=None,
        foreign_key="orders.id",
        index=True,
        nullable=True
    )

    type: LoyaltyTransactionType = Field(index=True)
    points: int = Field(description="Signed point delta")
    description: Optional[str] = Field(default=None, max_length=255, nullable=True)

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    customer: Optional[Customer] = Relationship(back_populates="loyalty_transactions")
