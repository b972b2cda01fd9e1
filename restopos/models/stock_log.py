"""
StockLog model - append-only ledger of product quantity changes
"""

from sqlmodel import Field, SQLModel, Relationship
from datetime import datetime
from typing import Optional, TYPE_CHECKING
from enum import Enum
import uuid

if TYPE_CHECKING:
    from restopos.models.product import Product


class StockLogType(str, Enum):
    """Why the quantity changed"""
    SALE = "sale"                 # Deducted by checkout
    RESTOCK = "restock"           # Delivery received
    ADJUSTMENT = "adjustment"     # Manual count correction
    INITIAL = "initial"           # Opening balance


class StockLog(SQLModel, table=True):
    """One row per mutation of Product.quantity, written in the same transaction"""

    __tablename__ = "stock_logs"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    restaurant_id: uuid.UUID = Field(
        foreign_key="restaurants.id",
        index=True,
        description="Restaurant ID for multi-tenant isolation"
    )
    product_id: uuid.UUID = Field(foreign_key="products.id", index=True)
    user_id: Optional[uuid.UUID] = Field(
        default=None,
        nullable=True,
        description="Staff member who made the change"
    )
    order_id: Optional[uuid.UUID] = Field(
        default=None,
        foreign_key="orders.id",
        index=True,
        nullable=True,
        description="Order that caused a sale deduction"
    )

    quantity_before: int
    quantity_change: int = Field(description="Signed change as requested (negative = deduction)")
    quantity_after: int = Field(description="max(0, quantity_before + quantity_change)")

    type: StockLogType = Field(default=StockLogType.ADJUSTMENT, index=True)
    note: Optional[str] = Field(default=None, max_length=255, nullable=True)

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    product: Optional["Product"] = Relationship(back_populates="stock_logs")
