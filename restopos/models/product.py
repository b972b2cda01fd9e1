"""
Product catalog models: products, sizes and add-ons
"""

from sqlmodel import Field, SQLModel, Relationship
from datetime import datetime
from decimal import Decimal
from typing import Optional, TYPE_CHECKING, List
from enum import Enum
import uuid

if TYPE_CHECKING:
    from restopos.models.stock_log import StockLog


class StockStatus(str, Enum):
    """Stock classification for tracked products"""
    OUT = "out"
    LOW = "low"
    OK = "ok"


class Product(SQLModel, table=True):
    """Catalog entry sold at the POS"""

    __tablename__ = "products"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    restaurant_id: uuid.UUID = Field(
        foreign_key="restaurants.id",
        index=True,
        description="Restaurant ID for multi-tenant isolation"
    )

    # Item details
    name: str = Field(max_length=255, nullable=False, description="Product name")
    description: Optional[str] = Field(default=None, max_length=2000, nullable=True)

    # Pricing
    price: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=10,
        decimal_places=2,
        description="Base price of the product"
    )
    cost: Optional[Decimal] = Field(
        default=None,
        max_digits=10,
        decimal_places=2,
        nullable=True,
        description="Unit cost, for margin reports"
    )

    # Availability
    is_available: bool = Field(default=True, index=True)
    has_variations: bool = Field(default=False, description="Whether the product offers sizes")

    # Stock (only meaningful when track_quantity is set)
    track_quantity: bool = Field(default=False, index=True)
    quantity: int = Field(default=0, description="Units on hand, never negative")
    stock_alert: int = Field(default=5, description="Low stock threshold")

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    # Relationships
    sizes: List["ProductSize"] = Relationship(
        back_populates="product",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "ProductSize.sort_order"}
    )
    stock_logs: List["StockLog"] = Relationship(
        back_populates="product",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )

    def stock_status(self) -> StockStatus:
        """Classify stock as out, low or ok"""
        if not self.track_quantity:
            return StockStatus.OK
        if self.quantity <= 0:
            return StockStatus.OUT
        if self.quantity <= self.stock_alert:
            return StockStatus.LOW
        return StockStatus.OK


class ProductSize(SQLModel, table=True):
    """Size variation (Small, Medium, Large) with a price adjustment"""

    __tablename__ = "product_sizes"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    product_id: uuid.UUID = Field(foreign_key="products.id", index=True)
    name: str = Field(max_length=100)
    price_adjustment: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)
    is_available: bool = Field(default=True)
    sort_order: int = Field(default=0)

    product: Optional[Product] = Relationship(back_populates="sizes")


class ProductAddon(SQLModel, table=True):
    """Cross-sell link from a product to another product sold as an add-on"""

    __tablename__ = "product_addons"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
        description="Product that offers this add-on"
    )
    addon_product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
        description="Product sold as the add-on"
    )
    price_override: Optional[Decimal] = Field(
        default=None,
        max_digits=10,
        decimal_places=2,
        nullable=True,
        description="Replaces the add-on product's own price when set"
    )
    quantity_default: int = Field(default=1)
    is_required: bool = Field(default=False)
    sort_order: int = Field(default=0)

    def effective_price(self, addon_product: Product) -> Decimal:
        if self.price_override is not None:
            return self.price_override
        return addon_product.price
