"""
Order Item model
Individual lines of an order with price and add-on snapshots
"""

from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import Column, JSON
from pydantic import BaseModel, ConfigDict
from decimal import Decimal
from typing import Optional, TYPE_CHECKING, Sequence, Tuple
import uuid

if TYPE_CHECKING:
    from restopos.models.order import Order


class AddonSnapshot(BaseModel):
    """Add-on as it was priced when the order was placed"""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    name: str
    price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class OrderItem(SQLModel, table=True):
    """Individual line in an order"""

    __tablename__ = "order_items"

    # Primary key
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
        description="Order this item belongs to"
    )
    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
        description="Product this line represents"
    )
    size_id: Optional[uuid.UUID] = Field(
        default=None,
        foreign_key="product_sizes.id",
        nullable=True,
        description="Chosen size, if any"
    )

    # Quantity and pricing (snapshot at time of order)
    quantity: int = Field(default=1)
    price: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=10,
        decimal_places=2,
        description="Unit price at time of order, excluding add-ons"
    )
    total: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=10,
        decimal_places=2,
        description="price * quantity"
    )

    notes: Optional[str] = Field(default=None, max_length=1000, nullable=True)

    # Frozen add-on list (JSON): [{"id", "name", "price", "quantity"}]
    addons: Optional[list] = Field(default=None, sa_column=Column(JSON))

    # Relationships
    order: Optional["Order"] = Relationship(back_populates="items")

    def freeze_addons(self, snapshots: Sequence[AddonSnapshot]) -> None:
        """Store the add-on snapshots as JSON; no add-ons is an empty list"""
        self.addons = [snapshot.model_dump(mode="json") for snapshot in snapshots]

    def addon_snapshots(self) -> Tuple[AddonSnapshot, ...]:
        if not self.addons:
            return ()
        return tuple(AddonSnapshot.model_validate(raw) for raw in self.addons)

    def get_addon_summary(self) -> str:
        """Human-readable add-on summary, e.g. 'Cheese x2, Bacon x1'"""
        return ", ".join(f"{addon.name} x{addon.quantity}" for addon in self.addon_snapshots())
