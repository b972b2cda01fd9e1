"""
Restaurant model - Multi-tenancy foundation
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from decimal import Decimal
from typing import Optional
import uuid


class Restaurant(SQLModel, table=True):
    """Restaurant (tenant) that owns every other record"""

    __tablename__ = "restaurants"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True, max_length=255)
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    currency_symbol: str = Field(default="$", max_length=8)

    # Flat tax rate as a percentage (10.00 = 10%)
    tax_rate: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=5,
        decimal_places=2,
        description="Flat tax rate percentage applied to every order"
    )

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
    is_active: bool = Field(default=True, index=True)
