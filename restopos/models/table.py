"""
Table model for restaurant seating
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
from enum import Enum
import uuid


class TableStatus(str, Enum):
    """Occupancy state of a table"""
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"
    MAINTENANCE = "maintenance"


class Table(SQLModel, table=True):
    """Table model for restaurant seating"""

    __tablename__ = "tables"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    restaurant_id: uuid.UUID = Field(foreign_key="restaurants.id", index=True, description="Restaurant ID for multi-tenant isolation")
    area_id: Optional[uuid.UUID] = Field(default=None, nullable=True, description="Area (dining room, patio) the table sits in")

    # Table details
    table_number: str = Field(max_length=50, nullable=False, description="Table identifier (e.g., 'T1', 'B3')")
    capacity: int = Field(default=4, description="Maximum number of guests")

    # Status (last writer wins)
    status: TableStatus = Field(default=TableStatus.AVAILABLE, index=True)
    is_active: bool = Field(default=True, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
