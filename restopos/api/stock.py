"""
Stock API endpoints
"""

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
from typing import List
import uuid

from restopos.core.database import SchemaCapabilities, get_session
from restopos.core.dependencies import (
    get_capabilities,
    get_current_user_id,
    get_restaurant_id,
    get_schema_capabilities,
)
from restopos.core.errors import ValidationError
from restopos.core.permissions import Capabilities, Permission
from restopos.services import stock
from restopos.api.schemas import StockAdjustRequest, StockLogRead, StockSummary

router = APIRouter()


@router.post(
    "/products/{product_id}/adjust",
    response_model=StockLogRead,
    status_code=status.HTTP_201_CREATED,
)
def adjust_stock(
    product_id: uuid.UUID,
    data: StockAdjustRequest,
    session: Session = Depends(get_session),
    current_user_id: uuid.UUID = Depends(get_current_user_id),
    restaurant_id: uuid.UUID = Depends(get_restaurant_id),
    capabilities: Capabilities = Depends(get_capabilities),
    schema: SchemaCapabilities = Depends(get_schema_capabilities),
):
    """Restock or correct a product's quantity"""
    capabilities.require(Permission.STOCK_ADJUST)
    if not schema.stock_tracking:
        raise ValidationError("Stock tracking is not available")

    return stock.adjust_manual(
        session,
        restaurant_id,
        product_id,
        data.quantity_change,
        data.type,
        note=data.note,
        user_id=current_user_id,
    )


@router.get("/products/{product_id}/logs", response_model=List[StockLogRead])
def list_stock_logs(
    product_id: uuid.UUID,
    limit: int = Query(30, ge=1, le=200),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
    restaurant_id: uuid.UUID = Depends(get_restaurant_id),
    capabilities: Capabilities = Depends(get_capabilities),
):
    capabilities.require(Permission.STOCK_VIEW)
    return stock.logs_for(session, restaurant_id, product_id, limit=limit, offset=offset)


@router.get("/summary", response_model=StockSummary)
def get_stock_summary(
    session: Session = Depends(get_session),
    restaurant_id: uuid.UUID = Depends(get_restaurant_id),
    capabilities: Capabilities = Depends(get_capabilities),
    schema: SchemaCapabilities = Depends(get_schema_capabilities),
):
    """Counts of tracked products that are out, low or ok"""
    capabilities.require(Permission.STOCK_VIEW)
    return stock.stock_summary(session, restaurant_id, schema)
