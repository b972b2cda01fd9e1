"""
Database configuration and session management
"""

from sqlmodel import Session, create_engine
from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from dataclasses import dataclass
from typing import Generator
import structlog

from restopos.core.config import get_settings

logger = structlog.get_logger(__name__)
settings = get_settings()

# Request handlers run in the threadpool, one session per request
engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)


@dataclass(frozen=True)
class SchemaCapabilities:
    """Optional schema features, resolved once at startup"""
    stock_tracking: bool = True
    loyalty_ledger: bool = True


def detect_capabilities(bind: Engine) -> SchemaCapabilities:
    """Report which optional tables and columns the live schema has"""
    inspector = inspect(bind)
    tables = set(inspector.get_table_names())

    stock_tracking = False
    if "products" in tables and "stock_logs" in tables:
        columns = {column["name"] for column in inspector.get_columns("products")}
        stock_tracking = {"track_quantity", "quantity", "stock_alert"} <= columns

    loyalty_ledger = "loyalty_transactions" in tables

    capabilities = SchemaCapabilities(
        stock_tracking=stock_tracking,
        loyalty_ledger=loyalty_ledger,
    )
    logger.info(
        "Schema capabilities detected",
        stock_tracking=stock_tracking,
        loyalty_ledger=loyalty_ledger,
    )
    return capabilities


def get_session() -> Generator[Session, None, None]:
    """Dependency to get database session"""
    with Session(engine) as session:
        yield session
