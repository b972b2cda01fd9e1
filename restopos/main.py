"""
RestoPOS - Main Application Entry Point
Multi-tenant restaurant POS checkout and fulfillment
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import structlog

from restopos.core.config import get_settings
from restopos.core.database import detect_capabilities, engine
from restopos.core.errors import CheckoutError
from restopos.api import checkout, customers, discounts, orders, stock

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info("Initializing RestoPOS backend")
    # Tables are created by Alembic migrations, not auto-generated
    app.state.schema_capabilities = detect_capabilities(engine)

    yield

    # Shutdown
    logger.info("Shutting down RestoPOS backend")


# Create FastAPI application
app = FastAPI(
    title="RestoPOS API",
    description="Multi-tenant restaurant POS checkout and fulfillment",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure middleware stack
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CheckoutError)
def handle_checkout_error(request: Request, exc: CheckoutError):
    """Render every domain error with the same envelope"""
    if exc.http_status >= 500:
        logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.http_status, content={"error": exc.to_dict()})


@app.exception_handler(RequestValidationError)
def handle_request_validation_error(request: Request, exc: RequestValidationError):
    message = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": {
            "code": "validation_error",
            "message": message,
            "reason": None,
            "retryable": False,
        }},
    )


# Include routers
app.include_router(checkout.router, prefix=f"{settings.API_V1_PREFIX}/checkout", tags=["checkout"])
app.include_router(stock.router, prefix=f"{settings.API_V1_PREFIX}/stock", tags=["stock"])
app.include_router(discounts.router, prefix=f"{settings.API_V1_PREFIX}/discounts", tags=["discounts"])
app.include_router(orders.router, prefix=f"{settings.API_V1_PREFIX}/orders", tags=["orders"])
app.include_router(customers.router, prefix=f"{settings.API_V1_PREFIX}/customers", tags=["customers"])


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "restopos-api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "restopos.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level="info",
    )
