"""
Brew Haven Backend
FastAPI application entry point

- Rate limiting with SlowAPI
- Domain errors rendered as {"error": code, "message": message}
- Error sanitization middleware for anything unhandled
- Health endpoint with DB ping
"""
import logging
from datetime import datetime, timezone
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from brewhaven import __version__
from brewhaven.api.routes import cart, orders, order_items, payments
from brewhaven.core.config import settings
from brewhaven.core.database import AsyncSessionLocal, create_tables
from brewhaven.core.error_handler import (
    ErrorSanitizationMiddleware,
    brewhaven_error_handler,
    request_validation_error_handler,
)
from brewhaven.core.exceptions import BrewHavenError
from brewhaven.core.rate_limit import limiter, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables in development; production schemas come from migrations."""
    if settings.ENVIRONMENT == "development":
        await create_tables()
        logger.info("Development database tables ensured")

    logger.info(f"{settings.APP_NAME} API {__version__} started ({settings.ENVIRONMENT})")
    yield
    logger.info(f"{settings.APP_NAME} API shutting down")


app = FastAPI(
    lifespan=lifespan,
    title="Brew Haven API",
    description="""
## Brew Haven Ordering API

Order composition and payment settlement for the coffee shop.

### Features
- **Cart**: Build a selection priced at current menu prices
- **Orders**: Check out a cart or an explicit item list into a numbered order
- **Payments**: One payment per order; marking it paid starts preparation

### Authentication
Every endpoint except health requires a Bearer access token.

### Rate Limits
- Order creation: 10 requests/minute
- General: 100 requests/minute
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Health", "description": "Health check endpoints"},
        {"name": "Cart", "description": "Cart operations"},
        {"name": "Orders", "description": "Order creation and management"},
        {"name": "Order Items", "description": "Order line and option management"},
        {"name": "Payments", "description": "Payment lifecycle"},
    ],
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Domain and request validation errors
app.add_exception_handler(BrewHavenError, brewhaven_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_error_handler)

# Error sanitization (catches unhandled exceptions)
app.add_middleware(ErrorSanitizationMiddleware)

# CORS - adjust origins for production
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(cart.router, prefix="/api/cart", tags=["Cart"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(order_items.items_router, prefix="/api/order-items", tags=["Order Items"])
app.include_router(order_items.options_router, prefix="/api/order-item-options", tags=["Order Items"])
app.include_router(payments.router, prefix="/api/payments", tags=["Payments"])


@app.get("/", tags=["Health"])
async def root():
    return {
        "message": "Brew Haven API",
        "version": __version__,
        "status": "operational"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check with an actual DB ping.
    Returns 503 if database is unreachable.
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    try:
        async with AsyncSessionLocal() as db:
            await db.execute(text("SELECT 1"))
        health_status["database"] = "connected"
    except Exception as e:
        logger.error(f"Health check database ping failed: {type(e).__name__}: {e}")
        health_status["database"] = f"error: {type(e).__name__}"
        health_status["status"] = "unhealthy"
        return JSONResponse(status_code=503, content=health_status)

    return health_status
