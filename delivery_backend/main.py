"""
Delivery Backend - FastAPI Application
Main entry point for the API server.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_backend.config import get_settings
from delivery_backend.core.errors import DeliveryError
from delivery_backend.database import get_db, init_db, ping
from delivery_backend.api import auth_router, users_router, orders_router


settings = get_settings()

logger = logging.getLogger("delivery_backend")


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    configure_logging()
    logger.info("Starting %s v%s (%s)", settings.app_title, settings.app_version, settings.app_env)
    
    # Initialize database tables (important for SQLite)
    await init_db()
    logger.info("Database tables initialized")
    
    yield
    logger.info("Shutting down...")


# Create FastAPI application
app = FastAPI(
    title=settings.app_title,
    version=settings.app_version,
    description="""
    ## Delivery Backend API
    
    REST backend for a delivery marketplace with admin, driver and customer roles.
    
    ### Main Endpoints
    - `POST /api/register`, `POST /api/login` - Accounts and access tokens
    - `GET|PUT /api/profile` - Own profile, picture, location and password
    - `POST /api/orders` - Create an order
    - `PUT /api/orders/{id}/assign` - Assign a driver (admin)
    - `PUT /api/orders/{id}/status` - Advance delivery / payment status
    - `DELETE /api/orders/{id}` - Cancel an order
    - `GET /api/orders/available` - Unassigned orders for drivers
    """,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DeliveryError)
async def delivery_error_handler(request: Request, exc: DeliveryError) -> JSONResponse:
    """Render business-rule rejections with their HTTP status."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.code},
    )


# Include API routers
app.include_router(auth_router, prefix=settings.api_prefix)
app.include_router(users_router, prefix=settings.api_prefix)
app.include_router(orders_router, prefix=settings.api_prefix)


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - health check."""
    return {
        "status": "healthy",
        "service": settings.app_title,
        "version": settings.app_version,
    }


@app.get("/health", tags=["Health"])
async def health_check(db: AsyncSession = Depends(get_db)):
    """Health check endpoint including a database round trip."""
    connected = await ping(db)
    return {
        "status": "healthy" if connected else "degraded",
        "database": "connected" if connected else "unreachable",
    }
