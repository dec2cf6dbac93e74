"""
HVAC CRM - dispatch, booking and technician portal API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from prometheus_client import make_asgi_app
from slowapi.errors import RateLimitExceeded

from hvac_crm.api.v1.router import api_router
from hvac_crm.bootstrap import seed_service_types
from hvac_crm.core.config import settings
from hvac_crm.core.database import Database
from hvac_crm.core.errors import register_exception_handlers
from hvac_crm.core.logging import RequestContextMiddleware, setup_logging
from hvac_crm.core.metrics import MetricsMiddleware
from hvac_crm.core.rate_limiter import RateLimitMiddleware, limiter, rate_limit_handler
from hvac_crm.core.redis import close_redis, create_redis
from hvac_crm.utils.notifications import SmsNotifier

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build shared resources at startup and release them at shutdown."""
    setup_logging()

    database = Database.from_settings()
    if settings.AUTO_CREATE_TABLES:
        await database.create_all()
        await seed_service_types(database=database)
    app.state.database = database
    app.state.redis = create_redis()
    app.state.sms = SmsNotifier.from_settings()
    logger.info(
        "HVAC CRM started environment=%s business=%s",
        settings.ENVIRONMENT,
        settings.BUSINESS_NAME,
    )

    yield

    await app.state.sms.close()
    await close_redis(app.state.redis)
    await database.dispose()
    logger.info("HVAC CRM stopped")


app = FastAPI(
    title="HVAC CRM",
    description="Service booking intake, dispatch board and technician portal",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

app.state.limiter = limiter
register_exception_handlers(app)
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

# Middleware
app.add_middleware(RateLimitMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)

# Mount Prometheus metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# Include API routes
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "hvac-crm", "environment": settings.ENVIRONMENT}


@app.get("/")
async def root():
    """Root endpoint with system information."""
    return {
        "service": "HVAC CRM",
        "version": "1.0.0",
        "docs": "/api/docs",
        "health": "/health",
        "metrics": "/metrics",
    }
