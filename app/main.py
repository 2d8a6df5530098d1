import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded

from app.core.config import settings
from app.core.database import init_db
from app.core.exceptions import register_exception_handlers
from app.core.monitoring import PrometheusMonitoringMiddleware, metrics_endpoint
from app.core.rate_limiting import limiter, rate_limit_exceeded_handler
from app.api.v1.api import api_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events
    """
    logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENVIRONMENT})")
    # Tables are created directly only in development; use Alembic elsewhere
    if settings.ENVIRONMENT == "development":
        await init_db()
        logger.info("Database initialized")

    yield

    logger.info("Shutting down")


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
    version="1.0.0",
    description="""
    # PropertyHub API

    Property listings with a single search filter shared by every caller.

    ## Features

    * **Authentication**: Register, login, social login, refresh tokens
    * **User Management**: Profiles, admin user management, registration stats
    * **Property Listings**: Create, replace, delete, featured, recent, similar
    * **Search**: Location, type, status, price, rooms and amenity filters
    * **Favorites**: Save listings per user

    ## User Roles

    * **User**: Can search and save properties
    * **Agent**: Can manage listings
    * **Admin**: Full platform access
    """
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Error envelope
register_exception_handlers(app)

# Metrics
app.add_middleware(PrometheusMonitoringMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router, prefix=settings.API_V1_STR)

app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], include_in_schema=False)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to {settings.PROJECT_NAME} API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT
    }
