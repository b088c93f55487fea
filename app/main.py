"""WFZO Backend main application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.analytics import router as analytics_router
from app.api.content import router as content_router
from app.api.email import router as email_router
from app.api.enquiries import router as enquiries_router
from app.api.ga_analytics import router as ga_analytics_router
from app.api.health import router as health_router
from app.api.members import router as members_router
from app.api.membership import router as membership_router
from app.api.users import router as users_router
from app.core.config import settings
from app.core.logging import get_logger, log_shutdown_info, log_startup_info, setup_logging
from app.db.db import get_engine
from app.dependencies import get_email_service
from app.models import Base

# Initialize logging first
setup_logging()

# Get logger after setup
logger = get_logger(__name__)


def init_database() -> None:
    """Create missing tables and seed the default email templates."""
    Base.metadata.create_all(bind=get_engine())
    try:
        get_email_service().seed_default_templates()
    except Exception as e:
        logger.error(f"Failed to seed default email templates: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    log_startup_info()
    init_database()
    logger.info("FastAPI application started successfully")
    yield
    # Shutdown
    log_shutdown_info()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="World Free Zones Organization membership backend",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
for router in (
    members_router,
    enquiries_router,
    membership_router,
    users_router,
    analytics_router,
    ga_analytics_router,
    content_router,
    email_router,
):
    app.include_router(router, prefix=settings.API_V1_STR)
app.include_router(health_router)


@app.get("/")
async def root():
    """Root endpoint for health checks."""
    return {"message": f"{settings.PROJECT_NAME} is running", "status": "healthy"}
