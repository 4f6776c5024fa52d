"""Main FastAPI application entry point"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
import logging

from taskhub.api.auth import router as auth_router
from taskhub.api.dashboard import router as dashboard_router
from taskhub.api.errors import register_error_handlers
from taskhub.api.health import router as health_router
from taskhub.api.organizations import router as organizations_router
from taskhub.api.projects import router as projects_router
from taskhub.api.tasks import router as tasks_router
from taskhub.api.templating import redirect
from taskhub.config import settings
from taskhub.services.redis_service import RedisService

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await RedisService.close()
    logger.info("Redis connection closed")


app = FastAPI(
    title=settings.app_name,
    description="Projects, tasks and organizations with a kanban board",
    version="1.0.0",
    lifespan=lifespan,
)

register_error_handlers(app)

# Include routers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(dashboard_router)
app.include_router(organizations_router)
app.include_router(projects_router)
app.include_router(tasks_router)


@app.get("/", include_in_schema=False)
async def root():
    """Root redirects to the dashboard (which redirects to login without a session)"""
    return redirect("/dashboard")
