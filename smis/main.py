from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging

from .core.config import settings
from .core.database import close_db_connections
from .core.cache import cache_manager
from .core.error_handlers import register_exception_handlers
from .core.logging import setup_logging
from .core.middleware import setup_middleware

# Import all routers
from .routers import (
    activities, admin, auth, finance, health, hod, notifications, students, teachers
)
from .routers.courses import courses_router, classes_router

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} ({settings.environment})")

    # Initialize cache
    await cache_manager.initialize()
    logger.info(f"Cache initialized ({cache_manager.backend})")

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await cache_manager.close()
    await close_db_connections()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    description="School Management Information System with role dashboards for students, teachers, HODs, finance and administrators",
    version=settings.app_version,
    lifespan=lifespan,
)

register_exception_handlers(app)
setup_middleware(app)

# Include all routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(students.router)
app.include_router(teachers.router)
app.include_router(hod.router)
app.include_router(finance.router)
app.include_router(admin.router)
app.include_router(activities.router)
app.include_router(notifications.router)
app.include_router(courses_router)
app.include_router(classes_router)


@app.get("/")
async def root():
    return {
        "message": f"{settings.app_name} v{settings.app_version}",
        "version": settings.app_version,
        "features": ["Role dashboards", "Activity log", "Response caching", "Rate limiting"],
        "status": "active",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("smis.main:app", host="0.0.0.0", port=8000, reload=settings.environment == "development")
