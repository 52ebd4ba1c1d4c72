"""FastAPI application for the Employee Registry."""

import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from employee_registry import __version__
from employee_registry.config import Settings, get_settings
from employee_registry.employees import EmployeeRegistryError
from employee_registry.observability import initialize_logfire
from employee_registry.storage import (
    check_db_connection,
    close_db,
    ensure_employee_indexes,
    get_db_info,
    get_employee_collection,
    init_db,
)

from .routes import router as employees_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Opens MongoDB on startup and closes it on shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(f"Starting Employee Registry API (environment={settings.environment})")

    await init_db(settings)

    db_info = get_db_info()
    if await check_db_connection():
        logger.info(f"MongoDB connection successful ({db_info['url']}/{db_info['database']})")
        if settings.mongo.create_indexes:
            await ensure_employee_indexes(get_employee_collection())
    else:
        logger.error(f"MongoDB connection failed ({db_info['url']}/{db_info['database']})")

    logger.info("Employee Registry API startup complete")

    yield

    logger.info("Shutting down Employee Registry API")
    await close_db()


async def registry_error_handler(request: Request, exc: EmployeeRegistryError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="Employee Registry API",
        description="Employee records over MongoDB with filtered, paginated listing",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.allowed_origins,
        allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
        allow_headers=["Content-Type", "Accept", "Authorization"],
    )
    app.add_exception_handler(EmployeeRegistryError, registry_error_handler)

    @app.get("/health", tags=["Health"])
    async def health_check() -> Dict[str, str]:
        """Health check endpoint for load balancers and monitoring."""
        db_connected = await check_db_connection()
        return {
            "status": "healthy" if db_connected else "degraded",
            "service": "employee-registry",
            "version": __version__,
            "database": "connected" if db_connected else "disconnected",
            "environment": settings.environment,
        }

    @app.get("/", tags=["Root"])
    async def root() -> Dict[str, str]:
        return {
            "name": "Employee Registry API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    app.include_router(employees_router, prefix=settings.api.prefix)

    initialize_logfire(settings, app)
    return app


app = create_app()
