"""Outlets Service API - Main Application."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from outlets_core.api.middleware import ApiKeyMiddleware, RequestLoggingMiddleware
from outlets_core.api.routes import categories as categories_routes
from outlets_core.api.routes import domain_rating as domain_rating_routes
from outlets_core.api.routes import health as health_routes
from outlets_core.api.routes import internal as internal_routes
from outlets_core.api.routes import outlets as outlets_routes
from outlets_core.api.routes import views as views_routes
from outlets_core.config import get_settings
from outlets_core.infra.db import Database
from outlets_core.observability.logging import configure_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    settings = get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_json,
        service_name=settings.service_name,
    )
    app.state.settings = settings
    owns_database = getattr(app.state, "database", None) is None
    if owns_database:
        app.state.database = Database.from_url(settings.database_url)
    logger.info("Outlets service started", service=settings.service_name)
    yield
    # Shutdown
    if owns_database:
        app.state.database.dispose()
        app.state.database = None


def create_app() -> FastAPI:
    """Build the application with its middleware and routers."""
    settings = get_settings()
    application = FastAPI(
        title="Outlets Service API",
        description="Press outlets, campaign relevance and domain rating freshness",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(ApiKeyMiddleware)
    # Added last so it wraps every other middleware
    application.add_middleware(RequestLoggingMiddleware)

    # Fixed /outlets/* paths must be registered before /outlets/{outlet_id}
    application.include_router(health_routes.router)
    application.include_router(domain_rating_routes.router)
    application.include_router(views_routes.router)
    application.include_router(outlets_routes.router)
    application.include_router(categories_routes.router)
    application.include_router(internal_routes.router)
    return application


app = create_app()
