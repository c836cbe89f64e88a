"""Storefront Customization API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map StorefrontError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup and disposed on shutdown via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py
    - Temp store directory created on startup so the first save never races mkdir
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.dependencies import get_temp_file_store
from app.api.error_handlers import register_error_handlers
from app.api.routes import (
    customization_rules, health, item_constraints, order_customizations,
    temp_files,
)
from app.config import get_settings
from app.infrastructure.database import close_db, init_db
from app.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    store = get_temp_file_store()
    logger.info(f"Customization API started (temp store: {store.base_dir})")
    yield
    await close_db()
    logger.info("Customization API shutting down")


app = FastAPI(
    title="Storefront Customization API", version="1.0.0", lifespan=lifespan,
)

# CORS origins come from settings
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Routes
app.include_router(health.router)
app.include_router(customization_rules.router)
app.include_router(item_constraints.router)
app.include_router(order_customizations.router)
app.include_router(temp_files.router)
