"""FastAPI application entry point."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import duplicates, health, imports, optimized_routes, sharing, weather
from .config import settings

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

ROUTERS = (health, duplicates, imports, optimized_routes, sharing, weather)


def create_app() -> FastAPI:
    app = FastAPI(title=settings.app_name)
    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Landing payload for uptime checks and humans opening the base URL
    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "storage_configured": bool(settings.supabase_url and settings.supabase_key),
            "docs": "/docs",
        }

    for module in ROUTERS:
        app.include_router(module.router, prefix=settings.api_prefix)
    logger.debug(f"Registered {len(ROUTERS)} route groups under '{settings.api_prefix}'")
    return app


app = create_app()
