"""FastAPI application entry point."""

from __future__ import annotations

import asyncio
import logging
import random
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import analytics, health, routes, trucks, ws
from .config import Settings, settings
from .logging_config import configure_logging
from .persistence.base import RouteStore, TruckStore
from .realtime.manager import ConnectionManager
from .services.container import Services, build_services

logger = logging.getLogger(__name__)


async def _housekeeping(services: Services, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        services.clear_caches()


def create_app(
    config: Settings = settings,
    *,
    routes_store: Optional[RouteStore] = None,
    trucks_store: Optional[TruckStore] = None,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    configure_logging(config.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        connections = ConnectionManager()
        services = build_services(
            config,
            events=connections,
            routes=routes_store,
            trucks=trucks_store,
            rng=rng,
        )
        app.state.connections = connections
        app.state.services = services
        housekeeping = asyncio.create_task(
            _housekeeping(services, config.cache_housekeeping_seconds), name="cache-housekeeping"
        )
        logger.info(f"{config.app_name} started")
        try:
            yield
        finally:
            housekeeping.cancel()
            await asyncio.gather(housekeeping, return_exceptions=True)
            await services.tracking.shutdown()
            logger.info(f"{config.app_name} stopped")

    app = FastAPI(title=config.app_name, lifespan=lifespan)
    if config.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(config.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Root endpoint for diagnostics
    @app.get("/")
    def root():
        return {
            "service": config.app_name,
            "status": "running",
            "api_prefix": config.api_prefix,
            "health": f"{config.api_prefix}/health",
            "websocket": "/ws",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=config.api_prefix)
    app.include_router(trucks.router, prefix=config.api_prefix)
    app.include_router(routes.router, prefix=config.api_prefix)
    app.include_router(analytics.router, prefix=config.api_prefix)
    app.include_router(ws.router)
    return app


app = create_app()
