from __future__ import annotations

import logging

from fastapi import FastAPI

from commerce_analytics.config.settings import Settings
from commerce_analytics.container import Container, build_container
from commerce_analytics.presentation.http.errors import install_error_handlers
from commerce_analytics.presentation.http.routes.analytics import router as analytics_router
from commerce_analytics.presentation.http.routes.assistant import router as assistant_router
from commerce_analytics.presentation.http.routes.health import router as health_router

logger = logging.getLogger(__name__)


def create_app(container: Container | None = None) -> FastAPI:
    if container is None:
        container = build_container(Settings())

    app = FastAPI(title="Commerce Analytics API", version="0.1.0")
    app.state.container = container
    install_error_handlers(app)

    app.include_router(health_router)
    app.include_router(analytics_router)
    app.include_router(assistant_router)

    logger.info("HTTP app ready (backend=%s)", container.settings.graph_backend)
    return app
