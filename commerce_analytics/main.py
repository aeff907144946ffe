from __future__ import annotations

import uvicorn

from commerce_analytics.config.logging import configure_logging
from commerce_analytics.config.settings import Settings
from commerce_analytics.container import build_container
from commerce_analytics.presentation.http.app import create_app
from commerce_analytics.presentation.mcp_server import build_mcp_server


def main() -> None:
    settings = Settings()  # loads .env automatically
    configure_logging(settings.log_level)

    container = build_container(settings)
    mcp = build_mcp_server(container)

    if settings.mcp_transport == "http":
        mcp.run(transport="http", host=settings.http_host, port=settings.http_port)
    else:
        mcp.run(transport="stdio")


def serve_http() -> None:
    settings = Settings()
    configure_logging(settings.log_level)

    app = create_app(build_container(settings))
    uvicorn.run(app, host=settings.http_host, port=settings.http_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
