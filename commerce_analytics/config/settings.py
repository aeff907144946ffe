from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    graph_backend: Literal["sql", "demo"] = "sql"
    postgres_dsn: str | None = None
    allow_writes: bool = True
    log_level: str = "INFO"

    cart_lookback_days: int = 30
    origin_cart_lookback_days: int = 30
    products_limit: int = 10
    top_discounts_limit: int = 20

    demo_seed: int = 42
    demo_size: Literal["small", "medium", "large"] = "small"

    http_host: str = "0.0.0.0"
    http_port: int = 9000
    mcp_transport: Literal["stdio", "http"] = "stdio"
