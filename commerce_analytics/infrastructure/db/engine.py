from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

_PG_PREFIXES = ("postgresql://", "postgres://")


def normalize_sqlalchemy_dsn(dsn: str) -> str:
    """Medusa ships libpq-style URLs; route them through the psycopg 3 driver."""
    dsn = (dsn or "").strip()
    for prefix in _PG_PREFIXES:
        if dsn.startswith(prefix):
            return "postgresql+psycopg://" + dsn[len(prefix):]
    return dsn


def build_engine(dsn: str, *, pool_size: int = 5, max_overflow: int = 10) -> Engine:
    url = normalize_sqlalchemy_dsn(dsn)
    if url.startswith("sqlite"):
        # no size/overflow for sqlite pools
        return create_engine(url)
    return create_engine(url, pool_size=pool_size, max_overflow=max_overflow, pool_pre_ping=True)
