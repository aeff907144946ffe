from __future__ import annotations

from functools import lru_cache

from sqlalchemy import inspect
from sqlalchemy.engine import Engine


class SchemaReflection:
    """Cached lookups against the live Medusa schema."""

    def __init__(self, engine: Engine, schema: str | None = "public"):
        self.engine = engine
        self.schema = schema

    @lru_cache(maxsize=256)
    def table_exists(self, table: str) -> bool:
        return table in inspect(self.engine).get_table_names(schema=self.schema)

    @lru_cache(maxsize=256)
    def columns_for(self, table: str) -> frozenset[str]:
        cols = inspect(self.engine).get_columns(table, schema=self.schema)
        return frozenset(c["name"] for c in cols)

    def require_tables(self, *tables: str) -> None:
        missing = [t for t in tables if not self.table_exists(t)]
        if missing:
            where = f"schema '{self.schema}'" if self.schema else "the default schema"
            raise RuntimeError(
                f"Missing reporting tables in {where}: {', '.join(missing)}. "
                "Run the store migrations, then retry."
            )
