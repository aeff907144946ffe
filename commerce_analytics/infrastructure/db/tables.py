from __future__ import annotations

from sqlalchemy import MetaData, Table
from sqlalchemy.engine import Engine


class TableRegistry:
    """Reflected tables, loaded on first use and kept for the process lifetime."""

    def __init__(self, engine: Engine, schema: str | None = "public"):
        self.engine = engine
        self._md = MetaData(schema=schema)
        self._tables: dict[str, Table] = {}

    def get(self, name: str) -> Table:
        table = self._tables.get(name)
        if table is None:
            table = Table(name, self._md, autoload_with=self.engine)
            self._tables[name] = table
        return table
