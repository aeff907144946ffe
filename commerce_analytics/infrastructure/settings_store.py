from __future__ import annotations

import uuid
from typing import Callable, Protocol

from sqlalchemy import insert, select, update

from commerce_analytics.infrastructure.db.reflection import SchemaReflection
from commerce_analytics.infrastructure.db.tables import TableRegistry
from commerce_analytics.infrastructure.db.uow import SqlAlchemyUnitOfWork

SETTINGS_TABLE = "analytics_settings"


class AnalyticsSettingsStore(Protocol):
    def get_posthog_embed_url(self) -> str | None: ...

    def set_posthog_embed_url(self, url: str | None) -> None: ...


class InMemoryAnalyticsSettingsStore:
    def __init__(self, posthog_embed_url: str | None = None):
        self._url = posthog_embed_url

    def get_posthog_embed_url(self) -> str | None:
        return self._url

    def set_posthog_embed_url(self, url: str | None) -> None:
        self._url = url


class SqlAnalyticsSettingsStore:
    """Single-row settings table: the first row wins, created on first write."""

    def __init__(
        self,
        uow_factory: Callable[[], SqlAlchemyUnitOfWork],
        reflection: SchemaReflection,
        registry: TableRegistry,
    ):
        self.uow_factory = uow_factory
        self.reflection = reflection
        self.registry = registry

    def get_posthog_embed_url(self) -> str | None:
        self.reflection.require_tables(SETTINGS_TABLE)
        Settings = self.registry.get(SETTINGS_TABLE)
        with self.uow_factory() as uow:
            row = uow.session.execute(
                select(Settings.c.posthog_dashboard_embed_url).order_by(Settings.c.id).limit(1)
            ).first()
            return row[0] if row else None

    def set_posthog_embed_url(self, url: str | None) -> None:
        self.reflection.require_tables(SETTINGS_TABLE)
        Settings = self.registry.get(SETTINGS_TABLE)
        with self.uow_factory() as uow:
            existing = uow.session.execute(select(Settings.c.id).order_by(Settings.c.id).limit(1)).scalar()
            if existing is not None:
                stmt = update(Settings).where(Settings.c.id == existing).values(posthog_dashboard_embed_url=url)
            else:
                stmt = insert(Settings).values(id=f"anset_{uuid.uuid4().hex}", posthog_dashboard_embed_url=url)
            uow.session.execute(stmt)
