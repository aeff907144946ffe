from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from commerce_analytics.config.settings import Settings
from commerce_analytics.infrastructure.db.engine import build_engine
from commerce_analytics.infrastructure.db.uow import SqlAlchemyUnitOfWork
from commerce_analytics.infrastructure.db.reflection import SchemaReflection
from commerce_analytics.infrastructure.db.tables import TableRegistry
from commerce_analytics.infrastructure.graph.base import GraphQuery
from commerce_analytics.infrastructure.graph.memory import InMemoryGraphQuery
from commerce_analytics.infrastructure.graph.sql import SqlGraphQuery
from commerce_analytics.infrastructure.settings_store import (
    AnalyticsSettingsStore,
    InMemoryAnalyticsSettingsStore,
    SqlAnalyticsSettingsStore,
)

from commerce_analytics.application.services.analytics_service import AnalyticsService, utc_now
from commerce_analytics.application.services.assistant_service import AssistantService
from commerce_analytics.application.services.report_service import ReportService
from commerce_analytics.application.services.seed_service import SeedService
from commerce_analytics.application.services.settings_service import AnalyticsSettingsService
from commerce_analytics.application.tools.registry import ToolRegistry, build_tool_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    settings: Settings
    graph: GraphQuery

    analytics: AnalyticsService
    assistant: AssistantService
    tools: ToolRegistry
    reports: ReportService
    analytics_settings: AnalyticsSettingsService
    seed: SeedService


def build_services(
    settings: Settings,
    graph: GraphQuery,
    store: AnalyticsSettingsStore,
    *,
    clock: Callable = utc_now,
) -> Container:
    analytics_svc = AnalyticsService(
        graph,
        clock=clock,
        origin_cart_lookback_days=settings.origin_cart_lookback_days,
        top_discounts_limit=settings.top_discounts_limit,
    )
    assistant_svc = AssistantService(graph, clock=clock)

    return Container(
        settings=settings,
        graph=graph,
        analytics=analytics_svc,
        assistant=assistant_svc,
        tools=build_tool_registry(assistant_svc),
        reports=ReportService(analytics_svc, assistant_svc),
        analytics_settings=AnalyticsSettingsService(store, allow_writes=settings.allow_writes),
        seed=SeedService(allow_writes=settings.allow_writes),
    )


def build_container(settings: Settings) -> Container:
    if settings.graph_backend == "demo":
        graph = InMemoryGraphQuery()
        container = build_services(settings, graph, InMemoryAnalyticsSettingsStore())
        graph_records = container.seed.build_demo_records(settings.demo_size, settings.demo_seed, utc_now())
        for entity, rows in graph_records.items():
            graph.load(entity, rows)
        logger.info("demo backend ready (size=%s seed=%s)", settings.demo_size, settings.demo_seed)
        return container

    if not settings.postgres_dsn:
        raise RuntimeError("POSTGRES_DSN is required when GRAPH_BACKEND=sql")

    engine = build_engine(settings.postgres_dsn)

    registry = TableRegistry(engine, schema="public")
    reflection = SchemaReflection(engine, schema="public")

    def read_uow() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(engine, read_only=True)

    def uow_factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(engine)

    graph = SqlGraphQuery(read_uow, reflection, registry)
    store = SqlAnalyticsSettingsStore(uow_factory, reflection, registry)
    return build_services(settings, graph, store)
