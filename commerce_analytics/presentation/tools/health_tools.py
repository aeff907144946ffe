from __future__ import annotations

from commerce_analytics.container import Container
from commerce_analytics.infrastructure.graph.base import ENTITIES


def register(mcp, container: Container) -> None:
    @mcp.tool(
        title="Graph ping",
        description="Connectivity check: backend in use and whether each entity can be fetched.",
        tags={"health"},
        meta={"read": True},
        annotations={"readOnlyHint": True},
    )
    def graph_ping() -> dict:
        entities = {}
        for entity in ENTITIES:
            try:
                container.graph.graph(entity, ["id"], pagination={"take": 1})
                entities[entity] = "ok"
            except Exception as exc:
                entities[entity] = f"error: {exc}"
        return {
            "backend": container.settings.graph_backend,
            "ok": all(v == "ok" for v in entities.values()),
            "entities": entities,
        }
