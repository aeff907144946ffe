from __future__ import annotations

from pydantic import Field

from commerce_analytics.container import Container


def register(mcp, container: Container) -> None:
    @mcp.tool(
        title="Seed demo data",
        description="Replace the in-memory demo data set (GRAPH_BACKEND=demo only). Requires ALLOW_WRITES=1.",
        tags={"seed", "demo"},
        meta={"write": True},
        annotations={"destructiveHint": True, "idempotentHint": True, "readOnlyHint": False},
    )
    def seed_demo_data(
        size: str = Field(default="small", description="small, medium, large"),
        seed: int = Field(default=42, description="Random seed for repeatable data."),
    ) -> dict:
        return container.seed.seed_demo_data(container.graph, size=size, seed=seed, now=container.analytics.clock())
