from __future__ import annotations

from commerce_analytics.container import Container


def register(mcp, container: Container) -> None:
    # same catalog, schemas and handlers as the HTTP chat tools
    for tool in container.tools:
        mcp.tool(
            tool.handler,
            name=tool.name,
            title=tool.title,
            description=tool.description,
            tags=set(tool.tags),
            meta={"read": True},
            annotations={"readOnlyHint": True},
        )
