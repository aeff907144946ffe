from __future__ import annotations

from commerce_analytics.container import Container
from commerce_analytics.domain.params import Days, Limit, Threshold


def register(mcp, container: Container) -> None:
    @mcp.tool(
        title="Store health report",
        description="Store health snapshot: order status mix, cart abandonment and low-stock variants.",
        tags={"ops", "report"},
        meta={"read": True, "format": "markdown"},
        annotations={"readOnlyHint": True},
    )
    def store_health_report(days: Days = 14, low_stock_threshold: Threshold = 10) -> str:
        return container.reports.store_health_report(days=days, low_stock_threshold=low_stock_threshold)

    @mcp.tool(
        title="Sales report",
        description="One-page Markdown sales report (KPIs + daily trend + top variants).",
        tags={"analytics", "report", "sales"},
        meta={"read": True, "format": "markdown"},
        annotations={"readOnlyHint": True},
    )
    def sales_report(days: Days = 30, top_n: Limit = 10) -> str:
        return container.reports.sales_report(days=days, top_n=top_n)
