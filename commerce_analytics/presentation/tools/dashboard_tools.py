from __future__ import annotations

from fastmcp.utilities.types import Image

from commerce_analytics.container import Container
from commerce_analytics.domain.params import DateRange, Days, GroupByName, Limit
from commerce_analytics.domain.periods import GroupBy
from commerce_analytics.presentation.charts.sales_dashboard import render_sales_dashboard_png


def register(mcp, container: Container) -> None:
    @mcp.tool(
        title="Sales dashboard",
        description="One-page composite dashboard image (2x2): revenue and orders per bucket, "
                    "top variants, sales channel mix, with headline KPIs.",
        tags={"analytics", "report", "charts"},
        meta={"read": True},
        annotations={"readOnlyHint": True},
    )
    def sales_dashboard(days: Days = 30, top_n: Limit = 10, group_by: GroupByName = "day"):
        analytics = container.analytics
        window = DateRange.last_days(days, analytics.clock())

        trend = analytics.orders_by_time(window, GroupBy(group_by))["chart"]
        top = analytics.products_summary(window, limit=top_n)["top_variants"]
        sales = analytics.sales_summary(window)

        png = render_sales_dashboard_png(
            trend_rows=trend,
            top_variants=top,
            sales=sales,
            title=f"Sales dashboard, last {days} days",
        )

        md = (
            f"# Sales dashboard\n"
            f"- Window: last **{days} days** (grouped by {group_by})\n\n"
            f"## Figure 1: Sales dashboard (composite)\n"
            f"This figure is a single-page dashboard with 4 panels:\n"
            f"- Revenue per {group_by}\n"
            f"- Orders per {group_by}\n"
            f"- Top variants by revenue\n"
            f"- Sales channel mix\n"
            f"\n"
            f"Headline: sales {sales['total_sales']:.2f}, net {sales['net_sales']:.2f}, "
            f"orders {sales['order_count']}.\n"
        )

        return [md, Image(data=png, format="png")]
