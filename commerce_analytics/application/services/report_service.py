from __future__ import annotations

from commerce_analytics.application.services.analytics_service import AnalyticsService
from commerce_analytics.application.services.assistant_service import AssistantService
from commerce_analytics.domain.params import DateRange
from commerce_analytics.domain.periods import GroupBy


class ReportService:
    """Markdown reports composed from the metric extractors."""

    def __init__(self, analytics: AnalyticsService, assistant: AssistantService):
        self.analytics = analytics
        self.assistant = assistant

    def _window(self, days: int) -> DateRange:
        return DateRange.last_days(days, self.analytics.clock())

    def sales_report(self, days: int, top_n: int) -> str:
        window = self._window(days)
        sales = self.analytics.sales_summary(window)
        trend = self.analytics.orders_by_time(window, GroupBy.DAY)["chart"]
        top = self.analytics.products_summary(window, limit=top_n)["top_variants"]

        md = []
        md.append("# Sales report")
        md.append(f"- Window: last **{days} days**")
        md.append("")
        md.append("## KPIs")
        md.append("| orders | sales | net sales | AOV | refunded |")
        md.append("|---:|---:|---:|---:|---:|")
        md.append(
            f"| {sales['order_count']} | {sales['total_sales']:.2f} | {sales['net_sales']:.2f} "
            f"| {sales['average_sales']:.2f} | {sales['total_refunded']:.2f} |"
        )
        md.append("")
        md.append("## Trend (daily)")
        if not trend:
            md.append("_No rows._")
        else:
            md.append("| day | orders | revenue |")
            md.append("|---|---:|---:|")
            for r in trend[-30:]:
                md.append(f"| {r['period']} | {r['orders']} | {r['total']:.2f} |")
        md.append("")
        md.append("## Top variants (by revenue)")
        if not top:
            md.append("_No rows._")
        else:
            md.append("| variant | product | units | revenue |")
            md.append("|---|---|---:|---:|")
            for r in top:
                md.append(f"| {r['variant_id']} | {r['product_title']} | {r['quantity']:g} | {r['revenue']:.2f} |")

        return "\n".join(md).strip()

    def store_health_report(self, days: int, low_stock_threshold: int) -> str:
        window = self._window(days)
        statuses = self.analytics.orders_by_status(window)["by_status"]
        carts = self.analytics.cart_summary(days=days)

        md = ["# Store health report", f"- Window: last **{days} days**", ""]

        md.append("## Order status mix")
        if not statuses:
            md.append("_No orders in window._")
        else:
            for status, data in sorted(statuses.items(), key=lambda kv: kv[1]["count"], reverse=True):
                md.append(f"- **{status}**: {data['count']} ({data['total']:.2f})")
        md.append("")

        md.append("## Carts")
        md.append(f"- Carts with items: **{carts['total_carts']}**")
        md.append(f"- Abandoned: **{carts['abandoned_count']}** (avg value {carts['abandoned_average_value']:.2f})")
        md.append(f"- Completed: **{carts['completed_count']}**")
        md.append("")

        md.append("## Inventory (low stock)")
        low = self.assistant.get_low_stock_products(threshold=low_stock_threshold)["products"]
        if not low:
            md.append(f"- None under {low_stock_threshold}.")
        else:
            md.append(f"- Threshold: {low_stock_threshold}")
            for p in low[:15]:
                for v in p["low_stock_variants"]:
                    md.append(f"  - `{v['sku']}` {p['product_title']} ({v['variant_title']}): {v['inventory_quantity']}")

        return "\n".join(md).strip()
