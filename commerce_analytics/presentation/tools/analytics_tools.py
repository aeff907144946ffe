from __future__ import annotations

from pydantic import Field

from commerce_analytics.container import Container
from commerce_analytics.domain.params import DateRange, Days, GroupByName, Limit
from commerce_analytics.domain.periods import GroupBy

START = Field(default=None, description="Start date (YYYY-MM-DD or ISO timestamp). Omit for all time.")
END = Field(default=None, description="End date, inclusive (YYYY-MM-DD or ISO timestamp).")


def register(mcp, container: Container) -> None:
    analytics = container.analytics

    @mcp.tool(
        title="Cart summary",
        description="Carts updated in the last N days: abandoned vs completed counts, average values, value buckets.",
        tags={"analytics", "carts"},
        meta={"read": True},
        annotations={"readOnlyHint": True},
    )
    def cart_summary(days: Days = 30) -> dict:
        return analytics.cart_summary(days=days)

    @mcp.tool(
        title="Orders by status",
        description="Order count and total per status, plus average units per order.",
        tags={"analytics", "orders"},
        meta={"read": True},
        annotations={"readOnlyHint": True},
    )
    def orders_by_status(start_date: str | None = START, end_date: str | None = END) -> dict:
        return analytics.orders_by_status(DateRange.parse(start_date, end_date))

    @mcp.tool(
        title="Sales summary",
        description="Total, refunded and net sales with breakdowns by sales channel and currency.",
        tags={"analytics", "sales"},
        meta={"read": True},
        annotations={"readOnlyHint": True},
    )
    def sales_summary(start_date: str | None = START, end_date: str | None = END) -> dict:
        return analytics.sales_summary(DateRange.parse(start_date, end_date))

    @mcp.tool(
        title="Sales chart",
        description="Orders and revenue bucketed by day, ISO week or month. Both dates are required.",
        tags={"analytics", "sales"},
        meta={"read": True},
        annotations={"readOnlyHint": True},
    )
    def sales_chart(
        start_date: str = Field(description="Start date (YYYY-MM-DD)"),
        end_date: str = Field(description="End date, inclusive (YYYY-MM-DD)"),
        group_by: GroupByName = "day",
    ) -> dict:
        date_range = DateRange.parse(start_date, end_date, required=True)
        return analytics.sales_chart(date_range, GroupBy(group_by))

    @mcp.tool(
        title="Refunds",
        description="Refund transactions: total refunded, count and daily series.",
        tags={"analytics", "sales"},
        meta={"read": True},
        annotations={"readOnlyHint": True},
    )
    def refunds_summary(start_date: str | None = START, end_date: str | None = END) -> dict:
        return analytics.refunds_summary(DateRange.parse(start_date, end_date))

    @mcp.tool(
        title="Customers",
        description="Customers created in the range: repeat rate, average spend, new and cumulative series.",
        tags={"analytics", "customer"},
        meta={"read": True},
        annotations={"readOnlyHint": True},
    )
    def customers_summary(start_date: str | None = START, end_date: str | None = END) -> dict:
        return analytics.customers_summary(DateRange.parse(start_date, end_date))

    @mcp.tool(
        title="Customer origin",
        description="Customers by acquisition origin, plus carts carrying an origin.",
        tags={"analytics", "customer", "marketing"},
        meta={"read": True},
        annotations={"readOnlyHint": True},
    )
    def customer_origin_breakdown(start_date: str | None = START, end_date: str | None = END) -> dict:
        return analytics.customer_origin_breakdown(DateRange.parse(start_date, end_date))

    @mcp.tool(
        title="Regions",
        description="Orders and revenue per region, highest revenue first.",
        tags={"analytics", "sales"},
        meta={"read": True},
        annotations={"readOnlyHint": True},
    )
    def regions_popularity(start_date: str | None = START, end_date: str | None = END) -> dict:
        return analytics.regions_popularity(DateRange.parse(start_date, end_date))

    @mcp.tool(
        title="Sales channels",
        description="Orders and revenue per sales channel, highest revenue first.",
        tags={"analytics", "sales"},
        meta={"read": True},
        annotations={"readOnlyHint": True},
    )
    def sales_channel_popularity(start_date: str | None = START, end_date: str | None = END) -> dict:
        return analytics.sales_channel_popularity(DateRange.parse(start_date, end_date))

    @mcp.tool(
        title="Payment providers",
        description="Orders and revenue per payment provider, highest revenue first.",
        tags={"analytics", "finance"},
        meta={"read": True},
        annotations={"readOnlyHint": True},
    )
    def payment_provider_popularity(start_date: str | None = START, end_date: str | None = END) -> dict:
        return analytics.payment_provider_popularity(DateRange.parse(start_date, end_date))

    @mcp.tool(
        title="Promotions",
        description="Discount totals and the most used promotion codes.",
        tags={"analytics", "marketing"},
        meta={"read": True},
        annotations={"readOnlyHint": True},
    )
    def promotions_summary(start_date: str | None = START, end_date: str | None = END) -> dict:
        return analytics.promotions_summary(DateRange.parse(start_date, end_date))

    @mcp.tool(
        title="Products",
        description="Top variants by revenue, distinct products sold and out-of-stock count.",
        tags={"analytics", "sales", "catalog"},
        meta={"read": True},
        annotations={"readOnlyHint": True},
    )
    def products_summary(start_date: str | None = START, end_date: str | None = END, limit: Limit = 10) -> dict:
        return analytics.products_summary(DateRange.parse(start_date, end_date), limit=limit)
