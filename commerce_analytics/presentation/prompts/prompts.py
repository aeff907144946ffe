from __future__ import annotations

from commerce_analytics.container import Container


def register(mcp, container: Container) -> None:
    @mcp.prompt(
        title="Weekly exec brief",
        description="One-page executive brief: KPIs, what changed, risks, and next actions.",
        tags={"exec", "report"},
        meta={"audience": "exec"},
    )
    def weekly_exec_brief(days: int = 7) -> str:
        return f"""
Create a one-page executive brief for the last {days} days.

Use tools:
- sales_report(days={days})
- store_health_report(days={days}, low_stock_threshold=10)
- customers_summary(start_date=<{days} days ago>, end_date=<today>)
- compare_periods(metric="revenue", period1=<last {days} days>, period2=<the {days} days before>)

Output (Markdown):
- Summary (max 5 bullets)
- KPI snapshot (sales, net sales, orders, average order value, repeat customer rate)
- What changed (refer to the daily trend)
- Risks (carts, refunds, inventory)
- Next actions (3 to 7 bullets)

Rules: evidence-first, no invented numbers.
""".strip()

    @mcp.prompt(
        title="Sales deep dive",
        description="Detailed sales analysis for a period: trend, product and channel drivers, recommendations.",
        tags={"analytics", "sales"},
        meta={"audience": "growth"},
    )
    def sales_deep_dive(start_date: str, end_date: str, top_n: int = 15) -> str:
        return f"""
Analyze sales performance from {start_date} to {end_date}.

Use tools:
- sales_chart(start_date="{start_date}", end_date="{end_date}", group_by="day")
- products_summary(start_date="{start_date}", end_date="{end_date}", limit={top_n})
- sales_channel_popularity(start_date="{start_date}", end_date="{end_date}")
- regions_popularity(start_date="{start_date}", end_date="{end_date}")
- refunds_summary(start_date="{start_date}", end_date="{end_date}")

Deliver (Markdown):
1) Trend narrative (spikes and dips)
2) Top variants table + interpretation
3) Channel and region mix
4) Refund impact on net sales
5) Recommendations (5 to 10 bullets)
""".strip()

    @mcp.prompt(
        title="Investigate revenue drop",
        description="Compare periods, isolate drivers, propose fixes (root-cause playbook).",
        tags={"analytics", "anomaly"},
        meta={"audience": "analytics"},
    )
    def investigate_revenue_drop(
        current_start: str, current_end: str, previous_start: str, previous_end: str
    ) -> str:
        return f"""
We suspect revenue dropped. Compare {current_start}..{current_end} against {previous_start}..{previous_end}.

Use tools:
- compare_periods for metric "revenue", "orders", "aov" and "customers"
  (period1 = {current_start}..{current_end}, period2 = {previous_start}..{previous_end})
- get_revenue_by_region for both periods
- get_top_products for both periods
- payment_provider_popularity and promotions_summary for the current period
- store_health_report(days=14, low_stock_threshold=10)

Output (Markdown):
- Evidence (tables + key differences)
- Likely causes (ranked)
- Remediations (ranked by impact and effort)
- Monitoring plan (what to watch next)
""".strip()

    @mcp.prompt(
        title="Marketing review",
        description="Promotion effectiveness, acquisition origins and win-back candidates.",
        tags={"marketing", "report"},
        meta={"audience": "marketing"},
    )
    def marketing_review(start_date: str, end_date: str, inactive_days: int = 90) -> str:
        return f"""
Review marketing performance from {start_date} to {end_date}.

Use tools:
- promotions_summary(start_date="{start_date}", end_date="{end_date}")
- customer_origin_breakdown(start_date="{start_date}", end_date="{end_date}")
- customers_summary(start_date="{start_date}", end_date="{end_date}")
- get_inactive_customers(days={inactive_days})
- cart_summary(days=30)

Output (Markdown):
- Promotion codes ranked by discount given, with order counts
- Acquisition mix and how it shifted
- Repeat rate and win-back list size
- Abandoned cart opportunity
- Three campaign ideas grounded in the numbers
""".strip()

    @mcp.prompt(
        title="Inventory reorder plan",
        description="Reorder plan: low stock list + sales velocity context.",
        tags={"inventory", "ops"},
        meta={"audience": "ops"},
    )
    def inventory_reorder_plan(start_date: str, end_date: str, low_stock_threshold: int = 10) -> str:
        return f"""
Create an inventory reorder plan.

Use tools:
- get_low_stock_products(threshold={low_stock_threshold})
- get_top_products(start_date="{start_date}", end_date="{end_date}", sort_by="quantity", limit=20)

Output (Markdown):
- Reorder now (low stock + high sales)
- Watchlist (low stock + low sales)
- Notes / assumptions
""".strip()
