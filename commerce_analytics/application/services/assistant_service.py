from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Literal

from commerce_analytics.application.services.analytics_service import line_revenue, utc_now
from commerce_analytics.domain.errors import NotFoundError
from commerce_analytics.domain.money import round_currency, to_amount
from commerce_analytics.domain.params import (
    DateArg,
    DateRange,
    Days,
    EntityId,
    GroupByName,
    Limit,
    Offset,
    SearchText,
    Threshold,
    days_ago,
)
from commerce_analytics.domain.periods import GroupBy, bucket_orders, parse_timestamp
from commerce_analytics.infrastructure.graph.base import GraphQuery

logger = logging.getLogger(__name__)

ProductStatus = Literal["draft", "proposed", "published", "rejected"]
Metric = Literal["revenue", "orders", "aov", "customers"]
SortBy = Literal["revenue", "quantity"]
INVENTORY_FIELDS = [
    "id",
    "title",
    "status",
    "variants.id",
    "variants.title",
    "variants.sku",
    "variants.inventory_quantity",
    "variants.manage_inventory",
    "variants.allow_backorder",
]


def growth_percentage(current: float, baseline: float) -> str:
    if baseline <= 0:
        return "N/A"
    return f"{(current - baseline) / baseline * 100:.2f}"


def _low_stock(variant: dict, threshold: int) -> bool:
    qty = to_amount(variant.get("inventory_quantity"))
    return bool(variant.get("manage_inventory")) and 0 < qty < threshold


class AssistantService:
    """
    Catalog, order and customer lookups plus composite metrics for the chat
    assistant tools. Signatures double as the tool argument schemas; callers
    validate against them before dispatch.
    """

    def __init__(self, graph: GraphQuery, *, clock: Callable[[], datetime] = utc_now):
        self.graph = graph
        self.clock = clock

    # -------- products --------

    def get_products(self, status: ProductStatus | None = None, limit: Limit = 10, offset: Offset = 0) -> dict:
        products = self.graph.graph(
            "product",
            ["id", "title", "status", "handle", "description", "thumbnail", "created_at", "updated_at", "variants.*"],
            filters={"status": status} if status else None,
            pagination={"skip": offset, "take": limit},
        )
        return {"products": products, "count": len(products), "offset": offset, "limit": limit}

    def get_product_by_id(self, product_id: EntityId) -> dict:
        products = self.graph.graph(
            "product",
            [
                "id",
                "title",
                "subtitle",
                "description",
                "handle",
                "status",
                "thumbnail",
                "variants.*",
            ],
            filters={"id": product_id},
        )
        if not products:
            raise NotFoundError(f"Product not found: {product_id}")
        return {"product": products[0]}

    def search_products(self, query: SearchText, limit: Limit = 10) -> dict:
        pattern = f"%{query.strip()}%"

        products = self.graph.graph(
            "product",
            ["id", "title", "description", "handle", "thumbnail", "status"],
            filters={"$or": [{"title": {"$ilike": pattern}}, {"description": {"$ilike": pattern}}]},
            pagination={"take": limit},
        )
        return {"products": products, "count": len(products), "query": query}

    def get_top_products(
        self, start_date: DateArg, end_date: DateArg, sort_by: SortBy = "revenue", limit: Limit = 10
    ) -> dict:
        date_range = DateRange.parse(start_date, end_date, required=True)

        orders = self.graph.graph(
            "order",
            [
                "id",
                "items.product_id",
                "items.product_title",
                "items.quantity",
                "items.unit_price",
                "items.subtotal",
                "items.total",
            ],
            filters=date_range.filter(),
        )

        stats: dict[str, dict] = {}
        for order in orders:
            for item in order.get("items") or []:
                product_id = item.get("product_id")
                if not product_id:
                    continue
                entry = stats.setdefault(
                    product_id,
                    {
                        "product_id": product_id,
                        "product_title": item.get("product_title"),
                        "total_quantity": 0.0,
                        "total_revenue": 0.0,
                    },
                )
                entry["total_quantity"] += to_amount(item.get("quantity"))
                entry["total_revenue"] += line_revenue(item)

        sort_field = "total_quantity" if sort_by == "quantity" else "total_revenue"
        top = sorted(stats.values(), key=lambda r: r[sort_field], reverse=True)[:limit]
        return {"products": top, "sort_by": sort_by, "period": date_range.period(), "count": len(top)}

    # -------- orders --------

    def get_orders(
        self, status: str | None = None, region_id: str | None = None, limit: Limit = 10, offset: Offset = 0
    ) -> dict:
        filters = {}
        if status:
            filters["status"] = status
        if region_id:
            filters["region_id"] = region_id

        orders = self.graph.graph(
            "order",
            [
                "id",
                "display_id",
                "status",
                "created_at",
                "total",
                "subtotal",
                "tax_total",
                "currency_code",
                "customer.email",
                "customer.first_name",
                "customer.last_name",
                "region.name",
            ],
            filters=filters or None,
            pagination={"skip": offset, "take": limit},
        )
        return {"orders": orders, "count": len(orders), "offset": offset, "limit": limit}

    def get_order_by_id(self, order_id: EntityId) -> dict:
        orders = self.graph.graph(
            "order",
            [
                "id",
                "display_id",
                "status",
                "created_at",
                "total",
                "subtotal",
                "tax_total",
                "shipping_total",
                "discount_total",
                "currency_code",
                "customer.*",
                "items.*",
                "transactions.*",
                "payment_collections.*",
            ],
            filters={"id": order_id},
        )
        if not orders:
            raise NotFoundError(f"Order not found: {order_id}")
        return {"order": orders[0]}

    def get_orders_by_period(
        self, start_date: DateArg, end_date: DateArg, status: str | None = None, region_id: str | None = None
    ) -> dict:
        date_range = DateRange.parse(start_date, end_date, required=True)
        filters = date_range.filter()
        if status:
            filters["status"] = status
        if region_id:
            filters["region_id"] = region_id

        orders = self.graph.graph(
            "order",
            ["id", "display_id", "status", "created_at", "total", "currency_code", "items.*", "customer.email"],
            filters=filters,
        )
        return {
            "orders": orders,
            "count": len(orders),
            "total_revenue": sum(to_amount(o.get("total")) for o in orders),
            "period": date_range.period(),
        }

    def get_revenue_by_period(self, start_date: DateArg, end_date: DateArg, region_id: str | None = None) -> dict:
        date_range = DateRange.parse(start_date, end_date, required=True)
        filters = date_range.filter()
        if region_id:
            filters["region_id"] = region_id

        orders = self.graph.graph(
            "order",
            ["id", "total", "subtotal", "tax_total", "shipping_total", "currency_code"],
            filters=filters,
        )
        return {
            "total_revenue": sum(to_amount(o.get("total")) for o in orders),
            "total_subtotal": sum(to_amount(o.get("subtotal")) for o in orders),
            "total_tax": sum(to_amount(o.get("tax_total")) for o in orders),
            "total_shipping": sum(to_amount(o.get("shipping_total")) for o in orders),
            "order_count": len(orders),
            "period": date_range.period(),
            "currency_code": (orders[0].get("currency_code") if orders else None) or "USD",
        }

    # -------- customers --------

    def get_customers(self, has_account: bool | None = None, limit: Limit = 10, offset: Offset = 0) -> dict:
        customers = self.graph.graph(
            "customer",
            ["id", "email", "first_name", "last_name", "phone", "has_account", "created_at"],
            filters={"has_account": has_account} if has_account is not None else None,
            pagination={"skip": offset, "take": limit},
        )
        return {"customers": customers, "count": len(customers), "offset": offset, "limit": limit}

    def get_customer_by_id(self, customer_id: EntityId) -> dict:
        customers = self.graph.graph(
            "customer",
            [
                "id",
                "email",
                "first_name",
                "last_name",
                "phone",
                "has_account",
                "created_at",
                "orders.id",
                "orders.total",
                "orders.created_at",
                "orders.status",
            ],
            filters={"id": customer_id},
        )
        if not customers:
            raise NotFoundError(f"Customer not found: {customer_id}")

        customer = customers[0]
        orders = customer.get("orders") or []
        return {
            "customer": customer,
            "total_spent": sum(to_amount(o.get("total")) for o in orders),
            "order_count": len(orders),
        }

    def get_inactive_customers(self, days: Days) -> dict:
        cutoff = days_ago(self.clock(), days)

        customers = self.graph.graph(
            "customer",
            ["id", "email", "first_name", "last_name", "created_at", "orders.id", "orders.created_at"],
        )

        inactive = []
        for customer in customers:
            placed = [parse_timestamp(o["created_at"]) for o in customer.get("orders") or [] if o.get("created_at")]
            last_order = max(placed, default=None)
            # customers who never ordered count from their signup date
            last_seen = last_order or (
                parse_timestamp(customer["created_at"]) if customer.get("created_at") else None
            )
            if last_seen is not None and last_seen >= cutoff:
                continue
            inactive.append(
                {
                    "id": customer.get("id"),
                    "email": customer.get("email"),
                    "first_name": customer.get("first_name"),
                    "last_name": customer.get("last_name"),
                    "last_order_date": last_order.isoformat() if last_order else None,
                    "days_inactive": days,
                }
            )

        return {"customers": inactive, "count": len(inactive), "days_threshold": days}

    # -------- composite metrics --------

    def calculate_aov(self, start_date: DateArg, end_date: DateArg) -> dict:
        revenue = self.get_revenue_by_period(start_date=start_date, end_date=end_date)
        count = revenue["order_count"]
        aov = revenue["total_revenue"] / count if count > 0 else 0
        return {
            "average_order_value": round_currency(aov),
            "total_revenue": revenue["total_revenue"],
            "order_count": count,
            "period": revenue["period"],
        }

    def _new_customers(self, start_date, end_date) -> dict:
        date_range = DateRange.parse(start_date, end_date, required=True)
        customers = self.graph.graph("customer", ["id", "created_at"], filters=date_range.filter())
        return {"count": len(customers), "period": date_range.period()}

    def compare_periods(
        self,
        metric: Metric,
        period1_start: DateArg,
        period1_end: DateArg,
        period2_start: DateArg,
        period2_end: DateArg,
    ) -> dict:
        if metric == "revenue":
            p1 = self.get_revenue_by_period(start_date=period1_start, end_date=period1_end)
            p2 = self.get_revenue_by_period(start_date=period2_start, end_date=period2_end)
            v1, v2 = p1["total_revenue"], p2["total_revenue"]
            extra1, extra2 = {"orders": p1["order_count"]}, {"orders": p2["order_count"]}
        elif metric == "orders":
            p1 = self.get_orders_by_period(start_date=period1_start, end_date=period1_end)
            p2 = self.get_orders_by_period(start_date=period2_start, end_date=period2_end)
            v1, v2 = p1["count"], p2["count"]
            extra1, extra2 = {"revenue": p1["total_revenue"]}, {"revenue": p2["total_revenue"]}
        elif metric == "aov":
            p1 = self.calculate_aov(start_date=period1_start, end_date=period1_end)
            p2 = self.calculate_aov(start_date=period2_start, end_date=period2_end)
            v1, v2 = p1["average_order_value"], p2["average_order_value"]
            extra1, extra2 = {"orders": p1["order_count"]}, {"orders": p2["order_count"]}
        else:
            p1 = self._new_customers(period1_start, period1_end)
            p2 = self._new_customers(period2_start, period2_end)
            v1, v2 = p1["count"], p2["count"]
            extra1, extra2 = {}, {}

        return {
            "metric": metric,
            "period1": {"value": v1, **extra1, "dates": {"start": period1_start, "end": period1_end}},
            "period2": {"value": v2, **extra2, "dates": {"start": period2_start, "end": period2_end}},
            "difference": v1 - v2,
            "growth_percentage": growth_percentage(v1, v2),
        }

    def get_sales_trends(self, start_date: DateArg, end_date: DateArg, group_by: GroupByName = "day") -> dict:
        date_range = DateRange.parse(start_date, end_date, required=True)
        group = GroupBy(group_by)
        orders = self.graph.graph("order", ["id", "created_at", "total", "status"], filters=date_range.filter())

        trends = [
            {"period": b["period"], "revenue": b["total"], "orders": b["orders"]}
            for b in bucket_orders(orders, group)
        ]
        return {
            "trends": trends,
            "group_by": group.value,
            "period": date_range.period(),
            "total_periods": len(trends),
        }

    def get_revenue_by_region(self, start_date: DateArg, end_date: DateArg) -> dict:
        date_range = DateRange.parse(start_date, end_date, required=True)
        orders = self.graph.graph(
            "order",
            ["id", "total", "region.id", "region.name", "region.currency_code"],
            filters=date_range.filter(),
        )

        stats: dict[str, dict] = {}
        for order in orders:
            region = order.get("region") or {}
            region_id = region.get("id") or "unknown"
            entry = stats.setdefault(
                region_id,
                {
                    "region_id": region_id,
                    "region_name": region.get("name") or "Unknown Region",
                    "total_revenue": 0.0,
                    "order_count": 0,
                    "currency_code": region.get("currency_code") or "USD",
                },
            )
            entry["total_revenue"] += to_amount(order.get("total"))
            entry["order_count"] += 1

        regions = sorted(stats.values(), key=lambda r: r["total_revenue"], reverse=True)
        return {"regions": regions, "period": date_range.period(), "total_regions": len(regions)}

    # -------- inventory --------

    def get_inventory_status(self, limit: Limit = 20) -> dict:
        products = self.graph.graph("product", INVENTORY_FIELDS, pagination={"take": limit})

        inventory = [
            {
                "product_id": p.get("id"),
                "product_title": p.get("title"),
                "variants": [
                    {
                        "variant_id": v.get("id"),
                        "variant_title": v.get("title"),
                        "sku": v.get("sku"),
                        "inventory_quantity": v.get("inventory_quantity") or 0,
                        "manage_inventory": v.get("manage_inventory"),
                        "allow_backorder": v.get("allow_backorder"),
                    }
                    for v in p.get("variants") or []
                ],
            }
            for p in products
        ]
        return {"products": inventory, "count": len(inventory)}

    def get_low_stock_products(self, threshold: Threshold = 10) -> dict:
        products = self.graph.graph("product", INVENTORY_FIELDS)

        low = []
        for p in products:
            variants = [v for v in p.get("variants") or [] if _low_stock(v, threshold)]
            if not variants:
                continue
            low.append(
                {
                    "product_id": p.get("id"),
                    "product_title": p.get("title"),
                    "low_stock_variants": [
                        {
                            "variant_id": v.get("id"),
                            "variant_title": v.get("title"),
                            "sku": v.get("sku"),
                            "inventory_quantity": v.get("inventory_quantity") or 0,
                        }
                        for v in variants
                    ],
                }
            )
        return {"products": low, "count": len(low), "threshold": threshold}
