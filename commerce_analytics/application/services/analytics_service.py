from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Callable

from commerce_analytics.domain.errors import GraphQueryError
from commerce_analytics.domain.money import maybe_amount, to_amount
from commerce_analytics.domain.params import DateRange, days_ago
from commerce_analytics.domain.periods import GroupBy, bucket_orders, day_key, sorted_series
from commerce_analytics.infrastructure.graph.base import GraphQuery

logger = logging.getLogger(__name__)

CART_VALUE_BUCKETS: tuple[tuple[str, float], ...] = (
    ("0-50", 50),
    ("50-100", 100),
    ("100-200", 200),
    ("200-500", 500),
    ("500+", float("inf")),
)

REFUND_REFERENCE = "refund"
SETTLED_SESSION_STATUSES = ("captured", "authorized")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def cart_value(cart: Mapping[str, Any]) -> float:
    value = cart.get("total")
    if value is None:
        value = cart.get("subtotal")
    return to_amount(value)


def value_bucket(value: float) -> str:
    for label, upper in CART_VALUE_BUCKETS:
        if value < upper:
            return label
    return CART_VALUE_BUCKETS[-1][0]


def refund_amounts(order: Mapping[str, Any]) -> list[float]:
    return [
        abs(to_amount(t.get("amount")))
        for t in order.get("transactions") or []
        if t.get("reference") == REFUND_REFERENCE
    ]


def line_revenue(item: Mapping[str, Any]) -> float:
    """Line total, else subtotal, else unit_price x quantity."""
    total = item.get("total")
    if total is None:
        total = item.get("subtotal")
    amount = maybe_amount(total)
    if amount is not None:
        return amount
    return to_amount(item.get("unit_price")) * to_amount(item.get("quantity"))


def resolve_payment_provider(order: Mapping[str, Any]) -> str:
    for collection in order.get("payment_collections") or []:
        sessions = collection.get("payment_sessions") or []
        payments = collection.get("payments") or []

        settled = next((s for s in sessions if s.get("status") in SETTLED_SESSION_STATUSES), None)
        if settled and settled.get("provider_id"):
            return settled["provider_id"]
        if payments and payments[0].get("provider_id"):
            return payments[0]["provider_id"]
        if sessions and sessions[0].get("provider_id"):
            return sessions[0]["provider_id"]
    return "unknown"


def _ranked(groups: dict[str, dict], key_name: str) -> list[dict]:
    rows = [{key_name: key, **data} for key, data in groups.items()]
    return sorted(rows, key=lambda r: r["total"], reverse=True)


class AnalyticsService:
    """Read-only metric extractors over the graph query client."""

    def __init__(
        self,
        graph: GraphQuery,
        *,
        clock: Callable[[], datetime] = utc_now,
        origin_cart_lookback_days: int = 30,
        top_discounts_limit: int = 20,
    ):
        self.graph = graph
        self.clock = clock
        self.origin_cart_lookback_days = origin_cart_lookback_days
        self.top_discounts_limit = top_discounts_limit

    # -------- carts --------

    def cart_summary(self, days: int = 30) -> dict:
        since = days_ago(self.clock(), days)
        carts = self.graph.graph(
            "cart",
            ["id", "total", "subtotal", "item_total", "completed_at", "updated_at", "items.*"],
            filters={"updated_at": {"$gte": since}},
        )

        with_items = [c for c in carts if c.get("items")]
        abandoned = [c for c in with_items if not c.get("completed_at")]
        completed = [c for c in with_items if c.get("completed_at")]

        total_value = sum(cart_value(c) for c in with_items)
        abandoned_value = sum(cart_value(c) for c in abandoned)

        buckets = {label: 0 for label, _ in CART_VALUE_BUCKETS}
        for cart in with_items:
            buckets[value_bucket(cart_value(cart))] += 1

        return {
            "period_days": days,
            "total_carts": len(with_items),
            "abandoned_count": len(abandoned),
            "completed_count": len(completed),
            "average_cart_value": total_value / len(with_items) if with_items else 0,
            "abandoned_average_value": abandoned_value / len(abandoned) if abandoned else 0,
            "breakdown_by_value": buckets,
        }

    # -------- orders --------

    def orders_by_status(self, date_range: DateRange) -> dict:
        orders = self.graph.graph("order", ["id", "status", "total", "items.*"], filters=date_range.filter())

        by_status: dict[str, dict] = {}
        total_units = 0.0
        for order in orders:
            bucket = by_status.setdefault(order.get("status") or "unknown", {"count": 0, "total": 0.0})
            bucket["count"] += 1
            bucket["total"] += to_amount(order.get("total"))
            for item in order.get("items") or []:
                total_units += to_amount(item.get("quantity"))

        return {
            "by_status": by_status,
            "total_orders": len(orders),
            "average_units_per_order": total_units / len(orders) if orders else 0,
            "period": date_range.period(),
        }

    def orders_by_time(self, date_range: DateRange, group_by: GroupBy = GroupBy.DAY) -> dict:
        orders = self.graph.graph(
            "order", ["id", "created_at", "total", "status"], filters=date_range.filter()
        )
        return {
            "chart": bucket_orders(orders, group_by),
            "period": {**date_range.period(), "group_by": GroupBy(group_by).value},
        }

    def sales_chart(self, date_range: DateRange, group_by: GroupBy = GroupBy.DAY) -> dict:
        return self.orders_by_time(date_range, group_by)

    def refunds_summary(self, date_range: DateRange) -> dict:
        orders = self.graph.graph("order", ["id", "created_at", "transactions.*"], filters=date_range.filter())

        total_refunded = 0.0
        refund_count = 0
        by_day: dict[str, float] = {}
        for order in orders:
            amounts = refund_amounts(order)
            if not amounts:
                continue
            key = day_key(order.get("created_at"))
            for amount in amounts:
                total_refunded += amount
                refund_count += 1
                by_day[key] = by_day.get(key, 0.0) + amount

        return {
            "total_refunded": total_refunded,
            "refund_count": refund_count,
            "by_time": sorted_series(by_day, "date", "amount"),
            "period": date_range.period(),
        }

    def sales_summary(self, date_range: DateRange) -> dict:
        orders = self.graph.graph(
            "order",
            [
                "id",
                "total",
                "subtotal",
                "discount_total",
                "currency_code",
                "sales_channel_id",
                "created_at",
                "transactions.*",
            ],
            filters=date_range.filter(),
        )

        total_sales = 0.0
        total_refunded = 0.0
        by_channel: dict[str, dict] = {}
        by_currency: dict[str, float] = {}
        for order in orders:
            total = to_amount(order.get("total"))
            total_sales += total
            total_refunded += sum(refund_amounts(order))

            channel = by_channel.setdefault(order.get("sales_channel_id") or "default", {"orders": 0, "total": 0.0})
            channel["orders"] += 1
            channel["total"] += total

            currency = order.get("currency_code") or "USD"
            by_currency[currency] = by_currency.get(currency, 0.0) + total

        return {
            "total_sales": total_sales,
            "net_sales": total_sales - total_refunded,
            "total_refunded": total_refunded,
            "order_count": len(orders),
            "average_sales": total_sales / len(orders) if orders else 0,
            "by_channel": by_channel,
            "by_currency": by_currency,
            "period": date_range.period(),
        }

    # -------- customers --------

    def customers_summary(self, date_range: DateRange) -> dict:
        customers = self.graph.graph(
            "customer",
            ["id", "created_at", "orders.id", "orders.total", "orders.created_at"],
            filters=date_range.filter(),
        )

        total_spent = 0.0
        repeat_count = 0
        new_by_day: dict[str, int] = {}
        for customer in customers:
            orders = customer.get("orders") or []
            total_spent += sum(to_amount(o.get("total")) for o in orders)
            if len(orders) > 1:
                repeat_count += 1
            key = day_key(customer.get("created_at"))
            new_by_day[key] = new_by_day.get(key, 0) + 1

        count = len(customers)
        new_series = sorted_series(new_by_day, "date", "new_customers")
        cumulative = 0
        cumulative_series = []
        for point in new_series:
            cumulative += point["new_customers"]
            cumulative_series.append({"date": point["date"], "cumulative_customers": cumulative})

        return {
            "total_customers": count,
            "average_sales_per_customer": total_spent / count if count else 0,
            "repeat_customer_rate": repeat_count / count * 100 if count else 0,
            "new_customers_by_time": new_series,
            "cumulative_customers_by_time": cumulative_series,
            "period": date_range.period(),
        }

    def customer_origin_breakdown(self, date_range: DateRange) -> dict:
        customers = self.graph.graph("customer", ["id", "created_at", "metadata"], filters=date_range.filter())

        by_origin: dict[str, int] = {}
        for customer in customers:
            origin = (customer.get("metadata") or {}).get("origin_type") or "unknown"
            by_origin[origin] = by_origin.get(origin, 0) + 1

        cart_filters = date_range.filter("updated_at")
        if cart_filters is None:
            since = days_ago(self.clock(), self.origin_cart_lookback_days)
            cart_filters = {"updated_at": {"$gte": since}}
        carts = self.graph.graph("cart", ["id", "metadata", "updated_at"], filters=cart_filters)
        with_origin = sum(1 for c in carts if (c.get("metadata") or {}).get("origin_type"))

        return {
            "by_origin": by_origin,
            "total_customers": len(customers),
            "total_carts": len(carts),
            "carts_with_origin": with_origin,
            "period": date_range.period(),
        }

    # -------- popularity --------

    def regions_popularity(self, date_range: DateRange) -> dict:
        orders = self.graph.graph(
            "order",
            ["id", "total", "region.id", "region.name", "region.currency_code"],
            filters=date_range.filter(),
        )

        by_region: dict[str, dict] = {}
        for order in orders:
            region = order.get("region") or {}
            entry = by_region.setdefault(
                region.get("id") or "unknown",
                {
                    "name": region.get("name") or "Unknown",
                    "orders": 0,
                    "total": 0.0,
                    "currency_code": region.get("currency_code") or "USD",
                },
            )
            entry["orders"] += 1
            entry["total"] += to_amount(order.get("total"))

        return {"regions": _ranked(by_region, "region_id"), "period": date_range.period()}

    def sales_channel_popularity(self, date_range: DateRange) -> dict:
        orders = self.graph.graph("order", ["id", "total", "sales_channel_id"], filters=date_range.filter())

        by_channel: dict[str, dict] = {}
        for order in orders:
            entry = by_channel.setdefault(order.get("sales_channel_id") or "default", {"orders": 0, "total": 0.0})
            entry["orders"] += 1
            entry["total"] += to_amount(order.get("total"))

        return {"channels": _ranked(by_channel, "sales_channel_id"), "period": date_range.period()}

    def payment_provider_popularity(self, date_range: DateRange) -> dict:
        filters = date_range.filter()
        try:
            orders = self.graph.graph(
                "order",
                [
                    "id",
                    "total",
                    "payment_collections.*",
                    "payment_collections.payment_sessions.*",
                    "payment_collections.payments.*",
                ],
                filters=filters,
            )
        except GraphQueryError as exc:
            logger.warning("Payment provider query with payment_collections failed, falling back to totals only: %s", exc)
            orders = self.graph.graph("order", ["id", "total"], filters=filters)

        by_provider: dict[str, dict] = {}
        for order in orders:
            entry = by_provider.setdefault(resolve_payment_provider(order), {"orders": 0, "total": 0.0})
            entry["orders"] += 1
            entry["total"] += to_amount(order.get("total"))

        return {"providers": _ranked(by_provider, "provider_id"), "period": date_range.period()}

    # -------- marketing --------

    def promotions_summary(self, date_range: DateRange) -> dict:
        orders = self.graph.graph(
            "order", ["id", "discount_total", "promotions.*"], filters=date_range.filter()
        )

        total_discounts = 0.0
        orders_with_promotions = 0
        by_code: dict[str, dict] = {}
        for order in orders:
            discount = to_amount(order.get("discount_total"))
            total_discounts += discount
            if discount > 0:
                orders_with_promotions += 1

            promotions = order.get("promotions") or []
            codes = [p.get("code") or "unknown" for p in promotions]
            if not promotions and discount > 0:
                codes = ["manual"]
            for code in codes:
                entry = by_code.setdefault(code, {"orders": 0, "discount_total": 0.0})
                entry["orders"] += 1
                entry["discount_total"] += discount

        top = sorted(
            ({"code": code, **data} for code, data in by_code.items()),
            key=lambda r: r["discount_total"],
            reverse=True,
        )
        return {
            "total_promotions_amount": total_discounts,
            "orders_with_promotions": orders_with_promotions,
            "top_discounts": top[: self.top_discounts_limit],
            "period": date_range.period(),
        }

    # -------- products --------

    def products_summary(self, date_range: DateRange, limit: int = 10) -> dict:
        orders = self.graph.graph(
            "order",
            [
                "id",
                "items.variant_id",
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
        sold_products: set[str] = set()
        for order in orders:
            for item in order.get("items") or []:
                if item.get("product_id"):
                    sold_products.add(item["product_id"])
                key = item.get("variant_id") or item.get("product_id")
                if not key:
                    continue
                entry = stats.setdefault(
                    key,
                    {
                        "variant_id": key,
                        "product_id": item.get("product_id") or "",
                        "product_title": item.get("product_title") or "",
                        "quantity": 0.0,
                        "revenue": 0.0,
                    },
                )
                entry["quantity"] += to_amount(item.get("quantity"))
                entry["revenue"] += line_revenue(item)

        top_variants = sorted(stats.values(), key=lambda r: r["revenue"], reverse=True)[:limit]

        products = self.graph.graph(
            "product", ["id", "variants.id", "variants.inventory_quantity", "variants.manage_inventory"]
        )
        out_of_stock = sum(
            1
            for p in products
            if any(
                v.get("manage_inventory") and to_amount(v.get("inventory_quantity")) <= 0
                for v in p.get("variants") or []
            )
        )

        return {
            "top_variants": top_variants,
            "products_sold_count": len(sold_products),
            "out_of_stock_variants_count": out_of_stock,
            "period": date_range.period(),
        }
