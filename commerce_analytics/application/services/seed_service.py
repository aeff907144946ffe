from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta

from commerce_analytics.domain.errors import InvalidParameterError, WritesDisabledError
from commerce_analytics.infrastructure.graph.base import ENTITIES
from commerce_analytics.infrastructure.graph.memory import InMemoryGraphQuery

logger = logging.getLogger(__name__)

SIZES = {
    "small": (50, 40, 300),
    "medium": (300, 150, 2500),
    "large": (1500, 600, 15000),
}

REGIONS = [
    {"id": "reg_eu", "name": "Europe", "currency_code": "eur"},
    {"id": "reg_us", "name": "United States", "currency_code": "usd"},
    {"id": "reg_uk", "name": "United Kingdom", "currency_code": "gbp"},
]
SALES_CHANNELS = ["sc_webshop", "sc_marketplace", "sc_pos"]
PROVIDERS = ["pp_stripe_stripe", "pp_paypal_paypal", "pp_system_default"]
ORIGINS = ["organic", "social", "email", "ads", "referral"]
PROMO_CODES = ["WELCOME10", "SUMMER15", "FREESHIP", "VIP20"]

ORDER_STATUSES = ["completed", "pending", "archived", "canceled", "requires_action"]
ORDER_WEIGHTS = [0.62, 0.15, 0.12, 0.08, 0.03]


class SeedService:
    """Deterministic demo documents for the in-memory graph backend."""

    def __init__(self, *, allow_writes: bool = True):
        self.allow_writes = allow_writes

    def _require_writes_enabled(self) -> None:
        if not self.allow_writes:
            raise WritesDisabledError()

    def build_demo_records(self, size: str, seed: int, now: datetime) -> dict[str, list[dict]]:
        size = (size or "").lower().strip()
        if size not in SIZES:
            raise InvalidParameterError(f"size must be one of: {', '.join(SIZES)}")

        rng = random.Random(seed)
        n_customers, n_products, n_orders = SIZES[size]

        def ts(max_days: int) -> datetime:
            return now - timedelta(
                days=rng.randint(0, max_days),
                hours=rng.randint(0, 23),
                minutes=rng.randint(0, 59),
            )

        # Products
        names = ["Cable", "Keyboard", "Mug", "Lamp", "Notebook", "T-shirt", "Serum", "Book", "Headphones", "Chair"]
        suffix = ["Classic", "Pro", "Mini", "XL", "Eco", "Plus"]
        products = []
        for i in range(1, n_products + 1):
            title = f"{rng.choice(names)} {rng.choice(suffix)}"
            price = round(rng.choice([6.99, 9.99, 14.99, 19.99, 29.99, 49.99, 79.99, 129.99]), 2)
            variants = []
            for j, option in enumerate(rng.sample(["S", "M", "L", "Black", "White"], k=rng.randint(1, 3)), start=1):
                variants.append(
                    {
                        "id": f"variant_{i:05d}_{j}",
                        "product_id": f"prod_{i:05d}",
                        "title": option,
                        "sku": f"SKU-{i:05d}-{j}",
                        "price": price,
                        "inventory_quantity": rng.choice([0, rng.randint(1, 9), rng.randint(10, 400)]),
                        "manage_inventory": rng.random() < 0.85,
                        "allow_backorder": rng.random() < 0.1,
                    }
                )
            products.append(
                {
                    "id": f"prod_{i:05d}",
                    "title": title,
                    "handle": f"{title.lower().replace(' ', '-')}-{i}",
                    "description": f"{title} from the demo catalog.",
                    "status": rng.choices(["published", "draft", "proposed", "rejected"], weights=[0.8, 0.12, 0.05, 0.03])[0],
                    "thumbnail": None,
                    "created_at": ts(365),
                    "variants": variants,
                }
            )

        # Customers
        customers = []
        for i in range(1, n_customers + 1):
            customers.append(
                {
                    "id": f"cus_{i:05d}",
                    "email": f"customer{i:05d}@example.com",
                    "first_name": "Customer",
                    "last_name": f"{i:05d}",
                    "phone": None,
                    "has_account": rng.random() < 0.7,
                    "created_at": ts(240),
                    "metadata": {"origin_type": rng.choice(ORIGINS)} if rng.random() < 0.8 else {},
                    "orders": [],
                }
            )

        # Orders
        orders = []
        for i in range(1, n_orders + 1):
            customer = rng.choice(customers)
            region = rng.choice(REGIONS)
            created_at = max(ts(179), customer["created_at"])
            status = rng.choices(ORDER_STATUSES, weights=ORDER_WEIGHTS, k=1)[0]

            items = []
            for product in rng.sample(products, k=min(len(products), rng.randint(1, 4))):
                variant = rng.choice(product["variants"])
                qty = rng.randint(1, 3)
                line = round(qty * variant["price"], 2)
                items.append(
                    {
                        "id": f"item_{i:06d}_{len(items) + 1}",
                        "variant_id": variant["id"],
                        "product_id": product["id"],
                        "product_title": product["title"],
                        "quantity": qty,
                        "unit_price": variant["price"],
                        "subtotal": line,
                        "total": line,
                    }
                )
            subtotal = round(sum(it["total"] for it in items), 2)

            promotions = []
            discount = 0.0
            if rng.random() < 0.18:
                code = rng.choice(PROMO_CODES)
                promotions.append({"id": f"promo_{code.lower()}", "code": code})
                discount = round(subtotal * 0.1, 2)
            elif rng.random() < 0.03:
                discount = round(subtotal * 0.05, 2)

            shipping = rng.choice([0.0, 4.9, 7.9])
            tax = round((subtotal - discount) * 0.2, 2)
            total = round(subtotal - discount + shipping + tax, 2)

            transactions = [{"id": f"tx_{i:06d}_1", "amount": total, "reference": "capture", "created_at": created_at}]
            if rng.random() < 0.05:
                transactions.append(
                    {
                        "id": f"tx_{i:06d}_2",
                        "amount": -round(total * rng.choice([0.25, 0.5, 1.0]), 2),
                        "reference": "refund",
                        "created_at": created_at + timedelta(days=rng.randint(1, 10)),
                    }
                )

            provider = rng.choice(PROVIDERS)
            order = {
                "id": f"order_{i:06d}",
                "display_id": i,
                "status": status,
                "created_at": created_at,
                "currency_code": region["currency_code"],
                "region_id": region["id"],
                "region": dict(region),
                "sales_channel_id": rng.choice(SALES_CHANNELS),
                "customer_id": customer["id"],
                "customer": {k: customer[k] for k in ("id", "email", "first_name", "last_name")},
                "subtotal": subtotal,
                "discount_total": discount,
                "shipping_total": shipping,
                "tax_total": tax,
                "total": total,
                "items": items,
                "transactions": transactions,
                "promotions": promotions,
                "payment_collections": [
                    {
                        "id": f"paycol_{i:06d}",
                        "payment_sessions": [{"provider_id": provider, "status": "captured"}],
                        "payments": [{"provider_id": provider, "amount": total}],
                    }
                ],
            }
            orders.append(order)
            customer["orders"].append(
                {"id": order["id"], "total": total, "created_at": created_at, "status": status}
            )

        # Carts
        carts = []
        for i in range(1, max(10, n_orders // 3) + 1):
            updated_at = ts(45)
            items = [{"id": f"citem_{i:06d}_1", "quantity": rng.randint(1, 3)}] if rng.random() < 0.9 else []
            total = round(rng.uniform(5, 650), 2) if items else 0
            carts.append(
                {
                    "id": f"cart_{i:06d}",
                    "total": total,
                    "subtotal": total,
                    "completed_at": updated_at if rng.random() < 0.35 else None,
                    "updated_at": updated_at,
                    "metadata": {"origin_type": rng.choice(ORIGINS)} if rng.random() < 0.6 else {},
                    "items": items,
                }
            )

        return {"order": orders, "cart": carts, "customer": customers, "product": products}

    def seed_demo_data(self, graph, size: str, seed: int, now: datetime) -> dict:
        self._require_writes_enabled()
        if not isinstance(graph, InMemoryGraphQuery):
            raise RuntimeError("Demo seeding needs the in-memory graph backend (GRAPH_BACKEND=demo).")

        records = self.build_demo_records(size, seed, now)
        for entity in ENTITIES:
            graph.load(entity, records[entity])
        logger.info("loaded demo data size=%s seed=%s", size, seed)

        return {
            "ok": True,
            "size": size,
            "seed": seed,
            "loaded": {entity: len(records[entity]) for entity in ENTITIES},
            "note": "Seed complete. Try sales_report(days=30) or the sales_deep_dive prompt.",
        }
