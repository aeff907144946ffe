from __future__ import annotations

from datetime import datetime, timezone

import pytest

from commerce_analytics.application.services.analytics_service import AnalyticsService
from commerce_analytics.application.services.assistant_service import AssistantService
from commerce_analytics.application.tools.registry import build_tool_registry
from commerce_analytics.config.settings import Settings
from commerce_analytics.container import build_services
from commerce_analytics.infrastructure.graph.memory import InMemoryGraphQuery
from commerce_analytics.infrastructure.settings_store import InMemoryAnalyticsSettingsStore

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return NOW


# -------- records --------

def make_orders() -> list[dict]:
    return [
        {
            "id": "order_1",
            "display_id": 1,
            "status": "completed",
            "created_at": "2024-03-01T10:00:00Z",
            "currency_code": "eur",
            "sales_channel_id": "sc_web",
            "region_id": "reg_eu",
            "region": {"id": "reg_eu", "name": "Europe", "currency_code": "eur"},
            "customer_id": "cus_1",
            "customer": {"id": "cus_1", "email": "ada@example.com"},
            "subtotal": 90,
            "tax_total": 8,
            "shipping_total": 2,
            "discount_total": 10,
            "total": 100,
            "items": [
                {"variant_id": "var_1", "product_id": "prod_1", "product_title": "Linen Shirt",
                 "quantity": 2, "unit_price": 25, "total": 50},
                {"variant_id": "var_2", "product_id": "prod_2", "product_title": "Coffee Mug",
                 "quantity": 1, "unit_price": 50, "subtotal": "50"},
            ],
            "transactions": [{"id": "tx_1", "amount": 100, "reference": "capture"}],
            "promotions": [{"id": "promo_1", "code": "SPRING"}],
            "payment_collections": [
                {
                    "id": "pc_1",
                    "payment_sessions": [
                        {"provider_id": "pp_paypal", "status": "error"},
                        {"provider_id": "pp_stripe", "status": "captured"},
                    ],
                    "payments": [{"provider_id": "pp_paypal"}],
                }
            ],
        },
        {
            "id": "order_2",
            "display_id": 2,
            "status": "completed",
            "created_at": "2024-03-05T09:00:00Z",
            "currency_code": "eur",
            "sales_channel_id": "sc_web",
            "region_id": "reg_eu",
            "region": {"id": "reg_eu", "name": "Europe", "currency_code": "eur"},
            "customer_id": "cus_1",
            "customer": {"id": "cus_1", "email": "ada@example.com"},
            "subtotal": 60,
            "tax_total": 0,
            "shipping_total": 0,
            "discount_total": 0,
            "total": 60,
            "items": [
                {"variant_id": "var_1", "product_id": "prod_1", "product_title": "Linen Shirt",
                 "quantity": 1, "unit_price": 25, "total": 25},
                {"product_id": "prod_3", "product_title": "Poster", "quantity": 1, "unit_price": 35},
            ],
            "transactions": [
                {"id": "tx_2", "amount": 60, "reference": "capture"},
                {"id": "tx_3", "amount": -20, "reference": "refund"},
            ],
            "promotions": [],
            "payment_collections": [
                {
                    "id": "pc_2",
                    "payment_sessions": [{"provider_id": "pp_system", "status": "pending"}],
                    "payments": [{"provider_id": "pp_paypal"}],
                }
            ],
        },
        {
            "id": "order_3",
            "display_id": 3,
            "status": "pending",
            "created_at": "2024-03-09T23:30:00Z",
            "currency_code": "usd",
            "sales_channel_id": "sc_pos",
            "region_id": "reg_us",
            "region": {"id": "reg_us", "name": "United States", "currency_code": "usd"},
            "customer_id": "cus_2",
            "customer": {"id": "cus_2", "email": "grace@example.com"},
            "subtotal": {"value": "45.5"},
            "tax_total": 0,
            "shipping_total": 0,
            "discount_total": 5,
            "total": {"value": 40.5},
            "items": [
                {"variant_id": "var_3", "product_id": "prod_2", "product_title": "Coffee Mug",
                 "quantity": 1, "unit_price": 45.5, "total": {"raw": {"value": "40.5"}}},
            ],
            "transactions": [],
            "promotions": [],
            "payment_collections": [],
        },
    ]


def make_customers() -> list[dict]:
    return [
        {
            "id": "cus_1",
            "email": "ada@example.com",
            "first_name": "Ada",
            "last_name": "Lovelace",
            "has_account": True,
            "created_at": "2024-02-20T08:00:00Z",
            "metadata": {"origin_type": "social"},
            "orders": [
                {"id": "order_1", "total": 100, "created_at": "2024-03-01T10:00:00Z", "status": "completed"},
                {"id": "order_2", "total": 60, "created_at": "2024-03-05T09:00:00Z", "status": "completed"},
            ],
        },
        {
            "id": "cus_2",
            "email": "grace@example.com",
            "first_name": "Grace",
            "last_name": "Hopper",
            "has_account": False,
            "created_at": "2024-03-02T12:00:00Z",
            "metadata": {},
            "orders": [
                {"id": "order_3", "total": {"value": 40.5}, "created_at": "2024-03-09T23:30:00Z", "status": "pending"},
            ],
        },
        {
            "id": "cus_3",
            "email": "alan@example.com",
            "first_name": "Alan",
            "last_name": "Turing",
            "has_account": True,
            "created_at": "2024-03-06T15:00:00Z",
            "metadata": {"origin_type": "email"},
            "orders": [],
        },
    ]


def make_carts() -> list[dict]:
    return [
        {"id": "cart_1", "total": 75, "completed_at": None, "updated_at": "2024-03-08T10:00:00Z",
         "metadata": {"origin_type": "ads"}, "items": [{"id": "ci_1", "quantity": 1}]},
        {"id": "cart_2", "total": None, "subtotal": 250, "completed_at": "2024-03-09T10:00:00Z",
         "updated_at": "2024-03-09T10:00:00Z", "metadata": {}, "items": [{"id": "ci_2", "quantity": 2}]},
        {"id": "cart_3", "total": 10, "completed_at": None, "updated_at": "2024-03-07T10:00:00Z",
         "metadata": {}, "items": []},
        {"id": "cart_4", "total": 30, "completed_at": None, "updated_at": "2024-01-01T10:00:00Z",
         "metadata": {"origin_type": "email"}, "items": [{"id": "ci_4", "quantity": 1}]},
    ]


def make_products() -> list[dict]:
    return [
        {
            "id": "prod_1",
            "title": "Linen Shirt",
            "status": "published",
            "description": "Breathable summer shirt",
            "handle": "linen-shirt",
            "variants": [
                {"id": "var_1", "title": "M", "sku": "SHIRT-M", "inventory_quantity": 0,
                 "manage_inventory": True, "allow_backorder": False},
            ],
        },
        {
            "id": "prod_2",
            "title": "Coffee Mug",
            "status": "published",
            "description": "Stoneware mug",
            "handle": "coffee-mug",
            "variants": [
                {"id": "var_2", "title": "White", "sku": "MUG-W", "inventory_quantity": 5,
                 "manage_inventory": True, "allow_backorder": False},
                {"id": "var_3", "title": "Black", "sku": "MUG-B", "inventory_quantity": -1,
                 "manage_inventory": False, "allow_backorder": True},
            ],
        },
        {
            "id": "prod_3",
            "title": "Poster",
            "status": "draft",
            "description": "Print of a SHIRT pattern",
            "handle": "poster",
            "variants": [
                {"id": "var_4", "title": "A2", "sku": "POSTER-A2", "inventory_quantity": 0,
                 "manage_inventory": False, "allow_backorder": False},
            ],
        },
    ]


# -------- fixtures --------

@pytest.fixture
def graph() -> InMemoryGraphQuery:
    return InMemoryGraphQuery(
        {
            "order": make_orders(),
            "customer": make_customers(),
            "cart": make_carts(),
            "product": make_products(),
        }
    )


@pytest.fixture
def analytics(graph) -> AnalyticsService:
    return AnalyticsService(graph, clock=fixed_clock)


@pytest.fixture
def assistant(graph) -> AssistantService:
    return AssistantService(graph, clock=fixed_clock)


@pytest.fixture
def registry(assistant):
    return build_tool_registry(assistant)


@pytest.fixture
def settings() -> Settings:
    return Settings(graph_backend="demo", allow_writes=True, _env_file=None)


@pytest.fixture
def container(graph, settings):
    return build_services(settings, graph, InMemoryAnalyticsSettingsStore(), clock=fixed_clock)
