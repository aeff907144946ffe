from __future__ import annotations

import pytest

from commerce_analytics.application.services.assistant_service import AssistantService, growth_percentage
from commerce_analytics.domain.errors import InvalidParameterError, NotFoundError
from commerce_analytics.infrastructure.graph.memory import InMemoryGraphQuery
from tests.conftest import fixed_clock


def test_growth_percentage():
    assert growth_percentage(150, 100) == "50.00"
    assert growth_percentage(100, 0) == "N/A"
    assert growth_percentage(1, -5) == "N/A"
    assert growth_percentage(0, 3) == "-100.00"


# -------- products --------

class TestProducts:
    def test_get_products_filters_by_status(self, assistant):
        result = assistant.get_products(status="draft")
        assert [p["id"] for p in result["products"]] == ["prod_3"]
        assert result["count"] == 1

    def test_get_products_paginates(self, assistant):
        result = assistant.get_products(limit=1, offset=1)
        assert result["count"] == 1
        assert result["offset"] == 1
        assert result["limit"] == 1

    def test_get_products_rejects_unknown_status(self, registry):
        with pytest.raises(InvalidParameterError, match="status"):
            registry.execute("get_products", {"status": "archived"})

    def test_get_product_by_id(self, assistant):
        product = assistant.get_product_by_id("prod_2")["product"]
        assert product["title"] == "Coffee Mug"
        assert {v["sku"] for v in product["variants"]} == {"MUG-W", "MUG-B"}

    def test_get_product_by_id_not_found(self, assistant):
        with pytest.raises(NotFoundError, match="prod_9"):
            assistant.get_product_by_id("prod_9")

    def test_search_is_case_insensitive_over_title_and_description(self, assistant):
        result = assistant.search_products("shirt")
        assert {p["id"] for p in result["products"]} == {"prod_1", "prod_3"}
        assert result["query"] == "shirt"

    def test_search_requires_query(self, registry):
        with pytest.raises(InvalidParameterError, match="query"):
            registry.execute("search_products", {"query": "   "})

    def test_top_products_by_revenue_and_quantity(self, assistant):
        by_revenue = assistant.get_top_products("2024-03-01", "2024-03-10")
        assert [(p["product_id"], p["total_revenue"]) for p in by_revenue["products"]] == [
            ("prod_2", 90.5),
            ("prod_1", 75),
            ("prod_3", 35),
        ]

        by_quantity = assistant.get_top_products("2024-03-01", "2024-03-10", sort_by="quantity", limit=1)
        assert by_quantity["products"] == [
            {"product_id": "prod_1", "product_title": "Linen Shirt", "total_quantity": 3, "total_revenue": 75}
        ]
        assert by_quantity["sort_by"] == "quantity"

    def test_top_products_requires_dates(self, assistant):
        with pytest.raises(InvalidParameterError, match="required"):
            assistant.get_top_products(start_date="2024-03-01", end_date=" ")


# -------- orders --------

class TestOrders:
    def test_get_orders_filters(self, assistant):
        assert assistant.get_orders(status="pending")["count"] == 1
        assert assistant.get_orders(region_id="reg_eu")["count"] == 2
        assert assistant.get_orders(limit=2)["count"] == 2

    def test_get_order_by_id(self, assistant):
        order = assistant.get_order_by_id("order_2")["order"]
        assert order["customer"]["email"] == "ada@example.com"
        assert len(order["items"]) == 2
        assert len(order["transactions"]) == 2

    def test_get_order_by_id_not_found(self, assistant):
        with pytest.raises(NotFoundError):
            assistant.get_order_by_id("order_404")

    def test_get_orders_by_period(self, assistant):
        result = assistant.get_orders_by_period("2024-03-01", "2024-03-05", status="completed")
        assert result["count"] == 2
        assert result["total_revenue"] == 160
        assert result["period"] == {"start_date": "2024-03-01", "end_date": "2024-03-05"}

    def test_get_revenue_by_period(self, assistant):
        result = assistant.get_revenue_by_period("2024-03-01", "2024-03-10")
        assert result["total_revenue"] == 200.5
        assert result["total_subtotal"] == 195.5
        assert result["total_tax"] == 8
        assert result["total_shipping"] == 2
        assert result["order_count"] == 3
        assert result["currency_code"] == "eur"

    def test_revenue_defaults_to_usd_without_orders(self, assistant):
        result = assistant.get_revenue_by_period("2023-01-01", "2023-01-31")
        assert result["order_count"] == 0
        assert result["currency_code"] == "USD"

    def test_revenue_by_region_filter(self, assistant):
        result = assistant.get_revenue_by_period("2024-03-01", "2024-03-10", region_id="reg_us")
        assert result["total_revenue"] == 40.5


# -------- customers --------

class TestCustomers:
    def test_get_customers_by_account(self, assistant):
        assert {c["id"] for c in assistant.get_customers(has_account=True)["customers"]} == {"cus_1", "cus_3"}
        assert {c["id"] for c in assistant.get_customers(has_account="false")["customers"]} == {"cus_2"}
        assert assistant.get_customers()["count"] == 3

    def test_get_customer_by_id(self, assistant):
        result = assistant.get_customer_by_id("cus_2")
        assert result["customer"]["email"] == "grace@example.com"
        assert result["total_spent"] == 40.5
        assert result["order_count"] == 1

    def test_get_customer_by_id_not_found(self, assistant):
        with pytest.raises(NotFoundError):
            assistant.get_customer_by_id("cus_404")

    def test_inactive_customers(self, assistant):
        result = assistant.get_inactive_customers(days=3)
        by_id = {c["id"]: c for c in result["customers"]}

        assert set(by_id) == {"cus_1", "cus_3"}
        assert by_id["cus_1"]["last_order_date"] == "2024-03-05T09:00:00+00:00"
        assert by_id["cus_3"]["last_order_date"] is None
        assert result["days_threshold"] == 3

    def test_inactive_customers_requires_days(self, assistant, registry):
        with pytest.raises(InvalidParameterError, match="Missing required argument\(s\): days"):
            registry.execute("get_inactive_customers", {})
        assert assistant.get_inactive_customers(days=30)["count"] == 0


# -------- composite metrics --------

class TestCompositeMetrics:
    def test_calculate_aov(self, assistant):
        result = assistant.calculate_aov("2024-03-01", "2024-03-10")
        assert result["average_order_value"] == 66.83
        assert result["total_revenue"] == 200.5
        assert result["order_count"] == 3
        assert assistant.calculate_aov("2024-03-01", "2024-03-10") == result

    def test_calculate_aov_without_orders_is_zero(self, assistant):
        result = assistant.calculate_aov("2023-01-01", "2023-01-31")
        assert result["average_order_value"] == 0
        assert result["order_count"] == 0

    def test_compare_revenue_against_empty_baseline(self, assistant):
        result = assistant.compare_periods("revenue", "2024-03-01", "2024-03-01", "2024-02-01", "2024-02-28")

        assert result["period1"]["value"] == 100
        assert result["period2"]["value"] == 0
        assert result["difference"] == 100
        assert result["growth_percentage"] == "N/A"
        assert result["period1"]["dates"] == {"start": "2024-03-01", "end": "2024-03-01"}

    def test_compare_revenue_growth(self, assistant):
        result = assistant.compare_periods("revenue", "2024-03-05", "2024-03-09", "2024-03-01", "2024-03-01")
        assert result["difference"] == pytest.approx(0.5)
        assert result["growth_percentage"] == "0.50"
        assert result["period1"]["orders"] == 2

    def test_compare_orders_and_aov(self, assistant):
        orders = assistant.compare_periods("orders", "2024-03-01", "2024-03-10", "2024-03-01", "2024-03-01")
        assert orders["difference"] == 2
        assert orders["growth_percentage"] == "200.00"
        assert orders["period1"]["revenue"] == 200.5

        aov = assistant.compare_periods("aov", "2024-03-01", "2024-03-01", "2024-03-05", "2024-03-05")
        assert aov["difference"] == 40
        assert aov["growth_percentage"] == "66.67"

    def test_compare_new_customers(self, assistant):
        result = assistant.compare_periods("customers", "2024-03-01", "2024-03-10", "2024-02-01", "2024-02-29")
        assert result["period1"]["value"] == 2
        assert result["period2"]["value"] == 1
        assert result["growth_percentage"] == "100.00"

    def test_compare_rejects_unknown_metric(self, registry):
        arguments = {
            "metric": "margin",
            "period1_start": "2024-03-01",
            "period1_end": "2024-03-10",
            "period2_start": "2024-02-01",
            "period2_end": "2024-02-29",
        }
        with pytest.raises(InvalidParameterError, match="metric"):
            registry.execute("compare_periods", arguments)

    def test_sales_trends(self, assistant):
        result = assistant.get_sales_trends("2024-03-01", "2024-03-10", "week")
        assert result["trends"] == [
            {"period": "2024-W09", "revenue": 100, "orders": 1},
            {"period": "2024-W10", "revenue": 100.5, "orders": 2},
        ]
        assert result["group_by"] == "week"
        assert result["total_periods"] == 2

    def test_revenue_by_region(self, assistant):
        result = assistant.get_revenue_by_region("2024-03-01", "2024-03-10")
        assert [r["region_id"] for r in result["regions"]] == ["reg_eu", "reg_us"]
        assert result["regions"][0]["region_name"] == "Europe"
        assert result["regions"][0]["total_revenue"] == 160
        assert result["total_regions"] == 2

    def test_revenue_by_region_without_region(self):
        graph = InMemoryGraphQuery({"order": [{"id": "o", "total": 5, "created_at": "2024-03-01"}]})
        regions = AssistantService(graph, clock=fixed_clock).get_revenue_by_region("2024-03-01", "2024-03-01")["regions"]
        assert regions == [
            {"region_id": "unknown", "region_name": "Unknown Region", "total_revenue": 5, "order_count": 1,
             "currency_code": "USD"}
        ]


# -------- inventory --------

class TestInventory:
    def test_inventory_status(self, assistant):
        result = assistant.get_inventory_status(limit=2)
        assert result["count"] == 2
        first = result["products"][0]
        assert first["product_id"] == "prod_1"
        assert first["variants"][0] == {
            "variant_id": "var_1",
            "variant_title": "M",
            "sku": "SHIRT-M",
            "inventory_quantity": 0,
            "manage_inventory": True,
            "allow_backorder": False,
        }

    def test_low_stock_only_counts_managed_variants_in_stock(self, assistant):
        result = assistant.get_low_stock_products()
        assert result["count"] == 1
        assert result["products"][0]["product_id"] == "prod_2"
        assert [v["sku"] for v in result["products"][0]["low_stock_variants"]] == ["MUG-W"]

    def test_low_stock_threshold(self, assistant):
        assert assistant.get_low_stock_products(threshold=5)["count"] == 0
