from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from commerce_analytics.container import build_services
from commerce_analytics.domain.errors import GraphQueryError
from commerce_analytics.infrastructure.settings_store import InMemoryAnalyticsSettingsStore
from commerce_analytics.presentation.http.app import create_app


@pytest.fixture
def client(container):
    return TestClient(create_app(container))


DATED_ROUTES = [
    "/admin/analytics/orders/by-status",
    "/admin/analytics/sales",
    "/admin/analytics/refunds",
    "/admin/analytics/customers",
    "/admin/analytics/regions",
    "/admin/analytics/sales-channels",
    "/admin/analytics/payment-providers",
    "/admin/analytics/marketing",
    "/admin/analytics/products",
    "/admin/analytics/customer-origin",
]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "backend": "demo"}


# -------- analytics routes --------

class TestAnalyticsRoutes:
    @pytest.mark.parametrize("path", DATED_ROUTES + ["/admin/analytics/cart"])
    def test_routes_answer_without_dates(self, client, path):
        response = client.get(path)
        assert response.status_code == 200
        assert isinstance(response.json(), dict)

    @pytest.mark.parametrize("path", DATED_ROUTES)
    def test_invalid_date_is_rejected(self, client, path):
        response = client.get(path, params={"start_date": "03/01/2024"})
        assert response.status_code == 400
        assert "start_date" in response.json()["message"]

    def test_sales_summary(self, client):
        body = client.get("/admin/analytics/sales", params={"start_date": "2024-03-01", "end_date": "2024-03-10"}).json()
        assert body["total_sales"] == 200.5
        assert body["net_sales"] == 180.5
        assert body["period"] == {"start_date": "2024-03-01", "end_date": "2024-03-10"}

    def test_sales_chart_requires_dates(self, client):
        response = client.get("/admin/analytics/sales/chart", params={"start_date": "2024-03-01"})
        assert response.status_code == 400
        assert response.json() == {"message": "start_date and end_date are required"}

    def test_sales_chart(self, client):
        response = client.get(
            "/admin/analytics/sales/chart",
            params={"start_date": "2024-03-01", "end_date": "2024-03-10", "group_by": "month"},
        )
        assert response.status_code == 200
        assert response.json()["chart"] == [{"period": "2024-03", "orders": 3, "total": 200.5}]

    def test_sales_chart_rejects_unknown_grouping(self, client):
        response = client.get(
            "/admin/analytics/sales/chart",
            params={"start_date": "2024-03-01", "end_date": "2024-03-10", "group_by": "year"},
        )
        assert response.status_code == 400

    def test_cart_days(self, client):
        assert client.get("/admin/analytics/cart", params={"days": "90"}).json()["total_carts"] == 3
        assert client.get("/admin/analytics/cart", params={"days": "many"}).status_code == 400

    def test_cart_days_are_bounded(self, client):
        response = client.get("/admin/analytics/cart", params={"days": "1000000"})
        assert response.status_code == 400
        assert response.json()["message"].startswith("days:")

    def test_end_date_at_the_calendar_limit(self, client):
        response = client.get("/admin/analytics/sales", params={"end_date": "9999-12-31"})
        assert response.status_code == 400
        assert response.json() == {"message": "end_date is out of range: '9999-12-31'"}

    def test_products_limit(self, client):
        body = client.get("/admin/analytics/products", params={"limit": "1"}).json()
        assert len(body["top_variants"]) == 1
        assert client.get("/admin/analytics/products", params={"limit": "0"}).status_code == 400

    def test_unexpected_failure_is_500(self, container, monkeypatch):
        def boom(date_range):
            raise RuntimeError("graph unavailable")

        monkeypatch.setattr(container.analytics, "refunds_summary", boom)
        client = TestClient(create_app(container), raise_server_exceptions=False)

        response = client.get("/admin/analytics/refunds")
        assert response.status_code == 500
        assert response.json() == {"message": "graph unavailable"}

    def test_failure_without_message_uses_default(self, container, monkeypatch):
        def boom(date_range):
            raise RuntimeError()

        monkeypatch.setattr(container.analytics, "regions_popularity", boom)
        client = TestClient(create_app(container), raise_server_exceptions=False)

        response = client.get("/admin/analytics/regions")
        assert response.status_code == 500
        assert response.json() == {"message": "Failed to get regions"}


    def test_graph_failures_are_500(self, container, monkeypatch):
        def boom(date_range):
            raise GraphQueryError("Unknown entity: order")

        monkeypatch.setattr(container.analytics, "orders_by_status", boom)
        client = TestClient(create_app(container), raise_server_exceptions=False)

        response = client.get("/admin/analytics/orders/by-status")
        assert response.status_code == 500
        assert response.json() == {"message": "Unknown entity: order"}

# -------- settings --------

class TestSettingsRoutes:
    def test_get_and_update(self, client):
        assert client.get("/admin/analytics/settings").json() == {"posthog_dashboard_embed_url": None}

        url = "https://eu.posthog.com/embedded/abc"
        response = client.post(
            "/admin/analytics/settings",
            json={"posthog_dashboard_embed_url": f'<iframe src="{url}"></iframe>'},
        )
        assert response.status_code == 200
        assert response.json() == {"posthog_dashboard_embed_url": url}
        assert client.get("/admin/analytics/settings").json() == {"posthog_dashboard_embed_url": url}

    def test_invalid_url(self, client):
        response = client.post("/admin/analytics/settings", json={"posthog_dashboard_embed_url": "nope"})
        assert response.status_code == 400
        assert "posthog_dashboard_embed_url" in response.json()["message"]

    def test_writes_disabled(self, container):
        settings = container.settings.model_copy(update={"allow_writes": False})
        locked = build_services(settings, container.graph, InMemoryAnalyticsSettingsStore())
        response = TestClient(create_app(locked)).post(
            "/admin/analytics/settings", json={"posthog_dashboard_embed_url": None}
        )
        assert response.status_code == 403


# -------- assistant tools --------

class TestToolRoutes:
    def test_catalog(self, client):
        body = client.get("/admin/analytics-chat/tools").json()
        assert len(body["tools"]) == 17
        assert body["function_tools"][0]["type"] == "function"

    def test_invoke(self, client):
        response = client.post(
            "/admin/analytics-chat/tools/compare_periods",
            json={
                "metric": "revenue",
                "period1_start": "2024-03-01",
                "period1_end": "2024-03-01",
                "period2_start": "2024-02-01",
                "period2_end": "2024-02-28",
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["growth_percentage"] == "N/A"
        assert body["data"]["difference"] == 100

    def test_invoke_failure_is_reported_in_body(self, client):
        response = client.post("/admin/analytics-chat/tools/get_order_by_id", json={})
        assert response.status_code == 200
        assert response.json() == {"success": False, "error": "Missing required argument(s): order_id"}

    def test_unknown_tool_is_reported_in_body(self, client):
        response = client.post("/admin/analytics-chat/tools/drop_tables", json={})
        assert response.status_code == 200
        assert response.json() == {"success": False, "error": "Unknown tool: drop_tables"}

    def test_invoke_checks_argument_types(self, client):
        response = client.post("/admin/analytics-chat/tools/get_product_by_id", json={"product_id": 123})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["error"].startswith("product_id:")

    def test_invoke_bounds_days(self, client):
        response = client.post("/admin/analytics-chat/tools/get_inactive_customers", json={"days": 10**10})
        assert response.json()["success"] is False
