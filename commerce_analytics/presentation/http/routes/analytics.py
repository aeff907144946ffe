"""
Admin analytics endpoints backing the dashboard.

Numeric and enum query parameters are typed, so FastAPI rejects bad input
before the handler runs; dates go through DateRange. Errors are rendered
by the app-level handlers as `{"message": ...}`.
"""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Query

from commerce_analytics.container import Container
from commerce_analytics.domain.params import MAX_DAYS, MAX_LIMIT, DateRange
from commerce_analytics.domain.periods import GroupBy
from commerce_analytics.presentation.http.dependencies import get_container

router = APIRouter(prefix="/admin/analytics", tags=["analytics"])

START = Query(default=None, description="Start date (YYYY-MM-DD or ISO timestamp)")
END = Query(default=None, description="End date, inclusive (YYYY-MM-DD or ISO timestamp)")


@router.get("/cart")
def get_cart(
    days: int | None = Query(default=None, ge=0, le=MAX_DAYS, description="Abandoned-cart lookback in days"),
    container: Container = Depends(get_container),
):
    if days is None:
        days = container.settings.cart_lookback_days
    return container.analytics.cart_summary(days=days)


@router.get("/orders/by-status")
def get_orders_by_status(
    start_date: str | None = START,
    end_date: str | None = END,
    container: Container = Depends(get_container),
):
    return container.analytics.orders_by_status(DateRange.parse(start_date, end_date))


@router.get("/sales")
def get_sales(
    start_date: str | None = START,
    end_date: str | None = END,
    container: Container = Depends(get_container),
):
    return container.analytics.sales_summary(DateRange.parse(start_date, end_date))


@router.get("/sales/chart")
def get_sales_chart(
    start_date: str | None = START,
    end_date: str | None = END,
    group_by: GroupBy = Query(default=GroupBy.DAY),
    container: Container = Depends(get_container),
):
    return container.analytics.sales_chart(DateRange.parse(start_date, end_date, required=True), group_by)


@router.get("/refunds")
def get_refunds(
    start_date: str | None = START,
    end_date: str | None = END,
    container: Container = Depends(get_container),
):
    return container.analytics.refunds_summary(DateRange.parse(start_date, end_date))


@router.get("/customers")
def get_customers(
    start_date: str | None = START,
    end_date: str | None = END,
    container: Container = Depends(get_container),
):
    return container.analytics.customers_summary(DateRange.parse(start_date, end_date))


@router.get("/regions")
def get_regions(
    start_date: str | None = START,
    end_date: str | None = END,
    container: Container = Depends(get_container),
):
    return container.analytics.regions_popularity(DateRange.parse(start_date, end_date))


@router.get("/sales-channels")
def get_sales_channels(
    start_date: str | None = START,
    end_date: str | None = END,
    container: Container = Depends(get_container),
):
    return container.analytics.sales_channel_popularity(DateRange.parse(start_date, end_date))


@router.get("/payment-providers")
def get_payment_providers(
    start_date: str | None = START,
    end_date: str | None = END,
    container: Container = Depends(get_container),
):
    return container.analytics.payment_provider_popularity(DateRange.parse(start_date, end_date))


@router.get("/marketing")
def get_marketing(
    start_date: str | None = START,
    end_date: str | None = END,
    container: Container = Depends(get_container),
):
    return container.analytics.promotions_summary(DateRange.parse(start_date, end_date))


@router.get("/products")
def get_products(
    start_date: str | None = START,
    end_date: str | None = END,
    limit: int | None = Query(default=None, ge=1, le=MAX_LIMIT),
    container: Container = Depends(get_container),
):
    if limit is None:
        limit = container.settings.products_limit
    return container.analytics.products_summary(DateRange.parse(start_date, end_date), limit=limit)


@router.get("/customer-origin")
def get_customer_origin(
    start_date: str | None = START,
    end_date: str | None = END,
    container: Container = Depends(get_container),
):
    return container.analytics.customer_origin_breakdown(DateRange.parse(start_date, end_date))


# -------- settings --------

@router.get("/settings")
def get_analytics_settings(container: Container = Depends(get_container)):
    return container.analytics_settings.get()


@router.post("/settings")
def update_analytics_settings(
    payload: dict | None = Body(default=None),
    container: Container = Depends(get_container),
):
    return container.analytics_settings.update(payload)
