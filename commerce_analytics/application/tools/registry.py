from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Callable, get_type_hints

from pydantic import BaseModel, ValidationError, create_model

from commerce_analytics.application.services.assistant_service import AssistantService
from commerce_analytics.domain.errors import InvalidParameterError, UnknownToolError

logger = logging.getLogger(__name__)


def arguments_model(name: str, fn: Callable[..., Any]) -> type[BaseModel]:
    """Pydantic model mirroring fn's keyword parameters (Annotated constraints included)."""
    hints = get_type_hints(fn, include_extras=True)
    fields: dict[str, Any] = {}
    for param in inspect.signature(fn).parameters.values():
        default = ... if param.default is inspect.Parameter.empty else param.default
        fields[param.name] = (hints.get(param.name, Any), default)
    model_name = "".join(part.title() for part in name.split("_")) + "Arguments"
    return create_model(model_name, **fields)


def _validation_message(exc: ValidationError) -> str:
    missing = [str(e["loc"][-1]) for e in exc.errors() if e["type"] == "missing"]
    if missing:
        return f"Missing required argument(s): {', '.join(missing)}"
    first = exc.errors()[0]
    where = ".".join(str(p) for p in first["loc"])
    return f"{where}: {first['msg']}"


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    handler: Callable[..., Any] = field(repr=False, compare=False)
    title: str | None = None
    tags: frozenset[str] = frozenset()

    @cached_property
    def arguments(self) -> type[BaseModel]:
        return arguments_model(self.name, self.handler)

    @cached_property
    def input_schema(self) -> dict:
        schema = self.arguments.model_json_schema()
        schema.pop("title", None)
        schema.setdefault("required", [])
        return schema

    def describe(self) -> dict:
        return {"name": self.name, "description": self.description, "input_schema": self.input_schema}

    def to_function(self) -> dict:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }

    def call(self, arguments: dict) -> Any:
        try:
            validated = self.arguments.model_validate(arguments)
        except ValidationError as exc:
            raise InvalidParameterError(_validation_message(exc)) from exc
        return self.handler(**dict(validated))


@dataclass
class ToolExecutionResult:
    success: bool
    data: Any = None
    error: str | None = None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"success": self.success}
        if self.success:
            out["data"] = self.data
        else:
            out["error"] = self.error
        return out


class ToolRegistry:
    """Static tool catalog with name-keyed dispatch."""

    def __init__(self, tools: list[ToolSpec]):
        self._tools: dict[str, ToolSpec] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            self._tools[tool.name] = tool

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __iter__(self):
        return iter(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def get(self, name: str) -> ToolSpec:
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        return tool

    def list_tools(self) -> list[dict]:
        return [t.describe() for t in self._tools.values()]

    def to_function_tools(self) -> list[dict]:
        return [t.to_function() for t in self._tools.values()]

    def execute(self, name: str, arguments: dict | None = None) -> Any:
        tool = self.get(name)
        # nulls fall back to defaults; unknown keys are ignored by the model
        args = {k: v for k, v in (arguments or {}).items() if v is not None}
        logger.info("tool call: %s", name)
        return tool.call(args)

    def invoke(self, name: str, arguments: dict | None = None) -> ToolExecutionResult:
        try:
            return ToolExecutionResult(success=True, data=self.execute(name, arguments))
        except Exception as exc:
            logger.warning("tool %s failed: %s", name, exc)
            return ToolExecutionResult(success=False, error=str(exc) or type(exc).__name__)


# -------- catalog --------

def build_tool_registry(assistant: AssistantService) -> ToolRegistry:
    a = assistant
    catalog, orders, customers, insights, inventory = (
        frozenset({"catalog"}),
        frozenset({"orders"}),
        frozenset({"customer"}),
        frozenset({"analytics", "sales"}),
        frozenset({"catalog", "inventory"}),
    )
    return ToolRegistry(
        [
            ToolSpec(
                "get_products",
                "List products in the catalog, optionally filtered by status "
                "(draft, proposed, published, rejected).",
                a.get_products,
                title="Products",
                tags=catalog,
            ),
            ToolSpec("get_product_by_id", "Get one product with its variants.", a.get_product_by_id,
                     title="Product by id", tags=catalog),
            ToolSpec(
                "search_products",
                "Search products by title or description (case-insensitive).",
                a.search_products,
                title="Search products",
                tags=catalog,
            ),
            ToolSpec(
                "get_top_products",
                "Best-selling products in a period, ranked by revenue or quantity.",
                a.get_top_products,
                title="Top products",
                tags=insights | catalog,
            ),
            ToolSpec(
                "get_orders",
                "List recent orders, optionally filtered by status or region.",
                a.get_orders,
                title="Orders",
                tags=orders,
            ),
            ToolSpec(
                "get_order_by_id",
                "Get one order with items, customer, transactions and payment collections.",
                a.get_order_by_id,
                title="Order by id",
                tags=orders,
            ),
            ToolSpec(
                "get_orders_by_period",
                "Orders created within a date range, with their total revenue.",
                a.get_orders_by_period,
                title="Orders by period",
                tags=orders | insights,
            ),
            ToolSpec(
                "get_revenue_by_period",
                "Revenue, subtotal, tax and shipping totals for a date range, optionally for one region.",
                a.get_revenue_by_period,
                title="Revenue by period",
                tags=insights,
            ),
            ToolSpec(
                "get_customers",
                "List customers, optionally only those with an account.",
                a.get_customers,
                title="Customers",
                tags=customers,
            ),
            ToolSpec(
                "get_customer_by_id",
                "Get one customer with order count and total spent.",
                a.get_customer_by_id,
                title="Customer by id",
                tags=customers,
            ),
            ToolSpec(
                "get_inactive_customers",
                "Customers who have not ordered in the given number of days.",
                a.get_inactive_customers,
                title="Inactive customers",
                tags=customers | {"marketing"},
            ),
            ToolSpec(
                "compare_periods",
                "Compare revenue, orders, aov or new customers between two periods. "
                "growth_percentage is relative to period 2, or N/A when period 2 is zero.",
                a.compare_periods,
                title="Compare periods",
                tags=insights,
            ),
            ToolSpec(
                "get_sales_trends",
                "Revenue and order counts bucketed by day, week or month.",
                a.get_sales_trends,
                title="Sales trends",
                tags=insights,
            ),
            ToolSpec(
                "calculate_aov",
                "Average order value for a date range.",
                a.calculate_aov,
                title="Average order value",
                tags=insights,
            ),
            ToolSpec(
                "get_revenue_by_region",
                "Revenue and order count per region for a date range.",
                a.get_revenue_by_region,
                title="Revenue by region",
                tags=insights,
            ),
            ToolSpec(
                "get_inventory_status",
                "Inventory levels of product variants.",
                a.get_inventory_status,
                title="Inventory status",
                tags=inventory,
            ),
            ToolSpec(
                "get_low_stock_products",
                "Products with managed variants in stock but below the threshold.",
                a.get_low_stock_products,
                title="Low stock",
                tags=inventory | {"ops"},
            ),
        ]
    )
