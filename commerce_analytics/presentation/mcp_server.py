from __future__ import annotations

from fastmcp import FastMCP

from commerce_analytics.container import Container

from commerce_analytics.presentation.tools.health_tools import register as register_health
from commerce_analytics.presentation.tools.analytics_tools import register as register_analytics
from commerce_analytics.presentation.tools.assistant_tools import register as register_assistant
from commerce_analytics.presentation.tools.report_tools import register as register_reports
from commerce_analytics.presentation.tools.seed_tools import register as register_seed
from commerce_analytics.presentation.tools.dashboard_tools import register as register_dashboards

from commerce_analytics.presentation.prompts.prompts import register as register_prompts


def build_mcp_server(container: Container) -> FastMCP:
    mcp = FastMCP(
        name="commerce-analytics",
        instructions=(
            "Analytics tools for a commerce store: orders, carts, customers, products. "
            "Dates are YYYY-MM-DD and end dates are inclusive. "
            "Prefer report and summary tools before drilling into single orders or customers."
        ),
    )

    register_health(mcp, container)
    register_analytics(mcp, container)
    register_assistant(mcp, container)
    register_reports(mcp, container)
    register_seed(mcp, container)
    register_prompts(mcp, container)
    register_dashboards(mcp, container)

    return mcp
