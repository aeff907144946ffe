from __future__ import annotations

import io
from typing import Any

import matplotlib

matplotlib.use("Agg")  # headless

import matplotlib.pyplot as plt  # noqa: E402


def _thin_labels(ax, labels: list[str], max_ticks: int = 10) -> None:
    if not labels:
        return
    step = max(1, len(labels) // max_ticks)
    positions = list(range(0, len(labels), step))
    ax.set_xticks(positions)
    ax.set_xticklabels([labels[i] for i in positions], rotation=45, ha="right")


def _clip(label: str, width: int = 20) -> str:
    return label if len(label) <= width else label[: width - 1] + "…"


def _hbar(ax, labels: list[str], values: list[float], title: str) -> None:
    if labels:
        ax.barh(range(len(values)), values)
        ax.set_yticks(range(len(labels)))
        ax.set_yticklabels(labels)
        ax.invert_yaxis()
    else:
        ax.text(0.5, 0.5, "no data", ha="center", va="center", transform=ax.transAxes)
    ax.set_title(title)


def render_sales_dashboard_png(
    *,
    trend_rows: list[dict[str, Any]],
    top_variants: list[dict[str, Any]],
    sales: dict[str, Any],
    title: str,
) -> bytes:
    """
    2x2 figure: revenue bars and order counts per bucket on top,
    top variants and sales channel mix below. Headline KPIs go in the subtitle.
    """
    buckets = [str(r["period"]) for r in trend_rows]
    x = list(range(len(buckets)))

    fig, axes = plt.subplots(2, 2, figsize=(12, 7), dpi=120)
    (ax_rev, ax_orders), (ax_top, ax_channels) = axes

    ax_rev.bar(x, [float(r["total"]) for r in trend_rows])
    ax_rev.set_title("Revenue per bucket")
    _thin_labels(ax_rev, buckets)

    ax_orders.plot(x, [int(r["orders"]) for r in trend_rows], marker="o")
    ax_orders.set_title("Orders per bucket")
    _thin_labels(ax_orders, buckets)

    top = top_variants[:10]
    _hbar(
        ax_top,
        [_clip(str(v.get("product_title") or v.get("variant_id") or "")) for v in top],
        [float(v.get("revenue") or 0) for v in top],
        "Top variants (revenue)",
    )

    channels = sorted((sales.get("by_channel") or {}).items(), key=lambda kv: kv[1]["total"], reverse=True)
    _hbar(
        ax_channels,
        [_clip(name) for name, _ in channels],
        [float(data["total"]) for _, data in channels],
        "Sales channels (revenue)",
    )

    kpis = (
        f"sales {sales.get('total_sales', 0):,.2f} | net {sales.get('net_sales', 0):,.2f} | "
        f"orders {sales.get('order_count', 0)} | avg {sales.get('average_sales', 0):,.2f} | "
        f"refunded {sales.get('total_refunded', 0):,.2f}"
    )
    fig.suptitle(f"{title}\n{kpis}", fontsize=12)
    fig.tight_layout(rect=(0, 0, 1, 0.93))

    buf = io.BytesIO()
    fig.savefig(buf, format="png")
    plt.close(fig)
    return buf.getvalue()
