from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any

from commerce_analytics.domain.money import to_amount


class GroupBy(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


def parse_timestamp(value: Any) -> datetime:
    """Coerce a datetime, date or ISO 8601 string into an aware UTC datetime."""
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, date):
        ts = datetime.combine(value, time.min)
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        ts = datetime.fromisoformat(raw)
    else:
        raise ValueError(f"Not a timestamp: {value!r}")

    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def day_key(value: Any) -> str:
    return parse_timestamp(value).date().isoformat()


def period_key(value: Any, group_by: GroupBy | str) -> str:
    ts = parse_timestamp(value)
    group_by = GroupBy(group_by)
    if group_by is GroupBy.WEEK:
        iso_year, iso_week, _ = ts.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    if group_by is GroupBy.MONTH:
        return f"{ts.year:04d}-{ts.month:02d}"
    return ts.date().isoformat()


def bucket_orders(
    records: Iterable[Mapping[str, Any]],
    group_by: GroupBy | str,
    *,
    timestamp_field: str = "created_at",
    amount_field: str = "total",
) -> list[dict]:
    """
    Group timestamped records into period buckets of {period, orders, total},
    sorted ascending by period key. Zero-padded keys sort chronologically.
    """
    buckets: dict[str, dict[str, float | int]] = {}
    for record in records:
        key = period_key(record.get(timestamp_field), group_by)
        bucket = buckets.setdefault(key, {"orders": 0, "total": 0.0})
        bucket["orders"] += 1
        bucket["total"] += to_amount(record.get(amount_field))

    return [{"period": key, **buckets[key]} for key in sorted(buckets)]


def sorted_series(values: Mapping[str, Any], key_name: str, value_name: str) -> list[dict]:
    return [{key_name: key, value_name: values[key]} for key in sorted(values)]
