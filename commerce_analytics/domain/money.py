from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Any

# Amounts arrive as plain numbers, numeric strings, or BigNumber-like
# wrappers such as {"value": 12.5} / {"raw": {"value": "12.5", "precision": 20}}.


def maybe_amount(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    if isinstance(value, Decimal):
        return None if value.is_nan() else float(value)
    if isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            return None
        return None if parsed.is_nan() else float(parsed)
    if isinstance(value, dict):
        inner = value.get("value")
        if inner is None:
            inner = value.get("raw")
        return maybe_amount(inner)
    return None


def to_amount(value: Any, default: float = 0.0) -> float:
    amount = maybe_amount(value)
    return default if amount is None else amount


def round_currency(amount: float) -> float:
    """Half-up rounding to cents."""
    return math.floor(amount * 100 + 0.5) / 100
