from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Annotated, Any, Literal

from pydantic import Field, StringConstraints

from commerce_analytics.domain.errors import InvalidParameterError
from commerce_analytics.domain.periods import parse_timestamp

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MAX_DAYS = 36500
MAX_LIMIT = 500

# -------- argument types shared by tools and routes --------

Days = Annotated[int, Field(ge=0, le=MAX_DAYS, description="Number of days to look back")]
Limit = Annotated[int, Field(ge=1, le=MAX_LIMIT, description="Maximum number of results")]
Offset = Annotated[int, Field(ge=0, description="Number of results to skip")]
Threshold = Annotated[int, Field(ge=1, le=1_000_000, description="Stock threshold")]
DateArg = Annotated[str, Field(description="ISO date (YYYY-MM-DD) or timestamp; end dates are inclusive")]
EntityId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
SearchText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
GroupByName = Literal["day", "week", "month"]


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def days_ago(now: datetime, days: int) -> datetime:
    try:
        return now - timedelta(days=days)
    except OverflowError as exc:
        raise InvalidParameterError(f"days is out of range: {days}") from exc


def parse_date(value: Any, name: str, *, end_of_day: bool = False) -> datetime | None:
    if _blank(value):
        return None
    if isinstance(value, datetime):
        return parse_timestamp(value)
    if not isinstance(value, str):
        raise InvalidParameterError(f"{name} must be an ISO 8601 date string")
    raw = value.strip()
    try:
        ts = parse_timestamp(raw)
        if end_of_day and _DATE_ONLY.match(raw):
            ts = ts + timedelta(days=1) - timedelta(microseconds=1)
    except OverflowError as exc:
        raise InvalidParameterError(f"{name} is out of range: {value!r}") from exc
    except ValueError as exc:
        raise InvalidParameterError(f"{name} is not a valid ISO 8601 date: {value!r}") from exc
    return ts


@dataclass(frozen=True)
class DateRange:
    start: datetime | None = None
    end: datetime | None = None
    start_date: str | None = None
    end_date: str | None = None

    @classmethod
    def parse(cls, start_date: Any = None, end_date: Any = None, *, required: bool = False) -> DateRange:
        if required and (_blank(start_date) or _blank(end_date)):
            raise InvalidParameterError("start_date and end_date are required")
        return cls(
            start=parse_date(start_date, "start_date"),
            end=parse_date(end_date, "end_date", end_of_day=True),
            start_date=None if _blank(start_date) else str(start_date),
            end_date=None if _blank(end_date) else str(end_date),
        )

    @classmethod
    def last_days(cls, days: int, now: datetime) -> DateRange:
        return cls(start=days_ago(now, days), end=now)

    @property
    def is_bounded(self) -> bool:
        return self.start is not None or self.end is not None

    def filter(self, field: str = "created_at") -> dict | None:
        """Graph filter for the range, or None for all time."""
        if not self.is_bounded:
            return None
        condition: dict[str, datetime] = {}
        if self.start is not None:
            condition["$gte"] = self.start
        if self.end is not None:
            condition["$lte"] = self.end
        return {field: condition}

    def period(self) -> dict:
        return {"start_date": self.start_date, "end_date": self.end_date}
