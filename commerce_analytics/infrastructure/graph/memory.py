from __future__ import annotations

import copy
import logging
import re
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Any

from commerce_analytics.domain.errors import GraphQueryError
from commerce_analytics.domain.periods import parse_timestamp
from commerce_analytics.infrastructure.graph.base import ENTITIES, FieldTree, parse_fields

logger = logging.getLogger(__name__)


def _is_relation_value(value: Any) -> bool:
    return isinstance(value, list) and any(isinstance(v, dict) for v in value)


def _comparable(record_value: Any, operand: Any) -> tuple[Any, Any]:
    if isinstance(operand, (datetime, date)):
        if record_value is None:
            return None, operand
        try:
            return parse_timestamp(record_value), parse_timestamp(operand)
        except ValueError as exc:
            raise GraphQueryError(f"Invalid timestamp value: {record_value!r}") from exc
    return record_value, operand


def _like(value: Any, pattern: str, *, case_sensitive: bool) -> bool:
    if value is None:
        return False
    regex = "^" + ".*".join(re.escape(chunk) for chunk in pattern.split("%")) + "$"
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.match(regex, str(value), flags | re.DOTALL) is not None


def _match_condition(value: Any, op: str, operand: Any) -> bool:
    if op in ("$in", "$nin"):
        found = value in list(operand)
        return found if op == "$in" else not found
    if op == "$like":
        return _like(value, operand, case_sensitive=True)
    if op == "$ilike":
        return _like(value, operand, case_sensitive=False)

    left, right = _comparable(value, operand)
    if op == "$eq":
        return left == right
    if op == "$ne":
        return left != right
    if left is None or right is None:
        return False
    try:
        if op == "$gt":
            return left > right
        if op == "$gte":
            return left >= right
        if op == "$lt":
            return left < right
        if op == "$lte":
            return left <= right
    except TypeError as exc:
        raise GraphQueryError(f"Cannot compare {left!r} with {right!r}") from exc
    raise GraphQueryError(f"Unsupported filter operator: {op}")


def matches(record: Mapping[str, Any], filters: Mapping[str, Any] | None) -> bool:
    if not filters:
        return True
    for key, condition in filters.items():
        if key == "$or":
            if not any(matches(record, sub) for sub in condition):
                return False
            continue
        if key == "$and":
            if not all(matches(record, sub) for sub in condition):
                return False
            continue

        value = record.get(key)
        if isinstance(condition, Mapping):
            if not all(_match_condition(value, op, operand) for op, operand in condition.items()):
                return False
        elif isinstance(condition, (list, tuple, set)):
            if not _match_condition(value, "$in", condition):
                return False
        elif not _match_condition(value, "$eq", condition):
            return False
    return True


def project(record: Mapping[str, Any], tree: FieldTree) -> dict:
    out: dict[str, Any] = {}
    if tree.all_scalars:
        out.update({k: copy.deepcopy(v) for k, v in record.items() if not _is_relation_value(v)})
    else:
        out.update({k: copy.deepcopy(record[k]) for k in tree.scalars if k in record})

    for name, sub in tree.relations.items():
        related = record.get(name)
        if isinstance(related, list):
            out[name] = [project(r, sub) for r in related if isinstance(r, Mapping)]
        elif isinstance(related, Mapping):
            out[name] = project(related, sub)
        else:
            out[name] = related
    return out


class InMemoryGraphQuery:
    """Graph query client over nested documents held in memory."""

    def __init__(self, records: Mapping[str, Sequence[Mapping[str, Any]]] | None = None):
        self._records: dict[str, list[dict]] = {entity: [] for entity in ENTITIES}
        for entity, rows in (records or {}).items():
            self.load(entity, rows)

    def load(self, entity: str, rows: Sequence[Mapping[str, Any]]) -> None:
        self._require_entity(entity)
        self._records[entity] = [dict(r) for r in rows]

    def count(self, entity: str) -> int:
        self._require_entity(entity)
        return len(self._records[entity])

    def _require_entity(self, entity: str) -> None:
        if entity not in self._records:
            raise GraphQueryError(f"Unknown entity '{entity}'. Expected one of: {', '.join(ENTITIES)}")

    def graph(
        self,
        entity: str,
        fields: Sequence[str],
        filters: Mapping[str, Any] | None = None,
        pagination: Mapping[str, int] | None = None,
    ) -> list[dict]:
        self._require_entity(entity)
        tree = parse_fields(fields)
        rows = [r for r in self._records[entity] if matches(r, filters)]

        if pagination:
            skip = int(pagination.get("skip") or 0)
            take = pagination.get("take")
            rows = rows[skip:] if take is None else rows[skip : skip + int(take)]

        logger.debug("graph entity=%s rows=%d", entity, len(rows))
        return [project(r, tree) for r in rows]
