from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

ENTITIES = ("order", "cart", "customer", "product")


class GraphQuery(Protocol):
    def graph(
        self,
        entity: str,
        fields: Sequence[str],
        filters: Mapping[str, Any] | None = None,
        pagination: Mapping[str, int] | None = None,
    ) -> list[dict]: ...


@dataclass
class FieldTree:
    """Parsed projection: scalar names (or '*') plus nested relation trees."""

    scalars: set[str] = field(default_factory=set)
    relations: dict[str, FieldTree] = field(default_factory=dict)

    @property
    def all_scalars(self) -> bool:
        return "*" in self.scalars


def parse_fields(fields: Sequence[str]) -> FieldTree:
    root = FieldTree()
    for path in fields:
        node = root
        parts = [p for p in path.split(".") if p]
        for part in parts[:-1]:
            node = node.relations.setdefault(part, FieldTree())
        if parts:
            node.scalars.add(parts[-1])
    return root
