from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Callable

from sqlalchemy import and_, not_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from commerce_analytics.domain.errors import GraphQueryError
from commerce_analytics.infrastructure.db.reflection import SchemaReflection
from commerce_analytics.infrastructure.db.tables import TableRegistry
from commerce_analytics.infrastructure.db.uow import SqlAlchemyUnitOfWork
from commerce_analytics.infrastructure.graph.base import FieldTree, parse_fields

logger = logging.getLogger(__name__)

ENTITY_TABLES = {
    "order": "orders",
    "cart": "carts",
    "customer": "customers",
    "product": "products",
}


@dataclass(frozen=True)
class Relation:
    table: str
    local_key: str
    remote_key: str
    many: bool = True
    # (link table, link column -> parent, link column -> child)
    through: tuple[str, str, str] | None = None


RELATIONS: dict[tuple[str, str], Relation] = {
    ("orders", "items"): Relation("order_items", "id", "order_id"),
    ("orders", "transactions"): Relation("order_transactions", "id", "order_id"),
    ("orders", "payment_collections"): Relation("payment_collections", "id", "order_id"),
    ("orders", "promotions"): Relation("promotions", "id", "id", through=("order_promotions", "order_id", "promotion_id")),
    ("orders", "region"): Relation("regions", "region_id", "id", many=False),
    ("orders", "customer"): Relation("customers", "customer_id", "id", many=False),
    ("payment_collections", "payments"): Relation("payments", "id", "payment_collection_id"),
    ("payment_collections", "payment_sessions"): Relation("payment_sessions", "id", "payment_collection_id"),
    ("carts", "items"): Relation("cart_items", "id", "cart_id"),
    ("customers", "orders"): Relation("orders", "id", "customer_id"),
    ("products", "variants"): Relation("product_variants", "id", "product_id"),
}

_PARENT_KEY = "__parent_key"

_OPERATORS: dict[str, Callable[[Any, Any], ColumnElement]] = {
    "$eq": lambda c, v: c.is_(None) if v is None else c == v,
    "$ne": lambda c, v: c.is_not(None) if v is None else c != v,
    "$gt": lambda c, v: c > v,
    "$gte": lambda c, v: c >= v,
    "$lt": lambda c, v: c < v,
    "$lte": lambda c, v: c <= v,
    "$in": lambda c, v: c.in_(list(v)),
    "$nin": lambda c, v: not_(c.in_(list(v))),
    "$like": lambda c, v: c.like(v),
    "$ilike": lambda c, v: c.ilike(v),
}


class SqlGraphQuery:
    """
    Graph query client over a relational reporting schema.

    Each entity maps to one root table; dotted field paths are resolved
    through RELATIONS with one batched IN query per relation level.
    """

    def __init__(
        self,
        uow_factory: Callable[[], SqlAlchemyUnitOfWork],
        reflection: SchemaReflection,
        registry: TableRegistry,
    ):
        self.uow_factory = uow_factory
        self.reflection = reflection
        self.registry = registry

    def graph(
        self,
        entity: str,
        fields: Sequence[str],
        filters: Mapping[str, Any] | None = None,
        pagination: Mapping[str, int] | None = None,
    ) -> list[dict]:
        table_name = ENTITY_TABLES.get(entity)
        if table_name is None:
            raise GraphQueryError(f"Unknown entity '{entity}'. Expected one of: {', '.join(ENTITY_TABLES)}")

        tree = parse_fields(fields)
        try:
            with self.uow_factory() as uow:
                rows = self._select_root(uow.session, table_name, tree, filters, pagination)
                self._attach_relations(uow.session, table_name, rows, tree)
        except GraphQueryError:
            raise
        except (SQLAlchemyError, RuntimeError) as exc:
            raise GraphQueryError(f"Graph query for '{entity}' failed: {exc}") from exc

        logger.debug("graph entity=%s rows=%d", entity, len(rows))
        return rows

    # -------- projection --------

    def _columns(self, table_name: str, tree: FieldTree, required: set[str]) -> list[str]:
        existing = self.reflection.columns_for(table_name)
        if tree.all_scalars:
            wanted = set(existing)
        else:
            wanted = {c for c in tree.scalars if c in existing}
        wanted |= {c for c in required if c in existing}
        return sorted(wanted)

    def _required_keys(self, table_name: str, tree: FieldTree) -> set[str]:
        keys = {"id"}
        for name in tree.relations:
            keys.add(self._relation(table_name, name).local_key)
        return keys

    def _relation(self, table_name: str, name: str) -> Relation:
        rel = RELATIONS.get((table_name, name))
        if rel is None:
            raise GraphQueryError(f"Unknown relation '{name}' on '{table_name}'")
        return rel

    # -------- filters --------

    def _compile_filters(self, table, filters: Mapping[str, Any]) -> list[ColumnElement]:
        clauses: list[ColumnElement] = []
        for key, condition in filters.items():
            if key in ("$or", "$and"):
                parts = [and_(*self._compile_filters(table, sub)) for sub in condition]
                clauses.append(or_(*parts) if key == "$or" else and_(*parts))
                continue

            if key not in table.c:
                raise GraphQueryError(f"Cannot filter '{table.name}' on unknown column '{key}'")
            column = table.c[key]

            if isinstance(condition, Mapping):
                for op, operand in condition.items():
                    compile_op = _OPERATORS.get(op)
                    if compile_op is None:
                        raise GraphQueryError(f"Unsupported filter operator: {op}")
                    clauses.append(compile_op(column, operand))
            elif isinstance(condition, (list, tuple, set)):
                clauses.append(column.in_(list(condition)))
            else:
                clauses.append(_OPERATORS["$eq"](column, condition))
        return clauses

    # -------- loading --------

    def _select_root(
        self,
        session: Session,
        table_name: str,
        tree: FieldTree,
        filters: Mapping[str, Any] | None,
        pagination: Mapping[str, int] | None,
    ) -> list[dict]:
        self.reflection.require_tables(table_name)
        table = self.registry.get(table_name)
        cols = self._columns(table_name, tree, self._required_keys(table_name, tree))

        stmt = select(*[table.c[c] for c in cols])
        if filters:
            stmt = stmt.where(*self._compile_filters(table, filters))
        if pagination:
            if "created_at" in table.c:
                stmt = stmt.order_by(table.c.created_at.desc(), table.c.id)
            elif "id" in table.c:
                stmt = stmt.order_by(table.c.id)
            if pagination.get("skip"):
                stmt = stmt.offset(int(pagination["skip"]))
            if pagination.get("take") is not None:
                stmt = stmt.limit(int(pagination["take"]))

        return [dict(r) for r in session.execute(stmt).mappings().all()]

    def _attach_relations(self, session: Session, table_name: str, rows: list[dict], tree: FieldTree) -> None:
        if not rows:
            for name in tree.relations:
                self._relation(table_name, name)
            return

        for name, sub in tree.relations.items():
            rel = self._relation(table_name, name)
            keys = {r.get(rel.local_key) for r in rows} - {None}
            children = self._load_children(session, rel, sub, keys) if keys else {}
            for row in rows:
                found = children.get(row.get(rel.local_key), [])
                if rel.many:
                    row[name] = found
                else:
                    row[name] = found[0] if found else None

    def _load_children(self, session: Session, rel: Relation, tree: FieldTree, keys: set) -> dict[Any, list[dict]]:
        if not self.reflection.table_exists(rel.table):
            raise GraphQueryError(f"Relation table '{rel.table}' does not exist")
        child = self.registry.get(rel.table)
        cols = self._columns(rel.table, tree, self._required_keys(rel.table, tree) | {rel.remote_key})
        selected = [child.c[c] for c in cols]

        if rel.through is not None:
            link_name, parent_col, child_col = rel.through
            link = self.registry.get(link_name)
            stmt = (
                select(*selected, link.c[parent_col].label(_PARENT_KEY))
                .select_from(child.join(link, link.c[child_col] == child.c[rel.remote_key]))
                .where(link.c[parent_col].in_(list(keys)))
            )
        else:
            stmt = select(*selected, child.c[rel.remote_key].label(_PARENT_KEY)).where(
                child.c[rel.remote_key].in_(list(keys))
            )

        records = [dict(r) for r in session.execute(stmt).mappings().all()]
        grouped: dict[Any, list[dict]] = defaultdict(list)
        for record in records:
            grouped[record.pop(_PARENT_KEY)].append(record)

        self._attach_relations(session, rel.table, records, tree)
        return grouped
