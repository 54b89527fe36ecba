"""
schema_parser.py — Folio
Parses JSON and YAML catalog documents into the schema and operations
dataclasses used by the registries.

Expected schema format (YAML shown, JSON is the same structure)
---------------------------------------------------------------
tables:
  - key: book_authors
    name: Book_Authors
    category: junction
    primary_key: [book_id, author_id]      # or a single name
    columns:
      - {name: book_id, type: INT, description: "..."}
    relationships:
      - {to: books, type: many-to-one, via: book_id}

Expected operations format
--------------------------
procedures: [{name, parameters, description, steps}]
triggers:   [{name, table, timing, description, code}]
views:      [{name, description, tables, filters?, calculations?}]

Copyright 2026 Common Gene Labs. All rights reserved.
"""

from __future__ import annotations

import json
from typing import Any

import yaml

from operations_registry import Procedure, Trigger, View
from schema_registry import (
    CARDINALITIES,
    CATEGORIES,
    CatalogError,
    Entity,
    Field,
    Relationship,
    type_tag,
)


class CatalogParser:
    """
    Parses structured catalog definitions (JSON or YAML).

    Returns
    -------
    parse_schema     : list[Entity]
    parse_operations : (list[Procedure], list[Trigger], list[View])
    """

    def parse_schema(self, raw: str, fmt: str = "yaml") -> list[Entity]:
        data = self._load(raw, fmt)
        return [self._entity(tbl) for tbl in self._records(data, "tables", "Catalog")]

    def parse_operations(
        self, raw: str, fmt: str = "yaml"
    ) -> tuple[list[Procedure], list[Trigger], list[View]]:
        data = self._load(raw, fmt)
        procs = [self._procedure(p) for p in self._records(data, "procedures", "Catalog")]
        trigs = [self._trigger(t) for t in self._records(data, "triggers", "Catalog")]
        views = [self._view(v) for v in self._records(data, "views", "Catalog")]
        return procs, trigs, views

    # ── Internal ──────────────────────────────────────────────────────────

    @staticmethod
    def _load(raw: str, fmt: str) -> dict[str, Any]:
        try:
            if fmt == "yaml":
                data = yaml.safe_load(raw)
            elif fmt == "json":
                data = json.loads(raw)
            else:
                raise CatalogError(f"Unsupported catalog format: {fmt!r}")
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise CatalogError(f"Catalog {fmt} parse error: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise CatalogError("Catalog document must be a mapping at the top level")
        return data

    @staticmethod
    def _label(item: dict) -> str:
        return item.get("name") or item.get("key") or "?"

    @classmethod
    def _require(cls, item: dict, key: str, what: str) -> Any:
        if key not in item:
            raise CatalogError(f"{what} {cls._label(item)!r} is missing {key!r}")
        return item[key]

    @classmethod
    def _records(cls, item: dict, key: str, what: str) -> list[dict]:
        """item[key] as a list of mappings. An absent key is an empty list."""
        if key not in item:
            return []
        records = item[key]
        if not isinstance(records, list):
            raise CatalogError(
                f"{what} {cls._label(item)!r}: {key!r} must be a list, "
                f"got {type(records).__name__}"
            )
        for rec in records:
            if not isinstance(rec, dict):
                raise CatalogError(
                    f"{what} {cls._label(item)!r}: every {key!r} entry must be a mapping, "
                    f"got {rec!r}"
                )
        return records

    @classmethod
    def _strings(cls, item: dict, key: str, what: str, optional: bool = False) -> tuple[str, ...]:
        """
        item[key] as a tuple of strings. A single string is a one-item tuple;
        an absent key is empty, and so is null when `optional` is set.
        """
        value = item.get(key)
        if value is None and (optional or key not in item):
            return ()
        if isinstance(value, str):
            return (value,)
        if isinstance(value, list) and all(isinstance(v, str) for v in value):
            return tuple(value)
        raise CatalogError(
            f"{what} {cls._label(item)!r}: {key!r} must be a string or a list of strings, "
            f"got {value!r}"
        )

    @classmethod
    def _entity(cls, tbl: dict) -> Entity:
        key = cls._require(tbl, "key", "Table")
        pk  = cls._strings(tbl, "primary_key", "Table")

        category = tbl.get("category", "core")
        if category not in CATEGORIES:
            raise CatalogError(f"Table {key!r} has unknown category {category!r}")

        fields = []
        for col in cls._records(tbl, "columns", "Table"):
            sql_type = str(cls._require(col, "type", "Column"))
            fields.append(Field(
                name        = cls._require(col, "name", "Column"),
                sql_type    = sql_type,
                type        = type_tag(sql_type),
                description = col.get("description", ""),
            ))

        rels = []
        for rel in cls._records(tbl, "relationships", "Table"):
            card = cls._require(rel, "type", "Relationship")
            if card not in CARDINALITIES:
                raise CatalogError(f"Table {key!r} has unknown cardinality {card!r}")
            rels.append(Relationship(
                target      = cls._require(rel, "to", "Relationship"),
                cardinality = card,
                via         = rel.get("via", ""),
            ))

        return Entity(
            key           = key,
            name          = tbl.get("name", key),
            primary_key   = pk,
            fields        = tuple(fields),
            relationships = tuple(rels),
            category      = category,
        )

    @classmethod
    def _procedure(cls, item: dict) -> Procedure:
        return Procedure(
            name        = cls._require(item, "name", "Procedure"),
            parameters  = cls._strings(item, "parameters", "Procedure"),
            description = item.get("description", ""),
            steps       = cls._strings(item, "steps", "Procedure"),
        )

    @classmethod
    def _trigger(cls, item: dict) -> Trigger:
        return Trigger(
            name        = cls._require(item, "name", "Trigger"),
            table       = cls._require(item, "table", "Trigger"),
            timing      = cls._require(item, "timing", "Trigger"),
            description = item.get("description", ""),
            code        = item.get("code", ""),
        )

    @classmethod
    def _view(cls, item: dict) -> View:
        return View(
            name         = cls._require(item, "name", "View"),
            description  = item.get("description", ""),
            tables       = cls._strings(item, "tables", "View"),
            filters      = cls._strings(item, "filters", "View", optional=True),
            calculations = cls._strings(item, "calculations", "View", optional=True),
        )
