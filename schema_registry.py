"""
schema_registry.py — Folio
Read-only registry of the library schema: entities (tables), their
fields, primary keys and typed relationships.

The registry is built once from the catalog (see catalog.py) and is never
mutated afterwards. Lookups of unknown keys return None; callers decide
how to degrade (the renderer falls back to the raw key).

Copyright 2026 Common Gene Labs. All rights reserved.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

import networkx as nx
import pandas as pd


# ─── Constants ───────────────────────────────────────────────────────────────

CARDINALITIES: tuple[str, ...] = ("many-to-one", "one-to-many")

CATEGORIES: tuple[str, ...] = ("core", "junction", "transaction", "reference", "event")

# Declared SQL type (without length/precision) → semantic type tag
SQL_TYPE_TAGS: dict[str, str] = {
    "INT":       "integer",
    "INTEGER":   "integer",
    "BIGINT":    "integer",
    "SMALLINT":  "integer",
    "VARCHAR":   "text",
    "CHAR":      "text",
    "TEXT":      "text",
    "DATE":      "date",
    "TIMESTAMP": "timestamp",
    "DATETIME":  "timestamp",
    "TIME":      "time",
    "BOOLEAN":   "boolean",
    "BOOL":      "boolean",
    "ENUM":      "enumerated",
    "DECIMAL":   "decimal",
    "NUMERIC":   "decimal",
}


class CatalogError(ValueError):
    """Raised when the catalog is malformed or references unknown entities."""


def type_tag(sql_type: str) -> str:
    """'VARCHAR(20)' → 'text'. Raises CatalogError for unknown SQL types."""
    base = re.sub(r"\(.*\)$", "", sql_type.strip()).upper()
    tag  = SQL_TYPE_TAGS.get(base)
    if tag is None:
        raise CatalogError(f"Unknown column type: {sql_type!r}")
    return tag


# ─── Data types ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Field:
    name:        str
    sql_type:    str
    type:        str
    description: str = ""


@dataclass(frozen=True)
class Relationship:
    target:      str
    cardinality: str
    via:         str

    @property
    def inverse_cardinality(self) -> str:
        return "one-to-many" if self.cardinality == "many-to-one" else "many-to-one"


@dataclass(frozen=True)
class Entity:
    key:           str
    name:          str
    primary_key:   tuple[str, ...]
    fields:        tuple[Field, ...]
    relationships: tuple[Relationship, ...] = ()
    category:      str = "core"

    @property
    def primary_key_text(self) -> str:
        return ", ".join(self.primary_key)

    def field(self, name: str) -> Field | None:
        return next((f for f in self.fields if f.name == name), None)


# ─── Registry ────────────────────────────────────────────────────────────────

class SchemaRegistry(Mapping):
    """
    Ordered, read-only mapping of entity key → Entity.

    Iteration follows catalog order, which is also the ordinal order used
    by the layout fallback and the table dropdown.
    """

    def __init__(self, entities: list[Entity] | tuple[Entity, ...]) -> None:
        table: dict[str, Entity] = {}
        for ent in entities:
            if ent.key in table:
                raise CatalogError(f"Duplicate table key: {ent.key!r}")
            table[ent.key] = ent
        self._entities = MappingProxyType(table)

    def __getitem__(self, key: str) -> Entity:
        return self._entities[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entities)

    def __len__(self) -> int:
        return len(self._entities)

    def __repr__(self) -> str:
        return f"SchemaRegistry({list(self._entities)})"

    # ── Lookups ───────────────────────────────────────────────────────────

    def display_name(self, key: str) -> str:
        """Entity display name, or the raw key when it is not registered."""
        ent = self.get(key)
        return ent.name if ent is not None else key

    def ordinal(self, key: str) -> int | None:
        for i, k in enumerate(self._entities):
            if k == key:
                return i
        return None

    def relationships(self) -> Iterator[tuple[str, Relationship]]:
        """Yield (source_key, relationship) in catalog order."""
        for key, ent in self._entities.items():
            for rel in ent.relationships:
                yield key, rel

    # ── Graph view ────────────────────────────────────────────────────────

    def graph(self) -> nx.MultiDiGraph:
        """
        One node per entity, one edge per declared relationship.
        Dangling targets appear as nodes with no 'entity' attribute.
        """
        g = nx.MultiDiGraph()
        for key, ent in self._entities.items():
            g.add_node(key, entity=ent, category=ent.category)
        for src, rel in self.relationships():
            g.add_edge(src, rel.target, cardinality=rel.cardinality, via=rel.via)
        return g

    def unresolved_targets(self) -> list[tuple[str, str, str]]:
        """(source, target, via) for every relationship whose target is unknown."""
        g = self.graph()
        return [
            (src, dst, data["via"])
            for src, dst, data in g.edges(data=True)
            if "entity" not in g.nodes[dst]
        ]

    def missing_inverses(self) -> list[tuple[str, Relationship]]:
        """
        Relationships with no counterpart declared on the target entity.

        A counterpart points back at the source through the same join
        field with the opposite cardinality. Dangling targets are skipped;
        unresolved_targets() reports those.
        """
        g = self.graph()
        missing = []
        for src, rel in self.relationships():
            if rel.target not in self._entities:
                continue
            back = g.get_edge_data(rel.target, src) or {}
            if not any(
                d["via"] == rel.via and d["cardinality"] == rel.inverse_cardinality
                for d in back.values()
            ):
                missing.append((src, rel))
        return missing

    def validate(self) -> None:
        """Fail fast if any relationship points at an unregistered entity."""
        dangling = self.unresolved_targets()
        if dangling:
            detail = ", ".join(f"{s} → {t} (via {v})" for s, t, v in dangling)
            raise CatalogError(f"Unresolved relationship target(s): {detail}")

    # ── Export ────────────────────────────────────────────────────────────

    def relationships_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "from_table":  src,
                    "to_table":    rel.target,
                    "cardinality": rel.cardinality,
                    "via":         rel.via,
                }
                for src, rel in self.relationships()
            ],
            columns=["from_table", "to_table", "cardinality", "via"],
        )
