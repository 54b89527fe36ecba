"""
operations_registry.py — Folio
Stored procedures, triggers and views of the library schema.

Nothing here is executable: procedure steps, trigger code and view
expressions are documentation strings, stored and displayed verbatim.

Copyright 2026 Common Gene Labs. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass

from schema_registry import CatalogError, SchemaRegistry


@dataclass(frozen=True)
class Procedure:
    name:        str
    parameters:  tuple[str, ...]
    description: str
    steps:       tuple[str, ...]


@dataclass(frozen=True)
class Trigger:
    name:        str
    table:       str
    timing:      str
    description: str
    code:        str


@dataclass(frozen=True)
class View:
    name:         str
    description:  str
    tables:       tuple[str, ...]
    filters:      tuple[str, ...] = ()
    calculations: tuple[str, ...] = ()


class OperationsRegistry:
    """
    Ordered, read-only sequences of procedures, triggers and views.

    Usage
    -----
        ops = OperationsRegistry(procedures, triggers, views)
        ops.find_procedure("issue_book")   # → Procedure
        ops.find_procedure("gone")         # → None
    """

    def __init__(
        self,
        procedures: list[Procedure] | tuple[Procedure, ...] = (),
        triggers:   list[Trigger] | tuple[Trigger, ...] = (),
        views:      list[View] | tuple[View, ...] = (),
    ) -> None:
        self._procedures = tuple(procedures)
        self._triggers   = tuple(triggers)
        self._views      = tuple(views)

        names = [p.name for p in self._procedures]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise CatalogError(f"Duplicate procedure name(s): {dupes}")

    @property
    def procedures(self) -> tuple[Procedure, ...]:
        return self._procedures

    @property
    def triggers(self) -> tuple[Trigger, ...]:
        return self._triggers

    @property
    def views(self) -> tuple[View, ...]:
        return self._views

    def find_procedure(self, name: str | None) -> Procedure | None:
        if not name:
            return None
        return next((p for p in self._procedures if p.name == name), None)

    def triggers_for(self, table: str) -> tuple[Trigger, ...]:
        return tuple(t for t in self._triggers if t.table == table)

    def validate(self, schema: SchemaRegistry) -> None:
        """Every trigger table and view source table must be a registered entity."""
        problems = [
            f"trigger {t.name} on {t.table}"
            for t in self._triggers
            if t.table not in schema
        ]
        problems += [
            f"view {v.name} reads {tbl}"
            for v in self._views
            for tbl in v.tables
            if tbl not in schema
        ]
        if problems:
            raise CatalogError("Unknown table(s) referenced: " + "; ".join(problems))
