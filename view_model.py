"""
view_model.py — Folio
Pure view-model builders: (registries, layout, selection) → plain
structures the Streamlit layer renders. Nothing in this module touches
Streamlit, so every panel can be built and inspected in tests.

Unknown or cleared selections produce None rather than an error; the UI
renders nothing for them.

Copyright 2026 Common Gene Labs. All rights reserved.
"""

from __future__ import annotations

import html
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import urlencode

import pandas as pd

from layout_engine import LayoutEngine, category_color, is_dashed
from operations_registry import OperationsRegistry
from schema_registry import CATEGORIES, SchemaRegistry
from selection_state import SelectionState


# ─── Diagram geometry ────────────────────────────────────────────────────────

CANVAS_W, CANVAS_H = 800, 700
NODE_W, NODE_H     = 120, 40
CONNECTOR_COLOR    = "#aaa"


# ─── View types ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class NodeView:
    key:    str
    label:  str
    x:      float
    y:      float
    color:  str
    active: bool


@dataclass(frozen=True)
class ConnectorView:
    source: str
    target: str
    d:      str
    dashed: bool


@dataclass(frozen=True)
class DiagramView:
    nodes:      tuple[NodeView, ...]
    connectors: tuple[ConnectorView, ...]
    width:      int = CANVAS_W
    height:     int = CANVAS_H


@dataclass(frozen=True)
class FieldRow:
    name:        str
    sql_type:    str
    type:        str
    description: str


@dataclass(frozen=True)
class RelationshipLink:
    cardinality: str
    target:      str
    target_name: str
    via:         str


@dataclass(frozen=True)
class EntityDetail:
    key:           str
    title:         str
    primary_key:   str
    fields:        tuple[FieldRow, ...]
    relationships: tuple[RelationshipLink, ...]


@dataclass(frozen=True)
class ProcedureDetail:
    name:        str
    title:       str
    description: str
    parameters:  tuple[str, ...]
    steps:       tuple[str, ...]


@dataclass(frozen=True)
class ProcedureCard:
    name:        str
    description: str
    active:      bool


@dataclass(frozen=True)
class TriggerCard:
    name:        str
    subtitle:    str
    description: str
    code:        str


@dataclass(frozen=True)
class ViewCard:
    name:         str
    description:  str
    tables:       str
    filters:      str | None
    calculations: str | None


@dataclass(frozen=True)
class OperationsView:
    procedures: tuple[ProcedureCard, ...]
    triggers:   tuple[TriggerCard, ...]
    views:      tuple[ViewCard, ...]
    detail:     ProcedureDetail | None


# ─── Schema tab ──────────────────────────────────────────────────────────────

def build_diagram(
    schema: SchemaRegistry,
    layout: LayoutEngine,
    state: SelectionState,
) -> DiagramView:
    nodes = []
    for index, (key, ent) in enumerate(schema.items()):
        pos = layout.position_of(key, index)
        nodes.append(NodeView(
            key    = key,
            label  = ent.name,
            x      = pos.x,
            y      = pos.y,
            color  = category_color(ent.category),
            active = state.entity == key,
        ))

    connectors = []
    if state.show_relationships:
        for src, rel in schema.relationships():
            connectors.append(ConnectorView(
                source = src,
                target = rel.target,
                d      = layout.connector_path(src, rel.target).d,
                dashed = is_dashed(rel.cardinality),
            ))

    return DiagramView(nodes=tuple(nodes), connectors=tuple(connectors))


def render_svg(diagram: DiagramView, link_params: Mapping[str, str] | None = None) -> str:
    """
    Render the diagram as a standalone SVG string.

    Each node links to ?entity=<key> plus `link_params`; the click opens a
    new session, so the params carry whatever state must survive it.
    """
    extra = dict(link_params or {})
    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{diagram.width}" '
        f'height="{diagram.height}" class="folio-diagram">',
        "<defs>"
        '<marker id="arrowhead" viewBox="0 0 10 10" refX="5" refY="5" '
        'markerWidth="6" markerHeight="6" orient="auto-start-reverse">'
        f'<path d="M 0 0 L 10 5 L 0 10 z" fill="{CONNECTOR_COLOR}" />'
        "</marker>"
        "</defs>",
    ]

    for c in diagram.connectors:
        dash = ' stroke-dasharray="5,5"' if c.dashed else ""
        parts.append(
            f'<path d="{c.d}" stroke="{CONNECTOR_COLOR}" stroke-width="1.5" fill="none" '
            f'marker-end="url(#arrowhead)"{dash} />'
        )

    for n in diagram.nodes:
        key     = html.escape(n.key, quote=True)
        href    = html.escape("?" + urlencode({"entity": n.key, **extra}), quote=True)
        outline = 'stroke="#000" stroke-width="2"' if n.active else 'stroke="none" stroke-width="0"'
        weight  = "bold" if n.active else "normal"
        parts.append(
            f'<a href="{href}" target="_self">'
            f'<g transform="translate({n.x - NODE_W / 2:g}, {n.y - NODE_H / 2:g})" '
            f'data-entity="{key}" style="cursor: pointer">'
            f'<rect width="{NODE_W}" height="{NODE_H}" rx="5" ry="5" fill="{n.color}" {outline} />'
            f'<text x="{NODE_W // 2}" y="25" text-anchor="middle" fill="white" '
            f'font-weight="{weight}">{html.escape(n.label)}</text>'
            "</g></a>"
        )

    parts.append("</svg>")
    return "\n".join(parts)


def entity_detail(schema: SchemaRegistry, key: str | None) -> EntityDetail | None:
    if not key:
        return None
    ent = schema.get(key)
    if ent is None:
        return None

    return EntityDetail(
        key         = ent.key,
        title       = f"{ent.name} Table",
        primary_key = ent.primary_key_text,
        fields      = tuple(
            FieldRow(f.name, f.sql_type, f.type, f.description) for f in ent.fields
        ),
        relationships = tuple(
            RelationshipLink(
                cardinality = rel.cardinality,
                target      = rel.target,
                target_name = schema.display_name(rel.target),
                via         = rel.via,
            )
            for rel in ent.relationships
        ),
    )


def fields_frame(detail: EntityDetail) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "Name":        [f.name for f in detail.fields],
            "Type":        [f.sql_type for f in detail.fields],
            "Kind":        [f.type for f in detail.fields],
            "Description": [f.description for f in detail.fields],
        }
    )


def legend() -> tuple[tuple[str, str], ...]:
    """(label, colour) for each table category, in display order."""
    return tuple((cat.title(), category_color(cat)) for cat in CATEGORIES)


# ─── Operations tab ──────────────────────────────────────────────────────────

def procedure_detail(operations: OperationsRegistry, name: str | None) -> ProcedureDetail | None:
    proc = operations.find_procedure(name)
    if proc is None:
        return None
    return ProcedureDetail(
        name        = proc.name,
        title       = f"Stored Procedure: {proc.name}",
        description = proc.description,
        parameters  = proc.parameters,
        steps       = proc.steps,
    )


def build_operations(operations: OperationsRegistry, state: SelectionState) -> OperationsView:
    return OperationsView(
        procedures = tuple(
            ProcedureCard(p.name, p.description, state.operation == p.name)
            for p in operations.procedures
        ),
        triggers = tuple(
            TriggerCard(t.name, f"{t.timing} on {t.table}", t.description, t.code)
            for t in operations.triggers
        ),
        views = tuple(
            ViewCard(
                name         = v.name,
                description  = v.description,
                tables       = ", ".join(v.tables),
                filters      = ", ".join(v.filters) if v.filters else None,
                calculations = ", ".join(v.calculations) if v.calculations else None,
            )
            for v in operations.views
        ),
        detail = procedure_detail(operations, state.operation),
    )
