"""
selection_state.py — Folio
What the user is currently looking at: the active tab, the focused
table or procedure, and whether relationship connectors are drawn.

SelectionState is an immutable value. Each transition returns a new
state; the UI layer owns the single current instance per session.

Copyright 2026 Common Gene Labs. All rights reserved.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum

logger = logging.getLogger(__name__)


class Tab(str, Enum):
    SCHEMA     = "schema"
    OPERATIONS = "operations"
    WORKFLOW   = "workflow"


TAB_LABELS: dict[Tab, str] = {
    Tab.SCHEMA:     "Database Schema",
    Tab.OPERATIONS: "Procedures & Triggers",
    Tab.WORKFLOW:   "Library Workflows",
}

DEFAULT_ENTITY = "books"


@dataclass(frozen=True)
class SelectionState:
    tab:                Tab = Tab.SCHEMA
    entity:             str | None = DEFAULT_ENTITY
    operation:          str | None = None
    show_relationships: bool = True


def initial_state() -> SelectionState:
    return SelectionState()


def select_tab(state: SelectionState, tab: Tab | str) -> SelectionState:
    return replace(state, tab=Tab(tab))


def select_entity(state: SelectionState, key: str | None) -> SelectionState:
    """Focus a table. Always clears the procedure selection; None clears both."""
    logger.debug("select_entity %r", key)
    return replace(state, entity=key or None, operation=None)


def select_operation(state: SelectionState, name: str | None) -> SelectionState:
    """Focus a procedure. Always clears the table selection."""
    logger.debug("select_operation %r", name)
    return replace(state, operation=name or None, entity=None)


def toggle_relationships(state: SelectionState) -> SelectionState:
    return replace(state, show_relationships=not state.show_relationships)


def link_params(state: SelectionState) -> dict[str, str]:
    """Query parameters a diagram-node link carries besides the entity key."""
    return {"rels": "1" if state.show_relationships else "0"}


def restore_link(state: SelectionState, params: Mapping[str, str | None]) -> SelectionState:
    """
    Apply a diagram-node click that arrived as query parameters.

    Selects params["entity"] on the schema tab and restores connector
    visibility from params["rels"] when present.
    """
    state = select_tab(select_entity(state, params.get("entity")), Tab.SCHEMA)
    rels = params.get("rels")
    if rels in ("0", "1"):
        state = replace(state, show_relationships=rels == "1")
    return state
