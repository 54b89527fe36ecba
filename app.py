"""
Folio — Library Database Visualizer
Interactive exploration of a library-management database: tables,
relationships, stored procedures, triggers, views and workflows.

Run with:  streamlit run app.py

Copyright 2026 Common Gene Labs. All rights reserved.
"""

import html
import logging
import re
from typing import Any, Callable

import streamlit as st
from streamlit.runtime.scriptrunner import get_script_run_ctx

# ─── Module imports ──────────────────────────────────────────────────────────
import view_model as vm
from catalog import Catalog, load_catalog
from layout_engine import LayoutEngine
from schema_registry import CatalogError
from selection_state import (
    TAB_LABELS,
    SelectionState,
    Tab,
    initial_state,
    link_params,
    restore_link,
    select_entity,
    select_operation,
    select_tab,
    toggle_relationships,
)
from workflows import WORKFLOWS

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# Refuse to start outside a Streamlit session: there is nowhere to mount the UI.
if get_script_run_ctx() is None:
    raise RuntimeError("No Streamlit script context found. Start Folio with `streamlit run app.py`.")


# ─── Page config ────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="Folio",
    page_icon="▤",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ═══════════════════════════════════════════════════════════════════════════
# Session state
# ═══════════════════════════════════════════════════════════════════════════

if "selection" not in st.session_state:
    st.session_state.selection = initial_state()
if "dark_mode" not in st.session_state:
    st.session_state.dark_mode = False


def _apply(transition: Callable[..., SelectionState], *args: Any) -> None:
    """Run a selection transition against the session's current state."""
    st.session_state.selection = transition(st.session_state.selection, *args)


def _on_tab_change() -> None:
    _apply(select_tab, st.session_state.tab_radio)


def _on_table_select() -> None:
    _apply(select_entity, st.session_state.table_select or None)


# Diagram node clicks navigate to ?entity=<key>&rels=..&theme=.. in a fresh
# session; restore what the link carries, then consume it.
LINK_PARAMS = ("entity", "rels", "theme")

if st.query_params.get("entity") is not None:
    _link = {k: st.query_params.get(k) for k in LINK_PARAMS}
    _apply(restore_link, _link)
    if _link["theme"] in ("light", "dark"):
        st.session_state.dark_mode = _link["theme"] == "dark"
    for _param in LINK_PARAMS:
        if _param in st.query_params:
            del st.query_params[_param]


# ─── Theme ───────────────────────────────────────────────────────────────────
_DARK = dict(
    bg="#141e30", surface="#1a2640", card="#1e2d4a", border="#2a3f60",
    accent="#5badff", green="#4ade80", text="#e8eef6", text2="#9ab0cc", text3="#5a7898",
)
_LIGHT = dict(
    bg="#f0f4fa", surface="#ffffff", card="#f7f9fc", border="#d0daea",
    accent="#1a62c7", green="#166534", text="#0d1829", text2="#334155", text3="#64748b",
)
_T = _DARK if st.session_state.get("dark_mode", False) else _LIGHT

st.markdown(f"""<style>
:root {{
  --bg:      {_T["bg"]};
  --surface: {_T["surface"]};
  --card:    {_T["card"]};
  --border:  {_T["border"]};
  --accent:  {_T["accent"]};
  --green:   {_T["green"]};
  --text:    {_T["text"]};
  --text2:   {_T["text2"]};
  --text3:   {_T["text3"]};
  --mono:    'JetBrains Mono', 'Fira Code', monospace;
}}

.stApp, [data-testid="stAppViewContainer"], .block-container {{
  background: var(--bg) !important;
  color: var(--text) !important;
}}
#MainMenu, footer {{ visibility: hidden; }}

/* ── Header ── */
.folio-header {{
  background: linear-gradient(90deg, #1d4ed8, #7e22ce);
  color: #fff; padding: 16px 20px; border-radius: 10px; margin-bottom: 12px;
}}
.folio-header h2 {{ color: #fff; margin: 0; font-size: 20px; }}
.folio-header p  {{ margin: 2px 0 0; font-size: 13px; opacity: 0.9; }}

/* ── Legend ── */
.legend {{
  display: flex; flex-wrap: wrap; align-items: center; gap: 16px;
  background: var(--card); border: 1px solid var(--border);
  border-radius: 8px; padding: 8px 14px; margin: 6px 0 12px; font-size: 13px;
}}
.legend .li {{ display: flex; align-items: center; gap: 6px; color: var(--text2); }}
.legend .ld {{ width: 14px; height: 14px; border-radius: 50%; }}

/* ── Diagram ── */
.diagram-wrap {{
  height: 420px; overflow: auto; border: 1px solid var(--border);
  border-radius: 10px; background: #fff;
}}

/* ── Cards ── */
.card {{
  background: var(--card); border: 1px solid var(--border);
  border-radius: 10px; padding: 14px 16px; margin-bottom: 12px;
}}
.card h4 {{ font-family: var(--mono); font-size: 14px; color: var(--accent); margin: 0 0 4px; }}
.card .sub {{ font-size: 12px; color: var(--text3); margin-bottom: 4px; }}
.card p {{ font-size: 13px; color: var(--text2); margin: 2px 0; }}

/* ── Workflows ── */
.flow {{ display: flex; flex-direction: column; align-items: center; padding: 8px 0 16px; }}
.flow .step {{ color: #fff; border-radius: 6px; padding: 8px 14px; min-width: 160px; text-align: center; }}
.flow .cap {{ font-size: 12px; color: var(--text2); margin: 4px 0 0; text-align: center; }}
.flow .arrow {{ width: 2px; height: 28px; background: #9ca3af; margin: 6px 0; }}
.flow .branches {{ display: flex; gap: 48px; margin-top: 12px; }}
.flow .branch {{ display: flex; flex-direction: column; align-items: center; }}
.flow-blue .step  {{ background: #2563eb; }}
.flow-green .step {{ background: #16a34a; }}
.flow .step.bad   {{ background: #ef4444; min-width: 96px; }}
.flow .step.good  {{ background: #22c55e; min-width: 96px; }}
</style>""", unsafe_allow_html=True)


# ═══════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════

@st.cache_resource
def _load_catalog() -> Catalog:
    return load_catalog()


try:
    catalog = _load_catalog()
except CatalogError as e:
    logger.error("Catalog failed to load: %s", e)
    st.error(f"Catalog error: {e}")
    st.stop()

schema     = catalog.schema
operations = catalog.operations
layout     = LayoutEngine(schema)


# ═══════════════════════════════════════════════════════════════════════════
# Sidebar
# ═══════════════════════════════════════════════════════════════════════════

with st.sidebar:
    st.markdown("### ▤ FOLIO")
    st.caption("Library database structure and functionality")

    toggle_label = "☀  Light mode" if st.session_state.dark_mode else "☾  Dark mode"
    if st.button(toggle_label, key="theme_btn", width="stretch"):
        st.session_state.dark_mode = not st.session_state.dark_mode
        st.rerun()

    st.markdown("#### Catalog")
    st.markdown(
        f"- {len(schema)} tables\n"
        f"- {sum(1 for _ in schema.relationships())} relationships\n"
        f"- {len(operations.procedures)} procedures\n"
        f"- {len(operations.triggers)} triggers\n"
        f"- {len(operations.views)} views"
    )

    st.download_button(
        label="⬇  Export Relationships CSV",
        data=schema.relationships_frame().to_csv(index=False).encode(),
        file_name="library_relationships.csv",
        mime="text/csv",
        width="stretch",
    )


# ═══════════════════════════════════════════════════════════════════════════
# Header + tab selector
# ═══════════════════════════════════════════════════════════════════════════

st.markdown("""<div class="folio-header">
  <h2>Library Management System Database Visualization</h2>
  <p>Interactive exploration of database structure and functionality</p>
</div>""", unsafe_allow_html=True)

st.session_state.tab_radio = st.session_state.selection.tab.value
st.radio(
    "View",
    options=[t.value for t in Tab],
    format_func=lambda v: TAB_LABELS[Tab(v)],
    key="tab_radio",
    horizontal=True,
    label_visibility="collapsed",
    on_change=_on_tab_change,
)

state = st.session_state.selection


# ═══════════════════════════════════════════════════════════════════════════
# Tabs
# ═══════════════════════════════════════════════════════════════════════════

def render_schema_tab() -> None:
    ctrl_left, ctrl_right = st.columns([1, 3])
    with ctrl_left:
        st.button(
            "Hide Relationships" if state.show_relationships else "Show Relationships",
            key="toggle_rels",
            type="primary" if state.show_relationships else "secondary",
            on_click=_apply,
            args=(toggle_relationships,),
        )
    with ctrl_right:
        st.session_state.table_select = state.entity if state.entity in schema else ""
        st.selectbox(
            "Table",
            options=[""] + list(schema),
            format_func=lambda k: schema[k].name if k else "Select a table...",
            key="table_select",
            label_visibility="collapsed",
            on_change=_on_table_select,
        )

    items = "".join(
        f'<div class="li"><div class="ld" style="background:{color};"></div>{label}</div>'
        for label, color in vm.legend()
    )
    st.markdown(f'<div class="legend"><b>Table Types:</b>{items}</div>', unsafe_allow_html=True)

    diagram = vm.build_diagram(schema, layout, state)
    params  = {**link_params(state), "theme": "dark" if st.session_state.dark_mode else "light"}
    st.markdown(
        f'<div class="diagram-wrap">{vm.render_svg(diagram, params)}</div>',
        unsafe_allow_html=True,
    )
    st.caption("click a table to inspect it")

    detail = vm.entity_detail(schema, state.entity)
    if detail is None:
        return

    st.markdown(f"### {detail.title}")
    st.markdown(f"**Primary Key:** {detail.primary_key}")

    st.markdown("**Columns:**")
    frame = vm.fields_frame(detail)
    st.dataframe(frame, width="stretch", hide_index=True, height=min(len(frame) * 35 + 40, 420))

    st.markdown("**Relationships:**")
    for i, link in enumerate(detail.relationships):
        text_col, link_col, via_col = st.columns([2, 2, 3])
        with text_col:
            st.markdown(f"- **{link.cardinality}** relationship with")
        with link_col:
            st.button(
                link.target_name,
                key=f"rel_{detail.key}_{i}",
                on_click=_apply,
                args=(select_entity, link.target),
            )
        with via_col:
            if link.via:
                st.markdown(f"via `{link.via}`")

    owned = operations.triggers_for(detail.key)
    if owned:
        st.markdown("**Triggers:** " + ", ".join(f"`{t.name}` ({t.timing})" for t in owned))


def render_operations_tab() -> None:
    view = vm.build_operations(operations, state)

    st.markdown("### Stored Procedures")
    cols = st.columns(3)
    for i, card in enumerate(view.procedures):
        with cols[i % 3]:
            st.button(
                card.name,
                key=f"proc_{card.name}",
                help=card.description,
                type="primary" if card.active else "secondary",
                width="stretch",
                on_click=_apply,
                args=(select_operation, card.name),
            )
            st.caption(card.description)

    st.markdown("### Triggers")
    cols = st.columns(2)
    for i, trig in enumerate(view.triggers):
        with cols[i % 2]:
            st.markdown(f"""<div class="card">
              <h4>{html.escape(trig.name)}</h4>
              <div class="sub">{html.escape(trig.subtitle)}</div>
              <p>{html.escape(trig.description)}</p>
            </div>""", unsafe_allow_html=True)
            st.code(trig.code, language="sql")

    st.markdown("### Views")
    for card in view.views:
        lines = [f"<p><b>Tables:</b> {html.escape(card.tables)}</p>"]
        if card.filters:
            lines.append(f"<p><b>Filters:</b> {html.escape(card.filters)}</p>")
        if card.calculations:
            lines.append(f"<p><b>Calculations:</b> {html.escape(card.calculations)}</p>")
        st.markdown(f"""<div class="card">
          <h4>{html.escape(card.name)}</h4>
          <p>{html.escape(card.description)}</p>
          {"".join(lines)}
        </div>""", unsafe_allow_html=True)

    detail = view.detail
    if detail is None:
        return

    st.markdown(f"### {detail.title}")
    st.markdown(detail.description)
    st.markdown("**Parameters:**")
    st.markdown("\n".join(f"- `{p}`" for p in detail.parameters))
    st.markdown("**Implementation Steps:**")
    st.markdown("\n".join(f"{n}. {s}" for n, s in enumerate(detail.steps, start=1)))


def render_workflow_tab() -> None:
    st.markdown("### Common Library Workflows")
    for flow in WORKFLOWS:
        st.markdown(f"#### {flow.title}")
        blocks = []
        for i, step in enumerate(flow.steps):
            if i:
                blocks.append('<div class="arrow"></div>')
            blocks.append(f'<div class="step">{html.escape(step.title)}</div>')
            if step.caption:
                caption = re.sub(r"`([^`]+)`", r"<code>\1</code>", html.escape(step.caption))
                blocks.append(f'<div class="cap">{caption}</div>')
            if step.branches:
                branches = "".join(
                    f'<div class="branch"><div class="step {b.tone}">{html.escape(b.label)}</div>'
                    f'<div class="arrow"></div><div class="step {b.tone}">{html.escape(b.outcome)}</div></div>'
                    for b in step.branches
                )
                blocks.append(f'<div class="branches">{branches}</div>')
        st.markdown(
            f'<div class="card flow flow-{flow.accent}">{"".join(blocks)}</div>',
            unsafe_allow_html=True,
        )


if state.tab == Tab.SCHEMA:
    render_schema_tab()
elif state.tab == Tab.OPERATIONS:
    render_operations_tab()
else:
    render_workflow_tab()
