"""Smoke tests for the Streamlit UI."""

import html
import re
import runpy
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import pytest
import streamlit as st
import streamlit.runtime.scriptrunner as scriptrunner
from streamlit.testing.v1 import AppTest

import catalog
from schema_registry import CatalogError
from selection_state import Tab

APP_PATH = Path(__file__).resolve().parent.parent / "app.py"


@pytest.fixture
def at():
    app = AppTest.from_file("../app.py", default_timeout=30)
    app.run()
    assert not app.exception
    return app


def _markdown(app):
    return [m.value for m in app.markdown]


def test_initial_render(at):
    state = at.session_state["selection"]
    assert state.tab is Tab.SCHEMA
    assert state.entity == "books"
    assert "### Books Table" in _markdown(at)
    assert len(at.dataframe[0].value) == 7


def test_toggle_relationships(at):
    at.button(key="toggle_rels").click().run()
    assert at.session_state["selection"].show_relationships is False
    assert at.button(key="toggle_rels").label == "Show Relationships"


def test_relationship_link_selects_target(at):
    at.selectbox(key="table_select").select("book_authors").run()
    assert at.session_state["selection"].entity == "book_authors"

    at.button(key="rel_book_authors_0").click().run()
    state = at.session_state["selection"]
    assert state.entity == "books"
    assert state.operation is None


def test_operations_tab(at):
    at.radio(key="tab_radio").set_value("operations").run()
    assert not at.exception
    assert at.session_state["selection"].entity == "books"

    at.button(key="proc_issue_book").click().run()
    state = at.session_state["selection"]
    assert state.operation == "issue_book"
    assert state.entity is None
    assert "### Stored Procedure: issue_book" in _markdown(at)


def test_workflow_tab(at):
    at.radio(key="tab_radio").set_value("workflow").run()
    assert not at.exception
    assert "#### Book Checkout Process" in _markdown(at)
    assert "#### Book Return Process" in _markdown(at)


def test_diagram_click_query_param():
    app = AppTest.from_file("../app.py", default_timeout=30)
    app.query_params["entity"] = "loans"
    app.run()
    assert not app.exception
    assert app.session_state["selection"].entity == "loans"
    assert "### Loans Table" in _markdown(app)


def _node_link(app, key):
    """Query parameters of the diagram link for table `key`."""
    (svg,) = [m for m in _markdown(app) if "diagram-wrap" in m]
    for href in re.findall(r'href="([^"]+)"', svg):
        params = {k: v[0] for k, v in parse_qs(urlsplit(html.unescape(href)).query).items()}
        if params.get("entity") == key:
            return params
    raise AssertionError(f"no diagram link for {key!r}")


def test_diagram_click_keeps_view_settings(at):
    at.button(key="toggle_rels").click().run()
    at.button(key="theme_btn").click().run()
    assert at.session_state["dark_mode"] is True

    params = _node_link(at, "loans")
    assert params == {"entity": "loans", "rels": "0", "theme": "dark"}

    app = AppTest.from_file("../app.py", default_timeout=30)
    for k, v in params.items():
        app.query_params[k] = v
    app.run()
    assert not app.exception
    state = app.session_state["selection"]
    assert state.entity == "loans"
    assert state.show_relationships is False
    assert app.session_state["dark_mode"] is True
    assert app.button(key="toggle_rels").label == "Show Relationships"


def test_refuses_to_start_without_script_context(monkeypatch):
    monkeypatch.setattr(scriptrunner, "get_script_run_ctx", lambda *a, **k: None)
    with pytest.raises(RuntimeError, match="streamlit run"):
        runpy.run_path(str(APP_PATH), run_name="__main__")


@pytest.fixture
def fresh_cache():
    st.cache_resource.clear()
    yield
    st.cache_resource.clear()


def test_catalog_error_stops_the_app(monkeypatch, fresh_cache):
    def broken(*args, **kwargs):
        raise CatalogError("Table 'shelves' relationship targets unknown table 'bins'")

    monkeypatch.setattr(catalog, "load_catalog", broken)
    app = AppTest.from_file("../app.py", default_timeout=30)
    app.run()
    assert not app.exception
    assert len(app.error) == 1
    assert "bins" in app.error[0].value
    assert len(app.radio) == 0
    assert len(app.dataframe) == 0


def test_operations_text_is_escaped(at):
    at.radio(key="tab_radio").set_value("operations").run()
    md = "\n".join(_markdown(at))
    assert "loans.due_date &lt; CURRENT_DATE" in md
    assert "books.available_copies &gt; 0" in md


def test_workflow_captions_keep_code_spans(at):
    at.radio(key="tab_radio").set_value("workflow").run()
    md = "\n".join(_markdown(at))
    assert "<code>issue_book</code> procedure checks" in md
    assert "`issue_book`" not in md
