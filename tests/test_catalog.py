"""Tests for catalog parsing and startup validation."""

import json
import logging

import pytest

from catalog import load_catalog
from schema_parser import CatalogParser
from schema_registry import CatalogError

SCHEMA_YAML = """
tables:
  - key: shelves
    name: Shelves
    category: reference
    primary_key: shelf_id
    columns:
      - {name: shelf_id, type: INT, description: "Shelf"}
    relationships:
      - {to: items, type: one-to-many, via: shelf_id}
  - key: items
    name: Items
    category: transaction
    primary_key: [item_id]
    columns:
      - {name: item_id, type: INT}
      - {name: shelf_id, type: INT}
"""

OPS_YAML = """
procedures:
  - name: shelve
    parameters: [item_id]
    description: Puts an item on a shelf
    steps: [Find shelf, Place item]
triggers:
  - {name: after_shelve, table: items, timing: AFTER INSERT, description: x, code: "SELECT 1;"}
views:
  - {name: vw_items, description: All items, tables: [items]}
"""


@pytest.fixture
def parser():
    return CatalogParser()


def _write(tmp_path, schema=SCHEMA_YAML, ops=OPS_YAML):
    s = tmp_path / "schema.yaml"
    o = tmp_path / "ops.yaml"
    s.write_text(schema, encoding="utf-8")
    o.write_text(ops, encoding="utf-8")
    return s, o


def test_shipped_catalog_counts(catalog):
    assert len(catalog.schema) == 13
    assert [p.name for p in catalog.operations.procedures] == [
        "issue_book", "return_book", "search_books", "renew_loan", "add_book",
    ]
    assert len(catalog.operations.triggers) == 2
    assert len(catalog.operations.views) == 3


def test_load_from_paths(tmp_path):
    cat = load_catalog(*_write(tmp_path))
    assert list(cat.schema) == ["shelves", "items"]
    assert cat.schema["items"].primary_key == ("item_id",)
    assert cat.operations.find_procedure("shelve").steps == ("Find shelf", "Place item")


def test_missing_inverse_is_logged_not_raised(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger="catalog"):
        load_catalog(*_write(tmp_path))
    assert "No inverse declared for shelves → items" in caplog.text


def test_dangling_relationship_fails_fast(tmp_path):
    bad = SCHEMA_YAML.replace("to: items", "to: bins")
    with pytest.raises(CatalogError, match="bins"):
        load_catalog(*_write(tmp_path, schema=bad))


def test_trigger_on_unknown_table_fails(tmp_path):
    bad = OPS_YAML.replace("table: items", "table: crates")
    with pytest.raises(CatalogError, match="crates"):
        load_catalog(*_write(tmp_path, ops=bad))


def test_missing_file(tmp_path):
    with pytest.raises(CatalogError, match="Cannot read"):
        load_catalog(tmp_path / "nope.yaml", tmp_path / "nope2.yaml")


def test_json_schema(parser):
    raw = json.dumps({
        "tables": [{
            "key": "t",
            "primary_key": "id",
            "columns": [{"name": "id", "type": "INT"}],
        }]
    })
    (ent,) = parser.parse_schema(raw, fmt="json")
    assert ent.name == "t"
    assert ent.primary_key == ("id",)
    assert ent.fields[0].type == "integer"


def test_unknown_cardinality(parser):
    raw = SCHEMA_YAML.replace("one-to-many", "one-to-one")
    with pytest.raises(CatalogError, match="cardinality"):
        parser.parse_schema(raw)


def test_unknown_category(parser):
    raw = SCHEMA_YAML.replace("category: reference", "category: archive")
    with pytest.raises(CatalogError, match="category"):
        parser.parse_schema(raw)


def test_missing_required_key(parser):
    with pytest.raises(CatalogError, match="'key'"):
        parser.parse_schema("tables:\n  - name: NoKey\n")


def test_malformed_yaml(parser):
    with pytest.raises(CatalogError, match="parse error"):
        parser.parse_schema("tables: [unclosed")


def test_empty_document(parser):
    assert parser.parse_schema("") == []
    assert parser.parse_operations("") == ([], [], [])


def test_view_optional_sections(operations):
    views = {v.name: v for v in operations.views}
    assert views["vw_available_books"].calculations == ()
    assert views["vw_book_inventory"].filters == ()
    assert len(views["vw_overdue_loans"].calculations) == 2


def test_trigger_code_kept_verbatim(operations):
    trig = operations.triggers[1]
    assert trig.code.splitlines()[0] == "IF NEW.returned = TRUE AND OLD.returned = FALSE THEN"
    assert trig.code.endswith("END IF;")
    assert operations.triggers_for("loans") == operations.triggers
    assert operations.triggers_for("books") == ()


@pytest.mark.parametrize("raw, match", [
    ("tables:\n", "'tables' must be a list"),
    ("tables: {key: books}\n", "'tables' must be a list"),
    ("tables: [just_a_string]\n", "must be a mapping"),
    ("tables:\n  - {key: t, columns: null}\n", "'columns' must be a list"),
    ("tables:\n  - {key: t, columns: [id]}\n", "must be a mapping"),
    ("tables:\n  - {key: t, relationships: 3}\n", "'relationships' must be a list"),
    ("tables:\n  - {key: t, primary_key: 5}\n", "'primary_key' must be a string"),
    ("tables:\n  - {key: t, primary_key: [id, 7]}\n", "'primary_key' must be a string"),
])
def test_malformed_schema_shapes(parser, raw, match):
    with pytest.raises(CatalogError, match=match):
        parser.parse_schema(raw)


@pytest.mark.parametrize("raw, match", [
    ("procedures: 1\n", "'procedures' must be a list"),
    ("triggers: [x]\n", "must be a mapping"),
    ("procedures:\n  - {name: p, steps: {a: b}}\n", "'steps' must be a string"),
    ("views:\n  - {name: v, tables: null}\n", "'tables' must be a string"),
])
def test_malformed_operations_shapes(parser, raw, match):
    with pytest.raises(CatalogError, match=match):
        parser.parse_operations(raw)


def test_absent_lists_are_empty(parser):
    (ent,) = parser.parse_schema("tables:\n  - key: bare\n")
    assert ent.primary_key == ()
    assert ent.fields == ()
    assert ent.relationships == ()
    (view,) = parser.parse_operations("views:\n  - {name: v, tables: t, filters: null}\n")[2]
    assert view.tables == ("t",)
    assert view.filters == ()
