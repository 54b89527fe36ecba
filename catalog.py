"""
catalog.py — Folio
Loads the schema and operations catalogs from disk and validates them
once at startup. A catalog that references unknown tables never reaches
the UI.

Copyright 2026 Common Gene Labs. All rights reserved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from operations_registry import OperationsRegistry
from schema_parser import CatalogParser
from schema_registry import CatalogError, SchemaRegistry

logger = logging.getLogger(__name__)

DATA_DIR        = Path(__file__).resolve().parent / "data"
SCHEMA_PATH     = DATA_DIR / "library_schema.yaml"
OPERATIONS_PATH = DATA_DIR / "library_operations.yaml"

_parser = CatalogParser()


@dataclass(frozen=True)
class Catalog:
    schema:     SchemaRegistry
    operations: OperationsRegistry


def _fmt_for(path: Path) -> str:
    return "json" if path.suffix.lower() == ".json" else "yaml"


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise CatalogError(f"Cannot read catalog file {path}: {e}") from e


def build_catalog(schema: SchemaRegistry, operations: OperationsRegistry) -> Catalog:
    """Validate an in-memory catalog and wrap it."""
    schema.validate()
    operations.validate(schema)
    for src, rel in schema.missing_inverses():
        logger.warning(
            "No inverse declared for %s → %s (%s via %s)",
            src, rel.target, rel.cardinality, rel.via,
        )
    return Catalog(schema=schema, operations=operations)


def load_catalog(
    schema_path: str | Path | None = None,
    operations_path: str | Path | None = None,
) -> Catalog:
    """
    Parse both catalog files and validate them.

    Raises CatalogError on unreadable files, malformed documents or
    unresolved table references.
    """
    schema_path     = Path(schema_path) if schema_path else SCHEMA_PATH
    operations_path = Path(operations_path) if operations_path else OPERATIONS_PATH

    entities = _parser.parse_schema(_read(schema_path), _fmt_for(schema_path))
    procs, trigs, views = _parser.parse_operations(
        _read(operations_path), _fmt_for(operations_path)
    )

    catalog = build_catalog(SchemaRegistry(entities), OperationsRegistry(procs, trigs, views))
    logger.info(
        "Catalog loaded: %d table(s), %d procedure(s), %d trigger(s), %d view(s)",
        len(catalog.schema), len(procs), len(trigs), len(views),
    )
    return catalog
