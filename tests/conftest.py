"""Shared fixtures: the shipped catalog and a layout over it."""

import pytest

from catalog import load_catalog
from layout_engine import LayoutEngine


@pytest.fixture(scope="session")
def catalog():
    return load_catalog()


@pytest.fixture
def schema(catalog):
    return catalog.schema


@pytest.fixture
def operations(catalog):
    return catalog.operations


@pytest.fixture
def layout(schema):
    return LayoutEngine(schema)
