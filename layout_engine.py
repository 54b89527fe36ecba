"""
layout_engine.py — Folio
Fixed diagram positions for the library tables and the S-curve
connector geometry drawn between them.

Positions are hand-placed, not computed. Tables without a fixed slot
fall back to a five-column grid derived from their ordinal index.

Copyright 2026 Common Gene Labs. All rights reserved.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class Point:
    x: float
    y: float


FIXED_POSITIONS: dict[str, Point] = {
    "books":           Point(400, 250),
    "authors":         Point(150, 150),
    "publishers":      Point(650, 150),
    "categories":      Point(650, 350),
    "book_authors":    Point(250, 250),
    "book_categories": Point(550, 300),
    "members":         Point(250, 450),
    "staff":           Point(550, 450),
    "loans":           Point(400, 350),
    "reservations":    Point(150, 350),
    "fines":           Point(400, 450),
    "events":          Point(650, 550),
    "event_attendees": Point(400, 550),
}

GRID_COLUMNS = 5
GRID_ORIGIN  = Point(100, 100)
GRID_STEP_X  = 150
GRID_STEP_Y  = 100

CATEGORY_COLORS: dict[str, str] = {
    "core":        "#2563eb",
    "junction":    "#9333ea",
    "transaction": "#16a34a",
    "reference":   "#ca8a04",
    "event":       "#dc2626",
}
DEFAULT_COLOR = "#6b7280"


def grid_position(index: int) -> Point:
    return Point(
        GRID_ORIGIN.x + (index % GRID_COLUMNS) * GRID_STEP_X,
        GRID_ORIGIN.y + (index // GRID_COLUMNS) * GRID_STEP_Y,
    )


def is_dashed(cardinality: str) -> bool:
    """Connectors for any *many* cardinality are drawn dashed."""
    return "many" in cardinality


def category_color(category: str) -> str:
    return CATEGORY_COLORS.get(category, DEFAULT_COLOR)


def _num(v: float) -> str:
    # 275.0 → "275", 275.5 → "275.5"
    return str(int(v)) if float(v).is_integer() else repr(float(v))


@dataclass(frozen=True)
class PathSpec:
    """Cubic Bézier from start to end through control points c1 and c2."""

    start: Point
    c1:    Point
    c2:    Point
    end:   Point

    @property
    def d(self) -> str:
        """SVG path data."""
        s, c1, c2, e = self.start, self.c1, self.c2, self.end
        return (
            f"M{_num(s.x)},{_num(s.y)} "
            f"C{_num(c1.x)},{_num(c1.y)} {_num(c2.x)},{_num(c2.y)} {_num(e.x)},{_num(e.y)}"
        )

    def reversed(self) -> PathSpec:
        return PathSpec(start=self.end, c1=self.c2, c2=self.c1, end=self.start)


class LayoutEngine:
    """
    Maps table keys to diagram points.

    `order` is the catalog order of table keys; it supplies the ordinal
    index for tables that have no fixed position.
    """

    def __init__(
        self,
        order: Iterable[str] = (),
        positions: Mapping[str, Point] | None = None,
    ) -> None:
        self._order     = {key: i for i, key in enumerate(order)}
        self._positions = dict(FIXED_POSITIONS if positions is None else positions)

    def position_of(self, key: str, index: int | None = None) -> Point:
        fixed = self._positions.get(key)
        if fixed is not None:
            return fixed
        if index is None:
            index = self._order.get(key, len(self._order))
        return grid_position(index)

    def connector_path(self, source: str, target: str) -> PathSpec:
        a = self.position_of(source)
        b = self.position_of(target)
        mid_x = (a.x + b.x) / 2
        return PathSpec(start=a, c1=Point(mid_x, a.y), c2=Point(mid_x, b.y), end=b)
