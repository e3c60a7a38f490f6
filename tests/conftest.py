"""Shared fixtures and geometry builders for the test suite."""

from datetime import datetime
from typing import List, Tuple

import pytest
import shapely
from shapely.geometry import LineString, Polygon

from osm_multipolygon.config import AssemblerConfig


def square(x0: float, y0: float, x1: float, y1: float) -> List[Tuple[float, float]]:
    """Closed counter-clockwise ring for the axis-aligned box."""
    return [(x0, y0), (x1, y0), (x1, y1), (x0, y1), (x0, y0)]


def square_polygon(x0: float, y0: float, x1: float, y1: float) -> Polygon:
    return Polygon(square(x0, y0, x1, y1))


def line_wkb(coords) -> bytes:
    return shapely.to_wkb(LineString(coords))


def polygon_wkb(coords) -> bytes:
    return shapely.to_wkb(Polygon(coords))


def square_edges(x0: float, y0: float, x1: float, y1: float) -> List[List[Tuple[float, float]]]:
    """The four edges of a box as separate open segments sharing endpoints."""
    ring = square(x0, y0, x1, y1)
    return [[ring[i], ring[i + 1]] for i in range(4)]


@pytest.fixture
def timestamp() -> datetime:
    return datetime(2020, 1, 1, 12, 0, 0)


@pytest.fixture
def config() -> AssemblerConfig:
    """Fresh config so tests can tune limits without touching the global one."""
    return AssemblerConfig()
