"""
Tests for dissolving touching and overlapping rings
"""

import threading

import pytest
from shapely.geometry import LineString, Polygon

from osm_multipolygon.errors import AssemblyFailure, AssemblyTimeoutError
from osm_multipolygon.geometry import dissolver
from osm_multipolygon.geometry.dissolver import dissolve_rings

from conftest import square_polygon


def test_disjoint_rings_are_unchanged():
    a = square_polygon(0, 0, 10, 10)
    b = square_polygon(20, 0, 30, 10)
    exteriors, holes = dissolve_rings([a, b])
    assert holes == []
    assert len(exteriors) == 2
    assert any(e.equals(a) for e in exteriors)
    assert any(e.equals(b) for e in exteriors)


def test_overlapping_rings_merge():
    exteriors, holes = dissolve_rings([square_polygon(0, 0, 10, 10), square_polygon(5, 0, 15, 10)])
    assert len(exteriors) == 1
    assert exteriors[0].area == pytest.approx(150.0)
    assert holes == []


def test_edge_touching_rings_merge():
    exteriors, holes = dissolve_rings([square_polygon(0, 0, 10, 10), square_polygon(10, 0, 20, 10)])
    assert len(exteriors) == 1
    assert exteriors[0].area == pytest.approx(200.0)
    assert holes == []


def test_merge_that_encloses_space_produces_hole():
    u_shape = Polygon([
        (0, 0), (30, 0), (30, 30), (20, 30), (20, 10), (10, 10), (10, 30), (0, 30), (0, 0)
    ])
    cap = square_polygon(0, 30, 30, 40)
    exteriors, holes = dissolve_rings([u_shape, cap])
    assert len(exteriors) == 1
    assert exteriors[0].area == pytest.approx(1200.0)
    assert len(holes) == 1
    assert holes[0].area == pytest.approx(200.0)
    assert not exteriors[0].interiors


def test_contained_ring_is_not_merged():
    outer = square_polygon(0, 0, 100, 100)
    island = square_polygon(10, 10, 20, 20)
    exteriors, holes = dissolve_rings([outer, island])
    assert len(exteriors) == 2
    assert holes == []


def test_chain_of_touching_rings_merges_fully():
    rings = [
        square_polygon(0, 0, 10, 10),
        square_polygon(10, 0, 20, 10),
        square_polygon(20, 0, 30, 10),
    ]
    exteriors, holes = dissolve_rings(rings)
    assert len(exteriors) == 1
    assert exteriors[0].area == pytest.approx(300.0)


def test_chain_merges_regardless_of_order():
    rings = [
        square_polygon(0, 0, 10, 10),
        square_polygon(20, 0, 30, 10),
        square_polygon(10, 0, 20, 10),
    ]
    exteriors, _ = dissolve_rings(rings)
    assert len(exteriors) == 1
    assert exteriors[0].area == pytest.approx(300.0)


def test_non_polygonal_union_fails(monkeypatch):
    monkeypatch.setattr(dissolver, "unary_union", lambda geoms: LineString([(0, 0), (1, 1)]))
    with pytest.raises(AssemblyFailure, match="Union failed"):
        dissolve_rings([square_polygon(0, 0, 10, 10), square_polygon(5, 0, 15, 10)])


def test_no_rings():
    assert dissolve_rings([]) == ([], [])


def test_cancelled_dissolve_stops():
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(AssemblyTimeoutError):
        dissolve_rings([square_polygon(0, 0, 1, 1)], cancel_event=cancel)
