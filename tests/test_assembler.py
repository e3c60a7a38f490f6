"""
Tests for relation assembly: role handling, failure containment, deadline
and WKB output
"""

import threading
from datetime import timedelta

import pytest
import shapely
from shapely.geometry import MultiPolygon, Point, Polygon

from osm_multipolygon import assembler as assembler_module
from osm_multipolygon.assembler import MultipolygonAssembler, assemble
from osm_multipolygon.errors import (
    AssemblyFailure,
    AssemblyTimeoutError,
    IncompleteRelationError,
    OversizedRelationError,
    raise_if_cancelled,
)
from osm_multipolygon.models import Relation, RelationMember

from conftest import line_wkb, polygon_wkb, square, square_edges


def _outer_edges(x0, y0, x1, y1):
    return [("outer", True, line_wkb(edge)) for edge in square_edges(x0, y0, x1, y1)]


def _geometry(wkb):
    return shapely.from_wkb(wkb)


def test_square_with_hole(config, timestamp):
    members = _outer_edges(0, 0, 10, 10) + [("inner", True, polygon_wkb(square(2, 2, 4, 4)))]
    wkb = MultipolygonAssembler(config).assemble(1, 1, timestamp, members)
    geometry = _geometry(wkb)
    assert isinstance(geometry, Polygon)
    assert len(geometry.interiors) == 1
    assert geometry.area == pytest.approx(96.0)


def test_output_carries_srid(config, timestamp):
    wkb = MultipolygonAssembler(config).assemble(1, 1, timestamp, _outer_edges(0, 0, 1, 1))
    assert shapely.get_srid(_geometry(wkb)) == 4326


def test_overlapping_outers_are_dissolved(config, timestamp):
    members = [
        ("outer", True, polygon_wkb(square(0, 0, 10, 10))),
        ("outer", True, polygon_wkb(square(5, 0, 15, 10))),
    ]
    geometry = _geometry(MultipolygonAssembler(config).assemble(1, 1, timestamp, members))
    assert isinstance(geometry, Polygon)
    assert geometry.area == pytest.approx(150.0)


def test_disjoint_outers_give_multipolygon(config, timestamp):
    members = [
        ("outer", True, polygon_wkb(square(0, 0, 10, 10))),
        ("outer", True, polygon_wkb(square(20, 0, 30, 10))),
    ]
    geometry = _geometry(MultipolygonAssembler(config).assemble(1, 1, timestamp, members))
    assert isinstance(geometry, MultiPolygon)
    assert len(geometry.geoms) == 2
    assert geometry.is_valid


def test_swapped_roles_are_reclassified(config, timestamp):
    members = [
        ("inner", True, polygon_wkb(square(0, 0, 10, 10))),
        ("outer", True, polygon_wkb(square(2, 2, 4, 4))),
    ]
    geometry = _geometry(MultipolygonAssembler(config).assemble(1, 1, timestamp, members))
    assert isinstance(geometry, Polygon)
    assert len(geometry.interiors) == 1
    assert geometry.area == pytest.approx(96.0)


def test_role_less_rings(config, timestamp):
    members = [
        ("", True, polygon_wkb(square(0, 0, 10, 10))),
        (None, True, polygon_wkb(square(2, 2, 4, 4))),
    ]
    geometry = _geometry(MultipolygonAssembler(config).assemble(1, 1, timestamp, members))
    assert len(geometry.interiors) == 1


def test_island_in_hole(config, timestamp):
    members = [
        ("outer", True, polygon_wkb(square(0, 0, 100, 100))),
        ("inner", True, polygon_wkb(square(10, 10, 90, 90))),
        ("outer", True, polygon_wkb(square(20, 20, 80, 80))),
        ("inner", True, polygon_wkb(square(30, 30, 70, 70))),
    ]
    geometry = _geometry(MultipolygonAssembler(config).assemble(1, 1, timestamp, members))
    assert isinstance(geometry, MultiPolygon)
    assert geometry.area == pytest.approx(3600 + 2000)
    assert geometry.is_valid


def test_other_roles_are_ignored(config, timestamp):
    members = _outer_edges(0, 0, 10, 10) + [("subarea", True, polygon_wkb(square(50, 50, 60, 60)))]
    geometry = _geometry(MultipolygonAssembler(config).assemble(1, 1, timestamp, members))
    assert isinstance(geometry, Polygon)
    assert geometry.area == pytest.approx(100.0)


def test_only_ignored_roles_fails(config, timestamp):
    members = [("subarea", True, polygon_wkb(square(0, 0, 1, 1)))]
    with pytest.raises(AssemblyFailure, match="No rings"):
        MultipolygonAssembler(config).assemble_or_raise(1, 1, timestamp, members)


def test_non_way_members_without_geometry_are_fine(config, timestamp):
    members = _outer_edges(0, 0, 10, 10) + [("label", "node", None)]
    assert MultipolygonAssembler(config).assemble(1, 1, timestamp, members) is not None


def test_incomplete_relation(config, timestamp):
    members = _outer_edges(0, 0, 10, 10) + [("outer", "way", None)]
    asm = MultipolygonAssembler(config)
    assert asm.assemble(1, 1, timestamp, members) is None
    with pytest.raises(IncompleteRelationError):
        asm.assemble_or_raise(1, 1, timestamp, members)


def test_oversized_relation(config, timestamp):
    config.limits.max_relation_bytes = 100
    members = _outer_edges(0, 0, 10, 10)
    asm = MultipolygonAssembler(config)
    assert asm.assemble(1, 1, timestamp, members) is None
    with pytest.raises(OversizedRelationError) as excinfo:
        asm.assemble_or_raise(1, 1, timestamp, members)
    assert excinfo.value.size_bytes > 100
    assert excinfo.value.limit_bytes == 100


def test_default_size_limit_drops_huge_relation(config, timestamp, monkeypatch):
    coords = [(float(i), 0.0) for i in range(40_000)]
    members = [("outer", True, line_wkb(coords))]
    parsed = []

    def from_wkb(data):
        parsed.append(data)
        raise AssertionError("member WKB parsed")

    monkeypatch.setattr(assembler_module.shapely, "from_wkb", from_wkb)
    asm = MultipolygonAssembler(config)
    assert asm.assemble(1, 1, timestamp, members) is None
    with pytest.raises(OversizedRelationError):
        asm.assemble_or_raise(1, 1, timestamp, members)
    assert parsed == []


def test_member_type_must_be_bool_or_name(config, timestamp):
    asm = MultipolygonAssembler(config)
    members = _outer_edges(0, 0, 10, 10) + [("label", 0, None)]
    with pytest.raises(TypeError):
        asm.assemble_or_raise(1, 1, timestamp, members)
    assert asm.assemble(1, 1, timestamp, members) is None
    assert asm.assemble(1, 1, timestamp, _outer_edges(0, 0, 10, 10) + [("label", False, None)]) is not None


def test_unconnectable_segment(config, timestamp):
    members = _outer_edges(0, 0, 10, 10)[:3]
    asm = MultipolygonAssembler(config)
    assert asm.assemble(1, 1, timestamp, members) is None
    with pytest.raises(AssemblyFailure):
        asm.assemble_or_raise(1, 1, timestamp, members)


def test_unreadable_and_unsupported_members_are_skipped(config, timestamp):
    members = _outer_edges(0, 0, 10, 10) + [
        ("outer", True, b"\x01\x02garbage"),
        ("outer", True, shapely.to_wkb(Point(5, 5))),
    ]
    geometry = _geometry(MultipolygonAssembler(config).assemble(1, 1, timestamp, members))
    assert geometry.area == pytest.approx(100.0)


def test_deadline(config, timestamp, monkeypatch):
    config.limits.timeout_seconds = 0.05

    def stalled(rings, cancel_event=None):
        cancel_event.wait(5)
        raise_if_cancelled(cancel_event)

    monkeypatch.setattr(assembler_module, "dissolve_rings", stalled)
    asm = MultipolygonAssembler(config)
    with pytest.raises(AssemblyTimeoutError):
        asm.assemble_or_raise(1, 1, timestamp, _outer_edges(0, 0, 10, 10))
    assert asm.assemble(1, 1, timestamp, _outer_edges(0, 0, 10, 10)) is None


def test_unexpected_error_is_contained(config, timestamp, monkeypatch):
    def broken(rings):
        raise RuntimeError("boom")

    monkeypatch.setattr(assembler_module, "classify_rings", broken)
    assert MultipolygonAssembler(config).assemble(1, 1, timestamp, _outer_edges(0, 0, 1, 1)) is None


def test_relation_model_and_module_function(config, timestamp):
    relation = Relation(
        id=7,
        version=3,
        timestamp=timestamp,
        tags={"type": "multipolygon"},
        members=[RelationMember(role="outer", geometry=polygon_wkb(square(0, 0, 2, 2)))],
    )
    wkb = MultipolygonAssembler(config).assemble_relation(relation)
    assert _geometry(wkb).area == pytest.approx(4.0)
    assert assemble(7, 3, timestamp, relation.members, config) == wkb


def test_concurrent_calls_are_independent(config, timestamp):
    asm = MultipolygonAssembler(config)
    results = {}

    def run(size):
        results[size] = asm.assemble(size, 1, timestamp, _outer_edges(0, 0, size, size))

    threads = [threading.Thread(target=run, args=(size,)) for size in range(1, 9)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    for size, wkb in results.items():
        assert _geometry(wkb).area == pytest.approx(size * size)


def test_relation_timestamp_defaults_to_current_utc():
    relation = Relation(id=1)
    assert relation.timestamp.tzinfo is not None
    assert relation.timestamp.utcoffset() == timedelta(0)
