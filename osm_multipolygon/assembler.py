"""
Multipolygon assembler

Rebuilds Polygon / MultiPolygon geometry for a relation from the WKB of
its members:

  1. Reject incomplete and oversized relations before parsing
  2. Parse member geometries and sort them by role and closure
  3. Connect open segments into rings, per role
  4. Give role-less rings a provisional role, then reclassify every
     ring by nesting (declared roles are not trusted)
  5. Dissolve touching exteriors, then touching holes
  6. Attach holes to exteriors and serialize as WKB in EPSG:4326

Steps 3-6 run under a wall-clock deadline. Every failure is logged and
turned into an absent result; no relation can fail a batch.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import shapely
from loguru import logger
from shapely.errors import ShapelyError
from shapely.geometry import LineString, MultiPolygon, Polygon
from shapely.validation import explain_validity

from .config import AssemblerConfig, get_config
from .errors import (
    AssemblyFailure,
    AssemblyTimeoutError,
    IncompleteRelationError,
    InvalidGeometryError,
    OversizedRelationError,
    RelationAssemblyError,
    raise_if_cancelled,
)
from .geometry import (
    assign_holes,
    classify_rings,
    classify_unknown_rings,
    connect_segments,
    dissolve_rings,
)
from .models import Relation, RelationMember

WAY_TYPE = "way"

# (role, is_way_reference or member type, WKB)
MemberTuple = Tuple[Optional[str], Union[bool, str], Optional[bytes]]


@dataclass
class TriagedMembers:
    """Member geometries sorted by declared role and closure"""
    complete_outers: List[Polygon] = field(default_factory=list)
    complete_inners: List[Polygon] = field(default_factory=list)
    complete_unknowns: List[Polygon] = field(default_factory=list)
    partial_outers: List[LineString] = field(default_factory=list)
    partial_inners: List[LineString] = field(default_factory=list)
    partial_unknowns: List[LineString] = field(default_factory=list)


class MultipolygonAssembler:
    """
    Assemble relation geometry from member line strings

    Usage:
        assembler = MultipolygonAssembler()
        wkb = assembler.assemble(id, version, timestamp, members)

    Each call is independent; an assembler can be shared between threads.
    """

    def __init__(self, config: Optional[AssemblerConfig] = None):
        self.config = config or get_config()
        self.limits = self.config.limits

    def assemble(
        self,
        relation_id: int,
        version: int,
        timestamp: datetime,
        members: Iterable[Union[RelationMember, MemberTuple]]
    ) -> Optional[bytes]:
        """
        Assemble a relation, returning None when it cannot be reconstructed

        Args:
            relation_id: Relation ID
            version: Relation version
            timestamp: Relation timestamp
            members: RelationMember objects or (role, is_way_reference, wkb) tuples

        Returns:
            WKB of a Polygon or MultiPolygon (EPSG:4326), or None
        """
        label = f"{relation_id} @ {version} ({timestamp})"

        try:
            return self.assemble_or_raise(relation_id, version, timestamp, members)
        except IncompleteRelationError:
            logger.debug(f"Incomplete relation: {label}")
        except OversizedRelationError as e:
            logger.warning(f"Dropping {label} due to size ({e.size_bytes:,} bytes).")
        except RelationAssemblyError as e:
            logger.warning(f"Could not reconstruct relation {label}: {e}")
        except Exception as e:
            logger.opt(exception=e).warning(f"Could not reconstruct relation {label}: {e!r}")
        return None

    def assemble_relation(self, relation: Relation) -> Optional[bytes]:
        """Assemble a Relation model"""
        return self.assemble(relation.id, relation.version, relation.timestamp, relation.members)

    def assemble_or_raise(
        self,
        relation_id: int,
        version: int,
        timestamp: datetime,
        members: Iterable[Union[RelationMember, MemberTuple]]
    ) -> bytes:
        """
        Assemble a relation, raising the reason it cannot be reconstructed

        Raises:
            IncompleteRelationError: If a way member has no geometry
            OversizedRelationError: If member WKB exceeds the byte limit
            AssemblyFailure: If segments cannot be connected or unioned
            InvalidGeometryError: If the geometry engine rejects the rings
            AssemblyTimeoutError: If the deadline passes
        """
        label = f"{relation_id} @ {version} ({timestamp})"
        members = [self._coerce_member(m) for m in members]

        # bail early if way members are missing geometry
        if any(m.is_way_reference and m.geometry is None for m in members):
            raise IncompleteRelationError(f"Incomplete relation: {label}", label)

        # bail before parsing to avoid the allocations that come with it
        size_bytes = sum(len(m.geometry) for m in members if m.geometry is not None)
        if size_bytes > self.limits.max_relation_bytes:
            raise OversizedRelationError(size_bytes, self.limits.max_relation_bytes, label)

        lines = self._parse_members(members, label)
        vertex_count = sum(len(line.coords) for _, line in lines)
        logger.debug(
            f"{vertex_count:,} vertices ({size_bytes:,} bytes) from {len(members)} members in {label}"
        )

        triaged = self._triage(lines)
        return self._run_with_deadline(triaged, label)

    @staticmethod
    def _coerce_member(member: Union[RelationMember, MemberTuple]) -> RelationMember:
        if isinstance(member, RelationMember):
            return member
        role, kind, geometry = member
        if isinstance(kind, bool):
            is_way = kind
        elif isinstance(kind, str):
            is_way = kind.lower() == WAY_TYPE
        else:
            raise TypeError(f"Member type must be a bool or a type name, got {type(kind).__name__}")
        return RelationMember(
            role=role or "",
            is_way_reference=is_way,
            geometry=bytes(geometry) if geometry is not None else None
        )

    def _parse_members(
        self,
        members: Sequence[RelationMember],
        label: str
    ) -> List[Tuple[str, LineString]]:
        """Parse member WKB into (role, line); polygons contribute their exterior ring"""
        lines = []
        for index, member in enumerate(members):
            if member.geometry is None:
                continue
            try:
                geometry = shapely.from_wkb(member.geometry)
            except ShapelyError as e:
                logger.warning(f"Skipping member {index} of {label}: unreadable WKB ({e})")
                continue

            if isinstance(geometry, Polygon):
                line = LineString(geometry.exterior.coords) if not geometry.is_empty else None
            elif isinstance(geometry, LineString):
                line = geometry
            else:
                logger.warning(f"Skipping member {index} of {label}: unsupported {geometry.geom_type}")
                continue

            if line is None or line.is_empty:
                logger.warning(f"Skipping member {index} of {label}: empty geometry")
                continue
            lines.append((member.role, line))
        return lines

    def _triage(self, lines: Sequence[Tuple[str, LineString]]) -> TriagedMembers:
        """Sort lines into complete rings and partial segments per role"""
        triaged = TriagedMembers()
        for role, line in lines:
            complete = line.is_closed and len(line.coords) >= self.limits.min_ring_vertices
            if role == "outer":
                if complete:
                    triaged.complete_outers.append(Polygon(line.coords))
                else:
                    triaged.partial_outers.append(line)
            elif role == "inner":
                if complete:
                    triaged.complete_inners.append(Polygon(line.coords))
                else:
                    triaged.partial_inners.append(line)
            elif role == "":
                if complete:
                    triaged.complete_unknowns.append(Polygon(line.coords))
                else:
                    triaged.partial_unknowns.append(line)
        return triaged

    def _run_with_deadline(self, triaged: TriagedMembers, label: str) -> bytes:
        """Run the geometry stage on its own worker, abandoning it at the deadline"""
        cancel_event = threading.Event()
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="relation-assembly")
        try:
            future = executor.submit(self._build, triaged, cancel_event)
            try:
                return future.result(timeout=self.limits.timeout_seconds)
            except FutureTimeoutError:
                cancel_event.set()
                future.cancel()
                raise AssemblyTimeoutError("Assembly timed out.", label) from None
        finally:
            executor.shutdown(wait=False)

    def _build(self, triaged: TriagedMembers, cancel_event: threading.Event) -> bytes:
        try:
            return self._build_geometry(triaged, cancel_event)
        except (ShapelyError, ValueError) as e:
            raise InvalidGeometryError(str(e)) from e

    def _build_geometry(self, triaged: TriagedMembers, cancel_event: threading.Event) -> bytes:
        unknowns = triaged.complete_unknowns + connect_segments(triaged.partial_unknowns, cancel_event)
        outers = triaged.complete_outers + connect_segments(triaged.partial_outers, cancel_event)
        inners = triaged.complete_inners + connect_segments(triaged.partial_inners, cancel_event)

        outers, inners = classify_unknown_rings(unknowns, outers, inners)
        raise_if_cancelled(cancel_event)

        # reclassify rings according to their topology (ignoring roles)
        classified = classify_rings(outers + inners)
        raise_if_cancelled(cancel_event)

        dissolved_outers, extra_inners = dissolve_rings(classified.exteriors, cancel_event)
        dissolved_inners, extra_outers = dissolve_rings(
            [Polygon(hole.exterior) for hole in classified.holes] + extra_inners,
            cancel_event
        )

        polygons = assign_holes(dissolved_outers + extra_outers, dissolved_inners)
        raise_if_cancelled(cancel_event)

        if not polygons:
            raise AssemblyFailure("No rings could be assembled.")

        geometry = polygons[0] if len(polygons) == 1 else MultiPolygon(polygons)
        if not geometry.is_valid:
            raise InvalidGeometryError(f"Assembled geometry is invalid: {explain_validity(geometry)}")

        geometry = shapely.set_srid(geometry, self.limits.output_srid)
        return shapely.to_wkb(geometry, include_srid=True)


def assemble(
    relation_id: int,
    version: int,
    timestamp: datetime,
    members: Iterable[Union[RelationMember, MemberTuple]],
    config: Optional[AssemblerConfig] = None
) -> Optional[bytes]:
    """Assemble a relation with a default assembler; see MultipolygonAssembler.assemble"""
    return MultipolygonAssembler(config).assemble(relation_id, version, timestamp, members)
