"""
Ring dissolver

Merges rings that touch or overlap until no two rings do, then splits
every result into its exterior boundary and its holes
"""

import threading
from collections import deque
from typing import Iterable, List, Optional, Tuple

from loguru import logger
from shapely.geometry import MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union
from shapely.prepared import PreparedGeometry, prep

from ..errors import AssemblyFailure, raise_if_cancelled


def _touches(prepared: PreparedGeometry, ring: BaseGeometry) -> bool:
    # Shared boundary or partial overlap; strict containment does not count
    return prepared.touches(ring) or prepared.overlaps(ring)


def _polygons(geometry: BaseGeometry) -> List[Polygon]:
    if isinstance(geometry, Polygon):
        return [geometry]
    if isinstance(geometry, MultiPolygon):
        return list(geometry.geoms)
    raise AssemblyFailure("Union failed.")


def _split(polygon: Polygon, exteriors: List[Polygon], holes: List[Polygon]):
    exteriors.append(Polygon(polygon.exterior))
    holes.extend(Polygon(interior) for interior in polygon.interiors)


def dissolve_rings(
    rings: Iterable[Polygon],
    cancel_event: Optional[threading.Event] = None
) -> Tuple[List[Polygon], List[Polygon]]:
    """
    Dissolve touching rings

    Algorithm:
    1. Take the head ring and find every remaining ring touching it
    2. If none touch, its exterior and holes are final
    3. Otherwise union the head with all touching rings; the union can
       fall apart into several polygons
    4. Polygons from the union that touch a ring not yet merged go back
       on the worklist, the rest are final
    5. Repeat until the worklist is empty

    Args:
        rings: Polygons to dissolve
        cancel_event: When set, stop with AssemblyTimeoutError

    Returns:
        Tuple of (exteriors, holes), each as hole-free polygons

    Raises:
        AssemblyFailure: If a union is neither a Polygon nor a MultiPolygon
    """
    working = deque(rings)
    exteriors: List[Polygon] = []
    holes: List[Polygon] = []
    unions = 0

    while working:
        raise_if_cancelled(cancel_event)
        head = working.popleft()
        prepared = prep(head)

        touching = []
        remaining = []
        for ring in working:
            (touching if _touches(prepared, ring) else remaining).append(ring)

        if not touching:
            _split(head, exteriors, holes)
            continue

        dissolved = _polygons(unary_union([head] + touching))
        unions += 1

        prepared_remaining = [prep(ring) for ring in remaining]
        retry = []
        for polygon in dissolved:
            if any(_touches(p, polygon) for p in prepared_remaining):
                retry.append(polygon)
            else:
                _split(polygon, exteriors, holes)

        working = deque(retry + remaining)

    if unions:
        logger.debug(f"Dissolved rings with {unions} unions into {len(exteriors)} exteriors and {len(holes)} holes")
    return exteriors, holes
