"""
Topology classifier

Decides which rings are exteriors and which are holes from how they nest,
never from the roles relation members were given
"""

from typing import List, Sequence, Tuple

from loguru import logger
from shapely import STRtree
from shapely.geometry import Polygon
from shapely.prepared import prep

from ..models import ClassifiedRingSet


def classify_rings(rings: Sequence[Polygon]) -> ClassifiedRingSet:
    """
    Classify rings by containment parity

    The largest ring is an exterior. Every other ring is a hole if an odd
    number of the other rings contain it, and an exterior (an island)
    if the count is even.

    Args:
        rings: Hole-free polygons

    Returns:
        ClassifiedRingSet with exteriors and holes
    """
    ordered = sorted(rings, key=lambda ring: ring.area, reverse=True)
    if not ordered:
        return ClassifiedRingSet(exteriors=[], holes=[])

    tree = STRtree(ordered)
    exteriors = [ordered[0]]
    holes = []

    for index in range(1, len(ordered)):
        ring = ordered[index]
        # tree geometries the ring lies within, i.e. rings containing it
        containing = tree.query(ring, predicate="within")
        count = sum(1 for other in containing if other != index)

        if count % 2 == 0:
            exteriors.append(ring)
        else:
            holes.append(ring)

    logger.debug(f"Classified {len(ordered)} rings: {len(exteriors)} exteriors, {len(holes)} holes")
    return ClassifiedRingSet(exteriors=exteriors, holes=holes)


def classify_unknown_rings(
    unknowns: Sequence[Polygon],
    outers: Sequence[Polygon],
    inners: Sequence[Polygon]
) -> Tuple[List[Polygon], List[Polygon]]:
    """
    Give rings from role-less members a provisional role

    A ring inside any outer ring seen so far is inner, otherwise it becomes
    an outer ring itself and is checked against later unknowns.

    Returns:
        Tuple of (outers, inners) including the unknown rings
    """
    outers = list(outers)
    inners = list(inners)
    prepared_outers = [prep(outer) for outer in outers]

    for ring in unknowns:
        if any(p.contains(ring) for p in prepared_outers):
            inners.append(ring)
        else:
            outers.append(ring)
            prepared_outers.append(prep(ring))

    return outers, inners


def assign_holes(exteriors: Sequence[Polygon], holes: Sequence[Polygon]) -> List[Polygon]:
    """
    Attach holes to the exteriors containing them

    Exteriors are visited largest first and each hole is used once. A hole
    goes to the smallest exterior containing it rather than the first
    (largest) one: with a hole inside an island inside a hole, giving the
    inner hole to the outermost exterior would produce invalid geometry.
    Holes no exterior contains are dropped.

    Returns:
        Polygons, largest exterior first
    """
    ordered = sorted(exteriors, key=lambda ring: ring.area, reverse=True)
    prepared_exteriors = [prep(exterior) for exterior in ordered]
    pool = list(holes)
    polygons = []

    for index, exterior in enumerate(ordered):
        prepared = prepared_exteriors[index]
        smaller = prepared_exteriors[index + 1:]
        contained = []
        rest = []
        for hole in pool:
            if prepared.contains(hole) and not any(p.contains(hole) for p in smaller):
                contained.append(hole)
            else:
                rest.append(hole)
        pool = rest

        polygons.append(Polygon(
            exterior.exterior.coords,
            [hole.exterior.coords for hole in contained]
        ))

    if pool:
        logger.debug(f"{len(pool)} holes not contained by any exterior were dropped")
    return polygons
