"""
Segment connector

Stitches open way segments into closed rings by repeatedly extending
the head segment with another one sharing its last coordinate
"""

import threading
from collections import deque
from typing import Iterable, List, Optional

from loguru import logger
from shapely.geometry import LineString, Polygon

from ..errors import AssemblyFailure, raise_if_cancelled
from .sequences import (
    CoordinateArray,
    CoordinateSequence,
    PartialCoordinateSequence,
    ReversedCoordinateSequence,
    VirtualCoordinateSequence,
    sequences_equal,
)


def connect_sequences(
    segments: Iterable[VirtualCoordinateSequence],
    cancel_event: Optional[threading.Event] = None
) -> List[CoordinateSequence]:
    """
    Connect segments into closed rings

    Algorithm:
    1. Take the head segment; if it is closed, emit it
    2. Otherwise look for a segment starting where the head ends and
       append it without its first coordinate
    3. Failing that, look for a segment ending where the head ends and
       append its reversal without its first coordinate
    4. Put the extended head back at the front and repeat

    Coordinates are compared exactly. A matched segment is removed from
    the working set by coordinate equality, so an identical duplicate of
    it is removed too.

    Args:
        segments: Segments to connect; the head of each step is extended in place
        cancel_event: When set, stop with AssemblyTimeoutError

    Returns:
        Rings in the order they were closed

    Raises:
        AssemblyFailure: If a segment end matches no other segment
    """
    working = deque(segments)
    rings: List[CoordinateSequence] = []

    while working:
        raise_if_cancelled(cancel_event)
        head = working.popleft()

        if head.is_closed():
            rings.append(head)
            continue

        last = head.size() - 1
        x = head.get_x(last)
        y = head.get_y(last)

        match = next(
            (s for s in working if s.get_x(0) == x and s.get_y(0) == y),
            None
        )
        if match is not None:
            head.append(PartialCoordinateSequence(match, 1))
        else:
            match = next(
                (s for s in working if s.get_x(s.size() - 1) == x and s.get_y(s.size() - 1) == y),
                None
            )
            if match is None:
                raise AssemblyFailure("Unable to connect segments.")
            head.append(PartialCoordinateSequence(ReversedCoordinateSequence(match), 1))

        working = deque(s for s in working if not sequences_equal(s, match))
        working.appendleft(head)

    return rings


def connect_segments(
    lines: Iterable[LineString],
    cancel_event: Optional[threading.Event] = None
) -> List[Polygon]:
    """
    Connect line segments into ring polygons

    Longer segments are tried first; that tends to close rings in fewer steps.

    Raises:
        AssemblyFailure: If the segments cannot be connected
        ValueError: If a closed ring has fewer than 4 coordinates
    """
    lines = sorted(lines, key=lambda line: line.length, reverse=True)
    if not lines:
        return []

    segments = [VirtualCoordinateSequence([CoordinateArray.from_geometry(line)]) for line in lines]
    rings = connect_sequences(segments, cancel_event=cancel_event)

    logger.debug(f"Connected {len(lines)} segments into {len(rings)} rings")
    return [Polygon(ring.to_array()) for ring in rings]
