"""
Ring assembly and topology reconciliation

- Sequences: zero-copy coordinate sequence adapters
- Connector: open segments -> closed rings
- Dissolver: touching rings -> merged exteriors and holes
- Classifier: rings -> exteriors / holes by containment parity
"""

from .sequences import (
    CoordinateSequence,
    CoordinateArray,
    ReversedCoordinateSequence,
    PartialCoordinateSequence,
    VirtualCoordinateSequence,
    sequences_equal,
)
from .connector import connect_segments, connect_sequences
from .dissolver import dissolve_rings
from .classifier import classify_rings, classify_unknown_rings, assign_holes

__all__ = [
    "CoordinateSequence",
    "CoordinateArray",
    "ReversedCoordinateSequence",
    "PartialCoordinateSequence",
    "VirtualCoordinateSequence",
    "sequences_equal",
    "connect_segments",
    "connect_sequences",
    "dissolve_rings",
    "classify_rings",
    "classify_unknown_rings",
    "assign_holes",
]
