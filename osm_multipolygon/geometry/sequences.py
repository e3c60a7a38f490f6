"""
Coordinate sequence adapters

Views over backing coordinate arrays that let way geometries be spliced
together without copying:

- CoordinateArray: the backing (n, dim) numpy array
- ReversedCoordinateSequence: index i maps to size - 1 - i
- PartialCoordinateSequence: all but the first `offset` coordinates
- VirtualCoordinateSequence: many sequences behaving as one, resolved
  through an index range map instead of nested wrappers

Adapters read and write through to their backing data. Materialized
arrays are cached per adapter; a cache is reset when that adapter is
appended to or written through, but not when the backing data is changed
through another adapter.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Iterator, List, Optional, Tuple

import numpy as np
import shapely
from shapely.geometry.base import BaseGeometry
from sortedcontainers import SortedDict


Coordinate = Tuple[float, ...]


class CoordinateSequence(ABC):
    """Ordered, indexable sequence of 2D or 3D coordinates"""

    def __init__(self):
        self._coordinates: Optional[np.ndarray] = None

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Number of ordinates per coordinate"""

    @abstractmethod
    def size(self) -> int:
        """Number of coordinates"""

    @abstractmethod
    def get_ordinate(self, index: int, ordinate: int) -> float:
        """Read one ordinate of one coordinate"""

    @abstractmethod
    def set_ordinate(self, index: int, ordinate: int, value: float) -> None:
        """Write one ordinate of one coordinate through to the backing data"""

    @abstractmethod
    def clone(self) -> "CoordinateSequence":
        """Copy of this sequence (adapters copy the view, not the data)"""

    def __len__(self) -> int:
        return self.size()

    def __getitem__(self, index: int) -> Coordinate:
        size = self.size()
        if index < 0:
            index += size
        if not 0 <= index < size:
            raise IndexError(f"Coordinate index {index} out of range for sequence of size {size}")
        return self.get_coordinate(index)

    def __iter__(self) -> Iterator[Coordinate]:
        for i in range(self.size()):
            yield self.get_coordinate(i)

    def get_x(self, index: int) -> float:
        return self.get_ordinate(index, 0)

    def get_y(self, index: int) -> float:
        return self.get_ordinate(index, 1)

    def get_coordinate(self, index: int) -> Coordinate:
        return tuple(self.get_ordinate(index, d) for d in range(self.dimension))

    def is_closed(self) -> bool:
        """True if the first and last coordinates share x and y exactly"""
        if self.size() == 0:
            return False
        last = self.size() - 1
        return self.get_x(0) == self.get_x(last) and self.get_y(0) == self.get_y(last)

    def equals(self, other: "CoordinateSequence") -> bool:
        return sequences_equal(self, other)

    def to_array(self) -> np.ndarray:
        """
        Materialize as a read-only (size, dimension) float array

        The array is cached; writes must go through set_ordinate.
        """
        if self._coordinates is None:
            coordinates = self._materialize()
            coordinates.flags.writeable = False
            self._coordinates = coordinates
        return self._coordinates

    def _materialize(self) -> np.ndarray:
        coordinates = np.empty((self.size(), self.dimension), dtype=float)
        for i in range(self.size()):
            for d in range(self.dimension):
                coordinates[i, d] = self.get_ordinate(i, d)
        return coordinates

    def envelope(self) -> Tuple[float, float, float, float]:
        """Return (minx, miny, maxx, maxy)"""
        if self.size() == 0:
            raise ValueError("Empty coordinate sequence has no envelope")
        xy = self.to_array()[:, :2]
        minx, miny = xy.min(axis=0)
        maxx, maxy = xy.max(axis=0)
        return (float(minx), float(miny), float(maxx), float(maxy))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={self.size()}, dimension={self.dimension})"


class CoordinateArray(CoordinateSequence):
    """Coordinates held in a numpy array of shape (n, 2) or (n, 3)"""

    def __init__(self, coordinates: Iterable[Iterable[float]]):
        super().__init__()
        array = np.array(coordinates, dtype=float)
        if array.size == 0:
            array = array.reshape(0, 2)
        if array.ndim != 2 or array.shape[1] not in (2, 3):
            raise ValueError(f"Coordinates must have shape (n, 2) or (n, 3), got {array.shape}")
        self._array = array

    @classmethod
    def from_geometry(cls, geometry: BaseGeometry) -> "CoordinateArray":
        """Coordinates of a LineString or LinearRing, keeping z when present"""
        return cls(shapely.get_coordinates(geometry, include_z=geometry.has_z))

    @property
    def dimension(self) -> int:
        return self._array.shape[1]

    def size(self) -> int:
        return self._array.shape[0]

    def get_ordinate(self, index: int, ordinate: int) -> float:
        return float(self._array[index, ordinate])

    def set_ordinate(self, index: int, ordinate: int, value: float) -> None:
        self._array[index, ordinate] = value

    def to_array(self) -> np.ndarray:
        view = self._array.view()
        view.flags.writeable = False
        return view

    def clone(self) -> "CoordinateArray":
        return CoordinateArray(self._array)


class ReversedCoordinateSequence(CoordinateSequence):
    """Backing sequence read back to front"""

    def __init__(self, sequence: CoordinateSequence):
        super().__init__()
        self._sequence = sequence

    def _index(self, index: int) -> int:
        return self._sequence.size() - 1 - index

    @property
    def dimension(self) -> int:
        return self._sequence.dimension

    def size(self) -> int:
        return self._sequence.size()

    def get_ordinate(self, index: int, ordinate: int) -> float:
        return self._sequence.get_ordinate(self._index(index), ordinate)

    def set_ordinate(self, index: int, ordinate: int, value: float) -> None:
        self._sequence.set_ordinate(self._index(index), ordinate, value)
        self._coordinates = None

    def _materialize(self) -> np.ndarray:
        return self._sequence.to_array()[::-1].copy()

    def envelope(self) -> Tuple[float, float, float, float]:
        return self._sequence.envelope()

    def clone(self) -> "ReversedCoordinateSequence":
        return ReversedCoordinateSequence(self._sequence)


class PartialCoordinateSequence(CoordinateSequence):
    """Backing sequence without its first `offset` coordinates"""

    def __init__(self, sequence: CoordinateSequence, offset: int):
        super().__init__()
        if not 0 <= offset <= sequence.size():
            raise ValueError(f"Offset {offset} out of range for sequence of size {sequence.size()}")
        self._sequence = sequence
        self._offset = offset

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def dimension(self) -> int:
        return self._sequence.dimension

    def size(self) -> int:
        return self._sequence.size() - self._offset

    def get_ordinate(self, index: int, ordinate: int) -> float:
        return self._sequence.get_ordinate(self._offset + index, ordinate)

    def set_ordinate(self, index: int, ordinate: int, value: float) -> None:
        self._sequence.set_ordinate(self._offset + index, ordinate, value)
        self._coordinates = None

    def _materialize(self) -> np.ndarray:
        return self._sequence.to_array()[self._offset:].copy()

    def clone(self) -> "PartialCoordinateSequence":
        return PartialCoordinateSequence(self._sequence, self._offset)


class VirtualCoordinateSequence(CoordinateSequence):
    """
    Concatenation of sequences resolved through an index range map

    Each part owns the closed index range [start, end]. The map is keyed by
    range start, so finding the part for an index is a bisection rather than
    a walk through nested wrappers. Appending adds one range past the
    current end; empty parts own no range.
    """

    def __init__(self, sequences: Iterable[CoordinateSequence]):
        super().__init__()
        sequences = list(sequences)
        if not sequences:
            raise ValueError("A virtual coordinate sequence needs at least one part")

        # start -> (end, part)
        self._ranges = SortedDict()
        self._size = 0
        self._dimension = min(s.dimension for s in sequences)
        for sequence in sequences:
            self._put(sequence)

    def _put(self, sequence: CoordinateSequence) -> None:
        count = sequence.size()
        if count:
            self._ranges[self._size] = (self._size + count - 1, sequence)
            self._size += count

    def _locate(self, index: int) -> Tuple[CoordinateSequence, int]:
        if not 0 <= index < self._size:
            raise IndexError(f"Coordinate index {index} out of range for sequence of size {self._size}")
        start, (_, sequence) = self._ranges.peekitem(self._ranges.bisect_right(index) - 1)
        return sequence, index - start

    def append(self, sequence: CoordinateSequence) -> "VirtualCoordinateSequence":
        """Extend with another sequence; returns self"""
        self._put(sequence)
        self._dimension = min(self._dimension, sequence.dimension)
        self._coordinates = None
        return self

    @property
    def parts(self) -> List[CoordinateSequence]:
        return [sequence for _, sequence in self._ranges.values()]

    @property
    def dimension(self) -> int:
        return self._dimension

    def size(self) -> int:
        return self._size

    def get_ordinate(self, index: int, ordinate: int) -> float:
        sequence, local = self._locate(index)
        return sequence.get_ordinate(local, ordinate)

    def set_ordinate(self, index: int, ordinate: int, value: float) -> None:
        sequence, local = self._locate(index)
        sequence.set_ordinate(local, ordinate, value)
        self._coordinates = None

    def _materialize(self) -> np.ndarray:
        if not self._ranges:
            return np.empty((0, self._dimension), dtype=float)
        return np.vstack([part.to_array()[:, :self._dimension] for part in self.parts])

    def clone(self) -> "VirtualCoordinateSequence":
        return VirtualCoordinateSequence(self.parts)


def sequences_equal(first: CoordinateSequence, second: CoordinateSequence) -> bool:
    """
    Test whether two coordinate sequences are equal

    Sequences must be the same length. Ordinates are compared over the
    smaller of the two dimensions, and two NaN ordinates at the same
    position count as equal.
    """
    if first.size() != second.size():
        return False
    dimension = min(first.dimension, second.dimension)
    return bool(np.array_equal(
        first.to_array()[:, :dimension],
        second.to_array()[:, :dimension],
        equal_nan=True
    ))
