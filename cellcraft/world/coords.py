"""Cell coordinates and the lat/lng lattice.

The world is an abstract lattice keyed by truncated coordinate quanta.  A
``CellGrid`` maps geographic positions onto integer ``(i, j)`` cells by
floor division; every position belongs to exactly one cell.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple


class CellCoord(NamedTuple):
    """Integer lattice coordinate of a single cell.

    Attributes:
        i: Row index (latitude axis).
        j: Column index (longitude axis).
    """

    i: int
    j: int


def cell_key(coord: CellCoord) -> str:
    """Return the canonical ``"i,j"`` string key for a cell."""
    return f"{coord.i},{coord.j}"


def parse_cell_key(key: str) -> CellCoord:
    """Parse an ``"i,j"`` key back into a ``CellCoord``.

    Raises:
        ValueError: If the key is not two comma-separated integers.
    """
    parts = key.split(",")
    if len(parts) != 2:
        msg = f"malformed cell key: {key!r}"
        raise ValueError(msg)
    return CellCoord(int(parts[0]), int(parts[1]))


def chebyshev(a: CellCoord, b: CellCoord) -> int:
    """Chessboard distance between two cells."""
    return max(abs(a.i - b.i), abs(a.j - b.j))


@dataclass(frozen=True)
class CellGrid:
    """Partition of the lat/lng plane into square cells.

    Attributes:
        cell_size: Edge length of a cell in degrees.
        origin_lat: Latitude of the boundary between rows ``-1`` and ``0``.
        origin_lng: Longitude of the boundary between columns ``-1`` and ``0``.
    """

    cell_size: float = 0.0001
    origin_lat: float = 0.0
    origin_lng: float = 0.0

    def __post_init__(self) -> None:
        if not self.cell_size > 0:
            msg = f"cell_size must be positive, got {self.cell_size}"
            raise ValueError(msg)

    def lat_to_i(self, lat: float) -> int:
        return math.floor((lat - self.origin_lat) / self.cell_size)

    def lng_to_j(self, lng: float) -> int:
        return math.floor((lng - self.origin_lng) / self.cell_size)

    def cell_at(self, lat: float, lng: float) -> CellCoord:
        """Return the cell containing the position ``(lat, lng)``."""
        return CellCoord(self.lat_to_i(lat), self.lng_to_j(lng))

    def cell_bounds(self, coord: CellCoord) -> tuple[float, float, float, float]:
        """Return ``(south, west, north, east)`` edges of a cell in degrees."""
        south = self.origin_lat + coord.i * self.cell_size
        west = self.origin_lng + coord.j * self.cell_size
        return (south, west, south + self.cell_size, west + self.cell_size)

    def cell_center(self, coord: CellCoord) -> tuple[float, float]:
        """Return the ``(lat, lng)`` centre of a cell."""
        south, west, north, east = self.cell_bounds(coord)
        return ((south + north) / 2.0, (west + east) / 2.0)
