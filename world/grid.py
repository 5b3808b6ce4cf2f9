"""
Geocoin — world/grid.py
Grid Addressing: Continuous lat/lng <-> discrete cell mapping with interning.
=============================================================================
Version:     0.1
Stack:       Python 3.14.3 | stdlib math
Status:      Production-ready.

Architecture notes
------------------
- GridCell is a value type. Equality compares (i, j), never object identity.
- GridAddressing owns the interning table so that every reference to the same
  cell shares one instance for the lifetime of a session. The table is cleared
  only by a full game reset.
- Bounds are half-open: south_west <= p < north_east on both axes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple


@dataclass(frozen=True)
class LatLng:
    lat: float
    lng: float


@dataclass(frozen=True)
class GridCell:
    i: int
    j: int

    @property
    def key(self) -> str:
        """Canonical cache key, e.g. '369894:-1220628'."""
        return f"{self.i}:{self.j}"

    @staticmethod
    def parse_key(key: str) -> Tuple[int, int]:
        """Inverse of GridCell.key. Raises ValueError on malformed keys."""
        i_str, sep, j_str = key.partition(":")
        if not sep:
            raise ValueError(f"Malformed cell key: {key!r}")
        return int(i_str), int(j_str)


@dataclass(frozen=True)
class Bounds:
    south_west: LatLng
    north_east: LatLng

    def contains(self, point: LatLng) -> bool:
        return (
            self.south_west.lat <= point.lat < self.north_east.lat
            and self.south_west.lng <= point.lng < self.north_east.lng
        )

    @property
    def center(self) -> LatLng:
        return LatLng(
            (self.south_west.lat + self.north_east.lat) / 2.0,
            (self.south_west.lng + self.north_east.lng) / 2.0,
        )


def manhattan(a: GridCell, b: GridCell) -> int:
    return abs(a.i - b.i) + abs(a.j - b.j)


def cell_index(value: float, tile_size: float) -> int:
    """Tile index along one axis, half-open: index*tile <= value < (index+1)*tile."""
    index = math.floor(value / tile_size)
    # Division rounding can land one tile off
    while index * tile_size > value:
        index -= 1
    while (index + 1) * tile_size <= value:
        index += 1
    return index


class GridAddressing:
    """
    Maps coordinates to interned grid cells and back.
    """
    def __init__(self, tile_size: float):
        if tile_size <= 0:
            raise ValueError(f"tile_size must be positive, got {tile_size}")
        self.tile_size = tile_size
        self._cells: Dict[Tuple[int, int], GridCell] = {}

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[GridCell]:
        return iter(self._cells.values())

    def cell(self, i: int, j: int) -> GridCell:
        """Returns the canonical cell for (i, j), creating it on first use."""
        index = (i, j)
        cell = self._cells.get(index)
        if cell is None:
            cell = GridCell(i, j)
            self._cells[index] = cell
        return cell

    def cell_for_key(self, key: str) -> GridCell:
        return self.cell(*GridCell.parse_key(key))

    def cell_of(self, lat: float, lng: float) -> GridCell:
        """Returns the interned cell covering (lat, lng)."""
        return self.cell(self._index(lat), self._index(lng))

    def bounds_of(self, cell: GridCell) -> Bounds:
        return Bounds(
            south_west=LatLng(cell.i * self.tile_size, cell.j * self.tile_size),
            north_east=LatLng((cell.i + 1) * self.tile_size, (cell.j + 1) * self.tile_size),
        )

    def neighborhood(self, center: GridCell, radius: int) -> List[GridCell]:
        """All cells within Manhattan distance `radius` of center, row by row."""
        cells = []
        for di in range(-radius, radius + 1):
            span = radius - abs(di)
            for dj in range(-span, span + 1):
                cells.append(self.cell(center.i + di, center.j + dj))
        return cells

    def reset(self) -> None:
        """Drops every interned cell. Full reset only."""
        self._cells.clear()

    def _index(self, value: float) -> int:
        return cell_index(value, self.tile_size)
