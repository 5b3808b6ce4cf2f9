"""
Geocoin — engine/mapview.py
Map boundary: what the core asks of whatever draws the world.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Protocol, Sequence

from world.grid import Bounds, LatLng


@dataclass
class CachePopup:
    """Detail view content for one cache, built on demand."""
    cache_key: str
    bounds: Bounds
    coin_ids: List[str] = field(default_factory=list)
    coin_kinds: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.coin_ids


ContentFn = Callable[[], CachePopup]


class MapView(Protocol):
    def add_cache(self, cache_key: str, bounds: Bounds, content: ContentFn) -> None: ...
    def remove_cache(self, cache_key: str) -> None: ...
    def move_player(self, position: LatLng) -> None: ...
    def draw_trail(self, positions: Sequence[LatLng]) -> None: ...
    def pan_to(self, position: LatLng) -> None: ...


class NullMapView:
    """Headless map. Used when nothing is drawing."""

    def add_cache(self, cache_key: str, bounds: Bounds, content: ContentFn) -> None:
        pass

    def remove_cache(self, cache_key: str) -> None:
        pass

    def move_player(self, position: LatLng) -> None:
        pass

    def draw_trail(self, positions: Sequence[LatLng]) -> None:
        pass

    def pan_to(self, position: LatLng) -> None:
        pass
