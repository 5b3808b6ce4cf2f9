"""
Geocoin — ui/map_view.py
Console Map View: tcod implementation of the core's map boundary.
=================================================================
Version:     0.1
Stack:       Python 3.14.3 | tcod
Status:      Production-ready.

One console cell per grid cell, north up. The camera follows the player
until pan_to() points it somewhere else; the next player move re-centres it.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import tcod

from engine.mapview import CachePopup, ContentFn
from world.grid import Bounds, LatLng, cell_index

COLOR_CACHE = (255, 215, 0)
COLOR_PLAYER = (0, 255, 255)
COLOR_TRAIL = (60, 90, 200)


class ConsoleMapView:
    def __init__(self, tile_size: float, width: int, height: int):
        self.tile_size = tile_size
        self.width = width
        self.height = height
        self.rects: Dict[str, Tuple[Bounds, ContentFn]] = {}
        self.player: Optional[LatLng] = None
        self.trail: List[LatLng] = []
        self.camera: Optional[LatLng] = None

    # --------------------------------------------------------
    # MapView protocol
    # --------------------------------------------------------

    def add_cache(self, cache_key: str, bounds: Bounds, content: ContentFn) -> None:
        self.rects[cache_key] = (bounds, content)

    def remove_cache(self, cache_key: str) -> None:
        self.rects.pop(cache_key, None)

    def move_player(self, position: LatLng) -> None:
        self.player = position
        self.camera = position

    def draw_trail(self, positions: Sequence[LatLng]) -> None:
        self.trail = list(positions)

    def pan_to(self, position: LatLng) -> None:
        self.camera = position

    # --------------------------------------------------------
    # Console side
    # --------------------------------------------------------

    def open(self, cache_key: str) -> Optional[CachePopup]:
        """Evaluates the cache's content callback. None if it is not on the map."""
        entry = self.rects.get(cache_key)
        if entry is None:
            return None
        _, content = entry
        return content()

    def _index(self, value: float) -> int:
        return cell_index(value, self.tile_size)

    def screen_of(self, position: LatLng) -> Optional[Tuple[int, int]]:
        """Console (x, y) of a position, or None when off screen or no camera."""
        if self.camera is None:
            return None
        di = self._index(position.lat) - self._index(self.camera.lat)
        dj = self._index(position.lng) - self._index(self.camera.lng)
        x = self.width // 2 + dj
        y = self.height // 2 - di
        if 0 <= x < self.width and 0 <= y < self.height:
            return x, y
        return None

    def draw(self, console: tcod.console.Console, x0: int = 0, y0: int = 0) -> None:
        for point in self.trail:
            spot = self.screen_of(point)
            if spot:
                console.print(x0 + spot[0], y0 + spot[1], ".", fg=COLOR_TRAIL)

        for bounds, _ in self.rects.values():
            spot = self.screen_of(bounds.center)
            if spot:
                console.print(x0 + spot[0], y0 + spot[1], "$", fg=COLOR_CACHE)

        if self.player is not None:
            spot = self.screen_of(self.player)
            if spot:
                console.print(x0 + spot[0], y0 + spot[1], "@", fg=COLOR_PLAYER)
