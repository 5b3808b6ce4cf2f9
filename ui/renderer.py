"""
Geocoin — ui/renderer.py
TCOD Renderer: Root console split into a map area and a status strip.
=====================================================================
Version:     0.1
Stack:       Python 3.14.3 | tcod
Status:      Production-ready.

The map occupies rows [0, map_height). The status strip below it holds the
position line, the counters line, a short message log, and the key help on
the last row.
"""

from __future__ import annotations
from typing import Optional, Sequence
import tcod

from world.grid import GridCell, LatLng

COLOR_STATUS = (255, 255, 255)
COLOR_COUNTERS = (200, 200, 200)
COLOR_MESSAGE = (255, 215, 0)
COLOR_HELP = (150, 150, 150)


class Renderer:
    HUD_HEIGHT = 6

    def __init__(self, width: int, height: int, title: str = "Geocoin Carrier"):
        self.width = width
        self.height = height
        self.title = title
        self.root_console = tcod.console.Console(width, height)
        self.context: Optional[tcod.context.Context] = None

    @property
    def map_height(self) -> int:
        return max(1, self.height - self.HUD_HEIGHT)

    @property
    def message_rows(self) -> int:
        """Log lines that fit between the counters line and the help row."""
        return max(0, self.height - 1 - (self.map_height + 2))

    def draw_status(
        self,
        position: LatLng,
        cell: GridCell,
        held: int,
        nearby: int,
        tracking: bool,
        messages: Sequence[str] = (),
    ) -> None:
        y = self.map_height
        self.root_console.print(1, y, f"{position.lat:.6f}, {position.lng:.6f}  cell {cell.key}", fg=COLOR_STATUS)
        self.root_console.print(
            1, y + 1,
            f"Coins held: {held}   Caches nearby: {nearby}   Tracking: {'on' if tracking else 'off'}",
            fg=COLOR_COUNTERS,
        )
        shown = list(messages)[-self.message_rows:] if self.message_rows else []
        for i, line in enumerate(shown):
            self.root_console.print(1, y + 2 + i, line, fg=COLOR_MESSAGE)

    def draw_help(self, text: str) -> None:
        self.root_console.print(1, self.height - 1, text, fg=COLOR_HELP)

    def clear(self) -> None:
        self.root_console.clear()

    def present(self, context: tcod.context.Context) -> None:
        context.present(self.root_console)
