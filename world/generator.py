"""
Geocoin — world/generator.py
Procedural Generation: Deterministic cache placement and coin contents per cell.
================================================================================
Version:     0.1
Stack:       Python 3.14.3 | stdlib random (via world.luck)
Status:      Production-ready.

Architecture notes
------------------
- Every decision is a pure function of the cell and a purpose suffix, so a
  never-visited cell looks the same in every run.
- Luck keys:
    presence   "{seed}{i},{j}"
    count      "{seed}{i},{j},coinCount"
    kind       "{seed}{i},{j},{serial},kind"
- Coin ids are "{i}:{j}#{serial}" and never change once generated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from engine.data_loader import GameConfig
from world.grid import GridCell
from world.luck import luck, luck_int


@dataclass
class Coin:
    coin_id: str
    home: GridCell
    serial: int
    kind: str = "Copper"
    collected: bool = False

    @staticmethod
    def make_id(cell: GridCell, serial: int) -> str:
        return f"{cell.i}:{cell.j}#{serial}"

    @staticmethod
    def parse_id(coin_id: str) -> Tuple[int, int, int]:
        """Splits 'i:j#serial' into (i, j, serial). Raises ValueError if malformed."""
        cell_part, sep, serial_part = coin_id.partition("#")
        if not sep:
            raise ValueError(f"Malformed coin id: {coin_id!r}")
        i, j = GridCell.parse_key(cell_part)
        return i, j, int(serial_part)


class CacheGenerator:
    """
    Decides which cells hold a cache and what a fresh cache contains.
    """
    def __init__(self, config: GameConfig):
        self.world_seed = config.world_seed
        self.spawn_probability = config.cache_spawn_probability
        self.coins_min = config.coins_min
        self.coins_max = config.coins_max
        self.coin_kinds = list(config.coin_kinds)

    def _key(self, *parts: object) -> str:
        return self.world_seed + ",".join(str(p) for p in parts)

    def has_cache(self, cell: GridCell) -> bool:
        return luck(self._key(cell.i, cell.j)) < self.spawn_probability

    def coin_count(self, cell: GridCell) -> int:
        return luck_int(self._key(cell.i, cell.j, "coinCount"), self.coins_min, self.coins_max)

    def coin_kind(self, cell: GridCell, serial: int) -> str:
        index = luck_int(self._key(cell.i, cell.j, serial, "kind"), 0, len(self.coin_kinds) - 1)
        return self.coin_kinds[index]

    def generate(self, cell: GridCell) -> List[Coin]:
        """Baseline coin set for a cell that has never been materialized."""
        return [
            Coin(
                coin_id=Coin.make_id(cell, serial),
                home=cell,
                serial=serial,
                kind=self.coin_kind(cell, serial),
            )
            for serial in range(self.coin_count(cell))
        ]
