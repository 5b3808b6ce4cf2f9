"""
Geocoin — engine/ecs/components.py
ECS Component Definitions for python-tcod-ecs.
==============================================
Version:     0.1
Stack:       Python 3.14.3 | python-tcod-ecs
Status:      Production-ready.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

from world.generator import Coin
from world.grid import Bounds, GridCell, LatLng

# Tags
TAG_MATERIALIZED = "Materialized"
TAG_PLAYER = "Player"

def cache_uid(cache_key: str) -> tuple:
    """Registry uid of the entity holding a materialized cache."""
    return ("cache", cache_key)

PLAYER_UID = "player"

@dataclass
class Cache:
    cell: GridCell
    bounds: Bounds
    coins: List[Coin] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.cell.key

    def find(self, coin_id: str) -> Optional[Coin]:
        for coin in self.coins:
            if coin.coin_id == coin_id:
                return coin
        return None

    def coin_ids(self) -> List[str]:
        return [c.coin_id for c in self.coins]

@dataclass
class Position:
    lat: float
    lng: float

    def as_latlng(self) -> LatLng:
        return LatLng(self.lat, self.lng)

@dataclass
class MovementTrail:
    points: List[LatLng] = field(default_factory=list)
