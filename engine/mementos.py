"""
Geocoin — engine/mementos.py
Cache Memento Store: Per-cell snapshots that outlive materialized caches.
=========================================================================
Version:     0.1
Stack:       Python 3.14.3 | stdlib dataclasses
Status:      Production-ready.

Architecture notes
------------------
- A memento is captured by value at save time. Mutating a live Coin after
  save() never changes what restore() returns.
- save() overwrites. There is no history per cell.
- reset_all() is the only way mementos disappear (full game reset).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple

from world.generator import Coin


@dataclass(frozen=True)
class CoinState:
    coin_id: str
    collected: bool
    kind: str = "Copper"

    @classmethod
    def of(cls, coin: Coin) -> "CoinState":
        return cls(coin_id=coin.coin_id, collected=coin.collected, kind=coin.kind)


@dataclass(frozen=True)
class CacheMemento:
    cache_key: str
    coins: Tuple[CoinState, ...]


class CacheMementoStore:
    """Associative store of CacheMemento keyed by cell key."""

    def __init__(self) -> None:
        self._mementos: Dict[str, CacheMemento] = {}

    def __contains__(self, cache_key: str) -> bool:
        return cache_key in self._mementos

    def __len__(self) -> int:
        return len(self._mementos)

    def keys(self) -> Iterator[str]:
        return iter(self._mementos)

    def save(self, cache_key: str, coins: Iterable[Coin]) -> CacheMemento:
        if coins is None:
            raise ValueError(f"Cannot save a memento without coins for {cache_key}")
        memento = CacheMemento(cache_key, tuple(CoinState.of(c) for c in coins))
        self._mementos[cache_key] = memento
        return memento

    def restore(self, cache_key: str) -> Optional[Tuple[CoinState, ...]]:
        """Saved coin states for the cell, or None if it was never saved."""
        memento = self._mementos.get(cache_key)
        if memento is None:
            return None
        return memento.coins

    def reset_all(self) -> None:
        self._mementos.clear()

    def export(self) -> Iterator[CacheMemento]:
        return iter(self._mementos.values())

    def load(self, mementos: Iterable[CacheMemento]) -> None:
        """Replaces the store contents wholesale (session restore)."""
        self._mementos = {m.cache_key: m for m in mementos}
