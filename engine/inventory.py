"""
Geocoin — engine/inventory.py
Inventory Ledger: The player's held coins and the collect/deposit transfers.
============================================================================
Version:     0.1
Stack:       Python 3.14.3 | bespoke EventBus
Status:      Production-ready.

Architecture notes
------------------
- Ownership is exclusive and total: a generated coin is either in exactly one
  cache's coin list or in the ledger, never both, never neither.
- Invalid transfers (unknown coin, already collected, not held) are no-ops
  that return False. Nothing is raised to the caller.
- Every successful transfer re-saves the cache's memento so its altered
  contents survive dematerialization.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional

from engine.ecs.components import Cache
from engine.events import EventBus, GameEvent, EVT_COIN_COLLECTED, EVT_COIN_DEPOSITED
from engine.mementos import CacheMementoStore
from world.generator import Coin
from world.grid import GridCell

logger = logging.getLogger(__name__)


class InventoryLedger:
    def __init__(self, mementos: CacheMementoStore, bus: Optional[EventBus] = None):
        self.mementos = mementos
        self.bus = bus
        self._coins: List[Coin] = []

    def __len__(self) -> int:
        return len(self._coins)

    def __iter__(self) -> Iterator[Coin]:
        return iter(list(self._coins))

    def __contains__(self, coin_id: str) -> bool:
        return self.find(coin_id) is not None

    def find(self, coin_id: str) -> Optional[Coin]:
        for coin in self._coins:
            if coin.coin_id == coin_id:
                return coin
        return None

    def home_of(self, coin_id: str) -> Optional[GridCell]:
        """Source cache cell of a held coin, for navigating back to it."""
        coin = self.find(coin_id)
        return coin.home if coin is not None else None

    def coin_ids(self) -> List[str]:
        return [c.coin_id for c in self._coins]

    # --------------------------------------------------------
    # Transfers
    # --------------------------------------------------------

    def collect(self, cache: Cache, coin_id: str) -> bool:
        coin = cache.find(coin_id)
        if coin is None:
            logger.debug("Collect rejected: %s not in cache %s", coin_id, cache.key)
            return False
        if coin.collected:
            logger.debug("Collect rejected: %s already collected", coin_id)
            return False

        cache.coins.remove(coin)
        coin.collected = True
        self._coins.append(coin)
        self.mementos.save(cache.key, cache.coins)

        self._emit(EVT_COIN_COLLECTED, cache.key, coin)
        return True

    def deposit(self, cache: Cache, coin_id: str) -> bool:
        coin = self.find(coin_id)
        if coin is None:
            logger.debug("Deposit rejected: %s not held", coin_id)
            return False

        self._coins.remove(coin)
        coin.collected = False
        if cache.find(coin_id) is None:
            cache.coins.append(coin)
        self.mementos.save(cache.key, cache.coins)

        self._emit(EVT_COIN_DEPOSITED, cache.key, coin)
        return True

    def collect_all(self, cache: Cache) -> int:
        """Takes every uncollected coin in the cache. Returns how many moved."""
        return sum(1 for coin_id in cache.coin_ids() if self.collect(cache, coin_id))

    def deposit_all(self, cache: Cache) -> int:
        return sum(1 for coin_id in self.coin_ids() if self.deposit(cache, coin_id))

    # --------------------------------------------------------
    # Session lifecycle
    # --------------------------------------------------------

    def clear(self) -> None:
        self._coins = []

    def load(self, coins: Iterable[Coin]) -> None:
        """Replaces the held coins wholesale (session restore)."""
        self._coins = []
        for coin in coins:
            coin.collected = True
            self._coins.append(coin)

    def _emit(self, key: str, cache_key: str, coin: Coin) -> None:
        if self.bus is not None:
            self.bus.emit(GameEvent(
                event_key=key,
                source="InventoryLedger",
                target=cache_key,
                data={"coin_id": coin.coin_id, "held": len(self._coins)},
            ))
