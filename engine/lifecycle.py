"""
Geocoin — engine/lifecycle.py
Cache Lifecycle: JIT materialization and culling of caches around the player.
=============================================================================
Version:     0.1
Stack:       Python 3.14.3 | python-tcod-ecs
Status:      Production-ready.

Architecture notes
------------------
- Per-cell state machine with two observable states:
    dormant       no entity in the registry (a memento may exist)
    materialized  entity ("cache", key) carries a Cache component and the
                  Materialized tag
- dormant -> materialized when the cell is within NEIGHBORHOOD of the player
  cell (Manhattan) and the spawn check passes. Contents come from the memento
  if one exists, otherwise from the generator, and are written back to the
  memento store immediately.
- materialized -> dormant when the Manhattan distance exceeds NEIGHBORHOOD.
  No memento save here: every collect/deposit already persisted the cache.
- materialize() on a live cell is a no-op.
- Freshly generated contents skip any coin id the `held` predicate reports as
  already in the player's ledger.

Design Variables
----------------
  neighborhood_size   8   GameConfig; Manhattan radius in cells
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

import tcod.ecs

from engine.ecs.components import Cache, TAG_MATERIALIZED, cache_uid
from engine.events import EventBus, GameEvent, EVT_CACHE_MATERIALIZED, EVT_CACHE_DEMATERIALIZED
from engine.mapview import CachePopup, MapView, NullMapView
from engine.mementos import CacheMementoStore, CoinState
from world.generator import CacheGenerator, Coin
from world.grid import GridAddressing, GridCell, manhattan

logger = logging.getLogger(__name__)


@dataclass
class LifecycleDiff:
    spawned: List[str] = field(default_factory=list)
    retired: List[str] = field(default_factory=list)


class CacheLifecycleManager:
    """
    Keeps the set of materialized caches in step with the player's cell.
    """
    def __init__(
        self,
        registry: tcod.ecs.Registry,
        grid: GridAddressing,
        generator: CacheGenerator,
        mementos: CacheMementoStore,
        radius: int,
        map_view: Optional[MapView] = None,
        bus: Optional[EventBus] = None,
        held: Optional[Callable[[str], bool]] = None,
    ):
        self.registry = registry
        self.grid = grid
        self.generator = generator
        self.mementos = mementos
        self.radius = radius
        self.map_view = map_view if map_view is not None else NullMapView()
        self.bus = bus
        self.held = held

    # --------------------------------------------------------
    # Queries
    # --------------------------------------------------------

    def caches(self) -> List[Cache]:
        return [
            e.components[Cache]
            for e in self.registry.Q.all_of(components=[Cache], tags=[TAG_MATERIALIZED])
        ]

    def get(self, cache_key: str) -> Optional[Cache]:
        entity = self.registry[cache_uid(cache_key)]
        if Cache not in entity.components:
            return None
        return entity.components[Cache]

    def is_materialized(self, cell: GridCell) -> bool:
        return self.get(cell.key) is not None

    # --------------------------------------------------------
    # Transitions
    # --------------------------------------------------------

    def update(self, center: GridCell) -> LifecycleDiff:
        """Full diff against the neighbourhood of `center`: retire, then spawn."""
        diff = LifecycleDiff()

        for cache in self.caches():
            if manhattan(cache.cell, center) > self.radius:
                self.dematerialize(cache.cell)
                diff.retired.append(cache.key)

        for cell in self.grid.neighborhood(center, self.radius):
            if self.is_materialized(cell) or not self.generator.has_cache(cell):
                continue
            self.materialize(cell)
            diff.spawned.append(cell.key)

        if diff.spawned or diff.retired:
            logger.debug("Lifecycle diff at %s: +%d -%d", center.key, len(diff.spawned), len(diff.retired))
        return diff

    def materialize(self, cell: GridCell) -> Cache:
        entity = self.registry[cache_uid(cell.key)]
        if Cache in entity.components:
            return entity.components[Cache]

        saved = self.mementos.restore(cell.key)
        if saved is not None:
            coins = self._coins_from_states(saved)
        else:
            coins = self.generator.generate(cell)
            if self.held is not None:
                # a coin already in the ledger never reappears in a fresh cache
                coins = [c for c in coins if not self.held(c.coin_id)]

        cache = Cache(cell=cell, bounds=self.grid.bounds_of(cell), coins=coins)
        self.persist(cache)

        entity.components[Cache] = cache
        entity.tags.add(TAG_MATERIALIZED)
        self.map_view.add_cache(cache.key, cache.bounds, lambda: self.describe(cache.key))

        self._emit(EVT_CACHE_MATERIALIZED, cache.key, {"coins": len(coins), "restored": saved is not None})
        return cache

    def dematerialize(self, cell: GridCell) -> bool:
        entity = self.registry[cache_uid(cell.key)]
        if Cache not in entity.components:
            return False
        self.map_view.remove_cache(cell.key)
        entity.clear()
        self._emit(EVT_CACHE_DEMATERIALIZED, cell.key, {})
        return True

    def clear(self) -> None:
        """Dematerializes every cache. Mementos are left alone."""
        for cache in self.caches():
            self.dematerialize(cache.cell)

    def persist(self, cache: Cache) -> None:
        """Writes the cache's current coins to its memento."""
        self.mementos.save(cache.key, cache.coins)

    def describe(self, cache_key: str) -> CachePopup:
        cache = self.get(cache_key)
        if cache is None:
            cell = self.grid.cell_for_key(cache_key)
            return CachePopup(cache_key=cache_key, bounds=self.grid.bounds_of(cell))
        return CachePopup(
            cache_key=cache_key,
            bounds=cache.bounds,
            coin_ids=cache.coin_ids(),
            coin_kinds=[c.kind for c in cache.coins],
        )

    # --------------------------------------------------------
    # Helpers
    # --------------------------------------------------------

    def _coins_from_states(self, states: Iterable[CoinState]) -> List[Coin]:
        coins = []
        for state in states:
            i, j, serial = Coin.parse_id(state.coin_id)
            coins.append(Coin(
                coin_id=state.coin_id,
                home=self.grid.cell(i, j),
                serial=serial,
                kind=state.kind,
                collected=state.collected,
            ))
        return coins

    def _emit(self, key: str, cache_key: str, data: dict) -> None:
        if self.bus is not None:
            self.bus.emit(GameEvent(event_key=key, source="CacheLifecycleManager", target=cache_key, data=data))
