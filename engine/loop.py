"""
Geocoin — engine/loop.py
Game Session: Root object wiring grid, caches, ledger, persistence and tracking.
================================================================================
Version:     0.1
Stack:       Python 3.14.3 | python-tcod-ecs | Pydantic v2
Status:      Integration entry point.

Architecture notes
------------------
- GameSession owns every piece of process-scoped state (cell interning table,
  memento store, registry, ledger). Nothing is a module-level singleton, so a
  session can be built and thrown away in isolation.
- Commands (move, collect, deposit, reset, toggle_tracking) are synchronous.
  Each one that mutates state ends with a durable save.
- tick() is the periodic safety-net autosave. The caller drives it.
- Reset is irreversible and requires the caller-supplied confirmation to
  return True.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, List, Optional

import tcod.ecs

from engine.data_loader import GameConfig, get_config
from engine.ecs.components import Cache, MovementTrail, PLAYER_UID, Position, TAG_PLAYER
from engine.events import (
    EventBus,
    GameEvent,
    EVT_GAME_RESET,
    EVT_PLAYER_MOVED,
    EVT_SESSION_LOADED,
    EVT_SESSION_SAVED,
    EVT_TRACKING_TOGGLED,
)
from engine.inventory import InventoryLedger
from engine.lifecycle import CacheLifecycleManager, LifecycleDiff
from engine.mapview import CachePopup, MapView, NullMapView
from engine.mementos import CacheMemento, CacheMementoStore, CoinState
from engine.persistence import (
    BoundsRecord,
    CellRecord,
    CoinRecord,
    InventoryRecord,
    KeyValueStore,
    MementoRecord,
    MemoryStore,
    PositionRecord,
    SessionPersistence,
    SessionRecord,
    VisibleCacheRecord,
)
from engine.tracking import PositionFeed, PositionTracker
from world.generator import CacheGenerator, Coin
from world.grid import GridAddressing, GridCell, LatLng, manhattan

logger = logging.getLogger(__name__)


class Direction(Enum):
    NORTH = (1, 0)
    SOUTH = (-1, 0)
    EAST = (0, 1)
    WEST = (0, -1)


class GameSession:
    """
    Core executor for one player's game.
    """
    def __init__(
        self,
        config: Optional[GameConfig] = None,
        store: Optional[KeyValueStore] = None,
        map_view: Optional[MapView] = None,
        feed: Optional[PositionFeed] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config if config is not None else get_config()
        self.map_view = map_view if map_view is not None else NullMapView()
        self.clock = clock

        self.bus = EventBus()
        self.registry = tcod.ecs.Registry()
        self.grid = GridAddressing(self.config.tile_size)
        self.generator = CacheGenerator(self.config)
        self.mementos = CacheMementoStore()
        self.ledger = InventoryLedger(self.mementos, bus=self.bus)
        self.lifecycle = CacheLifecycleManager(
            registry=self.registry,
            grid=self.grid,
            generator=self.generator,
            mementos=self.mementos,
            radius=self.config.neighborhood_size,
            map_view=self.map_view,
            bus=self.bus,
            held=self.ledger.__contains__,
        )
        self.persistence = SessionPersistence(
            store if store is not None else MemoryStore(),
            key=self.config.storage_key,
        )
        self.tracker = PositionTracker(feed, self._on_tracked_position)

        self.player = self.registry[PLAYER_UID]
        self._place_player(self.start_position, [self.start_position])
        self._last_save = self.clock()

    # --------------------------------------------------------
    # State accessors
    # --------------------------------------------------------

    @property
    def start_position(self) -> LatLng:
        return LatLng(self.config.start_lat, self.config.start_lng)

    @property
    def position(self) -> LatLng:
        return self.player.components[Position].as_latlng()

    @property
    def trail(self) -> List[LatLng]:
        return list(self.player.components[MovementTrail].points)

    @property
    def player_cell(self) -> GridCell:
        pos = self.position
        return self.grid.cell_of(pos.lat, pos.lng)

    @property
    def tracking(self) -> bool:
        return self.tracker.enabled

    def cache(self, cache_key: str) -> Optional[Cache]:
        return self.lifecycle.get(cache_key)

    def caches(self) -> List[Cache]:
        return sorted(self.lifecycle.caches(), key=lambda c: (c.cell.i, c.cell.j))

    def describe_cache(self, cache_key: str) -> Optional[CachePopup]:
        if self.cache(cache_key) is None:
            return None
        return self.lifecycle.describe(cache_key)

    def nearest_cache(self) -> Optional[Cache]:
        center = self.player_cell
        caches = self.caches()
        if not caches:
            return None
        return min(caches, key=lambda c: manhattan(c.cell, center))

    # --------------------------------------------------------
    # Session lifecycle
    # --------------------------------------------------------

    def start(self) -> bool:
        """
        Restores the durable record if there is a usable one, otherwise starts
        fresh at the configured position. Returns True if a record was restored.
        """
        record = self.persistence.load()
        restored = record is not None and self.restore(record)
        if not restored:
            self._place_player(self.start_position, [self.start_position])
            self._refresh()
        self.save()
        return restored

    def restore(self, record: SessionRecord) -> bool:
        """Applies a loaded record. A record that cannot be applied changes nothing."""
        try:
            ledger_coins = [self._coin_from_record(r) for r in record.inventory]
            mementos = [
                CacheMemento(m.cache_key, tuple(CoinState(c.id, c.collected, c.kind) for c in m.coins))
                for m in record.cache_mementos
            ]
            visible = [self.grid.cell_for_key(v.cache_key) for v in record.visible_caches]
            held = {c.coin_id for c in ledger_coins}
            if len(held) != len(ledger_coins):
                raise ValueError("inventory lists a coin more than once")
            placed = set()
            for memento in mementos:
                GridCell.parse_key(memento.cache_key)
                for state in memento.coins:
                    Coin.parse_id(state.coin_id)
                    if state.coin_id in held:
                        raise ValueError(f"{state.coin_id} is both held and in cache {memento.cache_key}")
                    if state.coin_id in placed:
                        raise ValueError(f"{state.coin_id} is in more than one cache")
                    placed.add(state.coin_id)
        except ValueError as exc:
            logger.warning("Saved session is inconsistent, starting fresh: %s", exc)
            return False

        position = LatLng(record.player_position.lat, record.player_position.lng)
        history = [LatLng(p.lat, p.lng) for p in record.movement_history]

        self.lifecycle.clear()
        self.mementos.load(mementos)
        self.ledger.load(ledger_coins)
        self._place_player(position, history or [position])
        for cell in visible:
            self.lifecycle.materialize(cell)
        self._refresh()

        logger.info("Restored session at %.6f, %.6f with %d held coins", position.lat, position.lng, len(self.ledger))
        self._emit(EVT_SESSION_LOADED, {"coins": len(self.ledger), "caches": len(visible)})
        return True

    def save(self) -> None:
        self.persistence.save(self.snapshot())
        self._last_save = self.clock()
        self._emit(EVT_SESSION_SAVED, {})

    def tick(self, now: Optional[float] = None) -> bool:
        """Autosaves once `autosave_interval` has elapsed since the last save."""
        now = self.clock() if now is None else now
        if now - self._last_save < self.config.autosave_interval:
            return False
        self.save()
        logger.debug("Game state auto-saved")
        return True

    def snapshot(self) -> SessionRecord:
        pos = self.position
        return SessionRecord(
            player_position=PositionRecord(lat=float(pos.lat), lng=float(pos.lng)),
            inventory=[
                InventoryRecord(
                    id=c.coin_id,
                    collected=c.collected,
                    kind=c.kind,
                    home=CellRecord(i=c.home.i, j=c.home.j),
                )
                for c in self.ledger
            ],
            visible_caches=[
                VisibleCacheRecord(
                    cache_key=c.key,
                    bounds=BoundsRecord(
                        south_west=PositionRecord(lat=c.bounds.south_west.lat, lng=c.bounds.south_west.lng),
                        north_east=PositionRecord(lat=c.bounds.north_east.lat, lng=c.bounds.north_east.lng),
                    ),
                )
                for c in self.caches()
            ],
            movement_history=[PositionRecord(lat=float(p.lat), lng=float(p.lng)) for p in self.trail],
            cache_mementos=[
                MementoRecord(
                    cache_key=m.cache_key,
                    coins=[CoinRecord(id=s.coin_id, collected=s.collected, kind=s.kind) for s in m.coins],
                )
                for m in self.mementos.export()
            ],
        )

    # --------------------------------------------------------
    # Commands
    # --------------------------------------------------------

    def move(self, direction: Direction) -> LifecycleDiff:
        di, dj = direction.value
        step = self.config.movement_step * self.config.tile_size
        pos = self.position
        return self.move_to(pos.lat + di * step, pos.lng + dj * step)

    def move_to(self, lat: float, lng: float) -> LifecycleDiff:
        position = LatLng(lat, lng)
        self.player.components[Position] = Position(lat, lng)
        self.player.components[MovementTrail].points.append(position)

        diff = self._refresh()
        self._emit(EVT_PLAYER_MOVED, {"lat": lat, "lng": lng, "cell": self.player_cell.key})
        self.save()
        return diff

    def collect(self, cache_key: str, coin_id: str) -> bool:
        cache = self.cache(cache_key)
        if cache is None or not self.ledger.collect(cache, coin_id):
            return False
        self.save()
        return True

    def deposit(self, cache_key: str, coin_id: str) -> bool:
        cache = self.cache(cache_key)
        if cache is None or not self.ledger.deposit(cache, coin_id):
            return False
        self.save()
        return True

    def collect_all(self, cache_key: str) -> int:
        cache = self.cache(cache_key)
        if cache is None:
            return 0
        moved = self.ledger.collect_all(cache)
        if moved:
            self.save()
        return moved

    def deposit_all(self, cache_key: str) -> int:
        cache = self.cache(cache_key)
        if cache is None:
            return 0
        moved = self.ledger.deposit_all(cache)
        if moved:
            self.save()
        return moved

    def locate(self, coin_id: str) -> Optional[GridCell]:
        """Pans the map to a held coin's home cache. Returns that cell."""
        home = self.ledger.home_of(coin_id)
        if home is not None:
            self.map_view.pan_to(self.grid.bounds_of(home).center)
        return home

    def toggle_tracking(self) -> bool:
        enabled = self.tracker.toggle()
        self._emit(EVT_TRACKING_TOGGLED, {"enabled": enabled})
        return enabled

    def request_reset(self, confirm: Callable[[], bool]) -> bool:
        if not confirm():
            logger.info("Game reset canceled by the user")
            return False
        self.reset()
        return True

    def reset(self) -> None:
        """Erases all progress: caches, mementos, ledger, trail and the durable record."""
        self.tracker.stop()
        self.lifecycle.clear()
        self.mementos.reset_all()
        self.ledger.clear()
        self.persistence.reset()
        self.grid.reset()
        self._place_player(self.start_position, [self.start_position])
        self._refresh()
        logger.info("Game state has been reset")
        self._emit(EVT_GAME_RESET, {})

    # --------------------------------------------------------
    # Internals
    # --------------------------------------------------------

    def _place_player(self, position: LatLng, history: List[LatLng]) -> None:
        self.player.components[Position] = Position(position.lat, position.lng)
        self.player.components[MovementTrail] = MovementTrail(points=list(history))
        self.player.tags.add(TAG_PLAYER)

    def _refresh(self) -> LifecycleDiff:
        """Redraws the player and trail and diffs the caches around them."""
        self.map_view.move_player(self.position)
        self.map_view.draw_trail(self.trail)
        return self.lifecycle.update(self.player_cell)

    def _on_tracked_position(self, position: LatLng) -> None:
        logger.debug("Tracked position %.6f, %.6f", position.lat, position.lng)
        self.move_to(position.lat, position.lng)

    def _coin_from_record(self, record: InventoryRecord) -> Coin:
        _, _, serial = Coin.parse_id(record.id)
        return Coin(
            coin_id=record.id,
            home=self.grid.cell(record.home.i, record.home.j),
            serial=serial,
            kind=record.kind,
            collected=True,
        )

    def _emit(self, key: str, data: dict) -> None:
        self.bus.emit(GameEvent(event_key=key, source="GameSession", data=data))
