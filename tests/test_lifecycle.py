import tcod.ecs
from engine.data_loader import GameConfig
from engine.ecs.components import Cache, TAG_MATERIALIZED, cache_uid
from engine.events import EventBus, EVT_CACHE_MATERIALIZED, EVT_CACHE_DEMATERIALIZED
from engine.lifecycle import CacheLifecycleManager
from engine.mementos import CacheMementoStore
from world.generator import CacheGenerator
from world.grid import GridAddressing, manhattan

class RecordingMap:
    def __init__(self):
        self.added = []
        self.removed = []

    def add_cache(self, cache_key, bounds, content):
        self.added.append(cache_key)

    def remove_cache(self, cache_key):
        self.removed.append(cache_key)

    def move_player(self, position):
        pass

    def draw_trail(self, positions):
        pass

    def pan_to(self, position):
        pass

def make_manager(probability=1.0, radius=1, coins=3, bus=None, held=None):
    config = GameConfig(
        tile_size=1.0,
        neighborhood_size=radius,
        cache_spawn_probability=probability,
        coins_min=coins,
        coins_max=coins,
    )
    grid = GridAddressing(config.tile_size)
    view = RecordingMap()
    manager = CacheLifecycleManager(
        registry=tcod.ecs.Registry(),
        grid=grid,
        generator=CacheGenerator(config),
        mementos=CacheMementoStore(),
        radius=radius,
        map_view=view,
        bus=bus,
        held=held,
    )
    return manager, grid, view

def test_update_spawns_neighborhood():
    manager, grid, view = make_manager(radius=1)
    diff = manager.update(grid.cell(5, 5))

    assert sorted(diff.spawned) == sorted(["4:5", "5:4", "5:5", "5:6", "6:5"])
    assert diff.retired == []
    assert len(manager.caches()) == 5
    assert sorted(view.added) == sorted(diff.spawned)

def test_no_spawn_when_check_fails():
    manager, grid, view = make_manager(probability=0.0)
    diff = manager.update(grid.cell(5, 5))
    assert diff.spawned == []
    assert manager.caches() == []

def test_materialize_is_idempotent():
    manager, grid, view = make_manager()
    cell = grid.cell(5, 5)
    first = manager.materialize(cell)
    ids = first.coin_ids()
    second = manager.materialize(cell)

    assert second is first
    assert second.coin_ids() == ids
    assert view.added == ["5:5"]

def test_update_twice_does_not_duplicate():
    manager, grid, view = make_manager()
    manager.update(grid.cell(5, 5))
    diff = manager.update(grid.cell(5, 5))
    assert diff.spawned == []
    assert diff.retired == []
    assert len(view.added) == 5

def test_materialize_writes_memento_immediately():
    manager, grid, _ = make_manager()
    manager.materialize(grid.cell(5, 5))
    saved = manager.mementos.restore("5:5")
    assert [s.coin_id for s in saved] == ["5:5#0", "5:5#1", "5:5#2"]

def test_moving_away_retires_outside_radius():
    manager, grid, view = make_manager(radius=1)
    manager.update(grid.cell(5, 5))
    diff = manager.update(grid.cell(5, 6))

    center = grid.cell(5, 6)
    assert all(manhattan(c.cell, center) <= 1 for c in manager.caches())
    assert sorted(diff.retired) == sorted(["4:5", "5:4", "6:5"])
    assert sorted(view.removed) == sorted(diff.retired)
    assert not manager.is_materialized(grid.cell(5, 4))

def test_dematerialized_entity_is_cleared():
    manager, grid, _ = make_manager()
    cell = grid.cell(0, 0)
    manager.materialize(cell)
    entity = manager.registry[cache_uid("0:0")]
    assert TAG_MATERIALIZED in entity.tags

    assert manager.dematerialize(cell) is True
    assert Cache not in entity.components
    assert manager.dematerialize(cell) is False

def test_rematerialize_uses_memento_not_baseline():
    manager, grid, _ = make_manager()
    cell = grid.cell(5, 5)
    cache = manager.materialize(cell)
    cache.coins.pop(1)
    manager.persist(cache)

    manager.dematerialize(cell)
    again = manager.materialize(cell)
    assert again is not cache
    assert again.coin_ids() == ["5:5#0", "5:5#2"]

def test_emptied_cache_stays_empty():
    manager, grid, _ = make_manager()
    cell = grid.cell(1, 1)
    cache = manager.materialize(cell)
    cache.coins.clear()
    manager.persist(cache)

    manager.update(grid.cell(10, 10))
    manager.update(grid.cell(1, 1))
    assert manager.get("1:1").coins == []

def test_clear_leaves_mementos():
    manager, grid, _ = make_manager()
    manager.update(grid.cell(0, 0))
    manager.clear()
    assert manager.caches() == []
    assert "0:0" in manager.mementos

def test_describe_is_lazy_view_of_live_cache():
    manager, grid, _ = make_manager()
    cache = manager.materialize(grid.cell(2, 3))
    cache.coins.pop()
    popup = manager.describe("2:3")
    assert popup.coin_ids == ["2:3#0", "2:3#1"]
    assert popup.bounds == grid.bounds_of(grid.cell(2, 3))

def test_lifecycle_events():
    bus = EventBus()
    seen = []
    bus.subscribe("*", lambda e: seen.append((e.event_key, e.target)))
    manager, grid, _ = make_manager(bus=bus)

    manager.materialize(grid.cell(0, 0))
    manager.dematerialize(grid.cell(0, 0))
    assert seen == [(EVT_CACHE_MATERIALIZED, "0:0"), (EVT_CACHE_DEMATERIALIZED, "0:0")]

def test_fresh_cache_skips_held_coins():
    manager, grid, _ = make_manager(held=lambda coin_id: coin_id == "2:2#1")
    cache = manager.materialize(grid.cell(2, 2))
    assert cache.coin_ids() == ["2:2#0", "2:2#2"]
    assert [s.coin_id for s in manager.mementos.restore("2:2")] == ["2:2#0", "2:2#2"]
