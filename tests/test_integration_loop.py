"""
Geocoin — tests/test_integration_loop.py
End-to-end behaviour of GameSession against an in-memory store.
"""
import json

import pytest

from engine.data_loader import GameConfig
from engine.events import EVT_GAME_RESET
from engine.loop import Direction, GameSession
from engine.persistence import MemoryStore
from world.grid import LatLng

def make_config(**overrides):
    values = dict(
        tile_size=1.0,
        neighborhood_size=1,
        cache_spawn_probability=1.0,
        coins_min=3,
        coins_max=3,
        start_lat=5.5,
        start_lng=5.5,
        autosave_interval=60.0,
    )
    values.update(overrides)
    return GameConfig(**values)

@pytest.fixture
def store():
    return MemoryStore()

@pytest.fixture
def session(store):
    s = GameSession(config=make_config(), store=store)
    s.start()
    return s

def test_fresh_start(session, store):
    assert session.player_cell.key == "5:5"
    assert [c.key for c in session.caches()] == ["4:5", "5:4", "5:5", "5:6", "6:5"]
    assert session.cache("5:5").coin_ids() == ["5:5#0", "5:5#1", "5:5#2"]
    assert "geocoin.session" in store.data

def test_collect_and_deposit_through_session(session):
    assert session.collect("5:5", "5:5#1") is True
    assert session.cache("5:5").coin_ids() == ["5:5#0", "5:5#2"]
    assert session.ledger.coin_ids() == ["5:5#1"]

    assert session.collect("5:5", "5:5#1") is False
    assert session.collect("9:9", "5:5#0") is False

    assert session.deposit("5:6", "5:5#1") is True
    assert "5:5#1" in session.cache("5:6").coin_ids()
    assert len(session.ledger) == 0

def test_move_retires_and_spawns(session):
    diff = session.move(Direction.NORTH)
    assert session.player_cell.key == "6:5"
    assert set(diff.retired) == {"5:4", "5:6", "4:5"}
    assert set(diff.spawned) == {"7:5", "6:4", "6:6"}
    assert len(session.trail) == 2

def test_cache_state_survives_dematerialization(session):
    session.collect("5:5", "5:5#1")
    session.move_to(100.5, 100.5)
    assert session.cache("5:5") is None

    session.move_to(5.5, 5.5)
    assert session.cache("5:5").coin_ids() == ["5:5#0", "5:5#2"]

def test_reload_from_same_store(session, store):
    session.collect("5:5", "5:5#1")
    session.move(Direction.EAST)

    reloaded = GameSession(config=make_config(), store=store)
    assert reloaded.start() is True
    assert reloaded.position == LatLng(5.5, 6.5)
    assert reloaded.ledger.coin_ids() == ["5:5#1"]
    assert reloaded.ledger.home_of("5:5#1").key == "5:5"
    assert reloaded.cache("5:5").coin_ids() == ["5:5#0", "5:5#2"]
    assert len(reloaded.trail) == 2

def test_reset_requires_confirmation(session, store):
    session.collect("5:5", "5:5#0")
    seen = []
    session.bus.subscribe(EVT_GAME_RESET, seen.append)

    assert session.request_reset(lambda: False) is False
    assert len(session.ledger) == 1
    assert seen == []

    assert session.request_reset(lambda: True) is True
    assert len(session.ledger) == 0
    assert session.position == session.start_position
    assert session.trail == [session.start_position]
    assert session.cache("5:5").coin_ids() == ["5:5#0", "5:5#1", "5:5#2"]
    assert "geocoin.session" not in store.data
    assert len(seen) == 1

def test_tick_autosaves_on_interval(store):
    now = [0.0]
    session = GameSession(config=make_config(), store=store, clock=lambda: now[0])
    session.start()
    store.data.clear()

    now[0] = 30.0
    assert session.tick() is False
    assert store.data == {}

    now[0] = 61.0
    assert session.tick() is True
    assert "geocoin.session" in store.data
    assert session.tick(now=90.0) is False

def test_bad_record_falls_back_to_defaults(store):
    store.set("geocoin.session", json.dumps({
        "playerPosition": {"lat": 50.5, "lng": 50.5},
        "inventory": [{"id": "not-a-coin", "collected": True, "home": {"i": 0, "j": 0}}],
    }))
    session = GameSession(config=make_config(), store=store)

    assert session.start() is False
    assert session.position == LatLng(5.5, 5.5)
    assert len(session.ledger) == 0

def test_unparseable_record_falls_back_to_defaults(store):
    store.set("geocoin.session", "definitely not json")
    session = GameSession(config=make_config(), store=store)
    assert session.start() is False
    assert session.player_cell.key == "5:5"
    # the fresh state replaced the broken record
    assert json.loads(store.data["geocoin.session"])["playerPosition"] == {"lat": 5.5, "lng": 5.5}

def test_locate_returns_home_cell(session):
    session.collect("5:5", "5:5#2")
    assert session.locate("5:5#2").key == "5:5"
    assert session.locate("5:5#0") is None

def test_nearest_cache_is_player_cell(session):
    assert session.nearest_cache().key == "5:5"
    assert session.describe_cache("5:5").coin_ids == ["5:5#0", "5:5#1", "5:5#2"]
    assert session.describe_cache("42:42") is None

def test_no_caches_when_probability_zero():
    session = GameSession(config=make_config(cache_spawn_probability=0.0))
    session.start()
    assert session.caches() == []
    assert session.nearest_cache() is None

def _visible(key):
    i, j = (int(p) for p in key.split(":"))
    return {"cacheKey": key, "bounds": {
        "southWest": {"lat": float(i), "lng": float(j)},
        "northEast": {"lat": float(i + 1), "lng": float(j + 1)},
    }}

def test_held_coin_is_not_regenerated_without_memento(store):
    store.set("geocoin.session", json.dumps({
        "playerPosition": {"lat": 5.5, "lng": 5.5},
        "inventory": [{"id": "5:5#1", "collected": True, "home": {"i": 5, "j": 5}}],
        "visibleCaches": [_visible("5:5")],
    }))
    session = GameSession(config=make_config(), store=store)

    assert session.start() is True
    assert session.ledger.coin_ids() == ["5:5#1"]
    assert session.cache("5:5").coin_ids() == ["5:5#0", "5:5#2"]
    in_caches = [cid for c in session.caches() for cid in c.coin_ids()]
    assert "5:5#1" not in in_caches

def test_record_with_coin_both_held_and_cached_is_rejected(store):
    store.set("geocoin.session", json.dumps({
        "playerPosition": {"lat": 50.5, "lng": 50.5},
        "inventory": [{"id": "5:5#0", "collected": True, "home": {"i": 5, "j": 5}}],
        "cacheMementos": [{"cacheKey": "5:5", "coins": [{"id": "5:5#0", "collected": False}]}],
    }))
    session = GameSession(config=make_config(), store=store)

    assert session.start() is False
    assert len(session.ledger) == 0
    assert session.position == LatLng(5.5, 5.5)
    assert session.cache("5:5").coin_ids() == ["5:5#0", "5:5#1", "5:5#2"]

def test_record_with_coin_in_two_caches_is_rejected(store):
    store.set("geocoin.session", json.dumps({
        "playerPosition": {"lat": 5.5, "lng": 5.5},
        "cacheMementos": [
            {"cacheKey": "5:5", "coins": [{"id": "5:5#0", "collected": False}]},
            {"cacheKey": "5:6", "coins": [{"id": "5:5#0", "collected": False}]},
        ],
    }))
    assert GameSession(config=make_config(), store=store).start() is False
