# tests/test_map_view.py
import math

import tcod

from engine.data_loader import GameConfig
from engine.loop import Direction, GameSession
from ui.map_view import ConsoleMapView
from world.grid import GridAddressing, LatLng

def make_session():
    config = GameConfig(tile_size=1.0, neighborhood_size=1, cache_spawn_probability=1.0,
                        coins_min=3, coins_max=3, start_lat=5.5, start_lng=5.5)
    view = ConsoleMapView(config.tile_size, width=20, height=10)
    session = GameSession(config=config, map_view=view)
    session.start()
    return session, view

def test_rectangles_track_materialized_caches():
    session, view = make_session()
    assert set(view.rects) == {c.key for c in session.caches()}

    session.move(Direction.EAST)
    assert set(view.rects) == {c.key for c in session.caches()}
    assert "5:4" not in view.rects

def test_popup_content_is_evaluated_on_open():
    session, view = make_session()
    before = view.open("5:5")
    session.collect("5:5", "5:5#0")
    after = view.open("5:5")

    assert before.coin_ids == ["5:5#0", "5:5#1", "5:5#2"]
    assert after.coin_ids == ["5:5#1", "5:5#2"]
    assert view.open("99:99") is None

def test_empty_cache_popup():
    session, view = make_session()
    session.collect_all("5:5")
    assert view.open("5:5").is_empty

def test_draw_places_player_and_caches():
    session, view = make_session()
    console = tcod.console.Console(20, 10)
    view.draw(console)

    assert chr(console.ch[5, 10]) == "@"
    assert chr(console.ch[4, 10]) == "$"   # 6:5 is one row north
    assert chr(console.ch[5, 11]) == "$"   # 5:6 is one column east

def test_pan_to_moves_camera_until_next_move():
    session, view = make_session()
    session.collect("5:5", "5:5#0")
    session.locate("5:5#0")
    assert view.camera == LatLng(5.5, 5.5)

    view.pan_to(LatLng(8.5, 5.5))
    assert view.screen_of(session.position) == (10, 8)
    session.move(Direction.NORTH)
    assert view.camera == session.position

def test_markers_on_tile_edges_match_engine_cells():
    tile = 0.0001
    grid = GridAddressing(tile)
    view = ConsoleMapView(tile, width=400, height=400)
    view.pan_to(LatLng(tile / 2, tile / 2))

    for k in range(-100, 100):
        edge = k * tile
        for lat in (math.nextafter(edge, -math.inf), edge, math.nextafter(edge, math.inf)):
            i = grid.cell_of(lat, tile / 2).i
            assert view.screen_of(LatLng(lat, tile / 2)) == (200, 200 - i)
