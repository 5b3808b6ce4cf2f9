import math

import pytest
from world.grid import GridAddressing, GridCell, LatLng, cell_index, manhattan

def test_cell_of_is_interned():
    grid = GridAddressing(tile_size=0.0001)
    a = grid.cell_of(36.9895, -122.0628)
    b = grid.cell_of(36.9895, -122.0628)
    assert a is b
    assert len(grid) == 1

def test_cell_of_floors_negative_coordinates():
    grid = GridAddressing(tile_size=1.0)
    assert grid.cell_of(-0.5, -1.5) == GridCell(-1, -2)
    assert grid.cell_of(2.0, 3.999) == GridCell(2, 3)

@pytest.mark.parametrize("lat,lng", [
    (36.9895, -122.0628),
    (0.0, 0.0),
    (-33.8688, 151.2093),
    (0.00029999999, -0.0003),
    (89.99995, -179.99995),
])
def test_bounds_contain_point(lat, lng):
    grid = GridAddressing(tile_size=0.0001)
    cell = grid.cell_of(lat, lng)
    assert grid.bounds_of(cell).contains(LatLng(lat, lng))

def test_bounds_of_cell():
    grid = GridAddressing(tile_size=1.0)
    bounds = grid.bounds_of(grid.cell(5, -2))
    assert bounds.south_west == LatLng(5.0, -2.0)
    assert bounds.north_east == LatLng(6.0, -1.0)
    assert bounds.center == LatLng(5.5, -1.5)

def test_equality_is_by_coordinates():
    grid = GridAddressing(tile_size=1.0)
    interned = grid.cell(3, 4)
    assert interned == GridCell(3, 4)
    assert hash(interned) == hash(GridCell(3, 4))

def test_key_round_trip():
    cell = GridCell(-12, 7)
    assert cell.key == "-12:7"
    assert GridCell.parse_key(cell.key) == (-12, 7)
    with pytest.raises(ValueError):
        GridCell.parse_key("12-7")

def test_neighborhood_is_manhattan_diamond():
    grid = GridAddressing(tile_size=1.0)
    center = grid.cell(0, 0)
    cells = grid.neighborhood(center, 2)
    assert len(cells) == 13
    assert all(manhattan(c, center) <= 2 for c in cells)
    assert GridCell(2, 0) in cells
    assert GridCell(1, 1) in cells
    assert GridCell(2, 1) not in cells

def test_reset_clears_interning_table():
    grid = GridAddressing(tile_size=1.0)
    first = grid.cell(1, 1)
    grid.reset()
    assert len(grid) == 0
    second = grid.cell(1, 1)
    assert second is not first
    assert second == first

def test_rejects_non_positive_tile_size():
    with pytest.raises(ValueError):
        GridAddressing(tile_size=0)

def test_cell_index_is_half_open_on_edges():
    tile = 0.1
    for k in range(-30, 30):
        edge = k * tile
        index = cell_index(edge, tile)
        assert index * tile <= edge < (index + 1) * tile
        below = math.nextafter(edge, -math.inf)
        assert cell_index(below, tile) * tile <= below
