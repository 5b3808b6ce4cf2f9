import pytest
from pathlib import Path
from pydantic import ValidationError

from engine.data_loader import GameConfig, clear_config_cache, get_config

@pytest.fixture(autouse=True)
def fresh_cache():
    clear_config_cache()
    yield
    clear_config_cache()

def test_defaults():
    config = GameConfig()
    assert config.tile_size == 0.0001
    assert config.neighborhood_size == 8
    assert config.cache_spawn_probability == 0.1
    assert config.coin_kinds == ["Copper", "Silver", "Gold"]
    assert (config.start_lat, config.start_lng) == (36.9895, -122.0628)

def test_load_shipped_config():
    config = get_config()
    assert config.tile_size == 0.0001
    assert config.coins_min == 1
    assert config.coins_max == 5
    assert config.storage_key == "geocoin.session"

def test_default_config_is_cached():
    assert get_config() is get_config()

def test_explicit_path(tmp_path: Path):
    path = tmp_path / "custom.toml"
    path.write_text('[grid]\ntile_size = 1.0\n\n[caches]\nworld_seed = "abc"\n', encoding="utf-8")
    config = get_config(path)
    assert config.tile_size == 1.0
    assert config.world_seed == "abc"
    assert config.neighborhood_size == 8

def test_explicit_missing_path_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        get_config(tmp_path / "missing.toml")

def test_config_is_frozen():
    config = GameConfig()
    with pytest.raises(ValidationError):
        config.tile_size = 2.0

@pytest.mark.parametrize("overrides", [
    {"tile_size": 0},
    {"tile_size": -1.0},
    {"cache_spawn_probability": 1.5},
    {"neighborhood_size": -1},
    {"coins_min": 4, "coins_max": 2},
    {"coin_kinds": []},
])
def test_invalid_values_rejected(overrides):
    with pytest.raises(ValidationError):
        GameConfig(**overrides)
