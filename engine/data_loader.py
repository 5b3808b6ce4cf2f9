"""
Geocoin — engine/data_loader.py
JIT Config Loader for TOML design variables powered by Pydantic.
=============================================================================================
Version:     0.1
Stack:       Python 3.14.3 | Pydantic v2 | tomllib
Status:      Core data validation and loading layer.
"""

import tomllib
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator

# ================================================================================
# SCHEMAS
# ================================================================================

class GameConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Grid
    tile_size: float = Field(default=0.0001, gt=0) # degrees per cell edge
    neighborhood_size: int = Field(default=8, ge=0) # Manhattan radius in cells
    cache_spawn_probability: float = Field(default=0.1, ge=0.0, le=1.0)

    # Cache contents
    coins_min: int = Field(default=1, ge=0)
    coins_max: int = Field(default=5, ge=0)
    coin_kinds: List[str] = Field(default_factory=lambda: ["Copper", "Silver", "Gold"], min_length=1)
    world_seed: str = ""

    # Player
    start_lat: float = 36.9895
    start_lng: float = -122.0628
    movement_step: int = Field(default=1, ge=1) # cells per move command

    # Persistence
    autosave_interval: float = Field(default=60.0, gt=0) # seconds
    storage_path: str = "sessions/geocoin.json"
    storage_key: str = "geocoin.session"

    @model_validator(mode="after")
    def _check_coin_range(self) -> "GameConfig":
        if self.coins_min > self.coins_max:
            raise ValueError(f"coins_min ({self.coins_min}) exceeds coins_max ({self.coins_max})")
        return self

# ================================================================================
# LOADERS & CACHE (JIT)
# ================================================================================

_CONFIG_CACHE: Optional[GameConfig] = None

DATA_DIR = Path(__file__).parent.parent / "data"

def get_config(path: Optional[Path] = None) -> GameConfig:
    """
    Loads the game design variables from TOML.
    The default file is cached globally; an explicit path always re-reads.
    A missing default file yields the built-in defaults.
    """
    global _CONFIG_CACHE
    if path is None and _CONFIG_CACHE is not None:
        return _CONFIG_CACHE

    config_path = path if path is not None else DATA_DIR / "config.toml"
    if not config_path.exists():
        if path is not None:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        _CONFIG_CACHE = GameConfig()
        return _CONFIG_CACHE

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    # Tables are only for readability in the file; the schema is flat.
    flat = {}
    for key, value in data.items():
        if isinstance(value, dict):
            flat.update(value)
        else:
            flat[key] = value

    config = GameConfig(**flat)
    if path is None:
        _CONFIG_CACHE = config
    return config

def clear_config_cache() -> None:
    global _CONFIG_CACHE
    _CONFIG_CACHE = None
