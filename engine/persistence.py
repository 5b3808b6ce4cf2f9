"""
Geocoin — engine/persistence.py
Session Persistence: Whole-session snapshots in a durable key-value slot.
=========================================================================
Version:     0.1
Stack:       Python 3.14.3 | Pydantic v2 | stdlib json
Status:      Production-ready.

Architecture notes
------------------
- One named record per session. save() rewrites it wholesale; there is no
  append log and no merge.
- load() never raises. Missing, undecodable, or schema-invalid data is logged
  and reported as None so the caller can fall back to the start state.
- playerPosition is the only required section. The others default to empty.
- No version field. A record written by an incompatible schema is rejected
  as a whole, not migrated.

Wire format (camelCase)
-----------------------
  {
    "playerPosition":  {"lat": float, "lng": float},
    "inventory":       [{"id": str, "collected": bool, "kind": str, "home": {"i": int, "j": int}}],
    "visibleCaches":   [{"cacheKey": str, "bounds": {"southWest": {lat, lng}, "northEast": {lat, lng}}}],
    "movementHistory": [{"lat": float, "lng": float}],
    "cacheMementos":   [{"cacheKey": str, "coins": [{"id": str, "collected": bool, "kind": str}]}]
  }
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


# ================================================================================
# SCHEMAS
# ================================================================================

class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

class PositionRecord(_Wire):
    lat: float = Field(strict=True, allow_inf_nan=False)
    lng: float = Field(strict=True, allow_inf_nan=False)

class CellRecord(_Wire):
    i: int
    j: int

class CoinRecord(_Wire):
    id: str
    collected: bool
    kind: str = "Copper"

class InventoryRecord(CoinRecord):
    home: CellRecord

class BoundsRecord(_Wire):
    south_west: PositionRecord = Field(alias="southWest")
    north_east: PositionRecord = Field(alias="northEast")

class VisibleCacheRecord(_Wire):
    cache_key: str = Field(alias="cacheKey")
    bounds: BoundsRecord

class MementoRecord(_Wire):
    cache_key: str = Field(alias="cacheKey")
    coins: List[CoinRecord] = Field(default_factory=list)

class SessionRecord(_Wire):
    player_position: PositionRecord = Field(alias="playerPosition")
    inventory: List[InventoryRecord] = Field(default_factory=list)
    visible_caches: List[VisibleCacheRecord] = Field(default_factory=list, alias="visibleCaches")
    movement_history: List[PositionRecord] = Field(default_factory=list, alias="movementHistory")
    cache_mementos: List[MementoRecord] = Field(default_factory=list, alias="cacheMementos")


# ================================================================================
# DURABLE KEY-VALUE STORES
# ================================================================================

class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...
    def set(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...


class MemoryStore:
    """Process-local store. Tests and throwaway sessions."""

    def __init__(self) -> None:
        self.data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore:
    """
    String values keyed by name in one JSON object on disk.
    Writes go through a temp file and os.replace so a crash mid-write
    leaves the previous contents intact.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _read_for_write(self) -> Dict[str, str]:
        try:
            return self._read()
        except (OSError, ValueError) as exc:
            logger.warning("Discarding unreadable store %s: %s", self.path, exc)
            return {}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        if value is not None and not isinstance(value, str):
            raise ValueError(f"Value under {key!r} is not a string")
        return value

    def set(self, key: str, value: str) -> None:
        data = self._read_for_write()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read_for_write()
        if key in data:
            del data[key]
            self._write(data)


# ================================================================================
# PERSISTENCE
# ================================================================================

class SessionPersistence:
    def __init__(self, store: KeyValueStore, key: str = "geocoin.session"):
        self.store = store
        self.key = key

    def save(self, record: SessionRecord) -> None:
        self.store.set(self.key, record.model_dump_json(by_alias=True))

    def load(self) -> Optional[SessionRecord]:
        try:
            raw = self.store.get(self.key)
        except (OSError, ValueError) as exc:
            logger.warning("Could not read saved session: %s", exc)
            return None

        if raw is None:
            logger.info("No saved session under %r", self.key)
            return None

        try:
            return SessionRecord.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding malformed saved session (%d errors)", exc.error_count())
            return None

    def reset(self) -> None:
        self.store.delete(self.key)
