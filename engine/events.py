"""
Geocoin — engine/events.py
Event Bus: Typed game events and a bespoke pub-sub.
====================================================
Version:     0.1
Stack:       Python 3.14.3 | Pydantic v2 | bespoke pub-sub
Status:      Production-ready.

Architecture notes
------------------
- Events are Pydantic v2 models. data dict must remain flat + JSON-serializable.
- The bus is passed in at construction. No global singleton.
- Wildcard key "*" receives every emitted event.
- Per-handler errors are logged so emission always continues.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ============================================================
# CANONICAL EVENT KEYS
# Never use raw strings. Add new keys here only.
# ============================================================

EVT_PLAYER_MOVED          = "player.moved"
EVT_CACHE_MATERIALIZED    = "cache.materialized"
EVT_CACHE_DEMATERIALIZED  = "cache.dematerialized"
EVT_COIN_COLLECTED        = "ledger.coin_collected"
EVT_COIN_DEPOSITED        = "ledger.coin_deposited"
EVT_SESSION_SAVED         = "session.saved"
EVT_SESSION_LOADED        = "session.loaded"
EVT_GAME_RESET            = "session.reset"
EVT_TRACKING_TOGGLED      = "tracking.toggled"


class GameEvent(BaseModel):
    """Envelope for everything published on the bus."""
    event_key: str
    source: str
    target: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


HandlerFn = Callable[[GameEvent], None]


class EventBus:
    def __init__(self) -> None:
        self._subscribers: Dict[str, List[HandlerFn]] = {}

    def subscribe(self, event_key: str, handler: HandlerFn) -> None:
        self._subscribers.setdefault(event_key, []).append(handler)

    def unsubscribe(self, event_key: str, handler: HandlerFn) -> None:
        if event_key in self._subscribers:
            self._subscribers[event_key] = [
                h for h in self._subscribers[event_key] if h != handler
            ]

    def emit(self, event: GameEvent) -> None:
        targets = (
            self._subscribers.get(event.event_key, [])
            + self._subscribers.get("*", [])
        )
        for handler in targets:
            try:
                handler(event)
            except Exception:  # noqa: BLE001
                logger.exception("Handler error on '%s'", event.event_key)
