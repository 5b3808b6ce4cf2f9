"""
Geocoin — ui/screens.py
Implementations of the UI Screen States.
"""
from typing import List, Optional

import tcod
from tcod import libtcodpy

from ui.states import BaseState, Engine
from ui.renderer import Renderer
from ui.map_view import ConsoleMapView
from engine.events import GameEvent, EVT_COIN_COLLECTED, EVT_COIN_DEPOSITED, EVT_GAME_RESET, EVT_TRACKING_TOGGLED
from engine.loop import Direction
from engine.mapview import CachePopup
from world.generator import Coin

MOVE_KEYS = {
    tcod.event.KeySym.UP: Direction.NORTH,
    tcod.event.KeySym.W: Direction.NORTH,
    tcod.event.KeySym.DOWN: Direction.SOUTH,
    tcod.event.KeySym.S: Direction.SOUTH,
    tcod.event.KeySym.LEFT: Direction.WEST,
    tcod.event.KeySym.A: Direction.WEST,
    tcod.event.KeySym.RIGHT: Direction.EAST,
    tcod.event.KeySym.D: Direction.EAST,
}

MESSAGE_LOG_SIZE = 3


class MapState(BaseState):
    """The main gameplay screen: map above, HUD below."""

    def __init__(self, engine: Engine, view: ConsoleMapView):
        super().__init__(engine)
        self.session = engine.session
        self.view = view
        self.messages: List[str] = []
        for key in (EVT_COIN_COLLECTED, EVT_COIN_DEPOSITED, EVT_GAME_RESET, EVT_TRACKING_TOGGLED):
            self.session.bus.subscribe(key, self._on_event)

    def _on_event(self, event: GameEvent) -> None:
        if event.event_key == EVT_COIN_COLLECTED:
            text = f"Collected {event.data['coin_id']} from {event.target}"
        elif event.event_key == EVT_COIN_DEPOSITED:
            text = f"Deposited {event.data['coin_id']} into {event.target}"
        elif event.event_key == EVT_TRACKING_TOGGLED:
            text = "Tracking on" if event.data["enabled"] else "Tracking off"
        else:
            text = "Game state has been reset."
        self.messages = (self.messages + [text])[-MESSAGE_LOG_SIZE:]

    def on_render(self, renderer: Renderer) -> None:
        self.view.draw(renderer.root_console)

        renderer.draw_status(
            position=self.session.position,
            cell=self.session.player_cell,
            held=len(self.session.ledger),
            nearby=len(self.session.caches()),
            tracking=self.session.tracking,
            messages=self.messages,
        )
        renderer.draw_help("[Arrows/WASD] Move  [Enter] Open cache  [i] Inventory  [g] Track  [r] Reset  [ESC] Quit")

    def ev_keydown(self, event: tcod.event.KeyDown) -> None:
        if event.sym == tcod.event.KeySym.ESCAPE:
            self.engine.quit()
        elif event.sym in MOVE_KEYS:
            self.session.move(MOVE_KEYS[event.sym])
        elif event.sym in (tcod.event.KeySym.RETURN, tcod.event.KeySym.F):
            cache = self.session.nearest_cache()
            if cache is not None:
                self.engine.change_state(CacheState(self.engine, self, cache.key))
        elif event.sym == tcod.event.KeySym.I:
            self.engine.change_state(InventoryState(self.engine, self))
        elif event.sym == tcod.event.KeySym.G:
            self.session.toggle_tracking()
        elif event.sym == tcod.event.KeySym.R:
            self.engine.change_state(ConfirmResetState(self.engine, self))


class CacheState(BaseState):
    """Detail view of one cache: its coins on the left, the player's on the right."""

    def __init__(self, engine: Engine, parent_state: MapState, cache_key: str):
        super().__init__(engine)
        self.parent_state = parent_state
        self.session = engine.session
        self.cache_key = cache_key
        self.popup: Optional[CachePopup] = None
        self.held: List[Coin] = []
        self.column = 0  # 0 = cache, 1 = ledger
        self.cursor_pos = 0
        self._refresh()

    def _refresh(self) -> None:
        self.popup = self.parent_state.view.open(self.cache_key)
        self.held = list(self.session.ledger)
        rows = self._rows()
        if self.cursor_pos >= len(rows):
            self.cursor_pos = max(0, len(rows) - 1)

    def _rows(self) -> List[str]:
        if self.column == 0:
            return self.popup.coin_ids if self.popup else []
        return [c.coin_id for c in self.held]

    def on_render(self, renderer: Renderer) -> None:
        self.parent_state.on_render(renderer)
        renderer.root_console.draw_frame(
            5, 3, renderer.width - 10, renderer.height - 6,
            f"Cache {self.cache_key}", clear=True, fg=(255, 255, 0), bg=(0, 0, 0)
        )
        mid = renderer.width // 2
        renderer.root_console.print(7, 4, "In cache", fg=(255, 255, 255))
        renderer.root_console.print(mid, 4, "Carried", fg=(255, 255, 255))

        cache_rows = list(zip(self.popup.coin_ids, self.popup.coin_kinds)) if self.popup else []
        if not cache_rows:
            renderer.root_console.print(7, 6, "0 coins", fg=(128, 128, 128))
        for i, (coin_id, kind) in enumerate(cache_rows):
            fg = (0, 255, 255) if self.column == 0 and i == self.cursor_pos else (255, 255, 255)
            renderer.root_console.print(7, 6 + i, f"{kind:<6} {coin_id}", fg=fg)

        if not self.held:
            renderer.root_console.print(mid, 6, "(Empty)", fg=(128, 128, 128))
        for i, coin in enumerate(self.held):
            fg = (0, 255, 255) if self.column == 1 and i == self.cursor_pos else (255, 255, 255)
            renderer.root_console.print(mid, 6 + i, f"{coin.kind:<6} {coin.coin_id}", fg=fg)

        renderer.root_console.print(
            7, renderer.height - 5,
            "[Tab] Switch  [Enter] Move  [c/d] Collect/Deposit  [C/D] All  [ESC] Close",
            fg=(200, 200, 200),
        )

    def ev_keydown(self, event: tcod.event.KeyDown) -> None:
        if event.sym == tcod.event.KeySym.ESCAPE:
            self.engine.change_state(self.parent_state)
            return
        if event.sym == tcod.event.KeySym.TAB:
            self.column = 1 - self.column
            self.cursor_pos = 0
        elif event.sym in (tcod.event.KeySym.UP, tcod.event.KeySym.W):
            self.cursor_pos = max(0, self.cursor_pos - 1)
        elif event.sym in (tcod.event.KeySym.DOWN, tcod.event.KeySym.S):
            self.cursor_pos = min(max(0, len(self._rows()) - 1), self.cursor_pos + 1)
        elif event.sym == tcod.event.KeySym.RETURN:
            if self.column == 0:
                self._collect_selected()
            else:
                self._deposit_selected()
        elif event.sym == tcod.event.KeySym.C:
            if event.mod & tcod.event.Modifier.SHIFT:
                self.session.collect_all(self.cache_key)
            else:
                self._collect_selected()
        elif event.sym == tcod.event.KeySym.D:
            if event.mod & tcod.event.Modifier.SHIFT:
                self.session.deposit_all(self.cache_key)
            else:
                self._deposit_selected()
        self._refresh()

    def _collect_selected(self) -> None:
        coin_ids = self.popup.coin_ids if self.popup else []
        index = self.cursor_pos if self.column == 0 else 0
        if index < len(coin_ids):
            self.session.collect(self.cache_key, coin_ids[index])

    def _deposit_selected(self) -> None:
        index = self.cursor_pos if self.column == 1 else 0
        if index < len(self.held):
            self.session.deposit(self.cache_key, self.held[index].coin_id)


class InventoryState(BaseState):
    """The carried coins overlay. Enter centres the map on a coin's home cache."""

    def __init__(self, engine: Engine, parent_state: MapState):
        super().__init__(engine)
        self.parent_state = parent_state
        self.session = engine.session
        self.coins: List[Coin] = list(self.session.ledger)
        self.cursor_pos = 0

    def on_render(self, renderer: Renderer) -> None:
        self.parent_state.on_render(renderer)
        renderer.root_console.draw_frame(
            10, 3, renderer.width - 20, renderer.height - 6,
            "Current Inventory", clear=True, fg=(255, 255, 255), bg=(0, 0, 0)
        )
        if not self.coins:
            renderer.root_console.print(12, 5, "(Empty)", fg=(128, 128, 128))
        for i, coin in enumerate(self.coins):
            fg = (0, 255, 255) if i == self.cursor_pos else (255, 255, 255)
            renderer.root_console.print(12, 5 + i, f"{coin.kind:<6} {coin.coin_id}  home {coin.home.key}", fg=fg)

        renderer.root_console.print(12, renderer.height - 5, "[Enter] Center on home cache  [ESC/I] Close", fg=(200, 200, 200))

    def ev_keydown(self, event: tcod.event.KeyDown) -> None:
        if event.sym in (tcod.event.KeySym.ESCAPE, tcod.event.KeySym.I):
            self.engine.change_state(self.parent_state)
        elif event.sym in (tcod.event.KeySym.UP, tcod.event.KeySym.W):
            self.cursor_pos = max(0, self.cursor_pos - 1)
        elif event.sym in (tcod.event.KeySym.DOWN, tcod.event.KeySym.S):
            self.cursor_pos = min(max(0, len(self.coins) - 1), self.cursor_pos + 1)
        elif event.sym == tcod.event.KeySym.RETURN and self.coins:
            self.session.locate(self.coins[self.cursor_pos].coin_id)
            self.engine.change_state(self.parent_state)


class ConfirmResetState(BaseState):
    """Asks before erasing all progress."""

    def __init__(self, engine: Engine, parent_state: MapState):
        super().__init__(engine)
        self.parent_state = parent_state

    def on_render(self, renderer: Renderer) -> None:
        self.parent_state.on_render(renderer)
        renderer.root_console.draw_frame(
            renderer.width // 2 - 25, renderer.height // 2 - 3, 50, 6,
            "Reset", clear=True, fg=(255, 80, 80), bg=(0, 0, 0)
        )
        renderer.root_console.print(
            renderer.width // 2, renderer.height // 2 - 1,
            "Erase all progress and reset the game?", alignment=libtcodpy.CENTER
        )
        renderer.root_console.print(renderer.width // 2, renderer.height // 2, "[Y]es   [N]o", alignment=libtcodpy.CENTER)

    def ev_keydown(self, event: tcod.event.KeyDown) -> None:
        if event.sym == tcod.event.KeySym.Y:
            self.engine.session.request_reset(lambda: True)
            self.engine.change_state(self.parent_state)
        elif event.sym in (tcod.event.KeySym.N, tcod.event.KeySym.ESCAPE):
            self.engine.session.request_reset(lambda: False)
            self.engine.change_state(self.parent_state)
