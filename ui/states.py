"""
Geocoin — ui/states.py
State Machine defining the UI screens and event routing logic.
"""

from __future__ import annotations
from typing import Any, Optional
import tcod

from engine.loop import GameSession
from ui.renderer import Renderer

class BaseState(tcod.event.EventDispatch[Any]):
    """
    Protocol for a screen state.
    Intercepts tcod events and renders to the console.
    """
    def __init__(self, engine: "Engine"):
        super().__init__()
        self.engine = engine

    def on_render(self, renderer: Renderer) -> None:
        """Called every frame to draw to the console."""
        pass


class Engine:
    """
    Central loop controller handling TCOD context, Renderer, and State tracking.
    The session's autosave tick runs between input events.
    """
    IDLE_TIMEOUT = 1.0  # seconds between autosave checks when no input arrives

    def __init__(self, renderer: Renderer, session: GameSession, initial_state: Optional[BaseState] = None):
        self.renderer = renderer
        self.session = session
        self.active_state: Optional[BaseState] = initial_state
        self.running = True

    def change_state(self, new_state: BaseState) -> None:
        """Transitions to a new Active State."""
        self.active_state = new_state

    def quit(self) -> None:
        self.session.save()
        self.running = False

    def run(self) -> None:
        """Main blocking event loop."""

        with tcod.context.new_terminal(
            self.renderer.width,
            self.renderer.height,
            title=self.renderer.title,
            vsync=True,
        ) as context:
            self.renderer.context = context

            while self.running:
                # 1. Render
                self.renderer.clear()
                self.active_state.on_render(self.renderer)
                self.renderer.present(context)

                # 2. Handle Inputs
                for event in tcod.event.wait(timeout=self.IDLE_TIMEOUT):
                    context.convert_event(event)

                    if isinstance(event, tcod.event.Quit):
                        self.quit()
                        break

                    self.active_state.dispatch(event)

                # 3. Periodic safety-net save
                self.session.tick()
