"""
Geocoin — run.py
Main entry point for the Geocoin Carrier interactive application.
"""

import logging
import sys
from pathlib import Path

# Ensure we can import the project packages
project_root = Path(__file__).parent.resolve()
sys.path.insert(0, str(project_root))

from engine.data_loader import get_config
from engine.loop import GameSession
from engine.persistence import JsonFileStore
from ui.map_view import ConsoleMapView
from ui.renderer import Renderer
from ui.screens import MapState
from ui.states import Engine

def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = get_config()
    renderer = Renderer(width=80, height=50, title="Geocoin Carrier")
    view = ConsoleMapView(config.tile_size, renderer.width, renderer.map_height)
    session = GameSession(
        config=config,
        store=JsonFileStore(project_root / config.storage_path),
        map_view=view,
    )
    session.start()

    engine = Engine(renderer=renderer, session=session)
    engine.change_state(MapState(engine, view))
    engine.run()

if __name__ == "__main__":
    main()
