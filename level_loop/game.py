"""
game.py
-------
Wires the level loop into a runnable host: scenes, overlays, ticks.

Usage:
    python -m level_loop.game            # play level 0 from the level select
    python -m level_loop.game --level 1 --frames 600
"""

import argparse
import sys
from dataclasses import replace

from level_loop.core.debug.debug_logger import DebugLogger
from level_loop.core.runtime.frame_ticker import FrameTicker
from level_loop.core.services.event_manager import EventManager
from level_loop.core.services.scene_manager import SceneManager
from level_loop.scenes.overlay_presenter import OverlayPresenter
from level_loop.systems.level import LevelCatalog, LoopConfig, LoopController
from level_loop.systems.level.level_context import ObjectGroup


LAYER_NAMES = ("bg_layer", "tiles_layer", "decals_layer", "things_layer", "markers_layer")


# ===========================================================
# Default Level Hooks
# ===========================================================

def before_entering(view, context, level, source):
    """Record dimensions and build the game / hud groups and game layers."""
    context.set_dimensions(
        level.get("ncols", 0), level.get("nrows", 0), level.get("w", 0), level.get("h", 0)
    )

    game_group = ObjectGroup(view, "game_group")
    context.add_group("game_group", game_group)
    context.add_group("hud_group", ObjectGroup(view, "hud_group"))

    for name in LAYER_NAMES:
        context.add_layer(name, ObjectGroup(game_group, name))


def add_things(context, level, params):
    """
    Add level things to the things layer.

    A thing with a "target" is linked to the thing with that id once every
    thing exists, whatever their order in the level.
    """
    layer = params.get_layer("things_layer")
    registry = params.get_or_add_data("things_by_id", "table")

    for spec in level.get("things", []):
        thing = dict(spec)
        layer.insert(thing)

        if "id" in thing:
            registry[thing["id"]] = thing
            params.publish(thing["id"], thing)

        if "target" in thing:
            params.subscribe(thing["target"], _link_to(thing))


def _link_to(thing):
    def link(target):
        thing["linked"] = target
    return link


# ===========================================================
# Game
# ===========================================================

class Game:
    """Host-side assembly of the level loop."""

    def __init__(self, config: LoopConfig = None, catalog: LevelCatalog = None):
        DebugLogger.section("Initializing Game")

        self.events = EventManager()
        self.ticker = FrameTicker()
        DebugLogger.bind_frames(self.ticker)
        self.config = config if config is not None else LoopConfig.load()
        self.catalog = catalog if catalog is not None else LevelCatalog.load()

        self.scenes = SceneManager(self.events, self.config.reset_event)
        self.overlays = OverlayPresenter(self.events)
        self.ticker.add_listener(self._update_overlays)

        self.view = ObjectGroup(name="level_view")
        self.pending_level = None

        self.controller = LoopController(
            config=self.config,
            events=self.events,
            ticker=self.ticker,
            scenes=self.scenes,
            source=self.catalog,
        )

        for name in ("Title", "LevelSelect", "Editor"):
            self.scenes.register(name, is_menu=True)
        self.scenes.register("Level", on_enter=self._enter_level_scene)

    def play(self, which, origin: str = "LevelSelect"):
        """Go to the level scene from `origin` and start loading `which`."""
        self.scenes.go_to_scene(origin)
        self.pending_level = which
        self.scenes.go_to_scene("Level")

    def _enter_level_scene(self):
        which, self.pending_level = self.pending_level, None
        self.view = ObjectGroup(name="level_view")
        self.controller.load_level(self.view, which)

    def _update_overlays(self, ticker):
        self.overlays.update(ticker.dt)


def default_config() -> LoopConfig:
    """Packaged config, with the default hooks filled in where unset."""
    config = LoopConfig.load()
    if config.before_entering is None and config.add_things is None:
        config = replace(config, before_entering=before_entering, add_things=add_things)
    return config


def main(argv=None):
    """Run the demo host until quit (or --frames host frames)."""
    from level_loop.core.runtime.game_loop import GameLoop

    parser = argparse.ArgumentParser(description="Level loop demo host")
    parser.add_argument("--level", type=int, default=0, help="Level index to play")
    parser.add_argument("--frames", type=int, default=None, help="Stop after N frames")
    args = parser.parse_args(argv)

    game = Game(config=default_config())
    loop = GameLoop(game.ticker)
    game.play(args.level)
    loop.run(max_frames=args.frames)
    return 0


if __name__ == "__main__":
    sys.exit(main())
