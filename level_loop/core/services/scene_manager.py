"""
scene_manager.py
----------------
Scene navigator: named scene registration, transitions and origin tracking.

Responsibilities
----------------
- Register scenes by name (menus flagged separately)
- Switch scenes, recording the scene we came from
- Announce menu entry on the event bus (the level loop's reset signal)
"""

from typing import Callable, Dict, Optional

from level_loop.core.debug.debug_logger import DebugLogger
from level_loop.core.runtime.game_settings import Loop
from level_loop.core.services.event_manager import EventManager, get_events


class SceneEntry:
    """Registration record for one scene."""

    __slots__ = ("name", "on_enter", "is_menu")

    def __init__(self, name: str, on_enter: Optional[Callable] = None, is_menu: bool = False):
        self.name = name
        self.on_enter = on_enter
        self.is_menu = is_menu


class SceneManager:
    """Coordinates scene transitions by name."""

    def __init__(self, events: EventManager = None, menu_event: str = Loop.RESET_EVENT):
        """
        Args:
            events: Event bus used to announce menu entry
            menu_event: Event dispatched whenever a menu scene is entered
        """
        self.events = events or get_events()
        self.menu_event = menu_event
        self._scenes: Dict[str, SceneEntry] = {}

        self._active_name = None
        self._previous_name = None
        self.last_effect = None

        DebugLogger.init_entry("SceneManager")

    # ===========================================================
    # Registration
    # ===========================================================

    def register(self, name: str, on_enter: Callable = None, is_menu: bool = False) -> None:
        """
        Register a scene.

        Args:
            name: Scene identifier
            on_enter: Optional callback, called as on_enter(**scene_data)
            is_menu: Entering this scene dispatches the menu event
        """
        self._scenes[name] = SceneEntry(name, on_enter, is_menu)
        DebugLogger.init_sub(f"Registered scene: {name}{' (menu)' if is_menu else ''}")

    def has_scene(self, name: str) -> bool:
        return name in self._scenes

    # ===========================================================
    # Scene Control
    # ===========================================================

    def go_to_scene(self, name: str, effect=None, **scene_data) -> bool:
        """
        Switch to another scene.

        Args:
            name: Registered scene name
            effect: Opaque transition effect, recorded as last_effect
            **scene_data: Data passed to the scene's on_enter callback

        Returns:
            bool: False if the scene is unknown
        """
        entry = self._scenes.get(name)
        if entry is None:
            DebugLogger.warn(f"Unknown scene: '{name}'", category="scene")
            return False

        prev_name = self._active_name or "None"
        DebugLogger.system(f"Transitioning [{prev_name}] → [{name}]", category="scene")

        self._previous_name = self._active_name
        self._active_name = name
        self.last_effect = effect

        DebugLogger.section(f"Active Scene: {name}")

        if entry.on_enter:
            entry.on_enter(**scene_data)

        if entry.is_menu:
            self.events.dispatch(self.menu_event, name)

        return True

    # ===========================================================
    # Queries
    # ===========================================================

    @property
    def active_name(self) -> Optional[str]:
        return self._active_name

    def coming_from(self) -> Optional[str]:
        """Name of the scene that was active before the current one."""
        return self._previous_name
