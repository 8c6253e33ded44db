"""
Core services exports.

Provides the event bus, the scene navigator and configuration loading.
"""

from level_loop.core.services.config_manager import load_config
from level_loop.core.services.event_manager import (
    EventManager,
    get_events,
    reset_events,
)
from level_loop.core.services.scene_manager import SceneManager

__all__ = [
    # Config
    'load_config',
    # Events
    'EventManager',
    'get_events',
    'reset_events',
    # Scenes
    'SceneManager',
]
