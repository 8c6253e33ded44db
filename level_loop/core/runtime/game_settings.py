"""
game_settings.py
----------------
Centralized constants for the host loop and the level loop.
"""


# ===========================================================
# Timing
# ===========================================================

class Timing:
    """Frame pacing for the host loop."""
    FPS: int = 60
    UPDATE_RATE: int = 60
    FIXED_DT: float = 1 / UPDATE_RATE
    MAX_FRAME_TIME: float = 0.1


# ===========================================================
# Level Loop
# ===========================================================

class Loop:
    """Level loop defaults used when the config leaves them out."""
    CONFIG_FILE: str = "game_loop.yaml"
    RESET_EVENT: str = "enter_menus"
    SHOW_OVERLAY_EVENT: str = "show_overlay"
    DEFAULT_OVERLAY_TIME: float = 1.5


# ===========================================================
# Debug
# ===========================================================

class Debug:
    """Debug toggles -- not related to logging."""
    SUPPRESS_OVERLAYS: bool = False
    SLOW_TICK_WARNING: float = 16.67
