"""
Runtime exports.

Provides the frame tick source, the pygame host loop and loop-wide constants.
"""

from level_loop.core.runtime.game_settings import Timing, Loop, Debug
from level_loop.core.runtime.frame_ticker import FrameTicker, DelayedCall

__all__ = [
    # Settings
    'Timing',
    'Loop',
    'Debug',
    # Ticks
    'FrameTicker',
    'DelayedCall',
]
