"""
overlay_sync.py
---------------
Shows an optional modal overlay and reports back when it is done.

Overlays only play during normal play. Editor / quick-test launches, empty
overlay names and the debug suppression flag all complete the request on
the spot.
"""

from dataclasses import dataclass
from typing import Any, Callable

from level_loop.core.debug.debug_logger import DebugLogger
from level_loop.core.runtime.game_settings import Debug, Loop
from level_loop.core.services.event_manager import EventManager


@dataclass(frozen=True)
class ShowOverlayRequest:
    """Payload of the show-overlay event."""
    overlay_name: str
    on_done: Callable
    arg: Any = None


class _OnceCallback:
    """Calls on_done(arg) the first time it is invoked; later calls are ignored."""

    __slots__ = ("overlay_name", "on_done", "called")

    def __init__(self, overlay_name: str, on_done: Callable):
        self.overlay_name = overlay_name
        self.on_done = on_done
        self.called = False

    def __call__(self, arg=None):
        if self.called:
            DebugLogger.warn(
                f"Overlay '{self.overlay_name}' completed more than once - ignored",
                category="overlay"
            )
            return
        self.called = True
        self.on_done(arg)


class OverlaySynchronizer:
    """Stateless gate between overlay presentation and the loop's progress."""

    def __init__(self, events: EventManager, is_normal_play: Callable[[], bool],
                 suppressed: bool = Debug.SUPPRESS_OVERLAYS,
                 event_name: str = Loop.SHOW_OVERLAY_EVENT):
        """
        Args:
            events: Bus that carries the show-overlay request
            is_normal_play: Tells whether the current entry context is normal play
            suppressed: Start with overlays suppressed (debug)
            event_name: Name of the show-overlay event
        """
        self.events = events
        self.is_normal_play = is_normal_play
        self.suppressed = suppressed
        self.event_name = event_name

    def suppress(self, flag: bool = True) -> None:
        """Turn overlay suppression on (or off)."""
        self.suppressed = flag
        DebugLogger.state(f"Overlay suppression {'on' if flag else 'off'}", category="overlay")

    def request_overlay(self, name: str, on_done: Callable, arg=None) -> None:
        """
        Show overlay `name`, then call on_done(arg).

        Args:
            name: Overlay name (None / "" for no overlay)
            on_done: Completion callback
            arg: Opaque argument handed to on_done
        """
        if not name or self.suppressed or not self.is_normal_play():
            on_done(arg)
            return

        request = ShowOverlayRequest(name, _OnceCallback(name, on_done), arg)
        DebugLogger.state(f"Showing overlay '{name}'", category="overlay")

        if self.events.dispatch(self.event_name, request) == 0:
            DebugLogger.warn(
                f"No overlay presenter for '{name}' - completing immediately",
                category="overlay"
            )
            request.on_done(arg)
