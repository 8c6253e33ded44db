"""
overlay_presenter.py
--------------------
Plays modal overlays ("Get ready", "You won", ...) requested on the event bus.

Overlays play one at a time, each for its configured duration, and fire
their completion callback once when they end (or are skipped).
"""

from collections import deque
from typing import Deque, Dict, Optional

from level_loop.core.debug.debug_logger import DebugLogger
from level_loop.core.runtime.game_settings import Loop
from level_loop.core.services.event_manager import EventManager
from level_loop.systems.level.overlay_sync import ShowOverlayRequest


class OverlayPresenter:
    """Timed overlay playback driven by update(dt)."""

    def __init__(self, events: EventManager, durations: Dict[str, float] = None,
                 default_duration: float = Loop.DEFAULT_OVERLAY_TIME,
                 event_name: str = Loop.SHOW_OVERLAY_EVENT):
        """
        Args:
            events: Bus carrying show-overlay requests
            durations: Seconds per overlay name
            default_duration: Seconds for overlays missing from durations
            event_name: Name of the show-overlay event
        """
        self.events = events
        self.durations = dict(durations or {})
        self.default_duration = default_duration
        self.event_name = event_name

        self._queue: Deque[ShowOverlayRequest] = deque()
        self.current: Optional[ShowOverlayRequest] = None
        self.elapsed = 0.0

        events.subscribe(event_name, self.show)

    def show(self, request: ShowOverlayRequest) -> None:
        """Queue an overlay; it starts at once if nothing is playing."""
        self._queue.append(request)
        if self.current is None:
            self._start_next()

    def update(self, dt: float) -> bool:
        """Advance the current overlay. Returns True while one is playing."""
        if self.current is None:
            return False

        self.elapsed += dt
        if self.elapsed >= self.durations.get(self.current.overlay_name, self.default_duration):
            self._finish()

        return self.current is not None

    def skip(self) -> None:
        """End the current overlay now."""
        if self.current is not None:
            self._finish()

    @property
    def is_playing(self) -> bool:
        return self.current is not None

    def close(self) -> None:
        self.events.unsubscribe(self.event_name, self.show)

    # ===========================================================
    # Helpers
    # ===========================================================

    def _start_next(self):
        self.current = self._queue.popleft() if self._queue else None
        self.elapsed = 0.0
        if self.current is not None:
            DebugLogger.state(f"Overlay '{self.current.overlay_name}' playing", category="overlay")

    def _finish(self):
        request = self.current
        DebugLogger.state(f"Overlay '{request.overlay_name}' done", category="overlay")
        self._start_next()
        request.on_done(request.arg)
