"""
game_loop.py
------------
Host loop that paces frames with pygame and drives the FrameTicker.

Responsibilities
----------------
- Initialize pygame timing
- Maintain the fixed-timestep loop (events → ticks)
- Stop cleanly on a quit request
"""

import time

import pygame

from level_loop.core.runtime.game_settings import Timing, Debug
from level_loop.core.runtime.frame_ticker import FrameTicker
from level_loop.core.debug.debug_logger import DebugLogger


class GameLoop:
    """Runtime controller that feeds fixed-size ticks to a FrameTicker."""

    def __init__(self, ticker: FrameTicker = None, on_event=None):
        """
        Initialize pygame and the tick source.

        Args:
            ticker: Tick source to drive (a new one is created if omitted)
            on_event: Optional callback for every non-quit pygame event
        """
        DebugLogger.section("Initializing GameLoop")

        pygame.init()
        DebugLogger.init_entry("Pygame")

        self.ticker = ticker or FrameTicker()
        self.on_event = on_event
        self.clock = pygame.time.Clock()
        self.running = True
        self.frame_count = 0
        self._last_perf_warn_time = 0.0

        DebugLogger.init_entry("GameLoop Runtime")
        DebugLogger.init_sub(f"Fixed step: {Timing.FIXED_DT:.4f}s", level=1)

    # ===========================================================
    # Core Runtime Loop
    # ===========================================================

    def run(self, max_frames: int = None):
        """
        Run until quit (or until max_frames host frames have passed).

        Args:
            max_frames: Optional frame cap, mainly for tools and tests
        """
        DebugLogger.section("Game Loop")

        fixed_dt = Timing.FIXED_DT
        accumulator = 0.0
        frames = 0

        while self.running:
            frame_time = self.clock.tick(Timing.FPS) / 1000.0
            frame_time = min(frame_time, Timing.MAX_FRAME_TIME)
            accumulator += frame_time

            self._handle_events()

            while accumulator >= fixed_dt:
                self._tick(fixed_dt)
                accumulator -= fixed_dt

            frames += 1
            if max_frames is not None and frames >= max_frames:
                break

        pygame.quit()
        DebugLogger.system("Pygame terminated")

    def stop(self):
        """Request the loop to end after the current frame."""
        self.running = False

    # ===========================================================
    # Helpers
    # ===========================================================

    def _handle_events(self):
        """Handle quit requests and forward everything else."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
                DebugLogger.action("Quit signal received")
                break

            if self.on_event:
                self.on_event(event)

    def _tick(self, dt: float):
        """Run one tick and warn about slow ones (throttled to 1/sec)."""
        start = time.perf_counter()
        self.ticker.tick(dt)
        self.frame_count += 1

        tick_ms = (time.perf_counter() - start) * 1000
        if tick_ms > Debug.SLOW_TICK_WARNING:
            now = time.perf_counter()
            if now - self._last_perf_warn_time > 1.0:
                self._last_perf_warn_time = now
                DebugLogger.warn(f"Slow tick: {tick_ms:.2f} ms", category="timing")
