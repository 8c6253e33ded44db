"""
frame_ticker.py
---------------
Per-frame tick source shared by the host loop and the level loop.

Responsibilities
----------------
- Hold "enter frame" listeners and call each once per tick
- Track the frame id and the last frame's delta time
- Run delayed calls once their delay has elapsed
"""

from typing import Callable, List, Optional

from level_loop.core.debug.debug_logger import DebugLogger


class DelayedCall:
    """Handle for a call scheduled through FrameTicker.call_after()."""

    __slots__ = ("delay", "func", "args", "elapsed", "done", "frame_id")

    def __init__(self, delay: float, func: Callable, args: tuple, frame_id: int = 0):
        self.delay = delay
        self.func = func
        self.args = args
        self.elapsed = 0.0
        self.done = False
        self.frame_id = frame_id  # frame it was scheduled in

    def cancel(self):
        """Prevent the call from running."""
        self.done = True


class FrameTicker:
    """Drives frame listeners and delayed calls, one tick at a time."""

    def __init__(self):
        self._listeners: List[Callable] = []
        self._delayed: List[DelayedCall] = []
        self.frame_id = 0
        self.dt = 0.0

    # ===========================================================
    # Listeners
    # ===========================================================

    def add_listener(self, listener: Callable) -> None:
        """
        Register a listener called as listener(ticker) every tick.

        Args:
            listener: Callable taking the ticker
        """
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Callable) -> None:
        """Deregister a listener. Safe to call from inside a tick."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def has_listener(self, listener: Callable) -> bool:
        return listener in self._listeners

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    # ===========================================================
    # Delayed Calls
    # ===========================================================

    def call_after(self, delay: float, func: Callable, *args) -> DelayedCall:
        """
        Schedule func(*args) to run once delay seconds of ticks have passed.

        Args:
            delay: Seconds to wait; zero or less runs on the next tick
            func: Callable to run
            *args: Arguments passed to func

        Returns:
            DelayedCall handle (call cancel() to drop it)
        """
        call = DelayedCall(max(delay, 0.0), func, args, self.frame_id)
        self._delayed.append(call)
        DebugLogger.trace(f"Delayed call scheduled in {call.delay:.2f}s", category="timing")
        return call

    def cancel(self, call: Optional[DelayedCall]) -> None:
        if call is not None:
            call.cancel()

    @property
    def pending_calls(self) -> int:
        return sum(1 for call in self._delayed if not call.done)

    # ===========================================================
    # Tick
    # ===========================================================

    def tick(self, dt: float = 0.0) -> None:
        """
        Advance one frame: run listeners, then due delayed calls.

        Listeners added during the tick first run on the next one; listeners
        removed during the tick are skipped if they have not run yet. Delayed
        calls scheduled during the tick start counting on the next one.

        Args:
            dt: Seconds since the previous tick
        """
        self.frame_id += 1
        self.dt = dt

        for listener in list(self._listeners):
            if listener in self._listeners:
                listener(self)

        if not self._delayed:
            return

        due = []
        for call in self._delayed:
            if call.done or call.frame_id == self.frame_id:
                continue
            call.elapsed += dt
            if call.elapsed >= call.delay:
                call.done = True
                due.append(call)

        self._delayed = [call for call in self._delayed if not call.done]

        for call in due:
            call.func(*call.args)
