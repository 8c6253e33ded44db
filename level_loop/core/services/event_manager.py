"""
event_manager.py
----------------
Named-event bus for decoupled communication between the level loop and
the rest of the game (scenes, overlays, level objects).
"""

from typing import Any, Callable, Dict, List
from level_loop.core.debug.debug_logger import DebugLogger


# ===========================================================
# Event Manager
# ===========================================================

class EventManager:
    """Central event dispatcher using pub-sub pattern, keyed by event name."""

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}
        DebugLogger.init("EventManager initialized", category="event_manager")

    # ===========================================================
    # Subscription
    # ===========================================================

    def subscribe(self, name: str, callback: Callable) -> None:
        """
        Register a callback for an event name.

        Args:
            name: Event name to listen for
            callback: Function called as callback(payload)
        """
        subscribers = self._subscribers.setdefault(name, [])

        if callback in subscribers:
            return

        subscribers.append(callback)
        callback_name = getattr(callback, '__name__', repr(callback))
        DebugLogger.system(
            f"Subscribed '{callback_name}' to '{name}'",
            category="event_manager"
        )

    def unsubscribe(self, name: str, callback: Callable) -> None:
        """
        Remove a callback from an event name.

        Args:
            name: Event name
            callback: Function to remove
        """
        if name in self._subscribers:
            try:
                self._subscribers[name].remove(callback)
            except ValueError:
                pass

    def unsubscribe_all(self, callback: Callable) -> None:
        """Remove a callback from every event name."""
        for subscribers in self._subscribers.values():
            try:
                subscribers.remove(callback)
            except ValueError:
                pass

    # ===========================================================
    # Dispatch
    # ===========================================================

    def dispatch(self, name: str, payload: Any = None) -> int:
        """
        Send payload to every callback registered for name, in order.

        A callback that raises stops the dispatch; the error is logged and
        propagated to the dispatcher.

        Args:
            name: Event name
            payload: Arbitrary payload handed to each callback

        Returns:
            int: Number of callbacks invoked
        """
        callbacks = self._subscribers.get(name)
        if not callbacks:
            DebugLogger.trace(f"No listeners for '{name}'", category="event_manager")
            return 0

        count = 0
        for callback in list(callbacks):
            try:
                callback(payload)
            except Exception as e:
                callback_name = getattr(callback, '__name__', repr(callback))
                DebugLogger.fail(f"Error in '{name}' callback {callback_name}: {e}", category="event")
                raise
            count += 1
        return count

    # ===========================================================
    # Lifecycle
    # ===========================================================

    def clear_event(self, name: str) -> None:
        """Remove all subscribers for a specific event name."""
        if name in self._subscribers:
            self._subscribers[name].clear()

    def clear_all(self) -> None:
        """Remove all subscribers."""
        self._subscribers.clear()

    def get_subscriber_count(self, name: str = None) -> int:
        """
        Get count of subscribers.

        Args:
            name: Specific event name, or None for total

        Returns:
            Number of subscribers
        """
        if name:
            return len(self._subscribers.get(name, []))
        return sum(len(subs) for subs in self._subscribers.values())


# ===========================================================
# Singleton Access
# ===========================================================

_EVENTS = None


def get_events() -> EventManager:
    """Get or create the event manager singleton."""
    global _EVENTS
    if _EVENTS is None:
        _EVENTS = EventManager()
    return _EVENTS


def reset_events() -> None:
    """Reset the singleton. Call on full game restart."""
    global _EVENTS
    _EVENTS = None
