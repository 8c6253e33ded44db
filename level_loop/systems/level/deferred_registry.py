"""
deferred_registry.py
--------------------
Forward references recorded while level objects are being built.

Objects publish themselves under a key; other objects subscribe to a key
they may reference before it exists. resolve() runs once, after every
object has been added, and hands each subscriber its published object.
"""

from typing import Any, Callable, Dict, List, Tuple

from level_loop.core.debug.debug_logger import DebugLogger
from level_loop.systems.level.errors import DeferredReferenceError


class DeferredRegistry:
    """One-shot publish/subscribe table for cross-references."""

    def __init__(self):
        self._published: Dict[Any, Any] = {}
        self._pending: List[Tuple[Any, Callable]] = []
        self.resolved = False

    def publish(self, key, obj) -> None:
        """
        Record obj under key.

        Raises:
            DeferredReferenceError: key already published, or registry resolved
        """
        self._check_open("publish")
        if key in self._published:
            raise DeferredReferenceError(f"Key '{key}' published twice")
        self._published[key] = obj

    def subscribe(self, key, callback: Callable) -> None:
        """
        Ask for callback(obj) once the object published under key exists.

        Raises:
            DeferredReferenceError: registry already resolved
        """
        self._check_open("subscribe")
        self._pending.append((key, callback))

    def resolve(self) -> int:
        """
        Dispatch every subscription, in subscription order.

        Returns:
            int: Number of callbacks invoked

        Raises:
            DeferredReferenceError: already resolved, or keys never published
        """
        self._check_open("resolve")

        missing = sorted({repr(key) for key, _ in self._pending if key not in self._published})
        if missing:
            raise DeferredReferenceError(f"Unresolved references: {', '.join(missing)}")

        self.resolved = True
        pending, self._pending = self._pending, []

        for key, callback in pending:
            callback(self._published[key])

        DebugLogger.trace(
            f"Resolved {len(pending)} reference(s) over {len(self._published)} object(s)",
            category="level"
        )
        return len(pending)

    # ===========================================================
    # Queries
    # ===========================================================

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def is_published(self, key) -> bool:
        return key in self._published

    def _check_open(self, what: str):
        if self.resolved:
            raise DeferredReferenceError(f"Cannot {what}: references already resolved")
