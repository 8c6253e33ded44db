"""
level_params.py
---------------
Read-only view of a LevelContext handed to the "add things" hook and to
lifecycle listeners.

Every lookup is explicit (groups, layers, data, references); nothing falls
through to the context implicitly.
"""

from typing import Callable, Union

from level_loop.systems.level.deferred_registry import DeferredRegistry
from level_loop.systems.level.errors import DeferredReferenceError
from level_loop.systems.level.level_context import LevelContext


class LevelParams:
    """Parameter-lookup facade bound to one level context."""

    __slots__ = ("_context",)

    def __init__(self, context: LevelContext):
        self._context = context

    # ===========================================================
    # Identity & Dimensions
    # ===========================================================

    @property
    def which(self):
        return self._context.which

    @property
    def ncols(self):
        return self._context.ncols

    @property
    def nrows(self):
        return self._context.nrows

    @property
    def w(self):
        return self._context.w

    @property
    def h(self):
        return self._context.h

    # ===========================================================
    # Structure
    # ===========================================================

    def get_group(self, name: str):
        """Named group handle, or None."""
        return self._context.get_group(name)

    def get_layer(self, name: str):
        """Named layer handle, or None."""
        return self._context.get_layer(name)

    # ===========================================================
    # Auxiliary Data
    # ===========================================================

    def get_data(self, name: str, default=None):
        """Existing data entry, or default (never creates one)."""
        return self._context.data.get(name, default)

    def get_or_add_data(self, name: str, kind: Union[str, Callable] = "table", *args):
        """
        Existing data entry, created on first request.

        Args:
            name: Entry name
            kind: "table", "group" or a factory callable
            *args: Constructor arguments (ignored once the entry exists)
        """
        return self._context.data.get_or_add(name, kind, *args)

    # ===========================================================
    # Deferred References
    # ===========================================================

    def publish(self, key, obj) -> None:
        """Make obj available to subscribers of key once loading resolves."""
        self._registry().publish(key, obj)

    def subscribe(self, key, callback: Callable) -> None:
        """Receive the object published under key once loading resolves."""
        self._registry().subscribe(key, callback)

    def _registry(self) -> DeferredRegistry:
        pubsub = self._context.pubsub
        if pubsub is None:
            raise DeferredReferenceError("No deferred references accepted outside of level loading")
        return pubsub
