"""
level_context.py
----------------
The record describing the level that is loading or loaded.

Responsibilities
----------------
- Hold level identity, dimensions, groups and layers (set once)
- Own the auxiliary data store and the deferred-reference registry
- Track the lifecycle stage (monotonic within a load) and load flags
"""

from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from level_loop.systems.level.deferred_registry import DeferredRegistry
from level_loop.systems.level.errors import LevelContextError


# ===========================================================
# Lifecycle Stages
# ===========================================================

class LifecycleStage(Enum):
    """Load stages, in the order they are published."""
    UNSET = "unset"
    ENTER_LEVEL = "enter_level"
    THINGS_LOADED = "things_loaded"
    READY_TO_DRAW = "ready_to_draw"
    READY_TO_GO = "ready_to_go"

    @property
    def rank(self) -> int:
        return _STAGE_ORDER.index(self)


_STAGE_ORDER = list(LifecycleStage)


class TeardownEvent(Enum):
    """Unload events, in the order they are published."""
    LEVEL_DONE = "level_done"
    PRE_LEAVE_LEVEL = "pre_leave_level"
    LEAVE_LEVEL = "leave_level"


UNLOAD_REASONS = ("won", "lost", "quit")


# ===========================================================
# Containers
# ===========================================================

class ObjectGroup:
    """Minimal group-like container used when no display group factory is set."""

    def __init__(self, parent: "ObjectGroup" = None, name: str = None):
        self.name = name
        self.parent = None
        self.children: List[Any] = []
        if parent is not None:
            parent.insert(self)

    def insert(self, obj) -> None:
        if isinstance(obj, ObjectGroup):
            if obj.parent is not None:
                obj.parent.remove(obj)
            obj.parent = self
        self.children.append(obj)

    def remove(self, obj) -> None:
        self.children.remove(obj)
        if isinstance(obj, ObjectGroup):
            obj.parent = None

    def __len__(self) -> int:
        return len(self.children)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.children)

    def __repr__(self):
        return f"ObjectGroup({self.name!r}, {len(self.children)} children)"


class AuxDataStore:
    """
    Lazily created per-level data, keyed by name.

    Entries are created on first request and never replaced; later requests
    return the existing entry and ignore the constructor arguments.
    """

    def __init__(self, group_factory: Callable = None):
        """
        Args:
            group_factory: Builds "group" entries; defaults to ObjectGroup
        """
        self._entries: Dict[str, Any] = {}
        self._group_factory = group_factory or ObjectGroup

    def get(self, name: str, default=None):
        return self._entries.get(name, default)

    def get_or_add(self, name: str, kind: Union[str, Callable] = "table", *args):
        """
        Fetch an entry, creating it on first request.

        Args:
            name: Entry name
            kind: "table" (empty dict), "group" (group container),
                  or a factory called as kind(*args)
            *args: Constructor arguments, used only on creation

        Returns:
            The entry stored under name
        """
        if name in self._entries:
            return self._entries[name]

        if kind == "table":
            entry = {}
        elif kind == "group":
            entry = self._group_factory(*args)
        elif callable(kind):
            entry = kind(*args)
        else:
            raise LevelContextError(f"Unknown data kind for '{name}': {kind!r}")

        self._entries[name] = entry
        return entry

    def names(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, name) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# ===========================================================
# Level Context
# ===========================================================

class LevelContext:
    """Mutable record for one in-flight or loaded level."""

    def __init__(self, which, group_factory: Callable = None):
        """
        Args:
            which: Level index, or "" for a level decoded from a blob
            group_factory: Factory for "group" auxiliary data entries
        """
        self._which = which

        # Dimensions (set once)
        self._dims: Optional[tuple] = None

        # Structure (named containers)
        self._groups: Dict[str, Any] = {}
        self._layers: Dict[str, Any] = {}
        self._sealed = False

        # Per-level data
        self.data = AuxDataStore(group_factory)
        self.pubsub: Optional[DeferredRegistry] = None

        # Lifecycle
        self.name = LifecycleStage.UNSET
        self.is_loaded = False
        self.why: Optional[str] = None

        # Hook-specific extension slot
        self.extra: Dict[str, Any] = {}

    # ===========================================================
    # Identity & Dimensions
    # ===========================================================

    @property
    def which(self):
        return self._which

    def set_dimensions(self, ncols: int, nrows: int, w: float, h: float) -> None:
        """
        Record columns, rows and tile size.

        Raises:
            LevelContextError: dimensions already set
        """
        if self._dims is not None:
            raise LevelContextError("Level dimensions already set")
        self._dims = (ncols, nrows, w, h)

    @property
    def has_dimensions(self) -> bool:
        return self._dims is not None

    @property
    def ncols(self) -> Optional[int]:
        return self._dims[0] if self._dims else None

    @property
    def nrows(self) -> Optional[int]:
        return self._dims[1] if self._dims else None

    @property
    def w(self) -> Optional[float]:
        return self._dims[2] if self._dims else None

    @property
    def h(self) -> Optional[float]:
        return self._dims[3] if self._dims else None

    # ===========================================================
    # Groups & Layers
    # ===========================================================

    def add_group(self, name: str, handle) -> None:
        self._add_named(self._groups, "group", name, handle)

    def add_layer(self, name: str, handle) -> None:
        self._add_named(self._layers, "layer", name, handle)

    def get_group(self, name: str):
        return self._groups.get(name)

    def get_layer(self, name: str):
        return self._layers.get(name)

    @property
    def group_names(self) -> List[str]:
        return list(self._groups)

    @property
    def layer_names(self) -> List[str]:
        return list(self._layers)

    def seal(self) -> None:
        """Freeze groups and layers; later additions raise."""
        self._sealed = True

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    def _add_named(self, table: dict, kind: str, name: str, handle):
        if self._sealed:
            raise LevelContextError(f"Cannot add {kind} '{name}': level structure is sealed")
        if name in table:
            raise LevelContextError(f"{kind.capitalize()} '{name}' already set")
        table[name] = handle

    # ===========================================================
    # Lifecycle
    # ===========================================================

    def advance_stage(self, stage: LifecycleStage) -> None:
        """
        Tag the context with a later lifecycle stage.

        Raises:
            LevelContextError: stage would move backwards
        """
        if stage.rank < self.name.rank:
            raise LevelContextError(
                f"Stage cannot move back from {self.name.value} to {stage.value}"
            )
        self.name = stage

    def __repr__(self):
        return (
            f"LevelContext(which={self._which!r}, stage={self.name.value}, "
            f"loaded={self.is_loaded})"
        )
