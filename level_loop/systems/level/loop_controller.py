"""
loop_controller.py
------------------
Top-level level loop: load_level() / unload_level() over a single level slot.

Architecture
------------
Delegates to specialized parts:
- StageScheduler: resumes the load procedure once per tick
- LoadProcedure: the staged load itself
- LifecyclePublisher: enter/things_loaded/ready/leave events
- OverlaySynchronizer: start / won / lost overlays

Responsibilities
----------------
- Own the one LevelContext slot: EMPTY → LOADING → LOADED → UNLOADING → EMPTY
- Reject re-entrant loads and premature unloads
- Pick the value set (return destination, end delay) from the origin scene
- Release the slot when the external reset event arrives
"""

from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Callable, Optional

from level_loop.core.debug.debug_logger import DebugLogger
from level_loop.core.runtime.frame_ticker import FrameTicker
from level_loop.core.services.event_manager import EventManager, get_events
from level_loop.core.services.scene_manager import SceneManager
from level_loop.systems.level.errors import (
    AlreadyLoaded,
    AlreadyLoading,
    StageFailure,
    UnknownUnloadReason,
    UnloadWhileLoading,
    UnloadWithoutLoad,
)
from level_loop.systems.level.level_context import LevelContext, TeardownEvent, UNLOAD_REASONS
from level_loop.systems.level.level_source import LevelCatalog
from level_loop.systems.level.lifecycle import LifecyclePublisher
from level_loop.systems.level.load_procedure import LoadProcedure
from level_loop.systems.level.loop_config import LoopConfig, LoopValues, call_hook
from level_loop.systems.level.overlay_sync import OverlaySynchronizer
from level_loop.systems.level.stage_scheduler import StageScheduler


class LoopState(Enum):
    """State of the level slot."""
    EMPTY = "empty"
    LOADING = "loading"
    LOADED = "loaded"
    UNLOADING = "unloading"
    FAILED = "failed"  # left behind by a stage failure; needs a reset


@dataclass(frozen=True)
class LeaveInfo:
    """Argument of the unload overlay callback and of callable return_to values."""
    which: object
    why: str


class LoopController:
    """Loads and unloads one level at a time inside the frame loop."""

    def __init__(self, config: LoopConfig = None, events: EventManager = None,
                 ticker: FrameTicker = None, scenes=None, source=None,
                 on_failure: Callable[[StageFailure], None] = None):
        """
        Args:
            config: Loop configuration (loaded from game_loop.yaml if omitted)
            events: Event bus for lifecycle events and the reset signal
            ticker: Tick source driving the load
            scenes: Navigator with go_to_scene(name, effect) and coming_from()
            source: Level source with decode(blob) and get_by_index(index)
            on_failure: Receives load failures; if omitted they are raised
                        out of the tick that hit them
        """
        DebugLogger.init_entry("LoopController")

        self.config = config if config is not None else LoopConfig.load()
        self.events = events or get_events()
        self.ticker = ticker or FrameTicker()
        self.scenes = scenes or SceneManager(self.events, self.config.reset_event)
        self.source = source or LevelCatalog.load()
        self.on_failure = on_failure

        self.values: LoopValues = self.config.values_for(None)

        self.scheduler = StageScheduler(self.ticker, self._on_stage_failure)
        self.publisher = LifecyclePublisher(self.events)
        self.overlays = OverlaySynchronizer(
            self.events,
            self._is_normal_play,
            suppressed=self.config.suppress_overlays,
        )

        # Level slot
        self._context: Optional[LevelContext] = None
        self._procedure: Optional[LoadProcedure] = None
        self._unloading = False
        self._pending_leave = None

        self.events.subscribe(self.config.reset_event, self._on_reset)
        DebugLogger.init_sub(f"Listening for reset on '{self.config.reset_event}'")

        call_hook(self.config.on_init, self)

    # ===========================================================
    # Loading
    # ===========================================================

    def load_level(self, view, which) -> None:
        """
        Start loading a level; progress is reported through lifecycle events.

        Args:
            view: Scene view / container handed to the before-entering hook
            which: Level index (int), or a level blob (str) to decode

        Raises:
            AlreadyLoading: a load is in progress
            AlreadyLoaded: a level is present (loaded, or left by a failed load)
        """
        if self.scheduler.is_running:
            DebugLogger.fail("Load already in progress", category="loop")
            raise AlreadyLoading("Load already in progress")

        if self._context is not None:
            DebugLogger.fail("Level not unloaded", category="loop")
            raise AlreadyLoaded("Level not unloaded")

        if isinstance(which, bool) or not isinstance(which, (int, str)):
            raise TypeError(f"Level must be an index or an encoded blob, got {type(which).__name__}")

        self.values = self.config.values_for(self.scenes.coming_from())

        context = LevelContext("" if isinstance(which, str) else which, self.config.new_group)
        procedure = LoadProcedure(
            context, view, which, self.config, self.source, self.publisher, self.overlays
        )

        self._context = context
        self._procedure = procedure
        self._unloading = False

        DebugLogger.section(f"Loading level {context.which!r} ({self.values.kind})")
        self.scheduler.start(procedure.run(), owner=procedure)

    # ===========================================================
    # Unloading
    # ===========================================================

    def unload_level(self, why: str) -> None:
        """
        Unload the current level and return to the configured destination.

        Args:
            why: "won", "lost" or "quit"

        Raises:
            UnknownUnloadReason: why is not a known reason
            UnloadWithoutLoad: no level present
            UnloadWhileLoading: a load is in progress
        """
        if why not in UNLOAD_REASONS:
            raise UnknownUnloadReason(f"Unknown unload reason '{why}' (expected one of {UNLOAD_REASONS})")

        context = self._context
        if context is None:
            DebugLogger.fail("No level to unload", category="loop")
            raise UnloadWithoutLoad("No level to unload")

        if self.scheduler.is_running:
            DebugLogger.fail("Cannot unload: load in progress", category="loop")
            raise UnloadWhileLoading("Cannot unload: load in progress")

        if not context.is_loaded:
            DebugLogger.trace(f"Unload '{why}' ignored: level not loaded", category="loop")
            return

        context.is_loaded = False
        context.why = why
        self._unloading = True

        DebugLogger.section(f"Unloading level {context.which!r} ({why})")
        self.publisher.publish_teardown(context, TeardownEvent.LEVEL_DONE, why)

        self.overlays.request_overlay(
            self.config.overlay_for(why),
            partial(self._leave, context),
            LeaveInfo(context.which, why),
        )

    def _leave(self, context: LevelContext, info: LeaveInfo):
        """Announce leaving, then head for the return destination."""
        if context is not self._context:
            DebugLogger.trace(f"Leave for released level {context.which!r} dropped", category="loop")
            return

        self.publisher.publish_teardown(context, TeardownEvent.PRE_LEAVE_LEVEL, info.why)
        self.publisher.publish_teardown(context, TeardownEvent.LEAVE_LEVEL, info.why)
        if context is not self._context:
            return

        return_to = self.values.return_to
        if callable(return_to):
            return_to = return_to(info)

        if not return_to:
            DebugLogger.warn(f"No return destination for '{self.values.kind}' play", category="loop")
            return

        delay = self.values.wait_to_end
        if delay > 0:
            DebugLogger.state(f"Leaving for '{return_to}' in {delay:.2f}s", category="loop")
            self._pending_leave = self.ticker.call_after(delay, self._go_to, return_to)
        else:
            self._go_to(return_to)

    def _go_to(self, destination: str):
        self._pending_leave = None
        self.scenes.go_to_scene(destination, self.config.leave_effect)

    # ===========================================================
    # Reset / Failure
    # ===========================================================

    def _on_reset(self, _payload=None):
        """External 'level unloaded' signal: empty the slot unconditionally."""
        if self._procedure is not None:
            self._procedure.cancel()
        if self.scheduler.abort():
            DebugLogger.warn("Reset arrived mid-load - load abandoned", category="loop")

        if self._pending_leave is not None:
            self._pending_leave.cancel()
            self._pending_leave = None

        context = self._context
        self._context = None
        self._procedure = None
        self._unloading = False

        if context is not None:
            call_hook(self.config.cleanup, context)
            DebugLogger.state(f"Level {context.which!r} released", category="loop")

        call_hook(self.config.reset_level)

    def _on_stage_failure(self, failure: StageFailure):
        """A failed load keeps its context; only a reset clears the slot."""
        which = self._context.which if self._context is not None else None
        DebugLogger.fail(f"Level {which!r} left in failed state", category="loop")
        if self.on_failure is None:
            raise failure
        self.on_failure(failure)

    # ===========================================================
    # Queries
    # ===========================================================

    @property
    def state(self) -> LoopState:
        if self._context is None:
            return LoopState.EMPTY
        if self.scheduler.is_running:
            return LoopState.LOADING
        if self._context.is_loaded:
            return LoopState.LOADED
        if self._unloading:
            return LoopState.UNLOADING
        return LoopState.FAILED

    @property
    def context(self) -> Optional[LevelContext]:
        return self._context

    @property
    def procedure(self) -> Optional[LoadProcedure]:
        return self._procedure

    def get_wait_to_end_time(self) -> float:
        """End-of-level delay of the value set in effect."""
        return self.values.wait_to_end

    def _is_normal_play(self) -> bool:
        return self.values.kind == "normal"

    def close(self) -> None:
        """Stop listening for resets and drop any in-flight load."""
        self.scheduler.abort()
        self.events.unsubscribe(self.config.reset_event, self._on_reset)
