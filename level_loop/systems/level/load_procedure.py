"""
load_procedure.py
-----------------
The staged level-loading procedure.

run() is a generator driven by StageScheduler. It only suspends at the
FRAME_WAIT, OVERLAY_WAIT and SETTLE_WAIT checkpoints; every other step runs
to completion within the tick that reaches it. After each hook call and
each lifecycle event it checks `cancelled`, so a reset raised from inside a
step stops the load there. `step` always names the step currently
executing, for failure reports.
"""

from enum import IntEnum

from level_loop.core.debug.debug_logger import DebugLogger
from level_loop.systems.level.deferred_registry import DeferredRegistry
from level_loop.systems.level.level_context import LevelContext, LifecycleStage
from level_loop.systems.level.level_params import LevelParams
from level_loop.systems.level.loop_config import LoopConfig, call_hook


class LoadStep(IntEnum):
    """Program counter of the load procedure."""
    RESOLVE_LEVEL = 1
    BEFORE_ENTERING = 2
    BUILD_PARAMS = 3
    ENTER_LEVEL = 4
    ADD_THINGS = 5
    RESOLVE_REFERENCES = 6
    THINGS_LOADED = 7
    FRAME_WAIT = 8
    READY_TO_DRAW = 9
    OVERLAY_WAIT = 10
    SETTLE_WAIT = 11
    READY_TO_GO = 12


class LoadProcedure:
    """One level load, from raw identifier to a level ready to play."""

    def __init__(self, context: LevelContext, view, which, config: LoopConfig,
                 source, publisher, overlays):
        """
        Args:
            context: Fresh level context (owned by the controller)
            view: Scene view / container handed to the before-entering hook
            which: Level index, or an encoded level blob (str)
            config: Loop configuration (hooks, overlay names)
            source: Level source with decode(blob) and get_by_index(index)
            publisher: LifecyclePublisher
            overlays: OverlaySynchronizer
        """
        self.context = context
        self.view = view
        self.which = which
        self.config = config
        self.source = source
        self.publisher = publisher
        self.overlays = overlays

        self.step = None
        self.level = None
        self.params = None
        self.cancelled = False

    def cancel(self):
        """Stop at the next check; nothing more runs against the context."""
        self.cancelled = True

    def run(self):
        """Generator: yields a LoadStep at each suspension point."""
        context = self.context
        config = self.config

        # Level data, from a blob or from the catalog
        self.step = LoadStep.RESOLVE_LEVEL
        if isinstance(self.which, str):
            self.level = self.source.decode(self.which)
            call_hook(config.on_decode, self.level)
        else:
            self.level = self.source.get_by_index(self.which)
        if self.cancelled:
            return

        self.step = LoadStep.BEFORE_ENTERING
        call_hook(config.before_entering, self.view, context, self.level, self.source)
        if self.cancelled:
            return

        self.step = LoadStep.BUILD_PARAMS
        context.pubsub = DeferredRegistry()
        context.seal()
        self.params = LevelParams(context)

        self.step = LoadStep.ENTER_LEVEL
        self.publisher.publish_stage(context, LifecycleStage.ENTER_LEVEL, self.level, self.params)
        if self.cancelled:
            return

        self.step = LoadStep.ADD_THINGS
        call_hook(config.add_things, context, self.level, self.params)
        if self.cancelled:
            return

        self.step = LoadStep.RESOLVE_REFERENCES
        context.pubsub.resolve()
        context.pubsub = None

        self.step = LoadStep.THINGS_LOADED
        self.publisher.publish_stage(context, LifecycleStage.THINGS_LOADED, self.level, self.params)
        if self.cancelled:
            return

        # Loading may have been slow; give new objects a fresh frame so the
        # load time is not counted against them.
        self.step = LoadStep.FRAME_WAIT
        yield LoadStep.FRAME_WAIT

        self.step = LoadStep.READY_TO_DRAW
        self.publisher.publish_stage(context, LifecycleStage.READY_TO_DRAW, self.level, self.params)
        if self.cancelled:
            return

        self.step = LoadStep.OVERLAY_WAIT
        done = []
        self.overlays.request_overlay(config.start_overlay, done.append, True)
        while not done:
            yield LoadStep.OVERLAY_WAIT

        self.step = LoadStep.SETTLE_WAIT
        yield LoadStep.SETTLE_WAIT

        self.step = LoadStep.READY_TO_GO
        self.publisher.publish_stage(context, LifecycleStage.READY_TO_GO, self.level, self.params)
        if self.cancelled:
            return
        context.is_loaded = True

        DebugLogger.action(f"Level {context.which!r} loaded", category="loop")
