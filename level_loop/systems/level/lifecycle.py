"""
lifecycle.py
------------
Lifecycle notifications for the level being loaded or unloaded.

Load:    enter_level → things_loaded → ready_to_draw → ready_to_go
Unload:  level_done → pre_leave_level → leave_level

Every payload references the same LevelContext, so listeners see the
level's current state rather than a copy.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from level_loop.core.debug.debug_logger import DebugLogger
from level_loop.core.services.event_manager import EventManager
from level_loop.systems.level.level_context import LevelContext, LifecycleStage, TeardownEvent
from level_loop.systems.level.level_params import LevelParams


@dataclass(frozen=True)
class LevelEvent:
    """Payload of every lifecycle event."""
    name: str
    context: LevelContext
    level: Optional[Dict[str, Any]] = None
    params: Optional[LevelParams] = None
    why: Optional[str] = None

    @property
    def which(self):
        return self.context.which

    @property
    def extra(self) -> Dict[str, Any]:
        return self.context.extra


class LifecyclePublisher:
    """Tags the level context and hands it to the event bus."""

    def __init__(self, events: EventManager):
        self.events = events

    def publish_stage(self, context: LevelContext, stage: LifecycleStage,
                      level=None, params: LevelParams = None) -> LevelEvent:
        """
        Move the context to `stage` and dispatch the matching event.

        Raises:
            LevelContextError: stage would move backwards
        """
        context.advance_stage(stage)
        event = LevelEvent(stage.value, context, level, params)

        DebugLogger.state(f"Level {context.which!r}: {stage.value}", category="lifecycle")
        self.events.dispatch(stage.value, event)
        return event

    def publish_teardown(self, context: LevelContext, kind: TeardownEvent, why: str) -> LevelEvent:
        """Dispatch one of the unload events with the unload reason."""
        event = LevelEvent(kind.value, context, why=why)

        DebugLogger.state(f"Level {context.which!r}: {kind.value} ({why})", category="lifecycle")
        self.events.dispatch(kind.value, event)
        return event
