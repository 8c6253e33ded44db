"""
Level system exports.

Provides the loop controller and the parts it coordinates: staged loading,
level context, lifecycle events, overlays and level sources.
"""

from level_loop.systems.level.errors import (
    LoopError,
    GuardViolation,
    AlreadyLoading,
    AlreadyLoaded,
    UnloadWithoutLoad,
    UnloadWhileLoading,
    UnknownUnloadReason,
    AlreadyRunning,
    StageFailure,
    LevelContextError,
    DeferredReferenceError,
    LevelNotFound,
    LevelDecodeError,
)
from level_loop.systems.level.level_context import (
    LevelContext,
    LifecycleStage,
    TeardownEvent,
    ObjectGroup,
)
from level_loop.systems.level.level_params import LevelParams
from level_loop.systems.level.deferred_registry import DeferredRegistry
from level_loop.systems.level.level_source import LevelCatalog, decode_level, encode_level
from level_loop.systems.level.stage_scheduler import StageScheduler
from level_loop.systems.level.overlay_sync import OverlaySynchronizer, ShowOverlayRequest
from level_loop.systems.level.lifecycle import LifecyclePublisher, LevelEvent
from level_loop.systems.level.load_procedure import LoadProcedure, LoadStep
from level_loop.systems.level.loop_config import LoopConfig, LoopValues
from level_loop.systems.level.loop_controller import LoopController, LoopState, LeaveInfo

__all__ = [
    # Controller
    'LoopController',
    'LoopState',
    'LeaveInfo',
    'LoopConfig',
    'LoopValues',
    # Loading
    'StageScheduler',
    'LoadProcedure',
    'LoadStep',
    # Level data
    'LevelContext',
    'LevelParams',
    'DeferredRegistry',
    'ObjectGroup',
    'LevelCatalog',
    'decode_level',
    'encode_level',
    # Events & overlays
    'LifecycleStage',
    'TeardownEvent',
    'LifecyclePublisher',
    'LevelEvent',
    'OverlaySynchronizer',
    'ShowOverlayRequest',
    # Errors
    'LoopError',
    'GuardViolation',
    'AlreadyLoading',
    'AlreadyLoaded',
    'UnloadWithoutLoad',
    'UnloadWhileLoading',
    'UnknownUnloadReason',
    'AlreadyRunning',
    'StageFailure',
    'LevelContextError',
    'DeferredReferenceError',
    'LevelNotFound',
    'LevelDecodeError',
]
