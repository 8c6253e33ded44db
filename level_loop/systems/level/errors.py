"""
errors.py
---------
Exception types raised by the level loop.
"""


class LoopError(Exception):
    """Base class for level loop errors."""


# ===========================================================
# Guard Violations (raised synchronously at the call boundary)
# ===========================================================

class GuardViolation(LoopError):
    """A load/unload request made from a state that does not allow it."""


class AlreadyLoading(GuardViolation):
    """load_level() while a load is still in progress."""


class AlreadyLoaded(GuardViolation):
    """load_level() while a level (loaded or left by a failed load) is present."""


class UnloadWithoutLoad(GuardViolation):
    """unload_level() with no level present."""


class UnloadWhileLoading(GuardViolation):
    """unload_level() while a load is still in progress."""


class UnknownUnloadReason(LoopError, ValueError):
    """unload_level() with a reason other than won / lost / quit."""


# ===========================================================
# Scheduling
# ===========================================================

class AlreadyRunning(LoopError):
    """StageScheduler.start() while a run is active."""


class StageFailure(LoopError):
    """An exception escaped a step of the staged load procedure."""

    def __init__(self, run_id: int, step, trace: str, error: BaseException):
        self.run_id = run_id
        self.step = step
        self.trace = trace
        self.error = error
        step_name = getattr(step, "name", step)
        super().__init__(f"Load run {run_id} failed during {step_name}: {error!r}")


# ===========================================================
# Level Data
# ===========================================================

class LevelContextError(LoopError):
    """Level context used outside of its set-once / monotonic rules."""


class DeferredReferenceError(LoopError):
    """Deferred-reference registry misuse or unresolved references."""


class LevelNotFound(LoopError, LookupError):
    """No level registered under the requested index."""


class LevelDecodeError(LoopError, ValueError):
    """An encoded level blob could not be decoded."""
