"""
stage_scheduler.py
------------------
Runs a long, multi-step procedure one increment per frame.

The procedure is a generator: each `yield` is a suspension point, and the
scheduler resumes it once per tick until it returns or raises. A run is
identified by a run id so a failure is always reported against the run
that produced it, never a later one.

Responsibilities
----------------
- Single-flight: one procedure at a time
- Register with the tick source while running, deregister on completion
- Turn escaped exceptions into StageFailure with the run's own trace
"""

import itertools
import traceback
from typing import Callable, Generator, Optional

from level_loop.core.debug.debug_logger import DebugLogger
from level_loop.core.runtime.frame_ticker import FrameTicker
from level_loop.systems.level.errors import AlreadyRunning, StageFailure


class StageScheduler:
    """Cooperative driver for one staged procedure at a time."""

    _run_ids = itertools.count(1)

    def __init__(self, ticker: FrameTicker, on_failure: Callable[[StageFailure], None] = None):
        """
        Args:
            ticker: Tick source resuming the procedure once per tick
            on_failure: Receives StageFailure; if omitted the failure is
                        raised out of the tick that hit it
        """
        self.ticker = ticker
        self.on_failure = on_failure

        self._procedure: Optional[Generator] = None
        self._owner = None
        self.run_id = 0
        self.checkpoint = None
        self.ticks = 0

    # ===========================================================
    # Control
    # ===========================================================

    def start(self, procedure: Generator, owner=None) -> int:
        """
        Begin a new run.

        Args:
            procedure: Generator to drive; whatever it yields is recorded
                       as the current checkpoint
            owner: Optional object exposing `step` (used in failure reports)

        Returns:
            int: Run id

        Raises:
            AlreadyRunning: a run is active
        """
        if self.is_running:
            raise AlreadyRunning(f"Run {self.run_id} still active")

        self._procedure = procedure
        self._owner = owner
        self.run_id = next(self._run_ids)
        self.checkpoint = None
        self.ticks = 0

        self.ticker.add_listener(self._on_tick)
        DebugLogger.state(f"Run {self.run_id} started", category="stage")
        return self.run_id

    def abort(self) -> bool:
        """
        Close an active run without finishing it.

        Returns:
            bool: True if a run was active
        """
        if not self.is_running:
            return False

        procedure = self._procedure
        run_id = self.run_id
        self._finish()

        # Aborted from inside its own step: closed by _on_tick once it yields
        if not procedure.gi_running:
            procedure.close()

        DebugLogger.warn(f"Run {run_id} aborted", category="stage")
        return True

    @property
    def is_running(self) -> bool:
        return self._procedure is not None

    # ===========================================================
    # Tick
    # ===========================================================

    def _on_tick(self, ticker):
        """Resume the procedure once."""
        if self._procedure is None:
            ticker.remove_listener(self._on_tick)
            return

        self.ticks += 1
        run_id = self.run_id
        procedure = self._procedure
        owner = self._owner

        try:
            checkpoint = next(procedure)
        except StopIteration:
            if self._procedure is procedure:
                self._finish()
                DebugLogger.state(f"Run {run_id} finished after {self.ticks} tick(s)", category="stage")
        except Exception as e:
            step = getattr(owner, "step", self.checkpoint)
            trace = "".join(traceback.format_exception(type(e), e, e.__traceback__))
            if self._procedure is procedure:
                self._finish()

            failure = StageFailure(run_id, step, trace, e)
            failure.__cause__ = e
            DebugLogger.fail(f"{failure}\n{trace}", category="stage")
            self._report(failure)
        else:
            if self._procedure is not procedure:
                procedure.close()
                return

            self.checkpoint = checkpoint
            DebugLogger.trace(
                f"Run {run_id} suspended at {getattr(checkpoint, 'name', checkpoint)}",
                category="stage"
            )

    def _finish(self):
        self.ticker.remove_listener(self._on_tick)
        self._procedure = None
        self._owner = None

    def _report(self, failure: StageFailure):
        if self.on_failure is None:
            raise failure
        self.on_failure(failure)
