"""Attempt loop, cancellation handling and statistics for solve requests."""

from __future__ import annotations

import random
import threading
import time
from dataclasses import dataclass
from typing import List, Optional

from ..core.constants import (
    DEFAULT_ATTEMPT_ITERATION_LIMIT,
    DEFAULT_HARD_TIMEOUT_SECONDS,
    DEFAULT_LONG_RUNNING_ATTEMPTS,
    Heuristic,
    RunOutcome,
    SearchState,
)
from ..core.models import RunStats
from ..utils.logger import get_logger
from .cancel import CancelToken
from .grid import SudokuGrid
from .solver import SearchEngine, choose_heuristic


LOGGER = get_logger(__name__)


@dataclass
class SolverConfig:
    long_running_attempts: int = DEFAULT_LONG_RUNNING_ATTEMPTS
    attempt_iteration_limit: Optional[int] = DEFAULT_ATTEMPT_ITERATION_LIMIT
    hard_timeout_seconds: Optional[float] = DEFAULT_HARD_TIMEOUT_SECONDS
    heuristic: Optional[Heuristic] = None
    seed: Optional[int] = None


@dataclass
class RunResult:
    outcome: RunOutcome
    run: RunStats
    cumulative: RunStats


class SolveListener:
    """Receives solve lifecycle events; override the hooks you need.

    Every hook is called on the worker thread with cumulative statistics,
    except :meth:`on_long_running_task`, which receives the statistics of
    the run in progress.
    """

    def on_solved(self, stats: RunStats) -> None:
        pass

    def on_paused(self, stats: RunStats) -> None:
        pass

    def on_long_running_task(self, stats: RunStats) -> None:
        pass


class CumulativeStats:
    """Thread-safe element-wise sum of run statistics since the last clear."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._runs: List[RunStats] = []

    def add(self, stats: RunStats) -> None:
        with self._lock:
            self._runs.append(stats)

    def get(self) -> RunStats:
        with self._lock:
            total = RunStats()
            for stats in self._runs:
                total = total + stats
            return total

    def clear_all_stats(self) -> None:
        with self._lock:
            self._runs.clear()


class RunCoordinator:
    """Repeats search attempts on a puzzle until it is solved or cancelled."""

    def __init__(
        self,
        grid: SudokuGrid,
        stats: Optional[CumulativeStats] = None,
        config: Optional[SolverConfig] = None,
    ) -> None:
        self.grid = grid
        self.stats = stats or CumulativeStats()
        self.config = config or SolverConfig()

    def run(
        self,
        cancel: Optional[CancelToken] = None,
        listener: Optional[SolveListener] = None,
    ) -> RunResult:
        cancel = cancel or CancelToken()
        rng = random.Random(self.config.seed)
        start = time.monotonic()
        attempts = 0
        steps = 0
        notified = False

        cancel.arm_timeout(self.config.hard_timeout_seconds)
        try:
            while True:
                attempts += 1
                if attempts > 1:
                    self.grid.reset_cells()
                heuristic = self.config.heuristic or choose_heuristic(rng)
                engine = SearchEngine(
                    self.grid,
                    heuristic,
                    rng,
                    max_iterations=self.config.attempt_iteration_limit,
                )
                steps += engine.solve(cancel)
                LOGGER.debug(
                    "Attempt %d (%s) ended %s after %d iterations",
                    attempts,
                    heuristic.value,
                    engine.state.value,
                    engine.iterations,
                )

                if (
                    not notified
                    and listener is not None
                    and attempts >= self.config.long_running_attempts
                ):
                    notified = True
                    listener.on_long_running_task(
                        RunStats(attempts, steps, self._elapsed_ms(start))
                    )

                unfinished = engine.state == SearchState.EXHAUSTED or not self.grid.is_solveable()
                if not unfinished or cancel.is_cancelled():
                    break
        finally:
            cancel.disarm()

        run_stats = RunStats(attempts, steps, self._elapsed_ms(start))
        self.stats.add(run_stats)
        cumulative = self.stats.get()

        if steps == 0:
            outcome = RunOutcome.NOTHING
        elif cancel.is_cancelled():
            outcome = RunOutcome.PAUSED
        else:
            outcome = RunOutcome.SOLVED
        LOGGER.info(
            "Solve run %s: %d attempts, %d steps, %d ms",
            outcome.value,
            run_stats.attempts,
            run_stats.steps,
            run_stats.elapsed_ms,
        )

        if listener is not None:
            if outcome == RunOutcome.PAUSED:
                listener.on_paused(cumulative)
            elif outcome == RunOutcome.SOLVED:
                listener.on_solved(cumulative)
        return RunResult(outcome=outcome, run=run_stats, cumulative=cumulative)

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)
