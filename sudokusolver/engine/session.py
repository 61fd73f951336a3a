"""Application session: the live grid, the single worker and its statistics.

A session replaces process-wide "current puzzle" and "current task"
globals. It owns exactly one live :class:`SudokuGrid` and runs at most one
solve or generation computation at a time on a dedicated worker thread.
"""

from __future__ import annotations

import random
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, TypeVar

from ..core.constants import GenerationStrategy
from ..core.exceptions import InterruptedByCancellation, PreconditionViolation, SudokuError
from ..core.models import RunStats
from ..utils.logger import get_logger
from .cancel import CancelToken
from .changes import ChangeListener, Subscription
from .coordinator import CumulativeStats, RunCoordinator, RunResult, SolveListener, SolverConfig
from .generator import BoardGenerator, GenerationResult, GeneratorConfig
from .grid import SudokuGrid


LOGGER = get_logger(__name__)

T = TypeVar("T")


class SudokuSession:
    """Owns the live grid and serializes background work on one thread."""

    def __init__(
        self,
        grid: Optional[SudokuGrid] = None,
        solver_config: Optional[SolverConfig] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.grid = grid or SudokuGrid()
        self.solver_config = solver_config or SolverConfig()
        self.stats = CumulativeStats()
        self.rng = random.Random(seed)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sudoku-worker")
        self._lock = threading.Lock()
        self._future: Optional[Future] = None
        self._cancel: Optional[CancelToken] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def close(self) -> None:
        self.cancel()
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "SudokuSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def is_running(self) -> bool:
        future = self._future
        return future is not None and not future.done()

    def cancel(self) -> None:
        token = self._cancel
        if token is not None and self.is_running():
            LOGGER.info("Cancellation requested")
            token.cancel()

    # ------------------------------------------------------------------
    # Board requests
    # ------------------------------------------------------------------
    def start_new_board(
        self,
        filled_cells: int,
        strategy: Optional[GenerationStrategy] = None,
        config: Optional[GeneratorConfig] = None,
    ) -> "Future[Optional[GenerationResult]]":
        """Reset the live grid and generate a new puzzle on the worker.

        ``strategy`` defaults to the one in ``config``, or carving. A
        ``config`` that disagrees with ``filled_cells`` or an explicit
        ``strategy`` raises :class:`PreconditionViolation`.
        """
        generator_config = self._generator_config(filled_cells, strategy, config)
        return self._start_generation(generator_config, self.grid)

    def build_new_board(
        self,
        filled_cells: int,
        strategy: Optional[GenerationStrategy] = None,
        config: Optional[GeneratorConfig] = None,
    ) -> SudokuGrid:
        """Generate a new puzzle into the live grid and wait for it."""
        self.start_new_board(filled_cells, strategy, config).result()
        return self.grid

    def build_new_board_with_listener(
        self,
        filled_cells: int,
        listener: ChangeListener,
        strategy: Optional[GenerationStrategy] = None,
        config: Optional[GeneratorConfig] = None,
    ) -> Subscription:
        """Replace the live grid, subscribe ``listener`` and generate into it."""
        generator_config = self._generator_config(filled_cells, strategy, config)
        grid = SudokuGrid()
        subscription = grid.add_listener(listener)
        self._start_generation(generator_config, grid).result()
        return subscription

    # ------------------------------------------------------------------
    # Solve requests
    # ------------------------------------------------------------------
    def solve(self, listener: Optional[SolveListener] = None) -> "Future[Optional[RunResult]]":
        coordinator = RunCoordinator(self.grid, self.stats, self.solver_config)
        return self._submit(lambda token: coordinator.run(token, listener))

    def reset_cells(self) -> None:
        with self._lock:
            self._ensure_idle()
            self.grid.reset_cells()

    def reset_all_cells(self) -> None:
        with self._lock:
            self._ensure_idle()
            self.grid.reset_all_cells()
            self.stats.clear_all_stats()

    def get_solve_stats(self) -> RunStats:
        return self.stats.get()

    def clear_all_stats(self) -> None:
        self.stats.clear_all_stats()

    # ------------------------------------------------------------------
    # Worker plumbing
    # ------------------------------------------------------------------
    @staticmethod
    def _generator_config(
        filled_cells: int,
        strategy: Optional[GenerationStrategy],
        config: Optional[GeneratorConfig],
    ) -> GeneratorConfig:
        if config is None:
            return GeneratorConfig(
                filled_cells=filled_cells,
                strategy=strategy or GenerationStrategy.CARVE,
            )
        if config.filled_cells != filled_cells:
            raise PreconditionViolation(
                f"filled_cells={filled_cells} disagrees with config ({config.filled_cells})"
            )
        if strategy is not None and strategy != config.strategy:
            raise PreconditionViolation(
                f"strategy={strategy.value} disagrees with config ({config.strategy.value})"
            )
        return config

    def _start_generation(
        self, config: GeneratorConfig, grid: SudokuGrid
    ) -> "Future[Optional[GenerationResult]]":
        generator = BoardGenerator(config, rng=random.Random(self.rng.getrandbits(32)))

        def generate(token: CancelToken) -> GenerationResult:
            # Runs on the worker so no other task can be touching the grid.
            grid.reset_all_cells()
            self.stats.clear_all_stats()
            return generator.generate(grid, token)

        return self._submit(generate, grid)

    def _ensure_idle(self) -> None:
        if self.is_running():
            raise PreconditionViolation("A solve or generation task is already running")

    def _submit(
        self, work: Callable[[CancelToken], T], grid: Optional[SudokuGrid] = None
    ) -> "Future[Optional[T]]":
        """Queue ``work`` if idle; ``grid`` becomes the live grid once accepted."""
        with self._lock:
            self._ensure_idle()
            if grid is not None:
                self.grid = grid
            token = CancelToken()
            self._cancel = token
            self._future = self._executor.submit(self._run_task, work, token)
            return self._future

    @staticmethod
    def _run_task(work: Callable[[CancelToken], T], token: CancelToken) -> Optional[T]:
        try:
            return work(token)
        except InterruptedByCancellation as exc:
            LOGGER.info("Background task cancelled: %s", exc)
            return None
        except SudokuError:
            raise
        except Exception:
            LOGGER.exception("Background task failed")
            return None
