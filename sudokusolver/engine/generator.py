"""Puzzle generation.

Two strategies:
  1. Solve-then-carve: solve a private scratch grid, then copy a random
     subset of its values into the target grid.
  2. Mask-fill: fill the target toward a letter pattern under a random
     letter-to-digit bijection, skipping cells whose groups would lose too
     much slack. No search is involved.

Both require an empty target and finish by locking the filled cells.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.constants import (
    CELL_COUNT,
    DEFAULT_ATTEMPT_ITERATION_LIMIT,
    DEFAULT_HARD_TIMEOUT_SECONDS,
    DEFAULT_MIN_SLACK,
    FILLED_CELLS_RANGE,
    GenerationStrategy,
    Heuristic,
    SearchState,
)
from ..core.exceptions import GenerationError, InterruptedByCancellation, PreconditionViolation
from ..core.models import Cell
from ..data.masks import build_letter_map, parse_mask, random_mask
from ..utils.logger import get_logger
from . import cp_solver
from .cancel import CancelToken
from .grid import SudokuGrid
from .solver import SearchEngine


LOGGER = get_logger(__name__)


@dataclass
class GeneratorConfig:
    filled_cells: int
    strategy: GenerationStrategy = GenerationStrategy.CARVE
    mask: Optional[str] = None
    masks: Optional[Sequence[str]] = None
    min_slack: int = DEFAULT_MIN_SLACK
    solve_timeout_seconds: Optional[float] = DEFAULT_HARD_TIMEOUT_SECONDS
    attempt_iteration_limit: Optional[int] = DEFAULT_ATTEMPT_ITERATION_LIMIT
    seed: Optional[int] = None
    verify_with_cp_sat: bool = False
    cp_sat_timeout_seconds: float = 10.0
    retry_limit: int = 5


@dataclass
class GenerationResult:
    grid: SudokuGrid
    strategy: GenerationStrategy
    filled_cells: int
    mask: Optional[str] = None
    letter_map: Optional[Dict[str, int]] = None
    scratch_rounds: int = 0
    elapsed_ms: int = 0


def random_filled_count(
    rng: random.Random,
    low: int = FILLED_CELLS_RANGE[0],
    high: int = FILLED_CELLS_RANGE[1],
) -> int:
    """Sample a given count in ``[low, high)``."""
    return rng.randrange(low, high)


class BoardGenerator:
    """Builds new puzzles into an empty target grid."""

    def __init__(self, config: GeneratorConfig, rng: Optional[random.Random] = None) -> None:
        self.config = config
        self.rng = rng or random.Random(config.seed)

    # ------------------------------------------------------------------
    # Public entrypoints
    # ------------------------------------------------------------------
    def generate(self, target: SudokuGrid, cancel: Optional[CancelToken] = None) -> GenerationResult:
        if self.config.strategy == GenerationStrategy.MASK:
            return self.mask_fill(target, cancel)
        return self.solve_then_carve(target, cancel)

    def solve_then_carve(
        self, target: SudokuGrid, cancel: Optional[CancelToken] = None
    ) -> GenerationResult:
        self._check_preconditions(target)
        start = time.monotonic()
        LOGGER.info("Generating board by carving %d cells", self.config.filled_cells)

        solved, rounds = self._solved_board(cancel)
        self._carve(solved, target)
        target.lock_filled_cells()

        return GenerationResult(
            grid=target,
            strategy=GenerationStrategy.CARVE,
            filled_cells=self.config.filled_cells,
            scratch_rounds=rounds,
            elapsed_ms=int((time.monotonic() - start) * 1000),
        )

    def mask_fill(
        self, target: SudokuGrid, cancel: Optional[CancelToken] = None
    ) -> GenerationResult:
        self._check_preconditions(target)
        start = time.monotonic()

        for attempt in range(1, self.config.retry_limit + 1):
            mask = parse_mask(self.config.mask or random_mask(self.rng, self.config.masks))
            letter_map = build_letter_map(self.rng)
            LOGGER.info(
                "Mask fill attempt %s/%s for %d cells",
                attempt,
                self.config.retry_limit,
                self.config.filled_cells,
            )
            try:
                self._fill_from_mask(target, mask, letter_map, cancel)
            except (InterruptedByCancellation, GenerationError):
                target.reset_all_cells()
                raise

            if self.config.verify_with_cp_sat and cp_solver.solve_values(
                target.values(), timeout=self.config.cp_sat_timeout_seconds
            ) is None:
                LOGGER.warning("Mask fill produced an unsolvable board, retrying")
                target.reset_all_cells()
                continue

            target.lock_filled_cells()
            return GenerationResult(
                grid=target,
                strategy=GenerationStrategy.MASK,
                filled_cells=self.config.filled_cells,
                mask=mask,
                letter_map=letter_map,
                elapsed_ms=int((time.monotonic() - start) * 1000),
            )
        raise GenerationError(
            f"Unable to build a solvable mask board after {self.config.retry_limit} attempts"
        )

    # ------------------------------------------------------------------
    # Solve-then-carve helpers
    # ------------------------------------------------------------------
    def _solved_board(self, cancel: Optional[CancelToken]) -> Tuple[SudokuGrid, int]:
        rounds = 0
        while True:
            rounds += 1
            scratch = SudokuGrid()
            token = CancelToken(parent=cancel)
            token.arm_timeout(self.config.solve_timeout_seconds)
            try:
                attempts = self._solve_scratch(scratch, token)
                LOGGER.debug("Scratch board solved in %d attempts", attempts)
                return scratch, rounds
            except InterruptedByCancellation:
                if cancel is not None and cancel.is_cancelled():
                    raise
                LOGGER.warning("Scratch solve timed out, restarting from an empty board")
            finally:
                token.disarm()

    def _solve_scratch(self, scratch: SudokuGrid, token: CancelToken) -> int:
        attempts = 0
        while not scratch.is_solved():
            attempts += 1
            if attempts > 1:
                scratch.reset_cells()
            engine = SearchEngine(
                scratch,
                Heuristic.FEWEST_CANDIDATES,
                self.rng,
                max_iterations=self.config.attempt_iteration_limit,
            )
            engine.solve(token)
            if engine.state == SearchState.STUCK:
                raise InterruptedByCancellation("Scratch solve cancelled")
        return attempts

    def _carve(self, solved: SudokuGrid, target: SudokuGrid) -> None:
        copied = 0
        for cell_id in self.rng.sample(range(CELL_COUNT), CELL_COUNT):
            if copied >= self.config.filled_cells:
                break
            cell = target.cell(cell_id)
            if not cell.is_empty():
                continue
            target.set_value(cell, solved.cell(cell_id).value)
            copied += 1

    # ------------------------------------------------------------------
    # Mask-fill helpers
    # ------------------------------------------------------------------
    def _fill_from_mask(
        self,
        target: SudokuGrid,
        mask: str,
        letter_map: Dict[str, int],
        cancel: Optional[CancelToken],
    ) -> None:
        filled = 0
        while filled < self.config.filled_cells:
            if cancel is not None and cancel.is_cancelled():
                raise InterruptedByCancellation("Mask fill cancelled")
            eligible = self._eligible_cells(target, mask, letter_map)
            if not eligible:
                raise GenerationError(
                    f"Mask exhausted after {filled}/{self.config.filled_cells} cells "
                    f"(min slack {self.config.min_slack})"
                )
            cell = self.rng.choice(eligible)
            target.set_value(cell, letter_map[mask[cell.id]])
            filled += 1

    def _eligible_cells(
        self, target: SudokuGrid, mask: str, letter_map: Dict[str, int]
    ) -> List[Cell]:
        eligible = []
        for cell in target.get_unfilled_cells():
            if any(
                target.index.free_count(group) < self.config.min_slack
                for group in target.index.groups_for(cell)
            ):
                continue
            if letter_map[mask[cell.id]] not in target.available_values(cell):
                continue
            eligible.append(cell)
        return eligible

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------
    def _check_preconditions(self, target: SudokuGrid) -> None:
        if not 0 <= self.config.filled_cells <= CELL_COUNT:
            raise PreconditionViolation(
                f"filled_cells must be between 0 and {CELL_COUNT}, got {self.config.filled_cells}"
            )
        if not target.is_empty_board():
            raise PreconditionViolation("Board generation requires an empty grid")
