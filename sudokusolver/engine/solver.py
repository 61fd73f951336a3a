"""Randomized backtracking search over a :class:`SudokuGrid`.

A single :meth:`SearchEngine.solve` call is one attempt: open cells are
taken in heuristic order and given a random legal digit that keeps the
board solveable. Dead ends unwind a random number of the most recent
assignments. The pass ends when every open cell holds a value, when the
cancel token fires, or when an optional iteration limit is spent; callers
loop attempts and reset the board between them.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..core.constants import GROUP_SIZE, Heuristic, SearchState
from ..core.models import Cell
from ..utils.logger import get_logger
from .cancel import CancelToken
from .grid import SudokuGrid


LOGGER = get_logger(__name__)


@dataclass(eq=False)
class TrackedCell:
    """An open cell plus the number of times the search has picked it."""

    cell: Cell
    visits: int = 0


RankFn = Callable[[SudokuGrid, TrackedCell], int]


def _rank_fewest_candidates(grid: SudokuGrid, tracked: TrackedCell) -> int:
    return len(grid.available_values(tracked.cell)) + tracked.visits


def _rank_row(grid: SudokuGrid, tracked: TrackedCell) -> int:
    return grid.index.free_count(grid.row(tracked.cell.row))


def _rank_column(grid: SudokuGrid, tracked: TrackedCell) -> int:
    return grid.index.free_count(grid.column(tracked.cell.column))


def _rank_box(grid: SudokuGrid, tracked: TrackedCell) -> int:
    return grid.index.free_count(grid.box(tracked.cell.box))


def _rank_group_pressure(grid: SudokuGrid, tracked: TrackedCell) -> int:
    # Filled cells across the three groups; emptier neighbourhoods go first.
    free = sum(grid.index.free_count(g) for g in grid.index.groups_for(tracked.cell))
    return 3 * GROUP_SIZE - free + tracked.visits


RANKERS: Dict[Heuristic, RankFn] = {
    Heuristic.FEWEST_CANDIDATES: _rank_fewest_candidates,
    Heuristic.ROW: _rank_row,
    Heuristic.COLUMN: _rank_column,
    Heuristic.BOX: _rank_box,
    Heuristic.GROUP_PRESSURE: _rank_group_pressure,
}

_ALTERNATE_HEURISTICS = (
    Heuristic.ROW,
    Heuristic.COLUMN,
    Heuristic.BOX,
    Heuristic.GROUP_PRESSURE,
)


def choose_heuristic(rng: random.Random) -> Heuristic:
    """Pick a heuristic for one attempt, favouring the default six times in ten."""
    roll = rng.randrange(10)
    if roll < len(_ALTERNATE_HEURISTICS):
        return _ALTERNATE_HEURISTICS[roll]
    return Heuristic.FEWEST_CANDIDATES


class OpenCellQueue:
    """Open cells ordered by a rank evaluated at pop time.

    Ranks change whenever the board changes, so they are recomputed on
    every pop instead of being frozen into a heap. Ties are broken by
    shuffling the candidates before the minimum is taken.
    """

    def __init__(self, grid: SudokuGrid, rank: RankFn, rng: random.Random) -> None:
        self.grid = grid
        self.rank = rank
        self.rng = rng
        self._cells: List[TrackedCell] = []

    def push(self, tracked: TrackedCell) -> None:
        self._cells.append(tracked)

    def pop(self) -> TrackedCell:
        self.rng.shuffle(self._cells)
        best = min(range(len(self._cells)), key=lambda i: self.rank(self.grid, self._cells[i]))
        return self._cells.pop(best)

    def __len__(self) -> int:
        return len(self._cells)


class SearchEngine:
    """One randomized backtracking attempt over the open cells of a grid."""

    def __init__(
        self,
        grid: SudokuGrid,
        heuristic: Heuristic = Heuristic.FEWEST_CANDIDATES,
        rng: Optional[random.Random] = None,
        max_iterations: Optional[int] = None,
    ) -> None:
        self.grid = grid
        self.heuristic = heuristic
        self.rng = rng or random.Random()
        self.max_iterations = max_iterations
        self.state = SearchState.READY
        self.iterations = 0
        self._open = OpenCellQueue(grid, RANKERS[heuristic], self.rng)
        self._assigned: List[TrackedCell] = []
        for cell in grid.get_unfilled_cells():
            self._open.push(TrackedCell(cell))

    @property
    def open_count(self) -> int:
        return len(self._open)

    def solve(self, cancel: Optional[CancelToken] = None) -> int:
        """Run the attempt and return the number of successful assignments."""
        steps = 0
        self.state = SearchState.RUNNING
        while len(self._open):
            if cancel is not None and cancel.is_cancelled():
                self.state = SearchState.STUCK
                LOGGER.debug("Search cancelled with %d open cells", len(self._open))
                return steps
            if self.max_iterations is not None and self.iterations >= self.max_iterations:
                self.state = SearchState.EXHAUSTED
                LOGGER.debug("Search gave up after %d iterations", self.iterations)
                return steps
            self.iterations += 1

            current = self._open.pop()
            self._assigned.append(current)
            current.visits += 1

            candidates = list(self.grid.available_values(current.cell))
            if candidates:
                self.rng.shuffle(candidates)
                if self._try_assign(current.cell, candidates):
                    steps += 1
                    continue
            self._backtrack()

        self.state = SearchState.SOLVED
        return steps

    def _try_assign(self, cell: Cell, candidates: List[int]) -> bool:
        for value in candidates:
            self.grid.set_value(cell, value)
            if self.grid.is_solveable():
                return True
        self.grid.reset_value(cell)
        return False

    def _backtrack(self) -> None:
        # The dead-end cell sits on top of the stack and always goes back.
        depth = max(1, self.rng.randrange(len(self._assigned)))
        for _ in range(depth):
            tracked = self._assigned.pop()
            if not tracked.cell.is_empty():
                self.grid.reset_value(tracked.cell)
            self._open.push(tracked)
