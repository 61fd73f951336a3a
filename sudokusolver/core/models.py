"""Data models supporting the sudoku engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from .constants import BOX_SIZE, EMPTY, GROUP_SIZE


def cell_coordinates(cell_id: int) -> Tuple[int, int, int]:
    """Return ``(row, column, box)`` for a cell id."""
    row, column = divmod(cell_id, GROUP_SIZE)
    return row, column, (row // BOX_SIZE) * BOX_SIZE + column // BOX_SIZE


@dataclass(eq=False)
class Cell:
    """A single board position.

    Cells are owned by :class:`~sudokusolver.engine.grid.SudokuGrid`; the
    ``value`` and ``locked`` attributes are only mutated through the grid so
    that its caches and listeners stay in step.
    """

    id: int
    value: int = EMPTY
    locked: bool = False
    row: int = field(init=False)
    column: int = field(init=False)
    box: int = field(init=False)

    def __post_init__(self) -> None:
        self.row, self.column, self.box = cell_coordinates(self.id)

    def is_empty(self) -> bool:
        return self.value == EMPTY


@dataclass(frozen=True)
class RunStats:
    """Aggregate statistics for one or more solve runs."""

    attempts: int = 0
    steps: int = 0
    elapsed_ms: int = 0

    def __add__(self, other: "RunStats") -> "RunStats":
        return RunStats(
            attempts=self.attempts + other.attempts,
            steps=self.steps + other.steps,
            elapsed_ms=self.elapsed_ms + other.elapsed_ms,
        )
