"""Pretty-print helpers for sudoku grids."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Optional

from ..core.constants import BOX_SIZE, GROUP_SIZE

if TYPE_CHECKING:
    from ..core.models import Cell, RunStats
    from ..engine.grid import SudokuGrid


def cell_symbol(cell: Cell) -> str:
    if cell.is_empty():
        return "."
    return str(cell.value)


def format_grid(grid: SudokuGrid, *, mark_locked: bool = False) -> str:
    """Render the grid as text, boxes separated by rules.

    With ``mark_locked`` the givens are suffixed with ``*`` so solver output
    can be told apart from the puzzle.
    """

    rule = "+".join(["-" * (BOX_SIZE * 2 + 1)] * BOX_SIZE)
    lines = []
    for r in range(GROUP_SIZE):
        if r and r % BOX_SIZE == 0:
            lines.append(rule)
        chunks = []
        for start in range(0, GROUP_SIZE, BOX_SIZE):
            symbols = []
            for c in range(start, start + BOX_SIZE):
                cell = grid.cell_at(r, c)
                symbol = cell_symbol(cell)
                if mark_locked and cell.locked:
                    symbol = f"{symbol}*"
                symbols.append(f"{symbol:<2}" if mark_locked else symbol)
            chunks.append(" " + " ".join(symbols) + " ")
        lines.append("|".join(chunks).rstrip())
    return "\n".join(lines)


def pretty_print_grid(
    grid: SudokuGrid, *, label: str | None = None, mark_locked: bool = False, stream=None
) -> None:
    """Print the grid in a human-friendly format."""

    stream = stream or sys.stdout
    if label:
        print(label, file=stream)
    print(format_grid(grid, mark_locked=mark_locked), file=stream)


def print_run_stats(stats: RunStats, *, label: Optional[str] = None, stream=None) -> None:
    stream = stream or sys.stdout
    print(file=stream)
    print(f"--- {label or 'Solver'} ---", file=stream)
    print(f"  Attempts:  {stats.attempts}", file=stream)
    print(f"  Steps:     {stats.steps}", file=stream)
    print(f"  Elapsed:   {stats.elapsed_ms / 1000:.2f}s", file=stream)
