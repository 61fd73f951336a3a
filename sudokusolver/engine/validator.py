"""Deterministic rule validation for sudoku grids."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from ..core.constants import EMPTY
from ..core.exceptions import ValidationError
from ..utils.logger import get_logger
from . import cp_solver
from .grid import SudokuGrid


LOGGER = get_logger(__name__)


@dataclass
class ValidationResult:
    ok: bool
    messages: List[str]


class GridValidator:
    """Runs deterministic validation over a grid."""

    def __init__(self, cp_sat_timeout: float = 10.0) -> None:
        self.cp_sat_timeout = cp_sat_timeout

    def validate(self, grid: SudokuGrid, require_solution: bool = False) -> ValidationResult:
        messages: List[str] = []
        try:
            self._check_groups_unique(grid)
            self._check_locked_cells_filled(grid)
            self._check_solveable(grid)
            if require_solution:
                self._check_has_solution(grid)
        except ValidationError as exc:
            messages.append(str(exc))
            LOGGER.error("Validation failed: %s", exc)
            return ValidationResult(ok=False, messages=messages)
        return ValidationResult(ok=True, messages=[])

    def _check_groups_unique(self, grid: SudokuGrid) -> None:
        for group in grid.index.groups:
            seen = set()
            for cell in group.cells:
                if cell.value == EMPTY:
                    continue
                if cell.value in seen:
                    raise ValidationError(
                        f"Duplicate {cell.value} in {group.kind.value.lower()} {group.index}"
                    )
                seen.add(cell.value)

    def _check_locked_cells_filled(self, grid: SudokuGrid) -> None:
        for cell in grid.cells:
            if cell.locked and cell.value == EMPTY:
                raise ValidationError(f"Locked cell {cell.id} has no value")

    def _check_solveable(self, grid: SudokuGrid) -> None:
        if not grid.is_solveable():
            blocked = [
                cell.id
                for cell in grid.get_unfilled_cells()
                if not grid.available_values(cell)
            ]
            raise ValidationError(f"Cells without legal values: {blocked}")

    def _check_has_solution(self, grid: SudokuGrid) -> None:
        if cp_solver.solve_values(grid.values(), timeout=self.cp_sat_timeout) is None:
            raise ValidationError("Grid has no solution")
