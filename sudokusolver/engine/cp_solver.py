"""Exact sudoku solving and solution counting via OR-Tools CP-SAT."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from ortools.sat.python import cp_model

from ..core.constants import BOX_SIZE, CELL_COUNT, EMPTY, GROUP_SIZE
from ..core.exceptions import InvariantViolation
from ..utils.logger import get_logger

LOGGER = get_logger(__name__)


def _build_model(values: Sequence[int]) -> Tuple[cp_model.CpModel, List[cp_model.IntVar]]:
    if len(values) != CELL_COUNT:
        raise InvariantViolation(f"Expected {CELL_COUNT} values, got {len(values)}")

    model = cp_model.CpModel()

    # ------------------------------------------------------------------
    # Step 1: Cell variables, givens fixed
    # ------------------------------------------------------------------
    cell_vars: List[cp_model.IntVar] = []
    for cell_id, value in enumerate(values):
        var = model.new_int_var(1, GROUP_SIZE, f"C_{cell_id // GROUP_SIZE}_{cell_id % GROUP_SIZE}")
        if value != EMPTY:
            model.add(var == value)
        cell_vars.append(var)

    # ------------------------------------------------------------------
    # Step 2: Group uniqueness
    # ------------------------------------------------------------------
    for i in range(GROUP_SIZE):
        model.add_all_different([cell_vars[i * GROUP_SIZE + c] for c in range(GROUP_SIZE)])
        model.add_all_different([cell_vars[r * GROUP_SIZE + i] for r in range(GROUP_SIZE)])
        top, left = (i // BOX_SIZE) * BOX_SIZE, (i % BOX_SIZE) * BOX_SIZE
        model.add_all_different(
            [
                cell_vars[(top + dr) * GROUP_SIZE + left + dc]
                for dr in range(BOX_SIZE)
                for dc in range(BOX_SIZE)
            ]
        )
    return model, cell_vars


def solve_values(values: Sequence[int], timeout: float = 10.0) -> Optional[List[int]]:
    """Return a completed board for ``values`` or ``None`` if none exists.

    Args:
        values: 81 cell values in row-major order, 0 for empty cells.
        timeout: Solver time limit in seconds.
    """
    model, cell_vars = _build_model(values)

    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = timeout
    solver.parameters.num_workers = 4

    status = solver.solve(model)
    if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
        LOGGER.info("CP-SAT: no solution found (status=%s)", solver.status_name(status))
        return None

    LOGGER.debug("CP-SAT: solution found in %.2fs", solver.wall_time)
    return [solver.value(var) for var in cell_vars]


class _SolutionCounter(cp_model.CpSolverSolutionCallback):
    """Counts solutions and stops the search once ``limit`` is reached."""

    def __init__(self, limit: int) -> None:
        super().__init__()
        self.limit = limit
        self.count = 0

    def on_solution_callback(self) -> None:
        self.count += 1
        if self.count >= self.limit:
            self.stop_search()


def count_solutions(values: Sequence[int], limit: int = 2, timeout: float = 10.0) -> int:
    """Count the solutions of ``values``, stopping at ``limit``.

    ``limit=2`` is enough to tell unique puzzles from ambiguous ones.
    """
    model, _ = _build_model(values)

    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = timeout
    solver.parameters.enumerate_all_solutions = True
    solver.parameters.num_workers = 1

    counter = _SolutionCounter(limit)
    solver.solve(model, counter)
    LOGGER.debug("CP-SAT: counted %d solution(s) (limit %d)", counter.count, limit)
    return counter.count
