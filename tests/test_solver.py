import random
import unittest
from collections import Counter

from sudokusolver.core.constants import Heuristic, SearchState
from sudokusolver.engine.cancel import CancelToken
from sudokusolver.engine.grid import SudokuGrid
from sudokusolver.engine.solver import (
    RANKERS,
    OpenCellQueue,
    SearchEngine,
    TrackedCell,
    choose_heuristic,
)
from sudokusolver.engine.validator import GridValidator

PUZZLE = "53..7....6..195....98....6.8...6...34..8.3..17...2...6.6....28....419..5....8..79"
SOLUTION = "534678912672195348198342567859761423426853791713924856961537284287419635345286179"


def _blank_solution(rng: random.Random, blanks: int) -> SudokuGrid:
    values = [int(ch) for ch in SOLUTION]
    for cell_id in rng.sample(range(81), blanks):
        values[cell_id] = 0
    return SudokuGrid(values)


class SearchEngineTests(unittest.TestCase):
    def test_solves_empty_grid(self) -> None:
        grid = SudokuGrid()
        engine = SearchEngine(grid, rng=random.Random(1))
        self.assertEqual(engine.state, SearchState.READY)
        self.assertEqual(engine.open_count, 81)
        steps = engine.solve()
        self.assertEqual(engine.state, SearchState.SOLVED)
        self.assertGreaterEqual(steps, 81)
        self.assertTrue(grid.is_solved())
        self.assertTrue(GridValidator().validate(grid).ok)

    def test_solves_classic_puzzle(self) -> None:
        grid = SudokuGrid.from_string(PUZZLE)
        engine = SearchEngine(grid, rng=random.Random(7))
        engine.solve()
        self.assertTrue(grid.is_solved())
        self.assertEqual(grid.to_string(), SOLUTION)

    def test_every_heuristic_completes_a_nearly_solved_board(self) -> None:
        rng = random.Random(5)
        for heuristic in Heuristic:
            with self.subTest(heuristic=heuristic):
                grid = _blank_solution(rng, 20)
                attempts = 0
                while not grid.is_solved():
                    attempts += 1
                    self.assertLess(attempts, 50)
                    if attempts > 1:
                        grid.reset_cells()
                    SearchEngine(grid, heuristic, rng, max_iterations=5000).solve()
                self.assertEqual(grid.to_string(), SOLUTION)

    def test_solved_board_takes_no_steps(self) -> None:
        grid = SudokuGrid.from_string(SOLUTION)
        engine = SearchEngine(grid, rng=random.Random(0))
        self.assertEqual(engine.solve(), 0)
        self.assertEqual(engine.state, SearchState.SOLVED)

    def test_iteration_limit_ends_pass(self) -> None:
        grid = SudokuGrid()
        engine = SearchEngine(grid, rng=random.Random(2), max_iterations=1)
        self.assertEqual(engine.solve(), 1)
        self.assertEqual(engine.state, SearchState.EXHAUSTED)
        self.assertEqual(len(grid.get_filled_cells()), 1)


class CancellationTests(unittest.TestCase):
    def test_cancelled_before_start_changes_nothing(self) -> None:
        grid = SudokuGrid.from_string(PUZZLE)
        token = CancelToken()
        token.cancel()
        engine = SearchEngine(grid, rng=random.Random(0))
        self.assertEqual(engine.solve(token), 0)
        self.assertEqual(engine.state, SearchState.STUCK)
        self.assertEqual(grid.to_string(), PUZZLE)

    def test_cancel_mid_solve_leaves_consistent_grid(self) -> None:
        grid = SudokuGrid()
        token = CancelToken()
        changes = []

        def listener(cell, old_value):
            changes.append(cell.id)
            if len(changes) == 15:
                token.cancel()

        grid.add_listener(listener)
        engine = SearchEngine(grid, rng=random.Random(9))
        engine.solve(token)
        self.assertEqual(engine.state, SearchState.STUCK)
        self.assertTrue(GridValidator().validate(grid).ok)
        self.assertTrue(grid.is_solveable())
        self.assertFalse(grid.is_solved())

    def test_child_token_follows_parent(self) -> None:
        parent = CancelToken()
        child = CancelToken(parent=parent)
        self.assertFalse(child.is_cancelled())
        parent.cancel()
        self.assertTrue(child.is_cancelled())

    def test_hard_timeout_forces_cancellation(self) -> None:
        token = CancelToken()
        token.arm_timeout(0.01)
        self.assertTrue(token.wait(5))
        self.assertTrue(token.timed_out)

    def test_disarm_prevents_timeout(self) -> None:
        token = CancelToken()
        token.arm_timeout(0.05)
        token.disarm()
        self.assertFalse(token.wait(0.2))
        self.assertFalse(token.timed_out)


class OrderingTests(unittest.TestCase):
    def test_queue_pops_most_constrained_cell_first(self) -> None:
        values = [0] * 81
        for digit, cell_id in enumerate([0, 1, 2, 9, 10, 11, 18, 19], start=1):
            values[cell_id] = digit
        grid = SudokuGrid(values)
        queue = OpenCellQueue(grid, RANKERS[Heuristic.FEWEST_CANDIDATES], random.Random(0))
        for cell in grid.get_unfilled_cells():
            queue.push(TrackedCell(cell))
        self.assertEqual(queue.pop().cell.id, 20)
        self.assertEqual(len(queue), 72)

    def test_visits_penalize_a_cell(self) -> None:
        grid = SudokuGrid()
        rank = RANKERS[Heuristic.FEWEST_CANDIDATES]
        fresh = TrackedCell(grid.cell(0))
        visited = TrackedCell(grid.cell(1), visits=3)
        self.assertEqual(rank(grid, fresh), 9)
        self.assertEqual(rank(grid, visited), 12)

    def test_group_pressure_counts_filled_neighbours(self) -> None:
        grid = SudokuGrid.from_string(PUZZLE)
        rank = RANKERS[Heuristic.GROUP_PRESSURE]
        # Cell 2: row 0 has 3 givens, column 2 has 1, box 0 has 5.
        self.assertEqual(rank(grid, TrackedCell(grid.cell(2))), 9)

    def test_default_heuristic_is_favoured(self) -> None:
        rng = random.Random(0)
        counts = Counter(choose_heuristic(rng) for _ in range(2000))
        self.assertEqual(set(counts), set(Heuristic))
        for heuristic in Heuristic:
            if heuristic != Heuristic.FEWEST_CANDIDATES:
                self.assertGreater(counts[Heuristic.FEWEST_CANDIDATES], counts[heuristic])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
