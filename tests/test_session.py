import threading
import unittest

from sudokusolver.core.constants import GenerationStrategy, RunOutcome
from sudokusolver.core.exceptions import (
    InterruptedByCancellation,
    PreconditionViolation,
)
from sudokusolver.core.models import RunStats
from sudokusolver.engine.changes import ChangeQueue
from sudokusolver.engine.coordinator import SolverConfig
from sudokusolver.engine.generator import GeneratorConfig
from sudokusolver.engine.grid import SudokuGrid
from sudokusolver.engine.session import SudokuSession

PUZZLE = "53..7....6..195....98....6.8...6...34..8.3..17...2...6.6....28....419..5....8..79"
SOLUTION = "534678912672195348198342567859761423426853791713924856961537284287419635345286179"


def _never_finishing_config() -> SolverConfig:
    return SolverConfig(attempt_iteration_limit=1, hard_timeout_seconds=None, seed=1)


class SessionBoardTests(unittest.TestCase):
    def test_build_new_board(self) -> None:
        with SudokuSession(seed=1) as session:
            grid = session.build_new_board(25)
            self.assertIs(grid, session.grid)
            self.assertEqual(len(grid.get_filled_cells()), 25)
            self.assertTrue(all(cell.locked for cell in grid.get_filled_cells()))
            self.assertFalse(session.is_running())

    def test_new_board_replaces_previous_puzzle(self) -> None:
        with SudokuSession(grid=SudokuGrid.from_string(PUZZLE), seed=2) as session:
            session.build_new_board(20, GenerationStrategy.MASK)
            self.assertEqual(len(session.grid.get_filled_cells()), 20)

    def test_build_with_listener_observes_generation(self) -> None:
        with SudokuSession(seed=3) as session:
            previous = session.grid
            changes = ChangeQueue()
            subscription = session.build_new_board_with_listener(22, changes)
            self.assertIsNot(session.grid, previous)
            self.assertTrue(subscription.active)
            drained = changes.drain()
            locks = [change for change in drained if change.locked]
            self.assertEqual(len(locks), 22)
            subscription.unsubscribe()
            session.reset_all_cells()
            self.assertEqual(changes.drain(), [])

    def test_generation_errors_reach_the_caller(self) -> None:
        with SudokuSession(seed=4) as session:
            future = session.start_new_board(82)
            with self.assertRaises(PreconditionViolation):
                future.result(timeout=30)

    def test_start_new_board_accepts_full_config(self) -> None:
        config = GeneratorConfig(filled_cells=18, strategy=GenerationStrategy.MASK, seed=7)
        with SudokuSession(seed=5) as session:
            result = session.start_new_board(18, config=config).result(timeout=60)
            self.assertEqual(result.strategy, GenerationStrategy.MASK)
            self.assertEqual(len(session.grid.get_filled_cells()), 18)

    def test_generation_mutates_the_grid_on_the_worker(self) -> None:
        grid = SudokuGrid.from_string(PUZZLE)
        threads = []
        grid.add_listener(lambda cell, old: threads.append(threading.current_thread().name))
        with SudokuSession(grid=grid, seed=6) as session:
            session.build_new_board(20)
        self.assertTrue(threads)
        self.assertTrue(all(name.startswith("sudoku-worker") for name in threads))

    def test_config_must_agree_with_arguments(self) -> None:
        config = GeneratorConfig(filled_cells=18, strategy=GenerationStrategy.MASK)
        with SudokuSession(grid=SudokuGrid.from_string(PUZZLE), seed=7) as session:
            with self.assertRaises(PreconditionViolation):
                session.start_new_board(30, config=config)
            with self.assertRaises(PreconditionViolation):
                session.start_new_board(18, GenerationStrategy.CARVE, config)
            self.assertFalse(session.is_running())
            self.assertEqual(session.grid.to_string(), PUZZLE)


class SessionSolveTests(unittest.TestCase):
    def test_solve_updates_stats(self) -> None:
        grid = SudokuGrid.from_string(PUZZLE)
        with SudokuSession(grid=grid, solver_config=SolverConfig(seed=1)) as session:
            result = session.solve().result(timeout=120)
            self.assertEqual(result.outcome, RunOutcome.SOLVED)
            self.assertEqual(grid.to_string(), SOLUTION)
            self.assertEqual(session.get_solve_stats(), result.cumulative)
            session.clear_all_stats()
            self.assertEqual(session.get_solve_stats(), RunStats())

    def test_new_board_clears_stats(self) -> None:
        grid = SudokuGrid.from_string(PUZZLE)
        with SudokuSession(grid=grid, solver_config=SolverConfig(seed=2), seed=2) as session:
            session.solve().result(timeout=120)
            self.assertGreater(session.get_solve_stats().attempts, 0)
            session.build_new_board(25)
            self.assertEqual(session.get_solve_stats(), RunStats())

    def test_only_one_task_at_a_time(self) -> None:
        with SudokuSession(solver_config=_never_finishing_config()) as session:
            future = session.solve()
            self.assertTrue(session.is_running())
            with self.assertRaises(PreconditionViolation):
                session.solve()
            with self.assertRaises(PreconditionViolation):
                session.start_new_board(20)
            with self.assertRaises(PreconditionViolation):
                session.reset_cells()
            session.cancel()
            result = future.result(timeout=30)
            self.assertIn(result.outcome, (RunOutcome.PAUSED, RunOutcome.NOTHING))
            self.assertFalse(session.is_running())

    def test_close_cancels_running_task(self) -> None:
        session = SudokuSession(solver_config=_never_finishing_config())
        future = session.solve()
        session.close()
        self.assertTrue(future.done())

    def test_reset_cells_keeps_givens(self) -> None:
        grid = SudokuGrid.from_string(PUZZLE)
        with SudokuSession(grid=grid, solver_config=SolverConfig(seed=3)) as session:
            session.solve().result(timeout=120)
            session.reset_cells()
            self.assertEqual(grid.to_string(), PUZZLE)

    def test_rejected_generation_leaves_session_alone(self) -> None:
        with SudokuSession(solver_config=_never_finishing_config()) as session:
            live = session.grid
            session.stats.add(RunStats(3, 40, 5))
            future = session.solve()
            with self.assertRaises(PreconditionViolation):
                session.start_new_board(20)
            with self.assertRaises(PreconditionViolation):
                session.build_new_board_with_listener(20, ChangeQueue())
            with self.assertRaises(PreconditionViolation):
                session.reset_all_cells()
            self.assertIs(session.grid, live)
            self.assertEqual(session.get_solve_stats(), RunStats(3, 40, 5))
            session.cancel()
            future.result(timeout=30)


class TaskOutcomeTests(unittest.TestCase):
    def test_cancellation_returns_none(self) -> None:
        def work(token):
            raise InterruptedByCancellation("stopped")

        with self.assertLogs("sudokusolver.engine.session", level="INFO"):
            self.assertIsNone(SudokuSession._run_task(work, None))

    def test_domain_errors_propagate(self) -> None:
        def work(token):
            raise PreconditionViolation("bad")

        with self.assertRaises(PreconditionViolation):
            SudokuSession._run_task(work, None)

    def test_unexpected_errors_are_logged(self) -> None:
        def work(token):
            raise RuntimeError("boom")

        with self.assertLogs("sudokusolver.engine.session", level="ERROR") as logs:
            self.assertIsNone(SudokuSession._run_task(work, None))
        self.assertIn("Background task failed", logs.output[0])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
