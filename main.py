"""CLI entrypoint for the sudoku solver and generator."""

from __future__ import annotations

import argparse
import json
import logging
import random
from pathlib import Path
from typing import Any, Dict, List, Optional

from sudokusolver.core.constants import (
    CELL_COUNT,
    DEFAULT_HARD_TIMEOUT_SECONDS,
    DEFAULT_MIN_SLACK,
    FILLED_CELLS_RANGE,
    GenerationStrategy,
)
from sudokusolver.core.exceptions import SudokuError
from sudokusolver.core.models import RunStats
from sudokusolver.data.masks import load_masks, parse_mask
from sudokusolver.engine import cp_solver
from sudokusolver.engine.coordinator import SolveListener, SolverConfig
from sudokusolver.engine.generator import GeneratorConfig, random_filled_count
from sudokusolver.engine.grid import SudokuGrid
from sudokusolver.engine.session import SudokuSession
from sudokusolver.engine.validator import GridValidator
from sudokusolver.utils.logger import configure_logging
from sudokusolver.utils.pretty import pretty_print_grid, print_run_stats


LOGGER = logging.getLogger(__name__)


class _LoggingListener(SolveListener):
    def on_long_running_task(self, stats: RunStats) -> None:
        LOGGER.warning(
            "Still solving after %d attempts; the puzzle may be unsolvable", stats.attempts
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate and solve 9x9 sudoku puzzles",
    )
    parser.add_argument(
        "--puzzle",
        type=str,
        help="Solve this 81-character puzzle ('.' or '0' for empty cells) instead of generating one",
    )
    parser.add_argument(
        "--filled",
        type=int,
        help=f"Number of givens (default: random in [{FILLED_CELLS_RANGE[0]}, {FILLED_CELLS_RANGE[1]}))",
    )
    parser.add_argument(
        "--strategy",
        type=str,
        choices=[s.value.lower() for s in GenerationStrategy],
        default="carve",
        help="Generation strategy",
    )
    parser.add_argument("--mask", type=str, help="Explicit 81-letter mask (A-I) for the mask strategy")
    parser.add_argument(
        "--mask-file",
        type=Path,
        metavar="FILE",
        help="Text or zip file with one mask per line (# comments and blank lines ignored)",
    )
    parser.add_argument(
        "--min-slack",
        type=int,
        default=DEFAULT_MIN_SLACK,
        help="Minimum free digits a group keeps during mask fill",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Check mask-filled boards with CP-SAT and retry unsolvable ones",
    )
    parser.add_argument("--solve", action="store_true", help="Solve the puzzle after generating it")
    parser.add_argument(
        "--count-solutions",
        action="store_true",
        help="Report whether the puzzle has zero, one or several solutions (CP-SAT)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_HARD_TIMEOUT_SECONDS,
        help="Hard timeout in seconds for a solve run",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility")
    parser.add_argument("--output", type=Path, help="Optional path to JSON output")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser


def _stats_payload(stats: Optional[RunStats]) -> Optional[Dict[str, int]]:
    if stats is None:
        return None
    return {"attempts": stats.attempts, "steps": stats.steps, "elapsed_ms": stats.elapsed_ms}


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        configure_logging(args.log_level)
    except ValueError as exc:
        parser.error(str(exc))

    strategy = GenerationStrategy(args.strategy.upper())
    if (args.mask or args.mask_file) and strategy != GenerationStrategy.MASK:
        parser.error("--mask / --mask-file require --strategy mask")
    if args.filled is not None and not 0 <= args.filled <= CELL_COUNT:
        parser.error(f"--filled must be between 0 and {CELL_COUNT}")
    if args.puzzle and (args.filled is not None or args.mask or args.mask_file):
        parser.error("--puzzle cannot be combined with generation options")

    rng = random.Random(args.seed)
    solver_config = SolverConfig(hard_timeout_seconds=args.timeout, seed=args.seed)

    try:
        if args.puzzle:
            grid = SudokuGrid.from_string(args.puzzle)
        else:
            grid = SudokuGrid()

        with SudokuSession(grid=grid, solver_config=solver_config, seed=args.seed) as session:
            generation: Dict[str, Any] = {}
            if not args.puzzle:
                masks: Optional[List[str]] = load_masks(args.mask_file) if args.mask_file else None
                filled = args.filled if args.filled is not None else random_filled_count(rng)
                config = GeneratorConfig(
                    filled_cells=filled,
                    strategy=strategy,
                    mask=parse_mask(args.mask) if args.mask else None,
                    masks=masks,
                    min_slack=args.min_slack,
                    seed=args.seed,
                    verify_with_cp_sat=args.verify,
                )
                result = session.start_new_board(filled, strategy, config).result()
                if result is None:
                    parser.exit(1, "Board generation did not complete\n")
                generation = {
                    "strategy": result.strategy.value,
                    "filled_cells": result.filled_cells,
                    "mask": result.mask,
                    "elapsed_ms": result.elapsed_ms,
                }
            puzzle = session.grid.to_string()
            pretty_print_grid(session.grid, label="Puzzle")

            solution_count: Optional[int] = None
            if args.count_solutions:
                solution_count = cp_solver.count_solutions(session.grid.values(), limit=2)
                print(f"Solutions (capped at 2): {solution_count}")

            run = None
            if args.solve or args.puzzle:
                run = session.solve(_LoggingListener()).result()
                pretty_print_grid(
                    session.grid, label="\nSolution (* marks givens)", mark_locked=True
                )
                if run is not None:
                    print_run_stats(run.cumulative)

            validation = GridValidator().validate(session.grid)
            payload: Dict[str, Any] = {
                "puzzle": puzzle,
                "grid": session.grid.to_jsonable(),
                "generation": generation or None,
                "solution_count": solution_count,
                "outcome": run.outcome.value if run is not None else None,
                "stats": _stats_payload(run.cumulative if run is not None else None),
                "validation": validation.messages,
            }
    except SudokuError as exc:
        parser.exit(1, f"error: {exc}\n")

    if args.output:
        args.output.write_text(json.dumps(payload, indent=2), encoding="utf-8")


if __name__ == "__main__":  # pragma: no cover
    main()
