"""Sudoku solver and puzzle generator.

This package exposes the public API surface via:

- ``sudokusolver.engine.grid.SudokuGrid``: board state and change notifications.
- ``sudokusolver.engine.solver.SearchEngine``: randomized backtracking search.
- ``sudokusolver.engine.generator.BoardGenerator``: carve and mask-fill generation.
- ``sudokusolver.engine.session.SudokuSession``: background solving with cancellation.
"""

from .engine.coordinator import RunCoordinator, SolveListener, SolverConfig
from .engine.generator import BoardGenerator, GeneratorConfig
from .engine.grid import SudokuGrid
from .engine.session import SudokuSession
from .engine.solver import SearchEngine

__all__ = [
    "BoardGenerator",
    "GeneratorConfig",
    "RunCoordinator",
    "SearchEngine",
    "SolveListener",
    "SolverConfig",
    "SudokuGrid",
    "SudokuSession",
]

__version__ = "0.1.0"
