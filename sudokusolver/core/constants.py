"""Shared constants and enumerations for the sudoku engine."""

from __future__ import annotations

from enum import Enum
from typing import Tuple


BOX_SIZE = 3
GROUP_SIZE = BOX_SIZE * BOX_SIZE
CELL_COUNT = GROUP_SIZE * GROUP_SIZE
EMPTY = 0

DIGITS: Tuple[int, ...] = tuple(range(1, GROUP_SIZE + 1))
FULL_MASK = (1 << GROUP_SIZE) - 1

MASK_LETTERS = "ABCDEFGHI"

# Groups must keep this many free digits before a mask-fill assignment.
DEFAULT_MIN_SLACK = 4
DEFAULT_HARD_TIMEOUT_SECONDS = 300.0
DEFAULT_LONG_RUNNING_ATTEMPTS = 800
DEFAULT_ATTEMPT_ITERATION_LIMIT = 20000

FILLED_CELLS_RANGE: Tuple[int, int] = (17, 32)


class GroupKind(str, Enum):
    """The three overlapping partitions of the board."""

    ROW = "ROW"
    COLUMN = "COLUMN"
    BOX = "BOX"


class Heuristic(str, Enum):
    """Cell ordering strategies for the search engine."""

    FEWEST_CANDIDATES = "FEWEST_CANDIDATES"
    ROW = "ROW"
    COLUMN = "COLUMN"
    BOX = "BOX"
    GROUP_PRESSURE = "GROUP_PRESSURE"


class GenerationStrategy(str, Enum):
    """Puzzle generation strategies."""

    CARVE = "CARVE"
    MASK = "MASK"


class SearchState(str, Enum):
    """Lifecycle of a single search engine pass."""

    READY = "READY"
    RUNNING = "RUNNING"
    SOLVED = "SOLVED"
    STUCK = "STUCK"
    EXHAUSTED = "EXHAUSTED"


class RunOutcome(str, Enum):
    """Result reported by the run coordinator."""

    SOLVED = "SOLVED"
    PAUSED = "PAUSED"
    NOTHING = "NOTHING"
