"""Grid representation and mutation entry points."""

from __future__ import annotations

from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from ..core.constants import CELL_COUNT, DIGITS, EMPTY, GROUP_SIZE
from ..core.exceptions import InvariantViolation
from ..core.models import Cell
from ..utils.logger import get_logger
from .changes import ChangeListener, Subscription
from .constraints import ConstraintIndex, Group


LOGGER = get_logger(__name__)

_EMPTY_SYMBOLS = {".", "0"}


class SudokuGrid:
    """The 81-cell board with its constraint index and change listeners.

    Every value change goes through :meth:`set_value`, which keeps the
    bitmask caches in step and notifies listeners synchronously, in
    registration order, with ``(cell, old_value)``.
    """

    def __init__(self, initial: Optional[Sequence[int]] = None) -> None:
        if initial is None:
            initial = [EMPTY] * CELL_COUNT
        if len(initial) != CELL_COUNT:
            raise InvariantViolation(
                f"Grid needs exactly {CELL_COUNT} values, got {len(initial)}"
            )
        cells: List[Cell] = []
        for cell_id, value in enumerate(initial):
            value = int(value)
            if value != EMPTY and value not in DIGITS:
                raise InvariantViolation(f"Invalid value {value} for cell {cell_id}")
            cells.append(Cell(id=cell_id, value=value, locked=value != EMPTY))
        self.cells: Tuple[Cell, ...] = tuple(cells)
        self.index = ConstraintIndex(self.cells)
        self._listeners: List[ChangeListener] = []

    @classmethod
    def from_string(cls, text: str) -> "SudokuGrid":
        """Build a grid from 81 characters, ``.`` or ``0`` marking empty cells."""
        symbols = [ch for ch in text if not ch.isspace()]
        values: List[int] = []
        for ch in symbols:
            if ch in _EMPTY_SYMBOLS:
                values.append(EMPTY)
            elif ch.isdigit():
                values.append(int(ch))
            else:
                raise InvariantViolation(f"Invalid grid symbol {ch!r}")
        return cls(values)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    def cell(self, cell_id: int) -> Cell:
        return self.cells[cell_id]

    def cell_at(self, row: int, column: int) -> Cell:
        return self.cells[row * GROUP_SIZE + column]

    def row(self, index: int) -> Group:
        return self.index.row(index)

    def column(self, index: int) -> Group:
        return self.index.column(index)

    def box(self, index: int) -> Group:
        return self.index.box(index)

    def available_values(self, cell: Cell) -> FrozenSet[int]:
        return self.index.available_values(cell)

    def get_filled_cells(self) -> List[Cell]:
        return [cell for cell in self.cells if cell.value != EMPTY]

    def get_unfilled_cells(self) -> List[Cell]:
        return [cell for cell in self.cells if cell.value == EMPTY and not cell.locked]

    def values(self) -> List[int]:
        return [cell.value for cell in self.cells]

    def to_string(self) -> str:
        return "".join(str(v) if v else "." for v in self.values())

    def to_jsonable(self) -> List[List[Dict[str, object]]]:
        return [
            [
                {"value": cell.value, "locked": cell.locked}
                for cell in self.cells[r * GROUP_SIZE:(r + 1) * GROUP_SIZE]
            ]
            for r in range(GROUP_SIZE)
        ]

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def add_listener(self, listener: ChangeListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self._listeners, listener)

    def _notify(self, cell: Cell, old_value: int) -> None:
        for listener in list(self._listeners):
            listener(cell, old_value)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def set_value(self, cell: Cell, value: int) -> None:
        if cell.locked:
            raise InvariantViolation(
                f"Attempted to alter locked cell {cell.id} (value {cell.value})"
            )
        if value != EMPTY and value not in DIGITS:
            raise InvariantViolation(f"Invalid value {value} for cell {cell.id}")
        old_value = cell.value
        cell.value = value
        self.index.invalidate(cell)
        self._notify(cell, old_value)

    def reset_value(self, cell: Cell) -> None:
        self.set_value(cell, EMPTY)

    def reset_cells(self) -> None:
        """Clear every unlocked cell, keeping the puzzle's givens."""
        for cell in self.cells:
            if not cell.locked and cell.value != EMPTY:
                self.reset_value(cell)

    def reset_all_cells(self) -> None:
        """Unlock and clear every cell."""
        for cell in self.cells:
            if cell.locked:
                cell.locked = False
                self.index.invalidate_cell(cell)
            if cell.value != EMPTY:
                self.reset_value(cell)

    def lock_filled_cells(self) -> None:
        """Freeze every filled cell as a given."""
        locked = 0
        for cell in self.cells:
            if cell.value != EMPTY and not cell.locked:
                cell.locked = True
                self.index.invalidate_cell(cell)
                self._notify(cell, EMPTY)
                locked += 1
        LOGGER.debug("Locked %d filled cells", locked)

    # ------------------------------------------------------------------
    # Board checks
    # ------------------------------------------------------------------
    def is_solveable(self) -> bool:
        """False when an open cell has no legal value left.

        Necessary but not sufficient for an actual solution to exist.
        """
        for cell in self.cells:
            if not cell.locked and cell.value == EMPTY and not self.available_values(cell):
                return False
        return True

    def is_solved(self) -> bool:
        for cell in self.cells:
            if cell.value == EMPTY or self.available_values(cell):
                return False
        return True

    def is_empty_board(self) -> bool:
        return all(not cell.locked and cell.value == EMPTY for cell in self.cells)
