"""Row, column and box partitions plus the bitmask arithmetic over them.

Bit ``d - 1`` of a mask stands for digit ``d``. A group's *free* mask has a
bit set for every digit not yet used by one of its cells; the legal values
of an open cell are the digits whose bits survive the AND of its row,
column and box free masks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from ..core.constants import BOX_SIZE, DIGITS, EMPTY, FULL_MASK, GROUP_SIZE, GroupKind
from ..core.models import Cell


def bit(value: int) -> int:
    """Return the mask bit for a non-zero digit."""
    return 1 << (value - 1)


def decode_mask(mask: int) -> FrozenSet[int]:
    return frozenset(d for d in DIGITS if mask & bit(d))


def popcount(mask: int) -> int:
    return bin(mask).count("1")


@dataclass(eq=False)
class Group:
    """A fixed set of nine cells that must hold distinct digits."""

    kind: GroupKind
    index: int
    cells: Tuple[Cell, ...]
    _free_cache: Optional[int] = field(default=None, repr=False)

    def free_mask(self) -> int:
        if self._free_cache is None:
            used = 0
            for cell in self.cells:
                if cell.value != EMPTY:
                    used |= bit(cell.value)
            self._free_cache = FULL_MASK ^ used
        return self._free_cache

    def invalidate(self) -> None:
        self._free_cache = None


def _row_members(index: int) -> List[int]:
    return [index * GROUP_SIZE + c for c in range(GROUP_SIZE)]


def _column_members(index: int) -> List[int]:
    return [r * GROUP_SIZE + index for r in range(GROUP_SIZE)]


def _box_members(index: int) -> List[int]:
    top = (index // BOX_SIZE) * BOX_SIZE
    left = (index % BOX_SIZE) * BOX_SIZE
    return [
        (top + dr) * GROUP_SIZE + left + dc
        for dr in range(BOX_SIZE)
        for dc in range(BOX_SIZE)
    ]


class ConstraintIndex:
    """Owns the 27 groups and memoizes free masks and per-cell candidates."""

    def __init__(self, cells: Sequence[Cell]) -> None:
        self.rows = tuple(self._build(GroupKind.ROW, cells, _row_members))
        self.columns = tuple(self._build(GroupKind.COLUMN, cells, _column_members))
        self.boxes = tuple(self._build(GroupKind.BOX, cells, _box_members))
        self.groups: Tuple[Group, ...] = self.rows + self.columns + self.boxes
        self._available: Dict[int, FrozenSet[int]] = {}

    @staticmethod
    def _build(kind: GroupKind, cells: Sequence[Cell], members) -> List[Group]:
        return [
            Group(kind=kind, index=i, cells=tuple(cells[cid] for cid in members(i)))
            for i in range(GROUP_SIZE)
        ]

    def row(self, index: int) -> Group:
        return self.rows[index]

    def column(self, index: int) -> Group:
        return self.columns[index]

    def box(self, index: int) -> Group:
        return self.boxes[index]

    def groups_for(self, cell: Cell) -> Tuple[Group, Group, Group]:
        return self.rows[cell.row], self.columns[cell.column], self.boxes[cell.box]

    def group_free_mask(self, group: Group) -> int:
        return group.free_mask()

    def free_count(self, group: Group) -> int:
        """Number of digits the group can still take (its slack)."""
        return popcount(group.free_mask())

    def available_mask(self, cell: Cell) -> int:
        if cell.locked or cell.value != EMPTY:
            return 0
        row, column, box = self.groups_for(cell)
        return row.free_mask() & column.free_mask() & box.free_mask()

    def available_values(self, cell: Cell) -> FrozenSet[int]:
        cached = self._available.get(cell.id)
        if cached is None:
            cached = decode_mask(self.available_mask(cell))
            self._available[cell.id] = cached
        return cached

    def invalidate(self, cell: Cell) -> None:
        """Drop every cache that depends on ``cell``'s value."""
        self._available.pop(cell.id, None)
        for group in self.groups_for(cell):
            group.invalidate()
            for member in group.cells:
                self._available.pop(member.id, None)

    def invalidate_cell(self, cell: Cell) -> None:
        """Drop only the candidate cache of ``cell`` (lock state changes)."""
        self._available.pop(cell.id, None)
