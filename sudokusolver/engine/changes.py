"""Change notification plumbing between the grid and its observers."""

from __future__ import annotations

import queue
from dataclasses import dataclass
from typing import Callable, List

from ..core.models import Cell

ChangeListener = Callable[[Cell, int], None]


class Subscription:
    """Handle returned by ``add_listener``; releasing it removes the listener.

    Usable as a context manager so a listener can be scoped to a block.
    """

    def __init__(self, listeners: List[ChangeListener], listener: ChangeListener) -> None:
        self._listeners = listeners
        self._listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._listener in self._listeners:
            self._listeners.remove(self._listener)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.unsubscribe()


@dataclass(frozen=True)
class CellChange:
    cell_id: int
    old_value: int
    new_value: int
    locked: bool


class ChangeQueue:
    """Listener that buffers changes for an observer polling on its own thread.

    The worker calls the instance synchronously for every mutation; the
    observer calls :meth:`drain` at its own interval and receives the
    changes in mutation order.
    """

    def __init__(self) -> None:
        self._queue: "queue.SimpleQueue[CellChange]" = queue.SimpleQueue()

    def __call__(self, cell: Cell, old_value: int) -> None:
        self._queue.put(CellChange(cell.id, old_value, cell.value, cell.locked))

    def drain(self) -> List[CellChange]:
        changes: List[CellChange] = []
        while True:
            try:
                changes.append(self._queue.get_nowait())
            except queue.Empty:
                return changes

    def changed_cells(self) -> List[int]:
        """Drain and return each changed cell id once, in first-change order."""
        seen = {}
        for change in self.drain():
            seen.setdefault(change.cell_id, None)
        return list(seen)
