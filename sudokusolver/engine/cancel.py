"""Cooperative cancellation shared between a caller and the worker thread."""

from __future__ import annotations

import threading
from typing import Optional

from ..utils.logger import get_logger


LOGGER = get_logger(__name__)


class CancelToken:
    """Advisory cancellation flag with an optional wall-clock hard timeout.

    The worker polls :meth:`is_cancelled` at loop boundaries only. A token
    created with a ``parent`` also reports cancelled once the parent is.
    """

    def __init__(self, parent: Optional["CancelToken"] = None) -> None:
        self._event = threading.Event()
        self._parent = parent
        self._timer: Optional[threading.Timer] = None
        self._timed_out = False

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.is_cancelled()

    @property
    def timed_out(self) -> bool:
        return self._timed_out

    def arm_timeout(self, seconds: Optional[float]) -> None:
        """Force cancellation after ``seconds`` unless disarmed first."""
        self.disarm()
        if seconds is None:
            return
        self._timer = threading.Timer(seconds, self._expire)
        self._timer.daemon = True
        self._timer.start()

    def disarm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)

    def _expire(self) -> None:
        LOGGER.warning("Hard timeout reached, forcing cancellation")
        self._timed_out = True
        self._event.set()
