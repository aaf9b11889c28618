"""Progress reporting and cancellation for batch runs."""

import threading
from typing import Callable

ProgressSink = Callable[[str], None]


def null_progress(message: str) -> None:
    """Progress sink that discards every message."""


class StatusMessage:
    """Progress sink keeping only the latest message.

    Safe to write from several threads; the last write wins.
    """

    def __init__(self, message: str = ""):
        self._lock = threading.Lock()
        self._message = message
        self._updates = 0

    def __call__(self, message: str) -> None:
        with self._lock:
            self._message = message
            self._updates += 1

    @property
    def message(self) -> str:
        with self._lock:
            return self._message

    @property
    def updates(self) -> int:
        """Number of messages received so far."""
        with self._lock:
            return self._updates


class CancellationToken:
    """Cooperative cancellation flag checked between documents."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
