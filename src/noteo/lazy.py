"""Load-once cell that remembers either its value or its failure."""

from __future__ import annotations

import threading
from enum import Enum
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class CellState(Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"
    FAILED = "failed"


class LazyCell(Generic[T]):
    """Computes ``load()`` on first access, under a single lock.

    A failure is durable: every later :meth:`get` raises the same exception
    instead of retrying the load.
    """

    def __init__(self, load: Callable[[], T]) -> None:
        self._load = load
        self._lock = threading.Lock()
        self._state = CellState.UNLOADED
        self._value: T | None = None
        self._error: BaseException | None = None

    @property
    def state(self) -> CellState:
        return self._state

    def get(self) -> T:
        with self._lock:
            if self._state is CellState.UNLOADED:
                try:
                    self._value = self._load()
                    self._state = CellState.LOADED
                except Exception as exc:
                    self._error = exc
                    self._state = CellState.FAILED
        if self._state is CellState.FAILED:
            assert self._error is not None
            raise self._error
        return self._value  # type: ignore[return-value]

    def set(self, value: T) -> None:
        """Replace the value, as if it had been loaded."""
        with self._lock:
            self._value = value
            self._error = None
            self._state = CellState.LOADED
