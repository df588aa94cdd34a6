from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from typing import Any


class LookbackWindow:
    """Keeps the most recent ``capacity`` bars, oldest first."""

    def __init__(self, capacity: int) -> None:
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise ValueError(f"Lookback capacity must be a positive integer, got {capacity!r}")
        self.capacity = capacity
        self._bars: deque[Any] = deque(maxlen=capacity)

    def push(self, bar: Any) -> None:
        self._bars.append(bar)

    @property
    def is_full(self) -> bool:
        return len(self._bars) == self.capacity

    def view(self) -> tuple[Any, ...]:
        return tuple(self._bars)

    def latest(self) -> Any:
        if not self._bars:
            raise IndexError("Lookback window is empty")
        return self._bars[-1]

    def __len__(self) -> int:
        return len(self._bars)

    def __iter__(self) -> Iterator[Any]:
        return iter(tuple(self._bars))
