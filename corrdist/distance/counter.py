from __future__ import annotations

import threading


class DistanceCounter:
    """Monotonic, thread-safe count of distance evaluations."""

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def increment(self, n: int = 1) -> None:
        if n < 0:
            raise ValueError(f"Counter increments must be non-negative, got {n}")
        with self._lock:
            self._value += n

    @property
    def value(self) -> int:
        return self._value

    def reset(self) -> int:
        with self._lock:
            previous = self._value
            self._value = 0
        return previous
