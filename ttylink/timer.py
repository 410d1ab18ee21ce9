"""A deadline measured in milliseconds on the monotonic clock."""

from __future__ import annotations

import time

_NS_PER_MS = 1_000_000


class MillisecondTimer:
    """Counts down from a number of milliseconds given at construction."""

    __slots__ = ("_expiry_ns",)

    def __init__(self, millis: int) -> None:
        if not isinstance(millis, int) or isinstance(millis, bool):
            raise TypeError("millis must be an integer")
        if millis < 0:
            raise ValueError("millis must not be negative")
        self._expiry_ns = time.monotonic_ns() + millis * _NS_PER_MS

    def remaining(self) -> int:
        """Milliseconds left until expiry, truncated toward zero.

        The value is negative once the deadline has passed.
        """
        delta = self._expiry_ns - time.monotonic_ns()
        whole = abs(delta) // _NS_PER_MS
        return whole if delta >= 0 else -whole

    def __repr__(self) -> str:
        return f"{type(self).__name__}(remaining={self.remaining()})"