"""Line settings and timeouts for a serial port."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import IntEnum
from typing import ClassVar

_UINT32_MAX = 0xFFFFFFFF


class ByteSize(IntEnum):
    """Number of data bits per character."""

    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8


class Parity(IntEnum):
    """Parity checking mode."""

    NONE = 0
    ODD = 1
    EVEN = 2
    MARK = 3
    SPACE = 4


class StopBits(IntEnum):
    """Number of stop bits; ONE_POINT_FIVE is encoded as 3."""

    ONE = 1
    TWO = 2
    ONE_POINT_FIVE = 3


class FlowControl(IntEnum):
    """Flow control mode."""

    NONE = 0
    SOFTWARE = 1
    HARDWARE = 2


@dataclass(frozen=True)
class Timeout:
    """Read and write timeouts in milliseconds.

    A read or write gives up after ``constant + multiplier * nbytes``
    milliseconds. Set ``inter_byte_timeout`` to ``Timeout.MAX`` to disable
    the gap limit between received bytes.
    """

    MAX: ClassVar[int] = _UINT32_MAX

    inter_byte_timeout: int = 0
    read_timeout_constant: int = 0
    read_timeout_multiplier: int = 0
    write_timeout_constant: int = 0
    write_timeout_multiplier: int = 0

    def __post_init__(self) -> None:
        for field in fields(self):
            value = getattr(self, field.name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{field.name} must be an integer")
            if not 0 <= value <= _UINT32_MAX:
                raise ValueError(f"{field.name} must be within 0..{_UINT32_MAX}")

    @classmethod
    def simple(cls, timeout: int) -> Timeout:
        """A single absolute timeout for both reads and writes."""
        return cls(cls.MAX, timeout, 0, timeout, 0)