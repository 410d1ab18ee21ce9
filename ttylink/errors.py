"""Exceptions raised by serial port operations."""

from __future__ import annotations

import os


class SerialException(Exception):
    """A serial port operation failed."""

    def __init__(self, description: str) -> None:
        self.description = description
        super().__init__(f"SerialException {description} failed.")


class IOException(Exception):
    """An input/output error on the underlying device.

    Built either from a description or, when no description is given,
    from an ``errno`` value whose system message is used instead.
    """

    def __init__(self, description: str | None = None, errnum: int = 0) -> None:
        self.errno = errnum
        self.description = description
        if description is None:
            message = f"IO Exception ({errnum}): {os.strerror(errnum)}"
        else:
            message = f"IO Exception: {description}"
        super().__init__(message)


class PortNotOpenedException(Exception):
    """An operation needed an open port but the port was closed."""

    def __init__(self, description: str) -> None:
        self.description = description
        super().__init__(f"PortNotOpenedException {description} failed.")