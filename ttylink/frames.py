"""Binary frames exchanged with the robot base controller.

Every frame starts with the two header bytes ``0xDE 0xED``; all other
multi-byte fields are little-endian.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar

HEADER = 0xDEED
SERIAL_PACK_HEAD_1 = 0xDE
SERIAL_PACK_HEAD_2 = 0xED
RX_BUFFER_SIZE = 48
DATA_BYTE_NUM = 40


def _pack(fmt: struct.Struct, *values: object) -> bytes:
    try:
        return fmt.pack(*values)
    except struct.error as exc:
        raise ValueError(str(exc)) from exc


def _unpack(fmt: struct.Struct, data: bytes, name: str) -> tuple:
    data = bytes(data)
    if len(data) != fmt.size:
        raise ValueError(f"{name} needs {fmt.size} bytes, got {len(data)}")
    return fmt.unpack(data)


def _header_bytes(header: int) -> bytes:
    try:
        return header.to_bytes(2, "big")
    except OverflowError as exc:
        raise ValueError("header must fit in two bytes") from exc


def _read_header(raw: bytes) -> int:
    header = int.from_bytes(raw, "big")
    if header != HEADER:
        raise ValueError(f"bad frame header 0x{header:04X}")
    return header


@dataclass
class RobotFrame:
    """A 48-byte frame reported by the controller, carrying 40 data bytes."""

    SIZE: ClassVar[int] = RX_BUFFER_SIZE
    _FORMAT: ClassVar[struct.Struct] = struct.Struct(f"<2sBBBB{DATA_BYTE_NUM}sH")

    length: int = 0
    type: int = 0
    cmd: int = 0
    num: int = 0
    data: bytes = bytes(DATA_BYTE_NUM)
    check: int = 0
    header: int = HEADER

    def pack(self) -> bytes:
        if len(self.data) > DATA_BYTE_NUM:
            raise ValueError(f"data holds at most {DATA_BYTE_NUM} bytes")
        return _pack(
            self._FORMAT,
            _header_bytes(self.header),
            self.length,
            self.type,
            self.cmd,
            self.num,
            bytes(self.data),
            self.check,
        )

    @classmethod
    def unpack(cls, data: bytes) -> RobotFrame:
        head, length, type_, cmd, num, payload, check = _unpack(
            cls._FORMAT, data, cls.__name__
        )
        return cls(length, type_, cmd, num, payload, check, _read_header(head))


@dataclass
class CommandFrame:
    """A 10-byte command frame with a single 16-bit argument."""

    SIZE: ClassVar[int] = 10
    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<2sBBBBHH")

    length: int = 0
    type: int = 0
    cmd: int = 0
    num: int = 0
    data: int = 0
    check: int = 0
    header: int = HEADER

    def pack(self) -> bytes:
        return _pack(
            self._FORMAT,
            _header_bytes(self.header),
            self.length,
            self.type,
            self.cmd,
            self.num,
            self.data,
            self.check,
        )

    @classmethod
    def unpack(cls, data: bytes) -> CommandFrame:
        head, length, type_, cmd, num, value, check = _unpack(
            cls._FORMAT, data, cls.__name__
        )
        return cls(length, type_, cmd, num, value, check, _read_header(head))


@dataclass
class VelocityCommand:
    """A 16-byte packed command giving linear speed and turn rate."""

    SIZE: ClassVar[int] = 16
    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<2sBBBBhhfH")

    length: int = 0
    type: int = 0
    cmd: int = 0
    num: int = 0
    mode: int = 0
    vx: int = 0
    vz: float = 0.0
    check: int = 0
    header: int = HEADER

    def pack(self) -> bytes:
        return _pack(
            self._FORMAT,
            _header_bytes(self.header),
            self.length,
            self.type,
            self.cmd,
            self.num,
            self.mode,
            self.vx,
            self.vz,
            self.check,
        )

    @classmethod
    def unpack(cls, data: bytes) -> VelocityCommand:
        head, length, type_, cmd, num, mode, vx, vz, check = _unpack(
            cls._FORMAT, data, cls.__name__
        )
        return cls(length, type_, cmd, num, mode, vx, vz, check, _read_header(head))


@dataclass
class WheelSpeedCommand:
    """A 16-byte command giving left and right wheel speeds."""

    SIZE: ClassVar[int] = 16
    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<2sBBBBhhhHH")

    length: int = 0
    type: int = 0
    cmd: int = 0
    num: int = 0
    mode: int = 0
    left_speed: int = 0
    right_speed: int = 0
    nc: int = 0
    check: int = 0
    header: int = HEADER

    def pack(self) -> bytes:
        return _pack(
            self._FORMAT,
            _header_bytes(self.header),
            self.length,
            self.type,
            self.cmd,
            self.num,
            self.mode,
            self.left_speed,
            self.right_speed,
            self.nc,
            self.check,
        )

    @classmethod
    def unpack(cls, data: bytes) -> WheelSpeedCommand:
        head, length, type_, cmd, num, mode, left, right, nc, check = _unpack(
            cls._FORMAT, data, cls.__name__
        )
        return cls(
            length, type_, cmd, num, mode, left, right, nc, check, _read_header(head)
        )


@dataclass
class Mode1Report:
    """The 40-byte data block of a mode-1 status report."""

    SIZE: ClassVar[int] = DATA_BYTE_NUM
    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<i7f4H")

    vx: int = 0
    vz: float = 0.0
    acc_x: float = 0.0
    acc_y: float = 0.0
    acc_z: float = 0.0
    gyr_x: float = 0.0
    gyr_y: float = 0.0
    gyr_z: float = 0.0
    voltage: int = 0
    state: int = 0
    light12: int = 0
    light34: int = 0

    def pack(self) -> bytes:
        return _pack(
            self._FORMAT,
            self.vx,
            self.vz,
            self.acc_x,
            self.acc_y,
            self.acc_z,
            self.gyr_x,
            self.gyr_y,
            self.gyr_z,
            self.voltage,
            self.state,
            self.light12,
            self.light34,
        )

    @classmethod
    def unpack(cls, data: bytes) -> Mode1Report:
        return cls(*_unpack(cls._FORMAT, data, cls.__name__))


@dataclass
class Mode2Report:
    """The 40-byte data block of a mode-2 status report."""

    SIZE: ClassVar[int] = DATA_BYTE_NUM
    _FORMAT: ClassVar[struct.Struct] = struct.Struct("<4h6f4H")

    left_speed: int = 0
    right_speed: int = 0
    left_encoder: int = 0
    right_encoder: int = 0
    acc_x: float = 0.0
    acc_y: float = 0.0
    acc_z: float = 0.0
    gyr_x: float = 0.0
    gyr_y: float = 0.0
    gyr_z: float = 0.0
    voltage: int = 0
    state: int = 0
    light12: int = 0
    light34: int = 0

    def pack(self) -> bytes:
        return _pack(
            self._FORMAT,
            self.left_speed,
            self.right_speed,
            self.left_encoder,
            self.right_encoder,
            self.acc_x,
            self.acc_y,
            self.acc_z,
            self.gyr_x,
            self.gyr_y,
            self.gyr_z,
            self.voltage,
            self.state,
            self.light12,
            self.light34,
        )

    @classmethod
    def unpack(cls, data: bytes) -> Mode2Report:
        return cls(*_unpack(cls._FORMAT, data, cls.__name__))