"""Discovery of serial devices on Linux, described from sysfs."""

from __future__ import annotations

import glob
import os
from dataclasses import dataclass
from typing import Iterable

DEFAULT_PATTERNS = (
    "/dev/ttyACM*",
    "/dev/ttyS*",
    "/dev/ttyUSB*",
    "/dev/tty.*",
    "/dev/cu.*",
)
SYSFS_TTY_ROOT = "/sys/class/tty"
_NOT_AVAILABLE = "n/a"


@dataclass(frozen=True)
class PortInfo:
    """A serial device found on the system."""

    port: str
    description: str
    hardware_id: str


def _basename(path: str) -> str:
    pos = path.rfind("/")
    return path if pos == -1 else path[pos + 1 :]


def _dirname(path: str) -> str:
    pos = path.rfind("/")
    if pos == -1:
        return path
    if pos == 0:
        return "/"
    return path[:pos]


def _realpath(path: str) -> str:
    """Resolved path, or an empty string when the path does not exist."""
    try:
        return os.path.realpath(path, strict=True)
    except (OSError, ValueError):
        return ""


def _read_line(path: str) -> str:
    """First line of a file without its newline; empty if it cannot be read."""
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            line = handle.readline()
    except (OSError, ValueError):
        return ""
    return line[:-1] if line.endswith("\n") else line


def usb_sysfs_friendly_name(sys_usb_path: str) -> str:
    """Manufacturer, product and serial of a USB device, or "" if none is known."""
    manufacturer = _read_line(f"{sys_usb_path}/manufacturer")
    product = _read_line(f"{sys_usb_path}/product")
    serial = _read_line(f"{sys_usb_path}/serial")
    if not (manufacturer or product or serial):
        return ""
    return f"{manufacturer} {product} {serial}"


def usb_sysfs_hw_string(sysfs_path: str) -> str:
    """Hardware id of a USB device in the form ``USB VID:PID=vvvv:pppp SNR=...``."""
    serial_number = _read_line(f"{sysfs_path}/serial")
    if serial_number:
        serial_number = f"SNR={serial_number}"
    vid = _read_line(f"{sysfs_path}/idVendor")
    pid = _read_line(f"{sysfs_path}/idProduct")
    return f"USB VID:PID={vid}:{pid} {serial_number}"


def sysfs_info(device_path: str, sysfs_root: str = SYSFS_TTY_ROOT) -> tuple[str, str]:
    """Return ``(description, hardware_id)`` for a tty device.

    The description falls back to the device name and the hardware id to
    ``"n/a"`` when sysfs has nothing to say about the device.
    """
    device_name = _basename(device_path)
    friendly_name = ""
    hardware_id = ""
    sys_device_path = f"{sysfs_root}/{device_name}/device"

    if device_name.startswith("ttyUSB"):
        usb_path = _dirname(_dirname(_realpath(sys_device_path)))
        if usb_path and os.path.exists(usb_path):
            friendly_name = usb_sysfs_friendly_name(usb_path)
            hardware_id = usb_sysfs_hw_string(usb_path)
    elif device_name.startswith("ttyACM"):
        usb_path = _dirname(_realpath(sys_device_path))
        if usb_path and os.path.exists(usb_path):
            friendly_name = usb_sysfs_friendly_name(usb_path)
            hardware_id = usb_sysfs_hw_string(usb_path)
    else:
        id_path = f"{sys_device_path}/id"
        if os.path.exists(id_path):
            hardware_id = _read_line(id_path)

    return friendly_name or device_name, hardware_id or _NOT_AVAILABLE


def list_ports(patterns: Iterable[str] | None = None) -> list[PortInfo]:
    """List serial devices matching ``patterns``.

    Matches of each pattern are sorted, and patterns are taken in order.
    """
    search = DEFAULT_PATTERNS if patterns is None else tuple(patterns)
    devices = [path for pattern in search for path in sorted(glob.glob(pattern))]
    results = []
    for device in devices:
        description, hardware_id = sysfs_info(device)
        results.append(PortInfo(device, description, hardware_id))
    return results