"""POSIX serial ports with timeouts, Linux port discovery and chassis frame codecs."""

__version__ = "0.1.0"

__all__ = [
    "errors",
    "settings",
    "frames",
    "timer",
    "messages",
    "posix",
    "port",
    "list_ports",
]