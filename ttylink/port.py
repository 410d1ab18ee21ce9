"""A thread-safe serial port with line-oriented reading helpers."""

from __future__ import annotations

from ttylink.posix import PosixPort
from ttylink.settings import ByteSize, FlowControl, Parity, StopBits, Timeout

_DEFAULT_LINE_SIZE = 65536


def _as_bytes(data: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


class Serial:
    """A serial port.

    The port opens at construction when a device name is given; otherwise
    it stays closed until :meth:`open` is called. Reads and writes are
    each guarded by their own lock so one reader and one writer may work
    from different threads at the same time.
    """

    def __init__(
        self,
        port: str = "",
        baudrate: int = 9600,
        timeout: Timeout | None = None,
        bytesize: ByteSize = ByteSize.EIGHT,
        parity: Parity = Parity.NONE,
        stopbits: StopBits = StopBits.ONE,
        flowcontrol: FlowControl = FlowControl.NONE,
    ) -> None:
        self._impl = PosixPort(port, baudrate, bytesize, parity, stopbits, flowcontrol)
        self._impl.timeout = Timeout() if timeout is None else timeout

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"{type(self).__name__}({self.port!r}, {self.baudrate}, {state})"

    def __enter__(self) -> Serial:
        if not self._impl.is_open:
            self._impl.open()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # -- opening -----------------------------------------------------------

    def open(self) -> None:
        """Open the port; it must have a name and not already be open."""
        self._impl.open()

    def close(self) -> None:
        """Close the port; closing a closed port does nothing."""
        self._impl.close()

    @property
    def is_open(self) -> bool:
        return self._impl.is_open

    # -- reading -----------------------------------------------------------

    def available(self) -> int:
        """Number of bytes waiting to be read."""
        return self._impl.available()

    def wait_readable(self) -> bool:
        """Wait up to the read timeout constant for data to arrive."""
        return self._impl.wait_readable(self._impl.timeout.read_timeout_constant)

    def wait_byte_times(self, count: int) -> None:
        """Sleep for the time needed to transfer ``count`` characters."""
        self._impl.wait_byte_times(count)

    def read(self, size: int = 1) -> bytes:
        """Read up to ``size`` bytes; fewer are returned when a timeout expires."""
        with self._impl.read_lock:
            return self._impl.read(size)

    def readline(
        self, size: int = _DEFAULT_LINE_SIZE, eol: bytes | str = b"\n"
    ) -> bytes:
        """Read one line, ending at ``eol``, after ``size`` bytes or at a timeout."""
        eol = _as_bytes(eol)
        buffer = bytearray()
        with self._impl.read_lock:
            while True:
                chunk = self._impl.read(1)
                if not chunk:
                    break
                buffer += chunk
                if buffer.endswith(eol):
                    break
                if len(buffer) >= size:
                    break
        return bytes(buffer)

    def readlines(
        self, size: int = _DEFAULT_LINE_SIZE, eol: bytes | str = b"\n"
    ) -> list[bytes]:
        """Read lines until a timeout or until ``size`` bytes in total."""
        eol = _as_bytes(eol)
        lines: list[bytes] = []
        buffer = bytearray()
        start = 0
        with self._impl.read_lock:
            while len(buffer) < size:
                chunk = self._impl.read(1)
                if not chunk:
                    if start != len(buffer):
                        lines.append(bytes(buffer[start:]))
                    break
                buffer += chunk
                if buffer.endswith(eol):
                    lines.append(bytes(buffer[start:]))
                    start = len(buffer)
                if len(buffer) == size:
                    if start != len(buffer):
                        lines.append(bytes(buffer[start:]))
                    break
        return lines

    # -- writing -----------------------------------------------------------

    def write(self, data: bytes | bytearray | memoryview | str) -> int:
        """Write ``data``; text is encoded as UTF-8. Returns bytes written."""
        payload = _as_bytes(data)
        with self._impl.write_lock:
            return self._impl.write(payload)

    # -- settings ----------------------------------------------------------

    @property
    def port(self) -> str:
        """Device path; changing it on an open port reopens the port."""
        return self._impl.port

    @port.setter
    def port(self, value: str) -> None:
        with self._impl.read_lock, self._impl.write_lock:
            was_open = self._impl.is_open
            if was_open:
                self._impl.close()
            self._impl.port = value
            if was_open:
                self._impl.open()

    @property
    def timeout(self) -> Timeout:
        return self._impl.timeout

    @timeout.setter
    def timeout(self, value: Timeout) -> None:
        self._impl.timeout = value

    def set_timeout(
        self,
        inter_byte_timeout: int = 0,
        read_timeout_constant: int = 0,
        read_timeout_multiplier: int = 0,
        write_timeout_constant: int = 0,
        write_timeout_multiplier: int = 0,
    ) -> None:
        """Set all timeout components, in milliseconds."""
        self._impl.timeout = Timeout(
            inter_byte_timeout,
            read_timeout_constant,
            read_timeout_multiplier,
            write_timeout_constant,
            write_timeout_multiplier,
        )

    @property
    def baudrate(self) -> int:
        return self._impl.baudrate

    @baudrate.setter
    def baudrate(self, value: int) -> None:
        self._impl.baudrate = value

    @property
    def bytesize(self) -> ByteSize:
        return self._impl.bytesize

    @bytesize.setter
    def bytesize(self, value: ByteSize) -> None:
        self._impl.bytesize = value

    @property
    def parity(self) -> Parity:
        return self._impl.parity

    @parity.setter
    def parity(self, value: Parity) -> None:
        self._impl.parity = value

    @property
    def stopbits(self) -> StopBits:
        return self._impl.stopbits

    @stopbits.setter
    def stopbits(self, value: StopBits) -> None:
        self._impl.stopbits = value

    @property
    def flowcontrol(self) -> FlowControl:
        return self._impl.flowcontrol

    @flowcontrol.setter
    def flowcontrol(self, value: FlowControl) -> None:
        self._impl.flowcontrol = value

    # -- buffers and line control -----------------------------------------

    def flush(self) -> None:
        """Wait until all written data has been transmitted."""
        with self._impl.read_lock, self._impl.write_lock:
            self._impl.flush()

    def flush_input(self) -> None:
        """Discard received data that has not been read."""
        with self._impl.read_lock:
            self._impl.flush_input()

    def flush_output(self) -> None:
        """Discard written data that has not been transmitted."""
        with self._impl.write_lock:
            self._impl.flush_output()

    def send_break(self, duration: int) -> None:
        """Transmit a break signal."""
        self._impl.send_break(duration)

    def set_break(self, level: bool = True) -> None:
        """Turn the break condition on or off."""
        self._impl.set_break(level)

    def set_rts(self, level: bool = True) -> None:
        """Drive the RTS line."""
        self._impl.set_rts(level)

    def set_dtr(self, level: bool = True) -> None:
        """Drive the DTR line."""
        self._impl.set_dtr(level)

    def wait_for_change(self) -> bool:
        """Block until CTS, DSR, RI or CD changes."""
        return self._impl.wait_for_change()

    def cts(self) -> bool:
        """State of the CTS line."""
        return self._impl.cts()

    def dsr(self) -> bool:
        """State of the DSR line."""
        return self._impl.dsr()

    def ri(self) -> bool:
        """State of the RI line."""
        return self._impl.ri()

    def cd(self) -> bool:
        """State of the CD line."""
        return self._impl.cd()