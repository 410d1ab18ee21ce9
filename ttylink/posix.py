"""Serial port access on POSIX systems through termios."""

from __future__ import annotations

import array
import errno
import fcntl
import os
import select
import struct
import sys
import termios
import threading
import time

from ttylink.errors import IOException, PortNotOpenedException, SerialException
from ttylink.settings import ByteSize, FlowControl, Parity, StopBits, Timeout
from ttylink.timer import MillisecondTimer

_UINT32_MAX = 0xFFFFFFFF
_IS_LINUX = sys.platform.startswith("linux")

_STANDARD_BAUDS = (
    0, 50, 75, 110, 134, 150, 200, 300, 600, 1200, 1800, 2400, 4800, 7200,
    9600, 14400, 19200, 28800, 57600, 76800, 38400, 115200, 128000, 153600,
    230400, 256000, 460800, 500000, 576000, 921600, 1000000, 1152000,
    1500000, 2000000, 2500000, 3000000, 3500000, 4000000,
)
_BAUD_CONSTANTS = {
    rate: getattr(termios, f"B{rate}")
    for rate in _STANDARD_BAUDS
    if hasattr(termios, f"B{rate}")
}

_TIOCINQ = getattr(termios, "TIOCINQ", getattr(termios, "FIONREAD", 0x541B))
_TIOCGSERIAL = getattr(termios, "TIOCGSERIAL", 0x541E if _IS_LINUX else None)
_TIOCSSERIAL = getattr(termios, "TIOCSSERIAL", 0x541F if _IS_LINUX else None)
_TIOCMIWAIT = getattr(termios, "TIOCMIWAIT", 0x545C if _IS_LINUX else None)
_CMSPAR = getattr(termios, "CMSPAR", 0o10000000000 if _IS_LINUX else None)
_CRTSCTS = getattr(termios, "CRTSCTS", getattr(termios, "CNEW_RTSCTS", None))
_ASYNC_SPD_MASK = 0x1030
_ASYNC_SPD_CUST = 0x0030

_CSIZE_FLAGS = {
    ByteSize.FIVE: termios.CS5,
    ByteSize.SIX: termios.CS6,
    ByteSize.SEVEN: termios.CS7,
    ByteSize.EIGHT: termios.CS8,
}


def _check_baudrate(baudrate: int) -> int:
    if not isinstance(baudrate, int) or isinstance(baudrate, bool):
        raise TypeError("baudrate must be an integer")
    if not 0 <= baudrate <= _UINT32_MAX:
        raise ValueError(f"baudrate must be within 0..{_UINT32_MAX}")
    return baudrate


def _ioctl_failure(caller: str, request: str, exc: OSError) -> SerialException:
    code = exc.errno or 0
    return SerialException(
        f"{caller} failed on a call to ioctl({request}): {code} {os.strerror(code)}"
    )


class PosixPort:
    """A serial device opened in raw, non-blocking mode.

    Reads and writes wait with ``select`` and honour the configured
    :class:`Timeout`. The port opens immediately when a name is given.
    ``read_lock`` and ``write_lock`` are available to callers that share
    the port between threads.
    """

    def __init__(
        self,
        port: str = "",
        baudrate: int = 9600,
        bytesize: ByteSize = ByteSize.EIGHT,
        parity: Parity = Parity.NONE,
        stopbits: StopBits = StopBits.ONE,
        flowcontrol: FlowControl = FlowControl.NONE,
    ) -> None:
        self._port = port
        self._fd = -1
        self._is_open = False
        self._xonxoff = False
        self._rtscts = False
        self._timeout = Timeout()
        self._baudrate = _check_baudrate(baudrate)
        self._bytesize = ByteSize(bytesize)
        self._parity = Parity(parity)
        self._stopbits = StopBits(stopbits)
        self._flowcontrol = FlowControl(flowcontrol)
        self.read_lock = threading.Lock()
        self.write_lock = threading.Lock()
        if self._port:
            self.open()

    def __repr__(self) -> str:
        state = "open" if self._is_open else "closed"
        return f"{type(self).__name__}({self._port!r}, {self._baudrate}, {state})"

    # -- opening and configuration -------------------------------------

    def open(self) -> None:
        """Open the device and apply the current settings."""
        if not self._port:
            raise ValueError("Empty port is invalid.")
        if self._is_open:
            raise SerialException("Serial port already open.")
        while True:
            try:
                fd = os.open(self._port, os.O_RDWR | os.O_NOCTTY | os.O_NONBLOCK)
                break
            except InterruptedError:
                continue
            except OSError as exc:
                if exc.errno in (errno.ENFILE, errno.EMFILE):
                    raise IOException("Too many file handles open.") from exc
                raise IOException(errnum=exc.errno or 0) from exc
        self._fd = fd
        try:
            self._reconfigure()
        except BaseException:
            os.close(fd)
            self._fd = -1
            raise
        self._is_open = True

    def _reconfigure(self) -> None:
        if self._fd == -1:
            raise IOException("Invalid file descriptor, is the serial port open?")
        try:
            attrs = termios.tcgetattr(self._fd)
        except termios.error as exc:
            raise IOException("tcgetattr") from exc
        iflag, oflag, cflag, lflag, ispeed, ospeed, cc = attrs

        cflag |= termios.CLOCAL | termios.CREAD
        lflag &= ~(
            termios.ICANON | termios.ECHO | termios.ECHOE | termios.ECHOK
            | termios.ECHONL | termios.ISIG | termios.IEXTEN
        )
        oflag &= ~termios.OPOST
        iflag &= ~(termios.INLCR | termios.IGNCR | termios.ICRNL | termios.IGNBRK)
        iflag &= ~getattr(termios, "IUCLC", 0)
        iflag &= ~getattr(termios, "PARMRK", 0)

        speed = _BAUD_CONSTANTS.get(self._baudrate)
        if speed is None:
            self._set_custom_baud()
        else:
            ispeed = ospeed = speed

        cflag &= ~termios.CSIZE
        cflag |= _CSIZE_FLAGS[self._bytesize]

        if self._stopbits is StopBits.ONE:
            cflag &= ~termios.CSTOPB
        else:
            # POSIX has no 1.5 stop bits; it is treated as two.
            cflag |= termios.CSTOPB

        iflag &= ~(termios.INPCK | termios.ISTRIP)
        if self._parity is Parity.NONE:
            cflag &= ~(termios.PARENB | termios.PARODD)
        elif self._parity is Parity.EVEN:
            cflag &= ~termios.PARODD
            cflag |= termios.PARENB
        elif self._parity is Parity.ODD:
            cflag |= termios.PARENB | termios.PARODD
        elif _CMSPAR is None:
            raise ValueError("OS does not support mark or space parity")
        elif self._parity is Parity.MARK:
            cflag |= termios.PARENB | _CMSPAR | termios.PARODD
        else:
            cflag |= termios.PARENB | _CMSPAR
            cflag &= ~termios.PARODD

        self._xonxoff = self._flowcontrol is FlowControl.SOFTWARE
        self._rtscts = self._flowcontrol is FlowControl.HARDWARE

        if self._xonxoff:
            iflag |= termios.IXON | termios.IXOFF
        else:
            iflag &= ~(termios.IXON | termios.IXOFF | getattr(termios, "IXANY", 0))

        if _CRTSCTS is not None:
            if self._rtscts:
                cflag |= _CRTSCTS
            else:
                cflag &= ~_CRTSCTS

        cc = list(cc)
        cc[termios.VMIN] = 0
        cc[termios.VTIME] = 0

        try:
            termios.tcsetattr(
                self._fd,
                termios.TCSANOW,
                [iflag, oflag, cflag, lflag, ispeed, ospeed, cc],
            )
        except termios.error as exc:
            raise IOException("tcsetattr") from exc

    def _set_custom_baud(self) -> None:
        if _TIOCGSERIAL is None or _TIOCSSERIAL is None:
            raise ValueError("OS does not currently support custom bauds")
        buf = array.array("i", [0] * 64)
        try:
            fcntl.ioctl(self._fd, _TIOCGSERIAL, buf, True)
            flags, baud_base = buf[4], buf[7]
            buf[6] = baud_base // self._baudrate
            buf[4] = (flags & ~_ASYNC_SPD_MASK) | _ASYNC_SPD_CUST
            fcntl.ioctl(self._fd, _TIOCSSERIAL, buf)
        except OSError as exc:
            raise IOException(errnum=exc.errno or 0) from exc

    def close(self) -> None:
        """Close the device; closing a closed port does nothing."""
        if not self._is_open:
            return
        if self._fd != -1:
            try:
                os.close(self._fd)
            except OSError as exc:
                raise IOException(errnum=exc.errno or 0) from exc
            self._fd = -1
        self._is_open = False

    @property
    def is_open(self) -> bool:
        return self._is_open

    def _require_open(self, caller: str) -> None:
        if not self._is_open:
            raise PortNotOpenedException(caller)

    # -- settings --------------------------------------------------------

    @property
    def port(self) -> str:
        """Device path; changing it takes effect on the next open."""
        return self._port

    @port.setter
    def port(self, value: str) -> None:
        self._port = value

    @property
    def timeout(self) -> Timeout:
        return self._timeout

    @timeout.setter
    def timeout(self, value: Timeout) -> None:
        if not isinstance(value, Timeout):
            raise TypeError("timeout must be a Timeout")
        self._timeout = value

    @property
    def baudrate(self) -> int:
        return self._baudrate

    @baudrate.setter
    def baudrate(self, value: int) -> None:
        self._baudrate = _check_baudrate(value)
        if self._is_open:
            self._reconfigure()

    @property
    def bytesize(self) -> ByteSize:
        return self._bytesize

    @bytesize.setter
    def bytesize(self, value: ByteSize) -> None:
        self._bytesize = ByteSize(value)
        if self._is_open:
            self._reconfigure()

    @property
    def parity(self) -> Parity:
        return self._parity

    @parity.setter
    def parity(self, value: Parity) -> None:
        self._parity = Parity(value)
        if self._is_open:
            self._reconfigure()

    @property
    def stopbits(self) -> StopBits:
        return self._stopbits

    @stopbits.setter
    def stopbits(self, value: StopBits) -> None:
        self._stopbits = StopBits(value)
        if self._is_open:
            self._reconfigure()

    @property
    def flowcontrol(self) -> FlowControl:
        return self._flowcontrol

    @flowcontrol.setter
    def flowcontrol(self, value: FlowControl) -> None:
        self._flowcontrol = FlowControl(value)
        if self._is_open:
            self._reconfigure()

    @property
    def byte_time_ns(self) -> int:
        """Nanoseconds needed to transfer one character at current settings."""
        bit_time = int(1e9 / self._baudrate) if self._baudrate else 0
        total: float = bit_time * (
            1 + int(self._bytesize) + int(self._parity) + int(self._stopbits)
        )
        if self._stopbits is StopBits.ONE_POINT_FIVE:
            total += (1.5 - int(StopBits.ONE_POINT_FIVE)) * bit_time
        return int(total) & _UINT32_MAX

    # -- data transfer ---------------------------------------------------

    def available(self) -> int:
        """Number of bytes waiting in the input buffer; 0 when closed."""
        if not self._is_open:
            return 0
        try:
            raw = fcntl.ioctl(self._fd, _TIOCINQ, struct.pack("i", 0))
        except OSError as exc:
            raise IOException(errnum=exc.errno or 0) from exc
        return struct.unpack("i", raw)[0]

    def wait_readable(self, timeout: int) -> bool:
        """Wait up to ``timeout`` milliseconds for data to arrive."""
        try:
            ready, _, _ = select.select([self._fd], [], [], timeout / 1000)
        except InterruptedError:
            return False
        except OSError as exc:
            raise IOException(errnum=exc.errno or 0) from exc
        return bool(ready)

    def wait_byte_times(self, count: int) -> None:
        """Sleep for the time it takes to transfer ``count`` characters."""
        time.sleep(self.byte_time_ns * count / 1e9)

    def read(self, size: int = 1) -> bytes:
        """Read up to ``size`` bytes, stopping early when a timeout expires."""
        self._require_open("read")
        timeout = self._timeout
        deadline = MillisecondTimer(
            timeout.read_timeout_constant + timeout.read_timeout_multiplier * size
        )
        buffer = bytearray()
        try:
            buffer += os.read(self._fd, size)
        except OSError:
            pass

        while len(buffer) < size:
            remaining = deadline.remaining()
            if remaining <= 0:
                break
            wait = min(remaining, timeout.inter_byte_timeout)
            if not self.wait_readable(wait):
                continue
            if size > 1 and timeout.inter_byte_timeout == Timeout.MAX:
                waiting = self.available()
                if waiting + len(buffer) < size:
                    self.wait_byte_times(size - (waiting + len(buffer)))
            try:
                chunk = os.read(self._fd, size - len(buffer))
            except OSError:
                chunk = b""
            if not chunk:
                raise SerialException(
                    "device reports readiness to read but returned no data "
                    "(device disconnected?)"
                )
            buffer += chunk
        return bytes(buffer)

    def write(self, data: bytes) -> int:
        """Write ``data`` and return how many bytes went out before any timeout."""
        self._require_open("write")
        view = memoryview(bytes(data))
        length = len(view)
        timeout = self._timeout
        deadline = MillisecondTimer(
            timeout.write_timeout_constant + timeout.write_timeout_multiplier * length
        )
        written = 0
        first_iteration = True
        while written < length:
            remaining = deadline.remaining()
            if not first_iteration and remaining <= 0:
                break
            first_iteration = False
            try:
                _, ready, _ = select.select([], [self._fd], [], max(remaining, 0) / 1000)
            except InterruptedError:
                continue
            except OSError as exc:
                raise IOException(errnum=exc.errno or 0) from exc
            if not ready:
                break
            if self._fd not in ready:
                raise IOException(
                    "select reports ready to write, but our fd isn't in the list, "
                    "this shouldn't happen!"
                )
            try:
                count = os.write(self._fd, view[written:])
            except OSError:
                count = 0
            if count < 1:
                raise SerialException(
                    "device reports readiness to write but returned no data "
                    "(device disconnected?)"
                )
            written += count
        return written

    # -- buffers and line control ---------------------------------------

    def flush(self) -> None:
        """Wait until all output has been transmitted."""
        self._require_open("flush")
        termios.tcdrain(self._fd)

    def flush_input(self) -> None:
        """Discard received data that has not been read."""
        self._require_open("flush_input")
        termios.tcflush(self._fd, termios.TCIFLUSH)

    def flush_output(self) -> None:
        """Discard written data that has not been transmitted."""
        self._require_open("flush_output")
        termios.tcflush(self._fd, termios.TCOFLUSH)

    def send_break(self, duration: int) -> None:
        """Transmit a break signal."""
        self._require_open("send_break")
        termios.tcsendbreak(self._fd, int(duration / 4))

    def set_break(self, level: bool = True) -> None:
        """Turn the break condition on or off."""
        self._require_open("set_break")
        request, name = (
            (termios.TIOCSBRK, "TIOCSBRK") if level else (termios.TIOCCBRK, "TIOCCBRK")
        )
        try:
            fcntl.ioctl(self._fd, request)
        except OSError as exc:
            raise _ioctl_failure("set_break", name, exc) from exc

    def _set_modem_line(self, caller: str, line: int, level: bool) -> None:
        self._require_open(caller)
        request, name = (
            (termios.TIOCMBIS, "TIOCMBIS") if level else (termios.TIOCMBIC, "TIOCMBIC")
        )
        try:
            fcntl.ioctl(self._fd, request, struct.pack("i", line))
        except OSError as exc:
            raise _ioctl_failure(caller, name, exc) from exc

    def set_rts(self, level: bool = True) -> None:
        """Drive the RTS line high or low."""
        self._set_modem_line("set_rts", termios.TIOCM_RTS, level)

    def set_dtr(self, level: bool = True) -> None:
        """Drive the DTR line high or low."""
        self._set_modem_line("set_dtr", termios.TIOCM_DTR, level)

    def _modem_status(self, caller: str) -> int:
        try:
            raw = fcntl.ioctl(self._fd, termios.TIOCMGET, struct.pack("i", 0))
        except OSError as exc:
            raise _ioctl_failure(caller, "TIOCMGET", exc) from exc
        return struct.unpack("i", raw)[0]

    def wait_for_change(self) -> bool:
        """Block until CTS, DSR, RI or CD changes."""
        watched = termios.TIOCM_CD | termios.TIOCM_DSR | termios.TIOCM_RI | termios.TIOCM_CTS
        if _TIOCMIWAIT is not None:
            try:
                fcntl.ioctl(self._fd, _TIOCMIWAIT, watched)
            except OSError as exc:
                raise _ioctl_failure("wait_for_change", "TIOCMIWAIT", exc) from exc
            return True
        while self._is_open:
            if self._modem_status("wait_for_change") & watched:
                return True
            time.sleep(0.001)
        return False

    def _line(self, caller: str, mask: int) -> bool:
        self._require_open(caller)
        return bool(self._modem_status(caller) & mask)

    def cts(self) -> bool:
        """State of the CTS line."""
        return self._line("cts", termios.TIOCM_CTS)

    def dsr(self) -> bool:
        """State of the DSR line."""
        return self._line("dsr", termios.TIOCM_DSR)

    def ri(self) -> bool:
        """State of the RI line."""
        return self._line("ri", termios.TIOCM_RI)

    def cd(self) -> bool:
        """State of the CD line."""
        return self._line("cd", termios.TIOCM_CD)