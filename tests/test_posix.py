import errno
import os
import select
import termios

import pytest

from ttylink.errors import IOException, PortNotOpenedException, SerialException
from ttylink.posix import PosixPort
from ttylink.settings import ByteSize, FlowControl, Parity, StopBits, Timeout


@pytest.fixture
def pty_pair():
    master, slave = os.openpty()
    name = os.ttyname(slave)
    yield master, slave, name
    os.close(master)
    os.close(slave)


@pytest.fixture
def opened(pty_pair):
    master, slave, name = pty_pair
    port = PosixPort(name)
    port.timeout = Timeout.simple(1000)
    yield port, master, slave
    port.close()


def _read_master(master, size):
    data = bytearray()
    while len(data) < size:
        ready, _, _ = select.select([master], [], [], 2.0)
        if not ready:
            break
        data += os.read(master, size - len(data))
    return bytes(data)


def test_defaults_leave_port_closed():
    port = PosixPort()
    assert port.is_open is False
    assert port.port == ""
    assert port.baudrate == 9600
    assert port.bytesize is ByteSize.EIGHT
    assert port.parity is Parity.NONE
    assert port.stopbits is StopBits.ONE
    assert port.flowcontrol is FlowControl.NONE
    assert port.timeout == Timeout()


def test_open_without_port_raises():
    with pytest.raises(ValueError):
        PosixPort().open()


def test_operations_on_closed_port_raise():
    port = PosixPort()
    with pytest.raises(PortNotOpenedException):
        port.read(1)
    with pytest.raises(PortNotOpenedException):
        port.write(b"x")
    with pytest.raises(PortNotOpenedException):
        port.flush()
    with pytest.raises(PortNotOpenedException):
        port.cts()
    with pytest.raises(PortNotOpenedException):
        port.set_rts(True)


def test_available_is_zero_when_closed():
    assert PosixPort().available() == 0


def test_missing_device_raises_io_exception(tmp_path):
    missing = str(tmp_path / "no-such-device")
    with pytest.raises(IOException) as info:
        PosixPort(missing)
    assert info.value.errno == errno.ENOENT


def test_invalid_settings_are_rejected():
    with pytest.raises(ValueError):
        PosixPort(bytesize=9)
    with pytest.raises(ValueError):
        PosixPort(parity=7)
    with pytest.raises(ValueError):
        PosixPort(baudrate=-1)


def test_timeout_setter_requires_timeout():
    port = PosixPort()
    with pytest.raises(TypeError):
        port.timeout = 100
    assert port.timeout == Timeout()


def test_opens_pty_and_refuses_second_open(opened):
    port, _, _ = opened
    assert port.is_open is True
    with pytest.raises(SerialException):
        port.open()


def test_close_is_idempotent_and_reopen_works(opened):
    port, _, _ = opened
    port.close()
    port.close()
    assert port.is_open is False
    port.open()
    assert port.is_open is True


def test_raw_mode_is_applied(opened):
    _, _, slave = opened
    attrs = termios.tcgetattr(slave)
    lflag, cc = attrs[3], attrs[6]
    assert lflag & termios.ICANON == 0
    assert lflag & termios.ECHO == 0
    assert attrs[1] & termios.OPOST == 0
    assert cc[termios.VMIN] == 0
    assert cc[termios.VTIME] == 0
    assert attrs[5] == termios.B9600


def test_changing_baudrate_while_open_reconfigures(opened):
    port, _, slave = opened
    port.baudrate = 115200
    attrs = termios.tcgetattr(slave)
    assert port.baudrate == 115200
    assert attrs[4] == termios.B115200
    assert attrs[5] == termios.B115200


def test_custom_baud_on_pty_fails(opened):
    port, _, _ = opened
    with pytest.raises((IOException, ValueError)):
        port.baudrate = 12345
    assert port.baudrate == 12345


def test_read_returns_data_written_by_peer(opened):
    port, master, _ = opened
    os.write(master, b"hello")
    assert port.read(5) == b"hello"


def test_read_times_out_with_partial_data(opened):
    port, master, _ = opened
    port.timeout = Timeout.simple(50)
    os.write(master, b"ab")
    assert port.read(10) == b"ab"


def test_read_with_zero_timeout_and_no_data(opened):
    port, _, _ = opened
    port.timeout = Timeout()
    assert port.read(4) == b""


def test_write_reaches_peer(opened):
    port, master, _ = opened
    payload = bytes(range(32))
    assert port.write(payload) == len(payload)
    assert _read_master(master, len(payload)) == payload


def test_wait_readable_and_available(opened):
    port, master, _ = opened
    assert port.wait_readable(10) is False
    os.write(master, b"xyz")
    assert port.wait_readable(1000) is True
    assert port.available() == 3


def test_flush_input_discards_pending_data(opened):
    port, master, _ = opened
    os.write(master, b"stale")
    assert port.wait_readable(1000) is True
    port.flush_input()
    assert port.available() == 0


def test_setting_port_while_open_only_stores_it(opened):
    port, _, _ = opened
    port.port = "/dev/null-like"
    assert port.port == "/dev/null-like"
    assert port.is_open is True


def test_byte_time_grows_with_stop_bits():
    one = PosixPort(stopbits=StopBits.ONE).byte_time_ns
    half = PosixPort(stopbits=StopBits.ONE_POINT_FIVE).byte_time_ns
    two = PosixPort(stopbits=StopBits.TWO).byte_time_ns
    assert one < half < two


def test_byte_time_shrinks_with_faster_baud():
    slow = PosixPort(baudrate=9600).byte_time_ns
    fast = PosixPort(baudrate=19200).byte_time_ns
    assert fast < slow
    assert abs(slow - 2 * fast) <= 20
    assert PosixPort(baudrate=0).byte_time_ns == 0