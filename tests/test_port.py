import os

import pytest

from ttylink.errors import IOException, PortNotOpenedException, SerialException
from ttylink.port import Serial
from ttylink.settings import ByteSize, FlowControl, Parity, StopBits, Timeout


@pytest.fixture
def pty():
    master, slave = os.openpty()
    name = os.ttyname(slave)
    yield master, name
    os.close(master)
    os.close(slave)


@pytest.fixture
def link(pty):
    master, name = pty
    ser = Serial(name, timeout=Timeout.simple(100))
    yield master, ser
    ser.close()


def _read_master(master, size):
    data = b""
    while len(data) < size:
        data += os.read(master, size - len(data))
    return data


def test_unnamed_port_is_closed_with_defaults():
    ser = Serial()
    assert ser.is_open is False
    assert ser.port == ""
    assert ser.baudrate == 9600
    assert ser.bytesize is ByteSize.EIGHT
    assert ser.parity is Parity.NONE
    assert ser.stopbits is StopBits.ONE
    assert ser.flowcontrol is FlowControl.NONE
    assert ser.timeout == Timeout()


def test_open_without_port_raises_value_error():
    with pytest.raises(ValueError):
        Serial().open()


def test_open_missing_device_raises_io_exception(tmp_path):
    ser = Serial()
    ser.port = str(tmp_path / "missing")
    with pytest.raises(IOException):
        ser.open()
    assert ser.is_open is False


def test_read_on_closed_port_raises():
    with pytest.raises(PortNotOpenedException):
        Serial().read(1)


def test_write_on_closed_port_raises():
    with pytest.raises(PortNotOpenedException):
        Serial().write(b"x")


def test_flush_input_on_closed_port_raises():
    with pytest.raises(PortNotOpenedException):
        Serial().flush_input()


def test_available_on_closed_port_is_zero():
    assert Serial().available() == 0


def test_open_twice_raises(link):
    _, ser = link
    assert ser.is_open is True
    with pytest.raises(SerialException):
        ser.open()


def test_close_is_idempotent(link):
    _, ser = link
    ser.close()
    ser.close()
    assert ser.is_open is False


def test_context_manager_closes(pty):
    _, name = pty
    with Serial(name) as ser:
        assert ser.is_open is True
    assert ser.is_open is False


def test_context_manager_opens_closed_port(pty):
    _, name = pty
    ser = Serial()
    ser.port = name
    with ser as opened:
        assert opened is ser
        assert ser.is_open is True
    assert ser.is_open is False


def test_write_reaches_other_end(link):
    master, ser = link
    assert ser.write(b"ping") == 4
    assert _read_master(master, 4) == b"ping"


def test_write_text_is_utf8(link):
    master, ser = link
    text = "h\u00e9"
    encoded = text.encode("utf-8")
    assert ser.write(text) == len(encoded)
    assert _read_master(master, len(encoded)) == encoded


def test_read_returns_written_bytes(link):
    master, ser = link
    os.write(master, b"abcdef")
    assert ser.read(6) == b"abcdef"


def test_read_stops_at_timeout(link):
    master, ser = link
    os.write(master, b"ab")
    assert ser.read(5) == b"ab"


def test_readline_splits_lines(link):
    master, ser = link
    os.write(master, b"hello\nworld\n")
    assert ser.readline() == b"hello\n"
    assert ser.readline() == b"world\n"


def test_readline_without_eol_returns_at_timeout(link):
    master, ser = link
    os.write(master, b"abc")
    assert ser.readline() == b"abc"


def test_readline_respects_size(link):
    master, ser = link
    os.write(master, b"hello\n")
    assert ser.readline(size=3) == b"hel"
    assert ser.readline() == b"lo\n"


def test_readline_custom_eol(link):
    master, ser = link
    os.write(master, b"a;b;")
    assert ser.readline(eol=";") == b"a;"
    assert ser.readline(eol=b";") == b"b;"


def test_readlines_collects_until_timeout(link):
    master, ser = link
    os.write(master, b"a\nb\nc")
    assert ser.readlines() == [b"a\n", b"b\n", b"c"]


def test_readlines_respects_total_size(link):
    master, ser = link
    os.write(master, b"ab\ncd\n")
    lines = ser.readlines(size=4)
    assert lines == [b"ab\n", b"c"]
    assert sum(len(line) for line in lines) == 4


def test_wait_readable(link):
    master, ser = link
    assert ser.wait_readable() is False
    os.write(master, b"x")
    assert ser.wait_readable() is True
    assert ser.available() == 1


def test_set_timeout_builds_timeout(link):
    _, ser = link
    ser.set_timeout(1, 2, 3, 4, 5)
    assert ser.timeout == Timeout(1, 2, 3, 4, 5)


def test_timeout_setter_rejects_non_timeout(link):
    _, ser = link
    with pytest.raises(TypeError):
        ser.timeout = 5
    assert ser.timeout == Timeout.simple(100)


def test_invalid_bytesize_rejected(link):
    _, ser = link
    with pytest.raises(ValueError):
        ser.bytesize = 9
    assert ser.bytesize is ByteSize.EIGHT


def test_changing_port_reopens(pty):
    master, name = pty
    ser = Serial(name, timeout=Timeout.simple(100))
    try:
        ser.port = name
        assert ser.is_open is True
        assert ser.port == name
        os.write(master, b"ok")
        assert ser.read(2) == b"ok"
    finally:
        ser.close()


def test_changing_port_while_closed_stays_closed(pty):
    _, name = pty
    ser = Serial()
    ser.port = name
    assert ser.is_open is False
    assert ser.port == name


def test_flush_input_discards_pending_data(link):
    master, ser = link
    os.write(master, b"junk")
    assert ser.wait_readable() is True
    ser.flush_input()
    assert ser.available() == 0
    os.write(master, b"z")
    assert ser.read(1) == b"z"