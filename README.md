# ttylink

Serial port access for POSIX systems, built on `termios`, `fcntl` and
`select`, with no third-party dependencies.

What is in the package:

- `ttylink.port.Serial` — a serial port with baud rate, byte size,
  parity, stop bits and flow control, millisecond read and write
  timeouts, `readline`/`readlines`, modem-line control and a context
  manager. Reads and writes each hold their own lock, so one reader and
  one writer can share a port across threads.
- `ttylink.posix.PosixPort` — the raw, non-blocking termios device that
  `Serial` is built on.
- `ttylink.settings` — the `ByteSize`, `Parity`, `StopBits` and
  `FlowControl` enums and the frozen `Timeout` dataclass.
- `ttylink.timer.MillisecondTimer` — a countdown on the monotonic clock.
- `ttylink.list_ports` — `list_ports()` finds tty devices under `/dev`
  and describes them from Linux sysfs as `PortInfo` records.
- `ttylink.frames` — `pack()`/`unpack()` for the fixed-size little-endian
  frames of a differential-drive chassis controller (`RobotFrame`,
  `CommandFrame`, `VelocityCommand`, `WheelSpeedCommand`, and the 40-byte
  `Mode1Report` and `Mode2Report` data blocks).
- `ttylink.messages` — plain dataclasses for motor, IMU, remote-control,
  chassis, twist and torque/brake data.
- `ttylink.errors` — `SerialException`, `IOException` and
  `PortNotOpenedException`.

## Install

```
pip install .
```

## Use

```python
from ttylink.port import Serial
from ttylink.settings import Timeout

with Serial("/dev/ttyUSB0", 115200, Timeout.simple(100)) as link:
    link.write(b"ping\n")
    print(link.readline())
```

A port named when the `Serial` is made is opened at once; otherwise set
`port` and call `open()` (or enter the `with` block, which opens a closed
port and closes it on exit). Changing `port` on an open port reopens it;
changing `baudrate`, `bytesize`, `parity`, `stopbits` or `flowcontrol`
on an open port reconfigures it straight away.

`read(size)` returns `bytes` and may return fewer than `size` bytes when
the timeout runs out. A read gives up after
`read_timeout_constant + read_timeout_multiplier * size` milliseconds;
writes work the same way with the write components. The default
`Timeout()` is all zeros, so reads return only what is already waiting.
`Timeout.simple(ms)` sets both read and write to `ms` and disables the
inter-byte limit.

`readline(size=65536, eol=b"\n")` stops at the end-of-line marker, after
`size` bytes, or at a timeout, and keeps the marker in the result.
`readlines` collects lines until a timeout or `size` bytes in total.
`write` and `eol` accept `str`, which is encoded as UTF-8.

Errors: a read, write, flush or line operation on a closed port raises
`PortNotOpenedException`; opening without a port name raises
`ValueError`; opening twice raises `SerialException`; operating-system
failures raise `IOException`, whose `errno` attribute holds the error
number when there is one.

### Modem lines

```python
link.set_rts(True)
link.set_dtr(False)
print(link.cts(), link.dsr(), link.ri(), link.cd())
link.send_break(250)
```

### Listing ports

```python
from ttylink.list_ports import list_ports

for info in list_ports():
    print(info.port, info.description, info.hardware_id)
```

By default it searches `/dev/ttyACM*`, `/dev/ttyS*`, `/dev/ttyUSB*`,
`/dev/tty.*` and `/dev/cu.*`; pass your own glob patterns to search
elsewhere. USB adapters are described by manufacturer, product and
serial number with a hardware id such as `USB VID:PID=1234:abcd SNR=0001`;
devices sysfs says nothing about get their own name and `"n/a"`.

### Chassis frames

```python
from ttylink.frames import Mode1Report, RobotFrame, VelocityCommand

packet = VelocityCommand(mode=1, vx=200, vz=0.5).pack()   # 16 bytes

frame = RobotFrame.unpack(received)        # 48 bytes starting 0xDE 0xED
report = Mode1Report.unpack(frame.data)
```

`unpack` raises `ValueError` on a wrong length or a header other than
`0xDEED`; `pack` raises `ValueError` when a field is out of range.

## What it does not do

- It runs on POSIX systems only; there is no Windows support, and port
  listing relies on Linux sysfs.
- It has no command-line tool.
- The frame classes do not compute the `length` or `check` fields; they
  are packed and unpacked exactly as given.
- It does not drive a chassis: there is no loop that reads reports or
  sends commands, only the codecs and records to build one with.

## Tests

```
pip install .[test]
pytest
```