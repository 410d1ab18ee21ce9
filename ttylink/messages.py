"""Plain records describing chassis, motor, IMU and remote-control state."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class MotorMeasure:
    """Feedback from one drive motor.

    Angles are absolute encoder positions in the range 0..8191.
    """

    angle: int = 0
    last_angle: int = 0
    speed_rpm: int = 0
    given_current: int = 0
    temp: int = 0
    offset_angle: int = 0
    round_cnt: int = 0
    total_angle: int = 0
    counter: int = 0


@dataclass
class ImuMeasure:
    """Raw and fused readings from the onboard IMU."""

    counter: int = 0
    ax: int = 0
    ay: int = 0
    az: int = 0
    gx: int = 0
    gy: int = 0
    gz: int = 0
    mx: int = 0
    my: int = 0
    mz: int = 0
    pitch: float = 0.0
    roll: float = 0.0
    yaw: float = 0.0
    pitch_rad: float = 0.0
    roll_rad: float = 0.0
    yaw_rad: float = 0.0
    qw: float = 0.0
    qx: float = 0.0
    qy: float = 0.0
    qz: float = 0.0


@dataclass
class RcInfo:
    """State of a radio remote control.

    ``type`` is 1 for a DJI DBUS receiver and 2 for SBUS; ``update`` is set
    when a new packet arrived and ``available`` when the data is valid.
    """

    ch1: int = 0
    ch2: int = 0
    ch3: int = 0
    ch4: int = 0
    ch5: int = 0
    ch6: int = 0
    ch7: int = 0
    ch8: int = 0
    ch9: int = 0
    ch10: int = 0
    ch11: int = 0
    ch12: int = 0
    ch13: int = 0
    ch14: int = 0
    ch15: int = 0
    ch16: int = 0
    ch17: int = 0
    ch18: int = 0
    sw1: int = 0
    sw2: int = 0
    sw3: int = 0
    sw4: int = 0
    ch1_offset: int = 0
    ch2_offset: int = 0
    ch3_offset: int = 0
    ch4_offset: int = 0
    type: int = 0
    status: int = 0
    update: int = 0
    available: int = 0


@dataclass
class Chassis:
    """Velocity and pose of the chassis.

    ``chassis_type`` is 0 for X4, 1 for M4, 2 for Ackermann and 3 for
    4WS4WD; ``motor_type`` is 0 for M3508 and 1 for the alternative motor.
    """

    available: int = 0
    vx: float = 0.0
    vy: float = 0.0
    wz: float = 0.0
    px: float = 0.0
    py: float = 0.0
    pz: float = 0.0
    chassis_type: int = 0
    motor_type: int = 0


@dataclass
class Header:
    """Frame name, sequence number and time stamp of a message."""

    frame_id: str = ""
    seq: int = 0
    sec: int = 0
    nanosec: int = 0


@dataclass
class Position:
    """Position and velocity in three dimensions."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    vz: float = 0.0


@dataclass
class Quaternion:
    """An orientation quaternion."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 0.0


@dataclass
class Imu:
    """A stamped IMU sample with acceleration, rate and attitude."""

    header: Header = field(default_factory=Header)
    ax: float = 0.0
    ay: float = 0.0
    az: float = 0.0
    gx: float = 0.0
    gy: float = 0.0
    gz: float = 0.0
    qx: float = 0.0
    qy: float = 0.0
    qz: float = 0.0
    qw: float = 0.0
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0


@dataclass
class Vector3:
    """A three-component vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass
class Twist:
    """A stamped linear and angular velocity."""

    header: Header = field(default_factory=Header)
    linear: Vector3 = field(default_factory=Vector3)
    angular: Vector3 = field(default_factory=Vector3)


@dataclass
class TorqueBrakeCommand:
    """Brake and torque request, each with its own enable flag."""

    bre_enable: int = 0
    bre_value: float = 0.0
    trq_enable: int = 0
    trq_value: float = 0.0