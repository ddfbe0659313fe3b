"""
OSC address constants and argument decoding.

Wire indices are 0-based everywhere; conversion to the 1-based application
API happens in the devices.

System / discovery (absolute paths)::

    /sys/connect      in  [serial] [type] [cols] [rows]
                      out serial type cols rows   |   0 (refused)
    /sys/disconnect   in  (none)            out serial
    /sys/info         in  [host] [port]     out /sys/id, /sys/size, ...
    /serialosc/list   in  host port         out /serialosc/device serial type slot
    /serialosc/notify in  host port         out /serialosc/add|remove serial

Device paths (relative to the device prefix)::

    /grid/key                 in  x y s
    /grid/led/level/map       out x_off y_off 64 x level
    /ring/set                 out n x level
    /ring/all                 out n level
    /ring/map                 out n levels...
    /enc/delta                in  n delta
    /enc/key                  in  n s
    /enc/position             in  n pos
"""

from typing import Any

from oscsurface.exceptions import MalformedMessageError

# System
SYS_CONNECT = "/sys/connect"
SYS_DISCONNECT = "/sys/disconnect"
SYS_INFO = "/sys/info"
SYS_ID = "/sys/id"
SYS_SIZE = "/sys/size"
SYS_HOST = "/sys/host"
SYS_PORT = "/sys/port"
SYS_PREFIX = "/sys/prefix"
SYS_ROTATION = "/sys/rotation"

# Discovery
SERIALOSC_LIST = "/serialosc/list"
SERIALOSC_NOTIFY = "/serialosc/notify"
SERIALOSC_DEVICE = "/serialosc/device"
SERIALOSC_ADD = "/serialosc/add"
SERIALOSC_REMOVE = "/serialosc/remove"

# Surface (relative to device prefix)
GRID_KEY = "/grid/key"
GRID_LEVEL_MAP = "/grid/led/level/map"

# Ring (relative to device prefix)
RING_SET = "/ring/set"
RING_ALL = "/ring/all"
RING_MAP = "/ring/map"
ENC_DELTA = "/enc/delta"
ENC_KEY = "/enc/key"
ENC_POSITION = "/enc/position"


def int_args(path: str, args: tuple[Any, ...], count: int) -> list[int]:
    """
    Decode the first ``count`` arguments as integers.

    Floats are truncated (TouchOSC sends button states as floats).

    Raises:
        MalformedMessageError: If arguments are missing or not numeric
    """
    if len(args) < count:
        raise MalformedMessageError(path, args, f"expected {count} arguments, got {len(args)}")
    try:
        return [_as_int(value) for value in args[:count]]
    except (TypeError, ValueError) as e:
        raise MalformedMessageError(path, args, f"non-numeric argument ({e})") from e


def float_arg(path: str, args: tuple[Any, ...], index: int) -> float:
    """Decode one argument as a float."""
    if len(args) <= index:
        raise MalformedMessageError(path, args, f"missing argument {index + 1}")
    value = args[index]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedMessageError(path, args, f"argument {index + 1} is not numeric")
    return float(value)


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    raise TypeError(f"{value!r} is not a number")


def join_path(prefix: str, suffix: str) -> str:
    """Join a device prefix and a relative path ("/" prefix means none)."""
    return suffix if prefix == "/" else prefix + suffix
