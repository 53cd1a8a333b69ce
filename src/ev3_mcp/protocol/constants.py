"""Wire constants from the EV3 firmware bytecode table.

Opcodes and subcodes are single bytes carried verbatim in direct-command
payloads. System subcommands and status codes belong to the brick's file
subsystem and only appear in system-command frames.
"""

from __future__ import annotations

from enum import IntEnum, IntFlag


class FrameType(IntEnum):
    """Frame-type tag at byte 4 of a request."""

    DIRECT_REPLY = 0x00
    DIRECT_NO_REPLY = 0x80
    SYSTEM_REPLY = 0x01
    SYSTEM_NO_REPLY = 0x81


class ReplyType(IntEnum):
    """Frame-type tag at byte 4 of a reply."""

    DIRECT_OK = 0x02
    SYSTEM_OK = 0x03
    DIRECT_ERROR = 0x04
    SYSTEM_ERROR = 0x05


class Opcode(IntEnum):
    """Direct-command opcodes used by the catalog."""

    UI_WRITE = 0x82
    UI_DRAW = 0x84
    TIMER_WAIT = 0x85
    TIMER_READY = 0x86
    SOUND = 0x94
    SOUND_READY = 0x96
    INPUT_DEVICE = 0x99
    INPUT_READEXT = 0x9E
    OUTPUT_STOP = 0xA3
    OUTPUT_POWER = 0xA4
    OUTPUT_START = 0xA6
    OUTPUT_TIME_POWER = 0xAD
    COM_SET = 0xD4


class SoundCmd(IntEnum):
    BREAK = 0x00
    TONE = 0x01
    PLAY = 0x02
    REPEAT = 0x03


class InputDeviceCmd(IntEnum):
    GET_TYPEMODE = 0x05
    CLR_ALL = 0x0A
    READY_PCT = 0x1B
    READY_RAW = 0x1C
    READY_SI = 0x1D


class UIWriteCmd(IntEnum):
    LED = 0x1B


class UIDrawCmd(IntEnum):
    UPDATE = 0x00
    STORE = 0x19
    RESTORE = 0x1A
    BMPFILE = 0x1C


class ComSetCmd(IntEnum):
    SET_BRICKNAME = 0x08


class DataFormat(IntEnum):
    """Value formats accepted by ``opINPUT_READEXT``."""

    DATA_8 = 0x00
    DATA_16 = 0x01
    DATA_32 = 0x02
    DATA_F = 0x03
    DATA_PCT = 0x10
    DATA_RAW = 0x12
    DATA_SI = 0x13


class SystemCommand(IntEnum):
    BEGIN_DOWNLOAD = 0x92
    CONTINUE_DOWNLOAD = 0x93
    LIST_FILES = 0x99
    CONTINUE_LIST_FILES = 0x9A


class SystemStatus(IntEnum):
    SUCCESS = 0x00
    UNKNOWN_HANDLE = 0x01
    HANDLE_NOT_READY = 0x02
    CORRUPT_FILE = 0x03
    NO_HANDLES_AVAILABLE = 0x04
    NO_PERMISSION = 0x05
    ILLEGAL_PATH = 0x06
    FILE_EXISTS = 0x07
    END_OF_FILE = 0x08
    SIZE_ERROR = 0x09
    UNKNOWN_ERROR = 0x0A
    ILLEGAL_FILENAME = 0x0B
    ILLEGAL_CONNECTION = 0x0C


class Motor(IntFlag):
    """Output port bitmask."""

    A = 0x01
    B = 0x02
    C = 0x04
    D = 0x08
    ALL = 0x0F


class SensorPort(IntEnum):
    PORT_1 = 0x00
    PORT_2 = 0x01
    PORT_3 = 0x02
    PORT_4 = 0x03


class SensorType(IntEnum):
    KEEP = 0
    TOUCH = 16
    COLOUR = 29
    ULTRASONIC = 30
    GYRO = 32
    INFRARED = 33


class Brake(IntEnum):
    COAST = 0
    BRAKE = 1


class LedPattern(IntEnum):
    OFF = 0
    GREEN = 1
    RED = 2
    ORANGE = 3
    GREEN_FLASH = 4
    RED_FLASH = 5
    ORANGE_FLASH = 6
    GREEN_PULSE = 7
    RED_PULSE = 8
    ORANGE_PULSE = 9


class Colour(IntEnum):
    """Indexed colours reported by the colour sensor in mode 2."""

    NONE = 0
    BLACK = 1
    BLUE = 2
    GREEN = 3
    YELLOW = 4
    RED = 5
    WHITE = 6
    BROWN = 7


LAYER = 0

# Frame limits
MAX_FRAME_SIZE = 1024
MAX_BODY_SIZE = 1019  # bytes after the 5-byte length/counter/type prefix
PARTITION_SIZE = 1017  # CONTINUE_DOWNLOAD payload per chunk
LIST_FILES_MAX = 1012

# Brick filesystem
LMS_ROOT = "/home/root/lms2012"
UPLOAD_ROOTS = (
    "/home/root/lms2012/apps",
    "/home/root/lms2012/prjs",
    "/home/root/lms2012/tools",
)
SOUND_DIR = "/home/root/lms2012/prjs/sound"
