"""
TPI command codes and protocol constants.

Command codes are three ASCII digits. Application commands are sent to the
gateway; TPI commands are received from it. Values are kept as strings
since they travel as text and are compared against decoded frames.
"""

from __future__ import annotations

from enum import Enum
from typing import Final


class ApplicationCommand(str, Enum):
    """Commands sent from the application to the TPI."""

    POLL = "000"
    """Keep-alive poll, answered with an acknowledgement."""

    STATUS_REPORT = "001"
    """Request a full status report (zones, partitions, LEDs)."""

    NETWORK_LOGIN = "005"
    """Send the TPI password."""

    DUMP_ZONE_TIMERS = "008"
    """Request the zone timer dump (615)."""

    PARTITION_ARM_AWAY = "030"
    PARTITION_ARM_STAY = "031"
    PARTITION_ARM_ZERO_ENTRY = "032"
    PARTITION_ARM_WITH_CODE = "033"
    PARTITION_DISARM = "040"

    TRIGGER_PANIC_ALARM = "060"
    """Data is the panic type: 1 = fire, 2 = ambulance, 3 = police."""


class TPICommand(str, Enum):
    """Commands sent from the TPI to the application."""

    # ===== Command reactions =====

    COMMAND_ACKNOWLEDGE = "500"
    """Data is the acknowledged command code."""

    COMMAND_ERROR = "501"
    """Bad checksum on the last received command."""

    SYSTEM_ERROR = "502"
    """Data is a SystemErrorCode."""

    LOGIN_RESPONSE = "505"
    """Data is a LoginResponse."""

    # ===== Keypad and broadcasts =====

    KEYPAD_LED_STATE = "510"
    KEYPAD_LED_FLASH_STATE = "511"
    TIME_DATE_BROADCAST = "550"

    # ===== Zones =====

    ZONE_ALARM = "601"
    ZONE_ALARM_RESTORED = "602"
    ZONE_TAMPER = "603"
    ZONE_TAMPER_RESTORED = "604"
    ZONE_FAULT = "605"
    ZONE_FAULT_RESTORED = "606"
    ZONE_OPEN = "609"
    ZONE_RESTORED = "610"
    ZONE_TIMER_DUMP = "615"
    BYPASS_ZONES_BITFIELD_DUMP = "616"

    # ===== Key alarms =====

    DURESS_ALARM = "620"
    KEY_FIRE_ALARM = "621"
    KEY_FIRE_RESTORED = "622"
    KEY_AUXILIARY_ALARM = "623"
    KEY_AUXILIARY_RESTORED = "624"
    KEY_PANIC_ALARM = "625"
    KEY_PANIC_RESTORED = "626"
    KEY_SMOKE_ALARM = "631"
    KEY_SMOKE_RESTORED = "632"

    # ===== Partitions =====

    PARTITION_READY = "650"
    PARTITION_NOT_READY = "651"
    PARTITION_ARMED = "652"
    """Data is partition followed by the arm mode digit (0-3)."""

    PARTITION_READY_FORCE_ARMING = "653"
    PARTITION_IN_ALARM = "654"
    PARTITION_DISARMED = "655"
    EXIT_DELAY_IN_PROGRESS = "656"
    ENTRY_DELAY_IN_PROGRESS = "657"
    KEYPAD_LOCKOUT = "658"
    PARTITION_FAILED_TO_ARM = "659"
    PGM_OUTPUT_IN_PROGRESS = "660"
    CHIME_ENABLED = "663"
    CHIME_DISABLED = "664"
    INVALID_ACCESS_CODE = "670"
    FUNCTION_NOT_AVAILABLE = "671"
    FAILURE_TO_ARM = "672"
    PARTITION_IS_BUSY = "673"
    SYSTEM_ARMING_IN_PROGRESS = "674"
    INSTALLERS_MODE = "680"

    # ===== Openings and closings =====

    USER_CLOSING = "700"
    SPECIAL_CLOSING = "701"
    PARTIAL_CLOSING = "702"
    USER_OPENING = "750"
    SPECIAL_OPENING = "751"

    # ===== System troubles =====

    PANEL_BATTERY_TROUBLE = "800"
    PANEL_BATTERY_RESTORED = "801"
    PANEL_AC_TROUBLE = "802"
    PANEL_AC_RESTORED = "803"
    SYSTEM_BELL_TROUBLE = "806"
    SYSTEM_BELL_RESTORED = "807"
    FTC_TROUBLE = "814"
    BUFFER_NEAR_FULL = "816"
    GENERAL_SYSTEM_TAMPER = "829"
    GENERAL_SYSTEM_TAMPER_RESTORED = "830"
    TROUBLE_LED_ON = "840"
    TROUBLE_LED_OFF = "841"
    FIRE_TROUBLE_ALARM = "842"
    FIRE_TROUBLE_RESTORED = "843"
    VERBOSE_TROUBLE_STATUS = "849"

    # ===== Code requests =====

    CODE_REQUIRED = "900"
    COMMAND_OUTPUT_PRESSED = "912"
    MASTER_CODE_REQUIRED = "921"
    INSTALLERS_CODE_REQUIRED = "922"


class LoginResponse(str, Enum):
    """Data values of the 505 login response."""

    FAIL = "0"
    SUCCESS = "1"
    TIMEOUT = "2"
    REQUIRED = "3"


class SystemErrorCode(str, Enum):
    """Data values of the 502 system error."""

    NO_ERROR = "000"
    BUFFER_OVERRUN = "001"
    BUFFER_OVERFLOW = "002"
    TRANSMIT_BUFFER_OVERFLOW = "003"
    KEYBUS_TRANSMIT_BUFFER_OVERRUN = "010"
    KEYBUS_TRANSMIT_TIME_TIMEOUT = "011"
    KEYBUS_TRANSMIT_MODE_TIMEOUT = "012"
    KEYBUS_TRANSMIT_KEYSTRING_TIMEOUT = "013"
    KEYBUS_NOT_FUNCTIONING = "014"
    KEYBUS_BUSY = "015"
    KEYBUS_BUSY_LOCKOUT = "016"
    KEYBUS_BUSY_INSTALLERS_MODE = "017"
    KEYBUS_BUSY_GENERAL = "018"
    API_COMMAND_SYNTAX_ERROR = "020"
    API_COMMAND_PARTITION_ERROR = "021"
    API_COMMAND_NOT_SUPPORTED = "022"
    API_SYSTEM_NOT_ARMED = "023"
    API_SYSTEM_NOT_READY_TO_ARM = "024"
    API_COMMAND_INVALID_LENGTH = "025"
    API_USER_CODE_NOT_REQUIRED = "026"
    API_INVALID_CHARACTERS = "027"


class ZoneActivityType(str, Enum):
    """Situation reported for a zone."""

    ALARM = "alarm"
    TAMPER = "tamper"
    FAULT = "fault"
    NORMAL = "normal"


class PartitionActivityType(str, Enum):
    """Activity reported for a partition."""

    NOT_READY = "not-ready"
    READY = "ready"
    DISARMED = "disarmed"
    READY_FORCE_ARMING = "ready-fa"
    ARMING = "arming"
    ARM_FAILED = "arm-failed"
    EXIT_DELAY = "exit-delay"
    ARMED_AWAY = "armed-away"
    ARMED_STAY = "armed-stay"
    ARMED_ZERO_ENTRY_AWAY = "armed-ze-away"
    ARMED_ZERO_ENTRY_STAY = "armed-ze-stay"
    ENTRY_DELAY = "entry-delay"
    ALARM = "alarm"
    BUSY = "busy"


class ArmMode(str, Enum):
    """Arming variants the client can request."""

    AWAY = "away"
    STAY = "stay"
    ZERO_ENTRY = "zero-entry"


class PanicType(str, Enum):
    """Panic alarm kinds, mapped to the 060 data digit."""

    FIRE = "fire"
    AMBULANCE = "ambulance"
    POLICE = "police"


class IndicatorState(int, Enum):
    """Keypad indicator state as reported to callbacks."""

    OFF = 0
    ON = 1
    FLASHING = 2


class ProtocolConstants:
    """
    TPI protocol constants.

    Frame delimiters, size limits and the default timings of the
    reconnect loop.
    """

    # ===== Framing =====

    TERMINATOR: Final[str] = "\r\n"
    """Frame terminator (CR LF)."""

    COMMAND_LENGTH: Final[int] = 3
    """Command codes are three digits."""

    CHECKSUM_LENGTH: Final[int] = 2
    """Checksum is two uppercase hex characters."""

    MIN_FRAME_LENGTH: Final[int] = 5
    """Command code plus checksum."""

    MAX_FRAME_LENGTH: Final[int] = 512
    """Longest unterminated text kept; a 64 zone timer dump is 261."""

    # ===== Connection =====

    DEFAULT_PORT: Final[int] = 4025
    """Default TPI port on the gateway."""

    DEFAULT_ENCODING: Final[str] = "ascii"
    """All TPI data is sent as hex ASCII codes."""

    DEFAULT_CONNECT_TIMEOUT: Final[float] = 10.0

    ERROR_RETRY_DELAY: Final[float] = 9.0
    """Seconds to wait before reconnecting after a socket error."""

    CLOSE_RETRY_DELAY: Final[float] = 6.0
    """Seconds to wait before reconnecting after the socket closed."""

    READ_CHUNK_SIZE: Final[int] = 4096

    # ===== Protocol limits =====

    MAX_PARTITIONS: Final[int] = 8
    INDICATOR_COUNT: Final[int] = 8
    """Keypad LEDs and trouble flags are both 8-bit fields."""

    PASSWORD_MAX_LENGTH: Final[int] = 10

    TIMER_TICK_SECONDS: Final[int] = 5
    """Zone timer ticks are 5 seconds each."""

    TIMER_OPEN: Final[int] = 0xFFFF
    """Zone timer value for a zone that is still open."""

    BROADCAST_BASE_YEAR: Final[int] = 2000


SYSTEM_ERROR_MESSAGES: Final[dict[str, str]] = {
    SystemErrorCode.NO_ERROR: "No error",
    SystemErrorCode.BUFFER_OVERRUN: "Receive buffer overrun (a command is received while another is still being processed)",
    SystemErrorCode.BUFFER_OVERFLOW: "Receive buffer overflow",
    SystemErrorCode.TRANSMIT_BUFFER_OVERFLOW: "Transmit buffer overflow",
    SystemErrorCode.KEYBUS_TRANSMIT_BUFFER_OVERRUN: "Keybus transmit buffer overrun",
    SystemErrorCode.KEYBUS_TRANSMIT_TIME_TIMEOUT: "Keybus transmit time timeout",
    SystemErrorCode.KEYBUS_TRANSMIT_MODE_TIMEOUT: "Keybus transmit mode timeout",
    SystemErrorCode.KEYBUS_TRANSMIT_KEYSTRING_TIMEOUT: "Keybus transmit keystring timeout",
    SystemErrorCode.KEYBUS_NOT_FUNCTIONING: "Keybus interface not functioning (the TPI cannot communicate with the security system)",
    SystemErrorCode.KEYBUS_BUSY: "Keybus busy (attempting to disarm or arm with user code)",
    SystemErrorCode.KEYBUS_BUSY_LOCKOUT: "Keybus busy - lockout (too many disarm attempts)",
    SystemErrorCode.KEYBUS_BUSY_INSTALLERS_MODE: "Keybus busy - installers mode (most functions are unavailable)",
    SystemErrorCode.KEYBUS_BUSY_GENERAL: "Keybus busy - general busy (the requested partition is busy)",
    SystemErrorCode.API_COMMAND_SYNTAX_ERROR: "API command syntax error",
    SystemErrorCode.API_COMMAND_PARTITION_ERROR: "API command partition error (requested partition is out of bounds)",
    SystemErrorCode.API_COMMAND_NOT_SUPPORTED: "API command not supported",
    SystemErrorCode.API_SYSTEM_NOT_ARMED: "API system not armed (sent in response to a disarm command)",
    SystemErrorCode.API_SYSTEM_NOT_READY_TO_ARM: "API system not ready to arm (not secure, in exit delay, or already armed)",
    SystemErrorCode.API_COMMAND_INVALID_LENGTH: "API command invalid length",
    SystemErrorCode.API_USER_CODE_NOT_REQUIRED: "API user code not required",
    SystemErrorCode.API_INVALID_CHARACTERS: "API invalid characters in command (no alpha characters allowed except for checksum)",
}
"""Human-readable descriptions of system error codes."""

ARMED_MODES: Final[tuple[PartitionActivityType, ...]] = (
    PartitionActivityType.ARMED_AWAY,
    PartitionActivityType.ARMED_STAY,
    PartitionActivityType.ARMED_ZERO_ENTRY_AWAY,
    PartitionActivityType.ARMED_ZERO_ENTRY_STAY,
)
"""Armed sub-type indexed by the second data digit of 652."""

ARM_COMMANDS: Final[dict[ArmMode, ApplicationCommand]] = {
    ArmMode.AWAY: ApplicationCommand.PARTITION_ARM_AWAY,
    ArmMode.STAY: ApplicationCommand.PARTITION_ARM_STAY,
    ArmMode.ZERO_ENTRY: ApplicationCommand.PARTITION_ARM_ZERO_ENTRY,
}

PANIC_CODES: Final[dict[PanicType, str]] = {
    PanicType.FIRE: "1",
    PanicType.AMBULANCE: "2",
    PanicType.POLICE: "3",
}
