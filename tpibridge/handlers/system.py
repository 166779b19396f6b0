"""
System-wide handlers: time broadcast, troubles and informational reports.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Final

from tpibridge.exceptions import ProtocolError
from tpibridge.handlers.base import CommandHandler
from tpibridge.models.records import TroubleStatus
from tpibridge.protocol.constants import ProtocolConstants, TPICommand
from tpibridge.protocol.encoding import decode_bits, decode_decimal_pairs
from tpibridge.protocol.frame_reader import ParsedFrame

logger = logging.getLogger(__name__)


def decode_broadcast_time(data: str) -> datetime:
    """
    Decode a 550 time/date broadcast ("hhmmMMDDYY").

    Example:
        >>> decode_broadcast_time("1645022020")
        datetime.datetime(2020, 2, 20, 16, 45)
    """
    hour, minute, month, day, year = decode_decimal_pairs(data, 5)
    try:
        return datetime(ProtocolConstants.BROADCAST_BASE_YEAR + year, month, day, hour, minute)
    except ValueError as e:
        raise ProtocolError(f"Invalid broadcast time {data!r}: {e}") from e


class TimeBroadcastHandler(CommandHandler):
    """Time/date broadcast (550), reported as a naive panel-local datetime."""

    commands = frozenset({TPICommand.TIME_DATE_BROADCAST})

    def __init__(self, on_time: Callable[[datetime], None] | None = None) -> None:
        self._on_time = on_time

    def handle(self, frame: ParsedFrame) -> None:
        moment = decode_broadcast_time(frame.data)
        if self._on_time is not None:
            self._on_time(moment)


class TroubleHandler(CommandHandler):
    """
    Trouble flags.

    849 carries the full 8-bit trouble field. 840 (trouble LED on) is
    claimed but reports nothing since the panel follows it with an 849;
    841 (trouble LED off) clears every flag.
    """

    commands = frozenset({
        TPICommand.VERBOSE_TROUBLE_STATUS,
        TPICommand.TROUBLE_LED_ON,
        TPICommand.TROUBLE_LED_OFF,
    })

    def __init__(self, on_trouble: Callable[[TroubleStatus], None] | None = None) -> None:
        self._on_trouble = on_trouble

    def handle(self, frame: ParsedFrame) -> None:
        if frame.command == TPICommand.TROUBLE_LED_ON:
            return

        if frame.command == TPICommand.VERBOSE_TROUBLE_STATUS:
            status = TroubleStatus(flags=decode_bits(frame.data))
        else:
            status = TroubleStatus.clear()

        if status.active:
            logger.warning("Troubles: %s", ", ".join(status.active))
        else:
            logger.info("No troubles")
        if self._on_trouble is not None:
            self._on_trouble(status)


def _partition(data: str) -> str:
    return f"Partition: {data[0:1]}"


def _partition_user(data: str) -> str:
    return f"Partition: {data[0:1]}, user: {data[1:5]}"


INFORMATIONAL_MESSAGES: Final[dict[str, tuple[str, Callable[[str], str] | None]]] = {
    TPICommand.BYPASS_ZONES_BITFIELD_DUMP: ("Bypassed zones bitfield dump", None),
    TPICommand.DURESS_ALARM: ("A duress code has been entered on a system keypad", None),
    TPICommand.KEY_FIRE_ALARM: ("A fire key alarm has been activated", None),
    TPICommand.KEY_FIRE_RESTORED: ("A fire key alarm has been restored", None),
    TPICommand.KEY_AUXILIARY_ALARM: ("An auxiliary key alarm has been activated", None),
    TPICommand.KEY_AUXILIARY_RESTORED: ("An auxiliary key alarm has been restored", None),
    TPICommand.KEY_PANIC_ALARM: ("A panic key alarm has been activated", None),
    TPICommand.KEY_PANIC_RESTORED: ("A panic key alarm has been restored", None),
    TPICommand.KEY_SMOKE_ALARM: ("A 2-wire smoke/auxiliary alarm has been activated", None),
    TPICommand.KEY_SMOKE_RESTORED: ("A 2-wire smoke/auxiliary alarm has been restored", None),
    TPICommand.KEYPAD_LOCKOUT: ("Keypad lock-out", _partition),
    TPICommand.PGM_OUTPUT_IN_PROGRESS: ("PGM output is in progress", _partition),
    TPICommand.CHIME_ENABLED: ("Chime enabled", _partition),
    TPICommand.CHIME_DISABLED: ("Chime disabled", _partition),
    TPICommand.INVALID_ACCESS_CODE: ("Invalid access code", _partition),
    TPICommand.FUNCTION_NOT_AVAILABLE: ("Function not available", _partition),
    TPICommand.INSTALLERS_MODE: ("System in installers mode", None),
    TPICommand.USER_CLOSING: ("User closing", _partition_user),
    TPICommand.SPECIAL_CLOSING: ("Special closing", _partition),
    TPICommand.PARTIAL_CLOSING: ("Partial closing", _partition),
    TPICommand.USER_OPENING: ("User opening", _partition_user),
    TPICommand.SPECIAL_OPENING: ("Special opening", _partition),
    TPICommand.PANEL_BATTERY_TROUBLE: ("Panel battery trouble", None),
    TPICommand.PANEL_BATTERY_RESTORED: ("Panel battery trouble restore", None),
    TPICommand.PANEL_AC_TROUBLE: ("Panel AC trouble", None),
    TPICommand.PANEL_AC_RESTORED: ("Panel AC restore", None),
    TPICommand.SYSTEM_BELL_TROUBLE: ("System bell trouble", None),
    TPICommand.SYSTEM_BELL_RESTORED: ("System bell trouble restored", None),
    TPICommand.FTC_TROUBLE: ("FTC trouble - the panel failed to communicate with the monitoring station", None),
    TPICommand.BUFFER_NEAR_FULL: ("Buffer near full", None),
    TPICommand.GENERAL_SYSTEM_TAMPER: ("General system tamper", None),
    TPICommand.GENERAL_SYSTEM_TAMPER_RESTORED: ("General system tamper restore", None),
    TPICommand.FIRE_TROUBLE_ALARM: ("Fire trouble alarm", None),
    TPICommand.FIRE_TROUBLE_RESTORED: ("Fire trouble alarm restore", None),
    TPICommand.CODE_REQUIRED: ("Code required", None),
    TPICommand.COMMAND_OUTPUT_PRESSED: (
        "Command output pressed",
        lambda data: f"Partition: {data[0:1]}, command: {data[1:2]}",
    ),
    TPICommand.MASTER_CODE_REQUIRED: ("Master code required", None),
    TPICommand.INSTALLERS_CODE_REQUIRED: ("Installers code required", None),
}
"""Log-only reports: message and optional detail formatter."""


def describe_informational(frame: ParsedFrame) -> str:
    """Human-readable text for an informational report."""
    message, detail = INFORMATIONAL_MESSAGES[frame.command]
    if detail is None:
        return message
    return f"{message}. {detail(frame.data)}"


class InformationalHandler(CommandHandler):
    """
    Long tail of reports that are only logged.

    Args:
        on_message: Receives the text; defaults to logging at INFO.
    """

    commands = frozenset(INFORMATIONAL_MESSAGES)

    def __init__(self, on_message: Callable[[str], None] | None = None) -> None:
        self._on_message = on_message

    def handle(self, frame: ParsedFrame) -> None:
        text = describe_informational(frame)
        if self._on_message is None:
            logger.info("%s", text)
        else:
            self._on_message(text)
