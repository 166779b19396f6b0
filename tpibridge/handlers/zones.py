"""
Zone handlers.

Zone state reports come in two layouts:

- 605, 606, 609, 610 (fault, open and their restores): ZZZ
- 601-604 (alarm, tamper and their restores): PZZZ, partition first

The zone timer dump (615) is a run of 4 hex character words, one per zone
starting at zone 1, each sent low byte first. A word counts 5 second
ticks down from 0xFFFF since the zone was restored; 0xFFFF means the zone
is still open and 0x0000 means the counter ran out.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Final, NamedTuple

from tpibridge.exceptions import ProtocolError
from tpibridge.handlers.base import CommandHandler
from tpibridge.models.records import ZoneState, ZoneTimerEntry
from tpibridge.protocol.constants import TPICommand, ZoneActivityType
from tpibridge.protocol.encoding import decode_swapped_uint16
from tpibridge.protocol.frame_reader import ParsedFrame

logger = logging.getLogger(__name__)


class ZoneReport(NamedTuple):
    situation: ZoneActivityType
    restored: bool
    with_partition: bool


ZONE_REPORTS: Final[dict[str, ZoneReport]] = {
    TPICommand.ZONE_ALARM: ZoneReport(ZoneActivityType.ALARM, False, True),
    TPICommand.ZONE_ALARM_RESTORED: ZoneReport(ZoneActivityType.ALARM, True, True),
    TPICommand.ZONE_TAMPER: ZoneReport(ZoneActivityType.TAMPER, False, True),
    TPICommand.ZONE_TAMPER_RESTORED: ZoneReport(ZoneActivityType.TAMPER, True, True),
    TPICommand.ZONE_FAULT: ZoneReport(ZoneActivityType.FAULT, False, False),
    TPICommand.ZONE_FAULT_RESTORED: ZoneReport(ZoneActivityType.FAULT, True, False),
    TPICommand.ZONE_OPEN: ZoneReport(ZoneActivityType.NORMAL, False, False),
    TPICommand.ZONE_RESTORED: ZoneReport(ZoneActivityType.NORMAL, True, False),
}

ZONE_ID_LENGTH: Final[int] = 3
TIMER_WORD_LENGTH: Final[int] = 4


def decode_zone_state(frame: ParsedFrame) -> ZoneState:
    """
    Decode a zone state report.

    Raises:
        ProtocolError: If the command is not a zone report or the data is
            too short.
    """
    report = ZONE_REPORTS.get(frame.command)
    if report is None:
        raise ProtocolError(f"Not a zone report: {frame.command}")

    offset = 1 if report.with_partition else 0
    zone = frame.data[offset : offset + ZONE_ID_LENGTH]
    if len(zone) != ZONE_ID_LENGTH:
        raise ProtocolError(f"Zone report data too short: {frame.data!r}")

    return ZoneState(
        zone=zone,
        situation=report.situation,
        restored=report.restored,
        partition=frame.data[0] if report.with_partition else None,
    )


def decode_zone_timers(data: str) -> list[ZoneTimerEntry]:
    """
    Decode a zone timer dump.

    Example:
        >>> [t.duration for t in decode_zone_timers("FFFF00FF")]
        [0, 1275]
    """
    if len(data) % TIMER_WORD_LENGTH:
        raise ProtocolError(f"Zone timer dump length must be a multiple of 4, got {len(data)}")

    return [
        ZoneTimerEntry.from_ticks(
            zone=offset // TIMER_WORD_LENGTH + 1,
            ticks=decode_swapped_uint16(data[offset : offset + TIMER_WORD_LENGTH]),
        )
        for offset in range(0, len(data), TIMER_WORD_LENGTH)
    ]


class ZoneStateHandler(CommandHandler):
    """Zone open/restored, fault, alarm and tamper reports."""

    commands = frozenset(ZONE_REPORTS)

    def __init__(self, on_zone: Callable[[ZoneState], None] | None = None) -> None:
        self._on_zone = on_zone

    def handle(self, frame: ParsedFrame) -> None:
        state = decode_zone_state(frame)
        logger.debug(
            "Zone %s %s%s",
            state.zone,
            state.situation.value,
            " restored" if state.restored else "",
        )
        if self._on_zone is not None:
            self._on_zone(state)


class ZoneTimerDumpHandler(CommandHandler):
    """Zone timer dump (615)."""

    commands = frozenset({TPICommand.ZONE_TIMER_DUMP})

    def __init__(self, on_timers: Callable[[list[ZoneTimerEntry]], None] | None = None) -> None:
        self._on_timers = on_timers

    def handle(self, frame: ParsedFrame) -> None:
        timers = decode_zone_timers(frame.data)
        logger.debug("Zone timer dump with %d zones", len(timers))
        if self._on_timers is not None:
            self._on_timers(timers)
