"""
Partition status handler.

The partition id is always the first data character. The 652 (armed)
report adds a second digit selecting the armed variant:

    0 away, 1 stay, 2 zero entry away, 3 zero entry stay

Any other digit is rejected with a warning and no state is reported.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Final

from tpibridge.exceptions import ProtocolError
from tpibridge.handlers.base import CommandHandler
from tpibridge.models.records import PartitionState
from tpibridge.protocol.constants import ARMED_MODES, PartitionActivityType, TPICommand
from tpibridge.protocol.frame_reader import ParsedFrame

logger = logging.getLogger(__name__)

PARTITION_ACTIVITIES: Final[dict[str, PartitionActivityType]] = {
    TPICommand.PARTITION_READY: PartitionActivityType.READY,
    TPICommand.PARTITION_NOT_READY: PartitionActivityType.NOT_READY,
    TPICommand.PARTITION_READY_FORCE_ARMING: PartitionActivityType.READY_FORCE_ARMING,
    TPICommand.PARTITION_IN_ALARM: PartitionActivityType.ALARM,
    TPICommand.PARTITION_DISARMED: PartitionActivityType.DISARMED,
    TPICommand.EXIT_DELAY_IN_PROGRESS: PartitionActivityType.EXIT_DELAY,
    TPICommand.ENTRY_DELAY_IN_PROGRESS: PartitionActivityType.ENTRY_DELAY,
    TPICommand.PARTITION_FAILED_TO_ARM: PartitionActivityType.ARM_FAILED,
    TPICommand.FAILURE_TO_ARM: PartitionActivityType.ARM_FAILED,
    TPICommand.PARTITION_IS_BUSY: PartitionActivityType.BUSY,
    TPICommand.SYSTEM_ARMING_IN_PROGRESS: PartitionActivityType.ARMING,
}
"""Fixed partition activity by command; 652 is decoded separately."""


def decode_armed_mode(digit: str) -> PartitionActivityType:
    """
    Map the 652 mode digit to an armed activity.

    Raises:
        ProtocolError: If the digit is missing or outside 0-3.
    """
    if len(digit) != 1 or digit not in "0123456789" or int(digit) >= len(ARMED_MODES):
        raise ProtocolError(f"Unknown armed mode: {digit!r}")
    return ARMED_MODES[int(digit)]


def decode_partition_state(frame: ParsedFrame) -> PartitionState:
    """
    Decode a partition status report.

    Raises:
        ProtocolError: If the command is not a partition report or the
            data is malformed.
    """
    if not frame.data:
        raise ProtocolError(f"Partition report {frame.command} without partition")

    partition = frame.data[0]
    if frame.command == TPICommand.PARTITION_ARMED:
        return PartitionState(partition=partition, activity=decode_armed_mode(frame.data[1:2]))

    activity = PARTITION_ACTIVITIES.get(frame.command)
    if activity is None:
        raise ProtocolError(f"Not a partition report: {frame.command}")
    return PartitionState(partition=partition, activity=activity)


class PartitionStateHandler(CommandHandler):
    """Partition ready, armed, alarm, delay, busy and arming reports."""

    commands = frozenset({*PARTITION_ACTIVITIES, TPICommand.PARTITION_ARMED})

    def __init__(self, on_partition: Callable[[PartitionState], None] | None = None) -> None:
        self._on_partition = on_partition

    def handle(self, frame: ParsedFrame) -> None:
        state = decode_partition_state(frame)
        logger.debug("Partition %s is %s", state.partition, state.activity.value)
        if self._on_partition is not None:
            self._on_partition(state)
