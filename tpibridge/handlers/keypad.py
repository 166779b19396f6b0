"""
Keypad LED state tracking.

The gateway reports the keypad LEDs as two 8-bit fields: 510 for LEDs that
are lit and 511 for LEDs that are flashing. Each report replaces one of
the fields; the handler compares it with the last known field and reports
every LED whose bit changed, with its combined state:

    flashing bit set -> FLASHING (2)
    lit bit set      -> ON (1)
    otherwise        -> OFF (0)

The fields live as long as the handler instance, across reconnects.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from tpibridge.handlers.base import CommandHandler
from tpibridge.models.records import IndicatorUpdate
from tpibridge.protocol.constants import IndicatorState, ProtocolConstants, TPICommand
from tpibridge.protocol.encoding import decode_bits
from tpibridge.protocol.frame_reader import ParsedFrame

logger = logging.getLogger(__name__)


class KeypadIndicators:
    """
    Last known steady and flashing LED fields.

    Example:
        >>> leds = KeypadIndicators()
        >>> leds.apply(flashing=True, bits=decode_bits("40"))
        [IndicatorUpdate(index=6, state=<IndicatorState.FLASHING: 2>)]
    """

    __slots__ = ("steady", "flashing")

    def __init__(self) -> None:
        self.steady = [False] * ProtocolConstants.INDICATOR_COUNT
        self.flashing = [False] * ProtocolConstants.INDICATOR_COUNT

    def state(self, index: int) -> IndicatorState:
        """Combined state of one LED."""
        if self.flashing[index]:
            return IndicatorState.FLASHING
        if self.steady[index]:
            return IndicatorState.ON
        return IndicatorState.OFF

    def apply(self, *, flashing: bool, bits: tuple[bool, ...]) -> list[IndicatorUpdate]:
        """
        Replace one field and return the LEDs that changed.

        Args:
            flashing: True for the flashing field, False for the steady one.
            bits: New field, least significant bit first.
        """
        field = self.flashing if flashing else self.steady
        updates: list[IndicatorUpdate] = []
        for index, bit in enumerate(bits):
            if field[index] == bit:
                continue
            field[index] = bit
            updates.append(IndicatorUpdate(index=index, state=self.state(index)))
        return updates


class KeypadLEDHandler(CommandHandler):
    """Keypad LED state (510) and flash state (511)."""

    commands = frozenset({TPICommand.KEYPAD_LED_STATE, TPICommand.KEYPAD_LED_FLASH_STATE})

    def __init__(self, on_change: Callable[[int, IndicatorState], None] | None = None) -> None:
        self._on_change = on_change
        self._indicators = KeypadIndicators()

    @property
    def indicators(self) -> KeypadIndicators:
        return self._indicators

    def handle(self, frame: ParsedFrame) -> None:
        flashing = frame.command == TPICommand.KEYPAD_LED_FLASH_STATE
        updates = self._indicators.apply(flashing=flashing, bits=decode_bits(frame.data))
        for update in updates:
            logger.debug("Keypad LED %s is now %s", update.label, update.state.name)
            if self._on_change is not None:
                self._on_change(update.index, update.state)
