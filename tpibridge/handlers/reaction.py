"""
Handlers for the gateway's reactions to application commands.

- 500 acknowledges a command, the data is the acknowledged code
- 501 reports a bad checksum on the last command
- 502 reports a system error with a three digit code
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from tpibridge.handlers.base import CommandHandler
from tpibridge.protocol.constants import SYSTEM_ERROR_MESSAGES, TPICommand
from tpibridge.protocol.frame_reader import ParsedFrame

logger = logging.getLogger(__name__)


class ReactionHandler(CommandHandler):
    """Command acknowledgements and command (checksum) errors."""

    commands = frozenset({TPICommand.COMMAND_ACKNOWLEDGE, TPICommand.COMMAND_ERROR})

    def __init__(
        self,
        on_ack: Callable[[str], None] | None = None,
        on_command_error: Callable[[], None] | None = None,
    ) -> None:
        self._on_ack = on_ack
        self._on_command_error = on_command_error

    def handle(self, frame: ParsedFrame) -> None:
        if frame.command == TPICommand.COMMAND_ACKNOWLEDGE:
            logger.debug("Command %s acknowledged", frame.data)
            if self._on_ack is not None:
                self._on_ack(frame.data)
            return

        logger.warning("Gateway reported a checksum error on the last command")
        if self._on_command_error is not None:
            self._on_command_error()


class SystemErrorHandler(CommandHandler):
    """System errors (502)."""

    commands = frozenset({TPICommand.SYSTEM_ERROR})

    def __init__(self, on_error: Callable[[str], None] | None = None) -> None:
        self._on_error = on_error

    def handle(self, frame: ParsedFrame) -> None:
        message = SYSTEM_ERROR_MESSAGES.get(frame.data, "Unknown error")
        logger.warning("System error %s: %s", frame.data, message)
        if self._on_error is not None:
            self._on_error(frame.data)
