"""
TPI login handshake.

On connect the gateway sends a 505 login response with data "3"
(password required). The client answers with a 005 network login
carrying the password and the gateway replies with 505 again:

    REQUIRED -> send password -> SUCCESS | FAIL | TIMEOUT
    TIMEOUT  -> send password -> SUCCESS | FAIL | TIMEOUT

A failure is reported once and not retried; sending the password again
is up to the operator.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from tpibridge.handlers.base import CommandHandler
from tpibridge.protocol.constants import ApplicationCommand, LoginResponse, TPICommand
from tpibridge.protocol.frame_reader import ParsedFrame

logger = logging.getLogger(__name__)

SendCallback = Callable[[str, str], None]
"""Queues an outbound (command, data) pair."""


class LoginHandler(CommandHandler):
    """
    Answers login requests and reports the outcome.

    Args:
        send: Outbound channel used for the 005 network login.
        password: TPI password.
        on_success: Called when the gateway accepts the password.
        on_failure: Called when the gateway rejects the password.
    """

    commands = frozenset({TPICommand.LOGIN_RESPONSE})

    def __init__(
        self,
        send: SendCallback,
        password: str,
        on_success: Callable[[], None] | None = None,
        on_failure: Callable[[], None] | None = None,
    ) -> None:
        self._send = send
        self._password = password
        self._on_success = on_success
        self._on_failure = on_failure
        self._responses: dict[str, Callable[[], None]] = {
            LoginResponse.FAIL: self._failed,
            LoginResponse.SUCCESS: self._succeeded,
            LoginResponse.TIMEOUT: self._timed_out,
            LoginResponse.REQUIRED: self._required,
        }

    def handle(self, frame: ParsedFrame) -> None:
        response = self._responses.get(frame.data)
        if response is None:
            logger.warning("Unknown login response state: %r", frame.data)
            return
        response()

    def _failed(self) -> None:
        logger.error("Login failed")
        if self._on_failure is not None:
            self._on_failure()

    def _succeeded(self) -> None:
        logger.info("Login successful")
        if self._on_success is not None:
            self._on_success()

    def _timed_out(self) -> None:
        logger.warning("Login timed out, sending password again")
        self._send_login()

    def _required(self) -> None:
        logger.info("Sending login")
        self._send_login()

    def _send_login(self) -> None:
        self._send(ApplicationCommand.NETWORK_LOGIN.value, self._password)
