"""
TPI gateway client.

This module provides the high-level interface: it owns the connection,
the shared command stream and a dispatcher chain, tracks the session
state and composes outbound application commands.

The client implements a state machine for the session:
    DISCONNECTED -> start() -> CONNECTING
    CONNECTING -> socket open -> CONNECTED
    CONNECTED -> login accepted -> AUTHENTICATED
    CONNECTED -> login rejected -> LOGIN_FAILED
    any -> socket lost -> CONNECTING (reconnect pending)
    any -> stop() -> DISCONNECTED

Example:
    >>> from tpibridge import TPIClient, TPIConfig
    >>>
    >>> async def main():
    ...     config = TPIConfig(host="192.168.1.20", password="user")
    ...     async with TPIClient(config) as client:
    ...         await client.start(client.build_chain(on_zone=print))
    ...         await client.wait_authenticated(timeout=30)
    ...         client.request_status()
    ...         await asyncio.sleep(60)
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable
from enum import Enum, auto
from typing import Any

from tpibridge.config import TPIConfig
from tpibridge.connection import CommandStream, ReconnectPolicy, TPIConnection, TransportFactory
from tpibridge.exceptions import CommandError, ConnectionError, LoginError
from tpibridge.handlers import build_standard_chain
from tpibridge.handlers.base import DispatcherChain
from tpibridge.protocol.constants import (
    ARM_COMMANDS,
    PANIC_CODES,
    ApplicationCommand,
    ArmMode,
    PanicType,
    ProtocolConstants,
)
from tpibridge.protocol.splitter import InvalidFrameCallback
from tpibridge.transport.tcp import TcpTransport

logger = logging.getLogger(__name__)

_USER_CODE = re.compile(r"[0-9]{4,6}")


class ClientState(Enum):
    """TPI session states."""

    DISCONNECTED = auto()
    """Not running."""

    CONNECTING = auto()
    """Running, waiting for a connection (first attempt or reconnect)."""

    CONNECTED = auto()
    """Socket open, login not yet accepted."""

    AUTHENTICATED = auto()
    """The gateway accepted the password."""

    LOGIN_FAILED = auto()
    """The gateway rejected the password."""


def _partition_id(partition: int | str) -> str:
    try:
        number = int(partition)
    except (TypeError, ValueError):
        raise CommandError(f"Invalid partition: {partition!r}") from None
    if not 1 <= number <= ProtocolConstants.MAX_PARTITIONS:
        raise CommandError(
            f"Partition must be 1-{ProtocolConstants.MAX_PARTITIONS}, got {number}"
        )
    return str(number)


def _user_code(code: str) -> str:
    if not isinstance(code, str) or _USER_CODE.fullmatch(code) is None:
        raise CommandError("User code must be 4-6 digits")
    return code


class TPIClient:
    """
    Client for a TPI gateway.

    Attributes:
        state: Current session state.
        config: Connection settings.
        stream: Shared command stream; extra subscribers join the same
            connection.
    """

    def __init__(
        self,
        config: TPIConfig,
        transport_factory: TransportFactory | None = None,
        *,
        on_invalid_frame: InvalidFrameCallback | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Connection settings.
            transport_factory: Creates a transport per connection attempt;
                defaults to TCP to `config.host:config.port`.
            on_invalid_frame: Diagnostic sink for frames failing validation.
        """
        self._config = config
        if transport_factory is None:
            transport_factory = self._tcp_transport
        self._connection = TPIConnection(transport_factory, encoding=config.encoding)
        self._connection.open_listeners.append(self._on_open)
        self._connection.close_listeners.append(self._on_close)
        self._stream = CommandStream(
            self._connection,
            ReconnectPolicy(config.error_retry_delay, config.close_retry_delay),
            on_invalid_frame,
        )
        self._state = ClientState.DISCONNECTED
        self._running = False
        self._runner: asyncio.Task[None] | None = None
        self._login_settled = asyncio.Event()

    @property
    def state(self) -> ClientState:
        """Get the current session state."""
        return self._state

    @property
    def config(self) -> TPIConfig:
        return self._config

    @property
    def stream(self) -> CommandStream:
        return self._stream

    @property
    def is_connected(self) -> bool:
        """Check if a socket to the gateway is open."""
        return self._connection.is_connected

    @property
    def is_authenticated(self) -> bool:
        return self._state == ClientState.AUTHENTICATED

    def build_chain(self, **callbacks: Any) -> DispatcherChain:
        """
        Build the standard dispatcher chain wired to this client.

        Accepts the keyword callbacks of build_standard_chain(). Login
        outcomes update the client state before reaching the caller.
        """
        on_success: Callable[[], None] | None = callbacks.pop("on_login_success", None)
        on_failure: Callable[[], None] | None = callbacks.pop("on_login_failure", None)

        def login_success() -> None:
            self._set_state(ClientState.AUTHENTICATED)
            self._login_settled.set()
            if on_success is not None:
                on_success()

        def login_failure() -> None:
            self._set_state(ClientState.LOGIN_FAILED)
            self._login_settled.set()
            if on_failure is not None:
                on_failure()

        return build_standard_chain(
            self.send,
            self._config.password,
            on_login_success=login_success,
            on_login_failure=login_failure,
            **callbacks,
        )

    async def run(self, chain: DispatcherChain) -> None:
        """
        Dispatch frames through `chain` until cancelled.

        Reconnects are handled underneath; this only returns by
        cancellation or an unexpected failure.
        """
        self._running = True
        self._set_state(ClientState.CONNECTING)
        try:
            async with self._stream.subscribe() as frames:
                async for frame in frames:
                    chain.dispatch(frame)
        finally:
            self._running = False
            self._set_state(ClientState.DISCONNECTED)

    async def start(self, chain: DispatcherChain | None = None) -> None:
        """
        Run the client in a background task.

        A runner that already ended, e.g. after an unexpected error, is
        replaced.

        Args:
            chain: Dispatcher chain; defaults to build_chain() without
                callbacks (state tracking and logging only).

        Raises:
            ConnectionError: If the client is already running.
        """
        if self._runner is not None and self._runner.done():
            self._report_exit(self._runner)
            self._runner = None
        if self._runner is not None:
            raise ConnectionError(f"Cannot start: client is in {self._state.name} state")
        if chain is None:
            chain = self.build_chain()
        self._runner = asyncio.create_task(self.run(chain))
        # Let the runner attach before returning
        await asyncio.sleep(0)

    async def stop(self) -> None:
        """Stop the background task and close the connection."""
        runner, self._runner = self._runner, None
        if runner is None:
            return
        runner.cancel()
        await asyncio.wait([runner])
        self._report_exit(runner)

    @staticmethod
    def _report_exit(runner: asyncio.Task[None]) -> None:
        if not runner.cancelled() and runner.exception() is not None:
            logger.error("Client stopped after failure: %s", runner.exception())

    async def wait_authenticated(self, timeout: float | None = None) -> None:
        """
        Wait for the login outcome of the current connection.

        Raises:
            LoginError: If the gateway rejected the password.
            asyncio.TimeoutError: If no outcome arrived within `timeout`.
        """
        await asyncio.wait_for(self._login_settled.wait(), timeout)
        if self._state == ClientState.LOGIN_FAILED:
            raise LoginError("The gateway rejected the TPI password")

    def send(self, command: str, data: str = "") -> bool:
        """
        Queue a raw command.

        Returns:
            True if queued, False if dropped because no connection is open.
        """
        return self._connection.send(command, data)

    def poll(self) -> bool:
        return self.send(ApplicationCommand.POLL.value)

    def request_status(self) -> bool:
        """Ask the gateway to report every zone and partition."""
        return self.send(ApplicationCommand.STATUS_REPORT.value)

    def dump_zone_timers(self) -> bool:
        return self.send(ApplicationCommand.DUMP_ZONE_TIMERS.value)

    def login(self) -> bool:
        """Send the password without waiting for a login request."""
        return self.send(ApplicationCommand.NETWORK_LOGIN.value, self._config.password)

    def arm(
        self,
        partition: int | str,
        mode: ArmMode | str = ArmMode.AWAY,
        code: str | None = None,
    ) -> bool:
        """
        Arm a partition.

        Args:
            partition: Partition number 1-8.
            mode: Away, stay or zero-entry; ignored when `code` is given.
            code: User code; arms with the code (033) instead of the
                code-less variants.

        Raises:
            CommandError: If an argument is invalid.
        """
        partition_id = _partition_id(partition)
        if code is not None:
            return self.send(
                ApplicationCommand.PARTITION_ARM_WITH_CODE.value,
                partition_id + _user_code(code),
            )
        try:
            command = ARM_COMMANDS[ArmMode(mode)]
        except ValueError:
            raise CommandError(f"Unknown arm mode: {mode!r}") from None
        return self.send(command.value, partition_id)

    def disarm(self, partition: int | str, code: str) -> bool:
        """
        Disarm a partition with a user code.

        Raises:
            CommandError: If an argument is invalid.
        """
        return self.send(
            ApplicationCommand.PARTITION_DISARM.value,
            _partition_id(partition) + _user_code(code),
        )

    def panic(self, kind: PanicType | str) -> bool:
        """
        Trigger a fire, ambulance or police panic alarm.

        Raises:
            CommandError: If `kind` is unknown.
        """
        try:
            digit = PANIC_CODES[PanicType(kind)]
        except ValueError:
            raise CommandError(f"Unknown panic type: {kind!r}") from None
        return self.send(ApplicationCommand.TRIGGER_PANIC_ALARM.value, digit)

    def _tcp_transport(self) -> TcpTransport:
        return TcpTransport(
            self._config.host,
            self._config.port,
            connect_timeout=self._config.connect_timeout,
        )

    def _set_state(self, state: ClientState) -> None:
        if state != self._state:
            logger.debug("Client state %s -> %s", self._state.name, state.name)
            self._state = state

    def _on_open(self) -> None:
        self._login_settled.clear()
        self._set_state(ClientState.CONNECTED)

    def _on_close(self) -> None:
        if not self._running:
            self._set_state(ClientState.DISCONNECTED)
        elif self._state != ClientState.LOGIN_FAILED:
            self._set_state(ClientState.CONNECTING)

    async def __aenter__(self) -> TPIClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - stop the client."""
        await self.stop()

    def __repr__(self) -> str:
        return f"TPIClient(host={self._config.host!r}, state={self._state.name})"
