"""
Connection management for the TPI gateway.

Three layers sit between a transport and the dispatcher chain:

- TPIConnection opens one transport per activation, forwards inbound
  chunks and drains outbound frames until the peer closes (the stream
  ends) or the socket fails (TransportError is raised)
- resilient_chunks() reconnects forever, waiting ReconnectPolicy
  delays that differ for errors and orderly closes
- CommandStream splits the chunks into frames and multicasts them, so
  any number of subscribers share one physical connection

Cancelling the consuming task closes the socket and aborts a pending
reconnect delay.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing, asynccontextmanager
from dataclasses import dataclass

from tpibridge.exceptions import TransportError
from tpibridge.protocol.constants import ProtocolConstants
from tpibridge.protocol.frame_reader import ParsedFrame, serialize_frame
from tpibridge.protocol.splitter import InvalidFrameCallback, StreamSplitter
from tpibridge.transport.abc import AbstractTransport

logger = logging.getLogger(__name__)

TransportFactory = Callable[[], AbstractTransport]


@dataclass(frozen=True)
class ReconnectPolicy:
    """
    Delays before reconnecting, in seconds.

    Retries are unbounded and the delay does not grow.
    """

    error_delay: float = ProtocolConstants.ERROR_RETRY_DELAY
    close_delay: float = ProtocolConstants.CLOSE_RETRY_DELAY


class TPIConnection:
    """
    Duplex connection to the gateway.

    Each call to chunks() opens a fresh transport from the factory and a
    fresh outbound queue. Frames passed to send() while no connection is
    active are dropped.

    Example:
        >>> connection = TPIConnection(lambda: TcpTransport("192.168.1.20"))
        >>> async with aclosing(connection.chunks()) as chunks:
        ...     async for chunk in chunks:
        ...         print(chunk)
    """

    def __init__(
        self,
        transport_factory: TransportFactory,
        encoding: str = ProtocolConstants.DEFAULT_ENCODING,
    ) -> None:
        self._transport_factory = transport_factory
        self._encoding = encoding
        self._outbound: asyncio.Queue[str] | None = None
        self.open_listeners: list[Callable[[], None]] = []
        self.close_listeners: list[Callable[[], None]] = []

    @property
    def is_connected(self) -> bool:
        return self._outbound is not None

    def send(self, command: str, data: str = "") -> bool:
        """
        Queue a command for the active connection.

        Returns:
            True if queued, False if dropped for lack of a connection.
        """
        frame = serialize_frame(command, data)
        if self._outbound is None:
            logger.warning("Not connected, dropping command %r", frame.rstrip())
            return False
        self._outbound.put_nowait(frame)
        return True

    async def chunks(self) -> AsyncIterator[str]:
        """
        Open a connection and yield inbound text as it arrives.

        Returns when the peer closes the connection.

        Raises:
            TransportError: If the connection cannot be opened or fails.
        """
        transport = self._transport_factory()
        await transport.open()
        logger.info("Connected to %s", transport.endpoint)

        outbound: asyncio.Queue[str] = asyncio.Queue()
        self._outbound = outbound
        for listener in self.open_listeners:
            listener()

        drain = asyncio.create_task(self._drain(transport, outbound))
        read: asyncio.Future[bytes] | None = None
        try:
            while True:
                read = asyncio.ensure_future(transport.read())
                await asyncio.wait({read, drain}, return_when=asyncio.FIRST_COMPLETED)
                if drain.done():
                    # Only a failed write ends the drain
                    drain.result()
                chunk = read.result()
                read = None
                if not chunk:
                    logger.info("Connection to %s closed by peer", transport.endpoint)
                    return
                logger.debug("Received %r", chunk)
                yield chunk.decode(self._encoding, errors="replace")
        finally:
            self._outbound = None
            pending = [task for task in (read, drain) if task is not None and not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.wait(pending)
            await transport.close()
            for listener in self.close_listeners:
                listener()

    async def _drain(self, transport: AbstractTransport, outbound: asyncio.Queue[str]) -> None:
        while True:
            frame = await outbound.get()
            logger.debug("Sending %r", frame)
            await transport.write(frame.encode(self._encoding))


async def resilient_chunks(
    connection: TPIConnection,
    policy: ReconnectPolicy = ReconnectPolicy(),
) -> AsyncIterator[str]:
    """
    Yield inbound text across reconnects.

    After a TransportError the loop waits `policy.error_delay`, after an
    orderly close `policy.close_delay`, then opens a new connection.
    """
    while True:
        try:
            async with aclosing(connection.chunks()) as chunks:
                async for chunk in chunks:
                    yield chunk
        except TransportError as e:
            logger.warning("TPI socket error: %s. Waiting %.1fs...", e, policy.error_delay)
            await asyncio.sleep(policy.error_delay)
            logger.info("Reconnecting TPI socket after error...")
            continue

        logger.warning("TPI socket closed. Waiting %.1fs...", policy.close_delay)
        await asyncio.sleep(policy.close_delay)
        logger.info("Reconnecting TPI socket after close...")


class Subscription:
    """
    One subscriber's view of a CommandStream.

    Iterates validated frames in arrival order until the subscription is
    left. Unexpected failures of the shared connection are re-raised here.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[ParsedFrame | BaseException] = asyncio.Queue()

    def _put(self, item: ParsedFrame | BaseException) -> None:
        self._queue.put_nowait(item)

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> ParsedFrame:
        item = await self._queue.get()
        if isinstance(item, BaseException):
            raise item
        return item


class CommandStream:
    """
    Shared stream of validated frames from one gateway connection.

    The connection opens with the first subscriber and closes when the
    last one leaves; later subscribers join the running connection.

    Example:
        >>> stream = CommandStream(connection)
        >>> async with stream.subscribe() as frames:
        ...     async for frame in frames:
        ...         chain.dispatch(frame)
    """

    def __init__(
        self,
        connection: TPIConnection,
        policy: ReconnectPolicy = ReconnectPolicy(),
        on_invalid_frame: InvalidFrameCallback | None = None,
    ) -> None:
        self._connection = connection
        self._policy = policy
        self._splitter = StreamSplitter(on_invalid_frame)
        self._subscriptions: list[Subscription] = []
        self._pump: asyncio.Task[None] | None = None
        connection.open_listeners.append(self._splitter.reset)

    @property
    def connection(self) -> TPIConnection:
        return self._connection

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    @property
    def is_running(self) -> bool:
        return self._pump is not None and not self._pump.done()

    def send(self, command: str, data: str = "") -> bool:
        """Queue a command on the shared connection."""
        return self._connection.send(command, data)

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[Subscription]:
        """
        Attach a subscriber for the duration of the context.
        """
        subscription = Subscription()
        self._subscriptions.append(subscription)
        if self._pump is None or self._pump.done():
            self._pump = asyncio.create_task(self._run())
        try:
            yield subscription
        finally:
            self._subscriptions.remove(subscription)
            if not self._subscriptions:
                await self._stop()

    async def _stop(self) -> None:
        pump, self._pump = self._pump, None
        if pump is None:
            return
        pump.cancel()
        await asyncio.wait([pump])
        logger.debug("Command stream stopped")

    async def _run(self) -> None:
        try:
            async for chunk in resilient_chunks(self._connection, self._policy):
                for frame in self._splitter.feed(chunk):
                    for subscription in list(self._subscriptions):
                        subscription._put(frame)
        except Exception as e:
            logger.exception("Command stream failed")
            for subscription in list(self._subscriptions):
                subscription._put(e)
