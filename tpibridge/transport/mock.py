"""
Scripted in-memory gateway for tests.

This module provides a mock transport that lets tests drive the TPI
pipeline without a gateway. Inbound traffic is scripted as a sequence of
chunks, orderly closes and errors; everything written is recorded.

Example:
    >>> mock = MockTransport()
    >>> mock.add_frame("505", "3")       # login required
    >>> mock.add_close()                 # then the gateway hangs up
    >>>
    >>> async with mock:
    ...     chunk = await mock.read()
    ...     assert await mock.read() == b""
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable

from tpibridge.exceptions import TransportError
from tpibridge.protocol.frame_reader import serialize_frame
from tpibridge.transport.abc import AbstractTransport

_CLOSE = object()


class MockTransport(AbstractTransport):
    """
    Mock transport for testing without a gateway.

    Reads block until a scripted item is available, like a quiet socket.

    Attributes:
        written_data: Every frame written by the client, in order.
        open_count: Number of successful open() calls.
    """

    def __init__(
        self,
        endpoint: str = "mock://tpi",
        open_error: TransportError | None = None,
    ) -> None:
        """
        Create a closed transport with an empty script.

        Args:
            endpoint: Identifier for the mock transport.
            open_error: Raised by open() to simulate a refused connection.
        """
        self._endpoint = endpoint
        self._open_error = open_error
        self._is_open = False
        self._inbound: asyncio.Queue[object] = asyncio.Queue()
        self._written_data: list[bytes] = []
        self._response_callback: Callable[[bytes], bytes | None] | None = None
        self.open_count = 0
        self.close_count = 0

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def written_data(self) -> list[bytes]:
        """Copies of every frame the client sent, oldest first."""
        return self._written_data.copy()

    @property
    def last_written(self) -> bytes | None:
        """The last frame the client sent, if any."""
        return self._written_data[-1] if self._written_data else None

    def add_chunk(self, chunk: str | bytes) -> None:
        """Queue raw inbound text, returned by a single read()."""
        if isinstance(chunk, str):
            chunk = chunk.encode("ascii")
        self._inbound.put_nowait(chunk)

    def add_frame(self, command: str, data: str = "") -> None:
        """Queue a correctly framed inbound command."""
        self.add_chunk(serialize_frame(command, data))

    def add_frames(self, frames: Iterable[tuple[str, str]]) -> None:
        """Queue several frames as one chunk."""
        self.add_chunk("".join(serialize_frame(command, data) for command, data in frames))

    def add_close(self) -> None:
        """Queue an orderly close by the peer."""
        self._inbound.put_nowait(_CLOSE)

    def add_error(self, error: TransportError | None = None) -> None:
        """Queue a read failure."""
        self._inbound.put_nowait(error or TransportError("Connection reset by mock"))

    def set_response_callback(self, callback: Callable[[bytes], bytes | None] | None) -> None:
        """
        Set a callback to generate inbound data from written data.

        If the callback returns bytes they are queued for reading.
        """
        self._response_callback = callback

    async def open(self) -> None:
        if self._is_open:
            raise TransportError("Scripted gateway connection is already open")
        if self._open_error is not None:
            raise self._open_error
        self._is_open = True
        self.open_count += 1

    async def close(self) -> None:
        if self._is_open:
            self.close_count += 1
        self._is_open = False

    async def write(self, data: bytes) -> None:
        if not self._is_open:
            raise TransportError("Scripted gateway connection is not open")

        self._written_data.append(bytes(data))
        if self._response_callback is not None:
            response = self._response_callback(data)
            if response is not None:
                self.add_chunk(response)

    async def read(self) -> bytes:
        if not self._is_open:
            raise TransportError("Scripted gateway connection is not open")

        item = await self._inbound.get()
        if item is _CLOSE:
            return b""
        if isinstance(item, TransportError):
            raise item
        return item

    def assert_written(self, expected: bytes, index: int = -1) -> None:
        """
        Fail unless the frame at index equals expected.

        Raises:
            AssertionError: If nothing was sent or the frame differs.
        """
        if not self._written_data:
            raise AssertionError("The client has not sent any frames")

        actual = self._written_data[index]
        if actual != expected:
            raise AssertionError(f"Frame {index} was {actual!r}, expected {expected!r}")

    def assert_write_count(self, expected: int) -> None:
        """
        Fail unless exactly expected frames were sent.

        Raises:
            AssertionError: On any other count.
        """
        actual = len(self._written_data)
        if actual != expected:
            raise AssertionError(f"Client sent {actual} frames, expected {expected}")


class MockTransportFactory:
    """
    Hands out a fresh MockTransport per connection attempt.

    Pre-scripted transports are used in order; once they run out, new
    empty ones are created.

    Example:
        >>> first, second = MockTransport(), MockTransport()
        >>> factory = MockTransportFactory([first, second])
        >>> connection = TPIConnection(factory)
    """

    def __init__(self, transports: Iterable[MockTransport] = ()) -> None:
        self._scripted = list(transports)
        self.created: list[MockTransport] = []

    def __call__(self) -> MockTransport:
        transport = self._scripted.pop(0) if self._scripted else MockTransport()
        self.created.append(transport)
        return transport
