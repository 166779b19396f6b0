"""
TCP transport using asyncio streams.

The gateway listens on a TCP port (4025 by default) and speaks the TPI
text protocol. This transport only moves bytes; framing happens above.
"""

from __future__ import annotations

import asyncio
import logging

from tpibridge.exceptions import TransportError
from tpibridge.protocol.constants import ProtocolConstants
from tpibridge.transport.abc import AbstractTransport

logger = logging.getLogger(__name__)


class TcpTransport(AbstractTransport):
    """
    TCP connection to a TPI gateway.

    Example:
        >>> transport = TcpTransport("192.168.1.20")
        >>> await transport.open()
        >>> try:
        ...     chunk = await transport.read()
        ... finally:
        ...     await transport.close()
    """

    def __init__(
        self,
        host: str,
        port: int = ProtocolConstants.DEFAULT_PORT,
        connect_timeout: float = ProtocolConstants.DEFAULT_CONNECT_TIMEOUT,
        read_size: int = ProtocolConstants.READ_CHUNK_SIZE,
    ) -> None:
        """
        Initialize the TCP transport.

        Args:
            host: Gateway host name or address.
            port: TPI port.
            connect_timeout: Seconds allowed for the TCP handshake.
            read_size: Maximum bytes returned by a single read.
        """
        self._host = host
        self._port = port
        self._connect_timeout = connect_timeout
        self._read_size = read_size
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    @property
    def is_open(self) -> bool:
        return (
            self._writer is not None
            and not self._writer.is_closing()
            and self._reader is not None
        )

    @property
    def endpoint(self) -> str:
        return f"{self._host}:{self._port}"

    async def open(self) -> None:
        """
        Connect to the gateway.

        Raises:
            TransportError: If the connection cannot be established.
        """
        if self.is_open:
            return

        logger.info("Connecting to %s", self.endpoint)
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self._host, self._port),
                timeout=self._connect_timeout,
            )
        except asyncio.TimeoutError:
            raise TransportError(
                f"Timed out connecting to {self.endpoint} after {self._connect_timeout:.1f}s"
            ) from None
        except OSError as e:
            raise TransportError(f"Failed to connect to {self.endpoint}: {e}") from e

    async def close(self) -> None:
        """
        Close the connection. Safe to call multiple times.
        """
        writer = self._writer
        self._reader = None
        self._writer = None
        if writer is None:
            return

        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            # The peer may already have reset the socket
            logger.debug("Error while closing %s: %s", self.endpoint, e)
        logger.debug("Closed %s", self.endpoint)

    async def write(self, data: bytes) -> None:
        if not self.is_open:
            raise TransportError(f"Connection to {self.endpoint} is not open")

        try:
            self._writer.write(data)
            await self._writer.drain()
        except OSError as e:
            raise TransportError(f"Write to {self.endpoint} failed: {e}") from e

    async def read(self) -> bytes:
        if self._reader is None:
            raise TransportError(f"Connection to {self.endpoint} is not open")

        try:
            return await self._reader.read(self._read_size)
        except OSError as e:
            raise TransportError(f"Read from {self.endpoint} failed: {e}") from e

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"TcpTransport({self._host!r}, port={self._port}, {status})"
