"""
Abstract transport interface for TPI communication.

Transports handle the raw byte connection to the gateway:
- Opening/closing the connection
- Reading whatever bytes arrived, without framing
- Writing complete frames

A transport reports an orderly close by returning b"" from read() and a
failure by raising TransportError. The connection layer depends on that
distinction to pick its reconnect delay.

Implementations:
- TcpTransport: asyncio streams to the gateway's TPI port
- MockTransport: scripted chunks for testing
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import TracebackType


class AbstractTransport(ABC):
    """
    Byte pipe between the client and one TPI gateway.

    Used as an async context manager the transport is closed even when
    the body raises:

        async with TcpTransport("192.168.1.20") as transport:
            await transport.write(b"00090\\r\\n")
            chunk = await transport.read()
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """
        True between a successful open() and the next close().
        """
        ...

    @property
    @abstractmethod
    def endpoint(self) -> str:
        """
        Get the transport identifier (e.g. "192.168.1.20:4025").
        """
        ...

    @abstractmethod
    async def open(self) -> None:
        """
        Connect to the gateway.

        Raises:
            TransportError: If the gateway is unreachable or refuses us.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """
        Drop the connection to the gateway.

        Calling it on a closed transport does nothing.
        """
        ...

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Send one outbound frame.

        Args:
            data: A complete frame including checksum and terminator.

        Raises:
            TransportError: If not open, or the socket write failed.
        """
        ...

    @abstractmethod
    async def read(self) -> bytes:
        """
        Wait for the next bytes from the gateway.

        Returns:
            The bytes that arrived, or b"" once the peer closed the
            connection.

        Raises:
            TransportError: If not open, or the socket read failed.
        """
        ...

    async def __aenter__(self) -> AbstractTransport:
        """Open on entry."""
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Close on exit."""
        await self.close()
