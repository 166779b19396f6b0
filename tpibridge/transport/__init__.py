"""
Transport layer for TPI communication.

Available transports:
- TcpTransport: asyncio TCP connection to the gateway
- MockTransport: Mock transport for testing without hardware

Example:
    >>> from tpibridge.transport import TcpTransport
    >>> async with TcpTransport("192.168.1.20", 4025) as transport:
    ...     await transport.write(b"00090\\r\\n")
    ...     chunk = await transport.read()
"""

from tpibridge.transport.abc import AbstractTransport
from tpibridge.transport.mock import MockTransport, MockTransportFactory
from tpibridge.transport.tcp import TcpTransport

__all__ = [
    "AbstractTransport",
    "TcpTransport",
    "MockTransport",
    "MockTransportFactory",
]
