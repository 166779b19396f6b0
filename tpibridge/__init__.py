"""
tpibridge - async bridge between a security panel's TPI gateway and an MQTT bus.

This library decodes the gateway's text protocol (framing, checksums,
login handshake, zone/partition/keypad/trouble reports), keeps the
connection alive across drops, and matches bus topics against wildcard
interests.

Example:
    >>> from tpibridge import TPIClient, TPIConfig
    >>>
    >>> async def main():
    ...     async with TPIClient(TPIConfig(host="192.168.1.20", password="user")) as client:
    ...         await client.start(client.build_chain(on_zone=print, on_partition=print))
    ...         await client.wait_authenticated(timeout=30)
    ...         client.request_status()
"""

from tpibridge.bus import BusMessage, MqttBusClient, PublishMessage, interest, topic_qualifies
from tpibridge.client import ClientState, TPIClient
from tpibridge.config import BusConfig, TPIConfig
from tpibridge.connection import CommandStream, ReconnectPolicy, TPIConnection, resilient_chunks
from tpibridge.exceptions import (
    ChecksumError,
    CommandError,
    ConnectionError,
    FrameError,
    FrameTooShortError,
    LoginError,
    ProtocolError,
    TPIBridgeError,
    TransportError,
)
from tpibridge.handlers import DispatcherChain, build_standard_chain
from tpibridge.models.records import (
    IndicatorUpdate,
    PartitionState,
    TroubleStatus,
    ZoneState,
    ZoneTimerEntry,
)
from tpibridge.protocol.frame_reader import ParsedFrame
from tpibridge.transport import AbstractTransport, MockTransport, TcpTransport

__version__ = "0.1.0"
__all__ = [
    # Client
    "TPIClient",
    "ClientState",
    "TPIConfig",
    # Connection
    "TPIConnection",
    "CommandStream",
    "ReconnectPolicy",
    "resilient_chunks",
    # Dispatch
    "DispatcherChain",
    "build_standard_chain",
    "ParsedFrame",
    # Models
    "ZoneState",
    "ZoneTimerEntry",
    "PartitionState",
    "IndicatorUpdate",
    "TroubleStatus",
    # Bus
    "BusConfig",
    "BusMessage",
    "PublishMessage",
    "MqttBusClient",
    "interest",
    "topic_qualifies",
    # Exceptions
    "TPIBridgeError",
    "ProtocolError",
    "FrameError",
    "FrameTooShortError",
    "ChecksumError",
    "TransportError",
    "ConnectionError",
    "LoginError",
    "CommandError",
    # Transport
    "AbstractTransport",
    "TcpTransport",
    "MockTransport",
    # Version
    "__version__",
]
