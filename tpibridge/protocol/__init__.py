"""
Protocol layer for TPI communication.

This module contains the low-level protocol handling:
- Command codes and protocol constants
- Checksum calculation and validation
- Bit field, timer and date decoding helpers
- Frame parsing and serialization
- Splitting the inbound text stream into frames
"""

from tpibridge.protocol.checksums import append_checksum, calculate_checksum, validate_checksum
from tpibridge.protocol.constants import (
    ApplicationCommand,
    ArmMode,
    IndicatorState,
    LoginResponse,
    PanicType,
    PartitionActivityType,
    ProtocolConstants,
    SystemErrorCode,
    TPICommand,
    ZoneActivityType,
)
from tpibridge.protocol.encoding import decode_bits, decode_decimal_pairs, decode_swapped_uint16
from tpibridge.protocol.frame_reader import (
    DEFAULT_FRAME_READER,
    FrameParseError,
    FrameParseResult,
    FrameReader,
    ParsedFrame,
    decode_frame,
    serialize_frame,
)
from tpibridge.protocol.splitter import StreamSplitter, split_frames

__all__ = [
    # Constants
    "ApplicationCommand",
    "TPICommand",
    "LoginResponse",
    "SystemErrorCode",
    "ZoneActivityType",
    "PartitionActivityType",
    "ArmMode",
    "PanicType",
    "IndicatorState",
    "ProtocolConstants",
    # Checksums
    "calculate_checksum",
    "validate_checksum",
    "append_checksum",
    # Encoding
    "decode_bits",
    "decode_swapped_uint16",
    "decode_decimal_pairs",
    # Frame Parsing
    "FrameReader",
    "FrameParseResult",
    "ParsedFrame",
    "FrameParseError",
    "decode_frame",
    "serialize_frame",
    "DEFAULT_FRAME_READER",
    # Stream Splitting
    "StreamSplitter",
    "split_frames",
]
