"""
Field decoding utilities for TPI data.

TPI data fields are ASCII: bitfields are sent as two hex characters,
timer values as 16-bit hex words with the low byte first, and broadcast
dates as runs of two-digit decimal fields.
"""

from __future__ import annotations

import re

from tpibridge.exceptions import ProtocolError
from tpibridge.protocol.constants import ProtocolConstants

_HEX_FIELD = re.compile(r"[0-9A-Fa-f]+")
_DECIMAL_FIELD = re.compile(r"[0-9]+")


def decode_bits(hex_chars: str, width: int = ProtocolConstants.INDICATOR_COUNT) -> tuple[bool, ...]:
    """
    Decode a hex bitfield into booleans, least significant bit first.

    Args:
        hex_chars: Hex encoded bitfield (e.g. "5A").
        width: Number of bits to decode.

    Returns:
        Tuple of `width` booleans; element i is bit i.

    Raises:
        ProtocolError: If the input is not valid hex.

    Example:
        >>> decode_bits("5A")
        (False, True, False, True, True, False, True, False)
    """
    if not _HEX_FIELD.fullmatch(hex_chars):
        raise ProtocolError(f"Invalid bitfield: {hex_chars!r}")
    value = int(hex_chars, 16)
    return tuple(bool(value >> bit & 1) for bit in range(width))


def decode_swapped_uint16(hex_chars: str) -> int:
    """
    Decode a 4-character hex word sent low byte first.

    Example:
        >>> decode_swapped_uint16("00FF")
        65280
    """
    if len(hex_chars) != 4:
        raise ProtocolError(f"Word must be 4 hex characters, got {len(hex_chars)}")
    if not _HEX_FIELD.fullmatch(hex_chars):
        raise ProtocolError(f"Invalid hex word: {hex_chars!r}")
    return int(hex_chars[2:4] + hex_chars[0:2], 16)


def decode_decimal_pairs(digits: str, count: int) -> list[int]:
    """
    Split a string of decimal digits into `count` two-digit integers.

    Example:
        >>> decode_decimal_pairs("1645022020", 5)
        [16, 45, 2, 20, 20]
    """
    if len(digits) < count * 2:
        raise ProtocolError(f"Expected {count * 2} digits, got {len(digits)}")
    if not _DECIMAL_FIELD.fullmatch(digits[: count * 2]):
        raise ProtocolError(f"Invalid decimal field: {digits!r}")
    return [int(digits[i : i + 2]) for i in range(0, count * 2, 2)]
