"""
8-bit additive checksum calculation and validation.

The TPI protocol uses a simple additive checksum:
- Sum the character codes of command and data
- Keep only the lower 8 bits (modulo 256)
- Encode as 2 uppercase ASCII hex characters

The checksum is placed at the end of the frame, before the CR LF
terminator.
"""

from __future__ import annotations

from tpibridge.protocol.constants import ProtocolConstants


def calculate_checksum(payload: str) -> str:
    """
    Calculate the checksum of a frame payload.

    Args:
        payload: Command code and data combined ("CCCDDD...DDD").

    Returns:
        2-character uppercase hex checksum.

    Example:
        >>> calculate_checksum("6543")
        'D2'
        >>> calculate_checksum("000")
        '90'
    """
    return f"{sum(map(ord, payload)) & 0xFF:02X}"


def validate_checksum(frame: str) -> bool:
    """
    Validate that the trailing checksum matches the preceding payload.

    Args:
        frame: Frame text without terminator ("CCCDDD...DDDKK").

    Returns:
        True if the checksum is valid, False otherwise (including frames
        too short to carry a checksum).
    """
    if len(frame) < ProtocolConstants.MIN_FRAME_LENGTH:
        return False
    split = len(frame) - ProtocolConstants.CHECKSUM_LENGTH
    return calculate_checksum(frame[:split]) == frame[split:]


def append_checksum(payload: str) -> str:
    """
    Calculate the checksum and append it to the payload.

    Example:
        >>> append_checksum("000")
        '00090'
    """
    return payload + calculate_checksum(payload)
