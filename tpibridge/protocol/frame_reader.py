"""
TPI frame encoding and decoding.

Frames have the same layout in both directions:

    CCC DDD...DDD KK CR LF

- CCC: three digit command code
- DDD...DDD: command specific data, possibly empty
- KK: checksum of command and data (2 uppercase hex characters)
- CR LF: terminator

The reader works on a single frame with its terminator already removed;
splitting a byte stream into frames is the job of StreamSplitter.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from tpibridge.exceptions import ChecksumError, FrameError, FrameTooShortError
from tpibridge.protocol.checksums import calculate_checksum
from tpibridge.protocol.constants import ProtocolConstants


class FrameParseResult(Enum):
    """
    Result codes for frame parsing operations.
    """

    SUCCESS = auto()
    """Frame was successfully parsed and validated."""

    TOO_SHORT = auto()
    """Frame cannot hold a command code and a checksum."""

    INVALID_CHECKSUM = auto()
    """Frame checksum validation failed (data corruption)."""


@dataclass(frozen=True)
class ParsedFrame:
    """
    A successfully parsed protocol frame.

    Attributes:
        command: Three digit command code.
        data: Command data, empty string when absent.
    """

    command: str
    data: str = ""

    @property
    def payload(self) -> str:
        """Command and data as covered by the checksum."""
        return self.command + self.data

    def __iter__(self):
        # Allows `command, data = frame`
        yield self.command
        yield self.data

    def __repr__(self) -> str:
        return f"ParsedFrame({self.command!r}, {self.data!r})"


@dataclass(frozen=True)
class FrameParseError:
    """
    Details about a frame parsing failure.

    The message is the reason string handed to diagnostic callbacks.
    """

    result: FrameParseResult
    message: str
    raw_frame: str

    def to_exception(self) -> FrameError:
        """Build the matching FrameError exception."""
        if self.result == FrameParseResult.TOO_SHORT:
            return FrameTooShortError(self.raw_frame)
        received = self.raw_frame[-ProtocolConstants.CHECKSUM_LENGTH :]
        payload = self.raw_frame[: -ProtocolConstants.CHECKSUM_LENGTH]
        return ChecksumError(
            expected=calculate_checksum(payload),
            received=received,
            raw_frame=self.raw_frame,
        )


class FrameReader:
    """
    TPI frame parser.

    The parser is stateless and can be reused for multiple parse
    operations.

    Example:
        >>> reader = FrameReader()
        >>> result, frame = reader.parse("6543D2")
        >>> assert result == FrameParseResult.SUCCESS
        >>> assert (frame.command, frame.data) == ("654", "3")
    """

    def parse(self, frame: str) -> tuple[FrameParseResult, ParsedFrame | FrameParseError]:
        """
        Parse a single frame.

        Args:
            frame: Frame text without the CR LF terminator.

        Returns:
            Tuple of (result, frame_or_error):
            - On success: (SUCCESS, ParsedFrame)
            - On failure: (error_code, FrameParseError)
        """
        if len(frame) < ProtocolConstants.MIN_FRAME_LENGTH:
            return FrameParseResult.TOO_SHORT, FrameParseError(
                result=FrameParseResult.TOO_SHORT,
                message="Too short",
                raw_frame=frame,
            )

        split = len(frame) - ProtocolConstants.CHECKSUM_LENGTH
        payload, checksum = frame[:split], frame[split:]
        if calculate_checksum(payload) != checksum:
            return FrameParseResult.INVALID_CHECKSUM, FrameParseError(
                result=FrameParseResult.INVALID_CHECKSUM,
                message=f"Invalid checksum: {checksum}",
                raw_frame=frame,
            )

        command = payload[: ProtocolConstants.COMMAND_LENGTH]
        data = payload[ProtocolConstants.COMMAND_LENGTH :]
        return FrameParseResult.SUCCESS, ParsedFrame(command=command, data=data)


DEFAULT_FRAME_READER = FrameReader()


def decode_frame(frame: str) -> ParsedFrame:
    """
    Parse a frame, raising on failure.

    Raises:
        FrameTooShortError: If the frame is shorter than 5 characters.
        ChecksumError: If the trailing checksum does not match.
    """
    result, parsed = DEFAULT_FRAME_READER.parse(frame)
    if isinstance(parsed, FrameParseError):
        raise parsed.to_exception()
    return parsed


def serialize_frame(command: str, data: str = "") -> str:
    """
    Build a wire frame: payload, checksum and terminator.

    Example:
        >>> serialize_frame("005", "user")
        '005user54\\r\\n'
    """
    payload = f"{_code(command)}{data}"
    return f"{payload}{calculate_checksum(payload)}{ProtocolConstants.TERMINATOR}"


def _code(command: str) -> str:
    # str-mixin enums format as "Class.MEMBER" on newer interpreters
    return getattr(command, "value", command)
