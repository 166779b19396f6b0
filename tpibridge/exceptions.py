"""
Exception hierarchy for tpibridge.

All exceptions inherit from TPIBridgeError, providing a clean hierarchy
for error handling:

1. Frame errors (length, checksum) are distinct from transport errors
2. Transport errors are distinct from an orderly connection close, which
   is not an exception at all
3. Invalid outbound command arguments raise CommandError before anything
   reaches the wire
"""

from __future__ import annotations


class TPIBridgeError(Exception):
    """
    Base exception for all tpibridge errors.

    All library-specific exceptions inherit from this class, allowing
    callers to catch all tpibridge errors with a single except clause.
    """

    pass


class ProtocolError(TPIBridgeError):
    """
    Protocol-level error.

    Raised when the TPI protocol is violated, such as a malformed frame
    or data that cannot be decoded for its command.
    """

    pass


class FrameError(ProtocolError):
    """
    Frame decoding error.

    Carries the raw frame text and the reason string reported to
    diagnostic callbacks.
    """

    def __init__(self, reason: str, *, raw_frame: str = "") -> None:
        super().__init__(reason)
        self.reason = reason
        self.raw_frame = raw_frame


class FrameTooShortError(FrameError):
    """Frame is shorter than command code plus checksum."""

    def __init__(self, raw_frame: str = "") -> None:
        super().__init__("Too short", raw_frame=raw_frame)


class ChecksumError(FrameError):
    """
    Checksum validation failure.

    Raised when a received frame's trailing checksum doesn't match the
    value calculated over its payload.
    """

    def __init__(
        self,
        *,
        expected: str,
        received: str,
        raw_frame: str = "",
    ) -> None:
        super().__init__(f"Invalid checksum: {received}", raw_frame=raw_frame)
        self.expected = expected
        self.received = received

    def __str__(self) -> str:
        return f"{self.reason} (expected {self.expected})"


class TransportError(TPIBridgeError):
    """
    Transport-level error.

    Raised for socket failures: refused or reset connections, I/O errors
    and timeouts while connecting. The reconnect loop treats these
    differently from an orderly close.
    """

    pass


class ConnectionError(TPIBridgeError):  # noqa: A001 - intentionally shadows builtin
    """
    Client connection error.

    Raised when the client is used in a state that does not allow the
    requested operation, e.g. starting it twice.
    """

    pass


class LoginError(TPIBridgeError):
    """The gateway rejected the TPI password."""

    pass


class CommandError(TPIBridgeError):
    """
    Invalid outbound command.

    Raised when an application command is composed with arguments the
    gateway would reject (bad partition number, malformed user code).
    """

    pass
