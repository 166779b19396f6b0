"""
Splitting of inbound text into validated frames.

A single read from the gateway may hold several frames, a trailing
terminator, or the beginning of a frame whose remainder arrives with the
next read. The splitter keeps an unterminated fragment until its CR LF
arrives, validates every complete frame and drops invalid ones without
disturbing the rest of the stream. A fragment that outgrows
MAX_FRAME_LENGTH without a terminator is dropped as "Too long".
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable

from tpibridge.protocol.constants import ProtocolConstants
from tpibridge.protocol.frame_reader import (
    DEFAULT_FRAME_READER,
    FrameParseError,
    FrameReader,
    ParsedFrame,
)

logger = logging.getLogger(__name__)

InvalidFrameCallback = Callable[[str, str], None]
"""Receives (raw_frame, reason) for every dropped frame."""


class StreamSplitter:
    """
    Stateful frame splitter for one connection.

    Example:
        >>> splitter = StreamSplitter()
        >>> splitter.feed("6543D2\\r\\n00090\\r\\n")
        [ParsedFrame('654', '3'), ParsedFrame('000', '')]
    """

    def __init__(
        self,
        on_invalid_frame: InvalidFrameCallback | None = None,
        reader: FrameReader = DEFAULT_FRAME_READER,
    ) -> None:
        self._on_invalid_frame = on_invalid_frame
        self._reader = reader
        self._pending = ""

    @property
    def pending(self) -> str:
        """Unterminated text waiting for its CR LF."""
        return self._pending

    def reset(self) -> None:
        """Discard any unterminated fragment (e.g. after a reconnect)."""
        if self._pending:
            logger.debug("Discarding partial frame %r", self._pending)
        self._pending = ""

    def feed(self, chunk: str) -> list[ParsedFrame]:
        """
        Consume a chunk of inbound text.

        Args:
            chunk: Text exactly as read from the connection.

        Returns:
            Valid frames completed by this chunk, in arrival order.
        """
        candidates = (self._pending + chunk).split(ProtocolConstants.TERMINATOR)
        self._pending = candidates.pop()

        frames: list[ParsedFrame] = []
        for candidate in candidates:
            _, parsed = self._reader.parse(candidate)
            if isinstance(parsed, FrameParseError):
                self._reject(candidate, parsed.message)
                continue
            frames.append(parsed)

        if len(self._pending) > ProtocolConstants.MAX_FRAME_LENGTH:
            # No terminator in sight; the text cannot become a valid frame
            overflow, self._pending = self._pending, ""
            self._reject(overflow, "Too long")
        return frames

    def _reject(self, raw: str, reason: str) -> None:
        logger.warning("Dropping frame %r: %s", raw[:64], reason)
        if self._on_invalid_frame is not None:
            self._on_invalid_frame(raw, reason)


async def split_frames(
    chunks: AsyncIterable[str],
    on_invalid_frame: InvalidFrameCallback | None = None,
) -> AsyncIterator[ParsedFrame]:
    """
    Turn an async stream of text chunks into a stream of frames.

    Example:
        >>> async for frame in split_frames(connection.chunks()):
        ...     print(frame.command, frame.data)
    """
    splitter = StreamSplitter(on_invalid_frame)
    async for chunk in chunks:
        for frame in splitter.feed(chunk):
            yield frame
