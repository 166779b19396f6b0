"""
Command dispatcher chain.

Every handler claims a fixed set of TPI command codes. The chain builds a
single code -> handler lookup table from its handlers in order, so the
first handler claiming a code owns it. Frames with an unclaimed code
leave the chain as "unhandled" for the caller to log or ignore.

Frames are dispatched synchronously, one at a time, in arrival order.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable
from typing import ClassVar

from tpibridge.exceptions import ProtocolError
from tpibridge.protocol.frame_reader import ParsedFrame

logger = logging.getLogger(__name__)

UnhandledCallback = Callable[[ParsedFrame], None]


class CommandHandler(ABC):
    """
    Base class for a stage of the dispatcher chain.

    Subclasses list the codes they own in `commands` and decode them in
    `handle`. A handler never sees a frame it does not claim.
    """

    commands: ClassVar[frozenset[str]] = frozenset()

    def claims(self, command: str) -> bool:
        """Whether this handler owns the command code."""
        return command in self.commands

    @abstractmethod
    def handle(self, frame: ParsedFrame) -> None:
        """
        Decode a claimed frame and invoke the domain callbacks.

        Raises:
            ProtocolError: If the frame data cannot be decoded.
        """
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(sorted(self.commands))})"


class DispatcherChain:
    """
    Ordered set of command handlers.

    Example:
        >>> chain = DispatcherChain([ReactionHandler(on_ack=print)])
        >>> chain.dispatch(ParsedFrame("500", "000"))  # prints 000, returns None
        >>> chain.dispatch(ParsedFrame("609", "001"))
        ParsedFrame('609', '001')
    """

    def __init__(
        self,
        handlers: Iterable[CommandHandler],
        on_unhandled: UnhandledCallback | None = None,
    ) -> None:
        self._handlers = list(handlers)
        self._on_unhandled = on_unhandled
        self._table: dict[str, CommandHandler] = {}
        for handler in self._handlers:
            for command in handler.commands:
                self._table.setdefault(command, handler)

    @property
    def handlers(self) -> list[CommandHandler]:
        """Handlers in processing order."""
        return list(self._handlers)

    def handler_for(self, command: str) -> CommandHandler | None:
        """Handler owning the command code, if any."""
        return self._table.get(command)

    def dispatch(self, frame: ParsedFrame) -> ParsedFrame | None:
        """
        Route one frame through the chain.

        Args:
            frame: A validated frame.

        Returns:
            The frame unchanged if no handler claims it, otherwise None.
        """
        handler = self._table.get(frame.command)
        if handler is None:
            logger.debug("Unhandled command %s data=%r", frame.command, frame.data)
            if self._on_unhandled is not None:
                self._on_unhandled(frame)
            return frame

        try:
            handler.handle(frame)
        except ProtocolError as e:
            # The frame passed its checksum but its data is malformed
            logger.warning("%r could not decode %r: %s", handler, frame, e)
        return None

    async def run(self, frames: AsyncIterable[ParsedFrame]) -> AsyncIterator[ParsedFrame]:
        """
        Dispatch an async stream of frames, yielding the unhandled ones.
        """
        async for frame in frames:
            unhandled = self.dispatch(frame)
            if unhandled is not None:
                yield unhandled

    def __len__(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        return f"DispatcherChain({self._handlers!r})"
