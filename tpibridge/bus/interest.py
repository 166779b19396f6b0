"""
Topic interest: a filtered view of a bus message stream.

Attaching to the view announces its pattern set once through a
subscribe sink; detaching announces the same set once through an
unsubscribe sink, however many patterns there are.

Example:
    >>> messages = interest(bus.messages(), ["tpi/cmd/#"], bus.subscribe, bus.unsubscribe)
    >>> async with aclosing(messages):
    ...     async for message in messages:
    ...         handle(message)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable

from tpibridge.bus.messages import BusMessage
from tpibridge.bus.topics import any_qualifies

logger = logging.getLogger(__name__)

TopicSink = Callable[[list[str]], None]
"""Receives the pattern set on subscribe or unsubscribe."""


def _pattern_list(patterns: str | Iterable[str]) -> list[str]:
    if isinstance(patterns, str):
        return [patterns]
    return list(patterns)


async def interest(
    messages: AsyncIterable[BusMessage],
    patterns: str | Iterable[str],
    subscribe: TopicSink,
    unsubscribe: TopicSink,
    on_message: Callable[[BusMessage], None] | None = None,
) -> AsyncIterator[BusMessage]:
    """
    Yield the messages whose topic fits at least one pattern.

    Args:
        messages: Inbound bus messages.
        patterns: One pattern or several.
        subscribe: Called once with the patterns when iteration starts.
        unsubscribe: Called once with the patterns when the generator
            finishes, fails or is closed.
        on_message: Observes every inbound message, qualified or not,
            before filtering.
    """
    qualifiers = _pattern_list(patterns)
    logger.debug("Subscribing to %d topic(s): %s", len(qualifiers), qualifiers)
    subscribe(list(qualifiers))
    try:
        async for message in messages:
            if on_message is not None:
                on_message(message)
            if any_qualifies(message.topic, qualifiers):
                yield message
    finally:
        logger.debug("Unsubscribing from %d topic(s)", len(qualifiers))
        unsubscribe(list(qualifiers))
