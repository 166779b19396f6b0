"""
Topic pattern matching.

Topics and patterns are ``/``-delimited. In a pattern, ``+`` matches
exactly one segment and ``#`` matches all remaining segments (at least
one).
"""

from __future__ import annotations

from collections.abc import Iterable

SEPARATOR = "/"
SINGLE_LEVEL = "+"
MULTI_LEVEL = "#"


def topic_qualifies(topic: str, pattern: str) -> bool:
    """
    Check whether a message topic fits a subscription pattern.

    Args:
        topic: Topic of a received message.
        pattern: Subscription pattern, possibly with wildcards.

    Returns:
        True if the topic fits the pattern.

    Example:
        >>> topic_qualifies("a/b/c", "a/+/c")
        True
        >>> topic_qualifies("a/b/c/d", "a/+/+")
        False
        >>> topic_qualifies("a/b/c/d", "a/+/+/#")
        True
    """
    qualifiers = pattern.split(SEPARATOR)
    actuals = topic.split(SEPARATOR)

    for index, actual in enumerate(actuals):
        if index >= len(qualifiers):
            # Topic is longer than the pattern
            return False
        qualifier = qualifiers[index]
        if qualifier == actual:
            continue
        if qualifier == MULTI_LEVEL:
            return True
        if qualifier == SINGLE_LEVEL:
            if index == len(actuals) - 1 and len(actuals) == len(qualifiers):
                return True
            continue
        return False

    return len(actuals) == len(qualifiers)


def any_qualifies(topic: str, patterns: Iterable[str]) -> bool:
    """Check whether a topic fits at least one of `patterns`."""
    return any(topic_qualifies(topic, pattern) for pattern in patterns)
