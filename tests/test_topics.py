"""Tests for topic pattern matching."""

import pytest

from tpibridge.bus.topics import any_qualifies, topic_qualifies


class TestTopicQualifies:
    """Tests for topic_qualifies()."""

    @pytest.mark.parametrize(
        "topic, pattern",
        [
            ("a/b/c", "a/b/c"),
            ("a/b/c", "a/+/c"),
            ("a/b/c", "a/+/+"),
            ("a/b/c", "+/b/c"),
            ("a/b/c/d", "a/+/+/#"),
            ("a/b/c/d/e", "a/+/+/#"),
            ("a/b/c/d/e", "a/+/+/d/#"),
            ("a/b/c/d/e/f", "a/+/+/d/#"),
            ("a/b/c/d", "a/+/+/d"),
            ("a/b/c/d", "a/+/c/+"),
            ("a/b/c", "a/b/#"),
            ("a/b/c", "a/#"),
            ("a/b/c", "#"),
            ("a/b/c", "+/b/#"),
            ("a/b/c/d", "+/b/#"),
        ],
    )
    def test_qualifies(self, topic, pattern):
        """Test topics that fit their pattern."""
        assert topic_qualifies(topic, pattern) is True

    @pytest.mark.parametrize(
        "topic, pattern",
        [
            ("a/b/c", "a/b/c/d"),
            ("a/b/c", "a/b"),
            ("a/b/c/d", "a/+/+"),
            ("a/b", "a/+/+"),
            ("a/b/c/d/e", "a/+/+/d"),
            ("a/b/c", "a/+/+/d"),
            ("a/b", "+/b/c"),
            ("a/b/c", "x/b/c"),
            ("a/b/c", "a/x/c"),
            ("a/b/c", "a/b/x"),
        ],
    )
    def test_does_not_qualify(self, topic, pattern):
        """Test topics that do not fit their pattern."""
        assert topic_qualifies(topic, pattern) is False

    def test_single_level_checks_later_segments(self):
        """Test that a non-terminal + does not end the match early."""
        assert topic_qualifies("a/b/x", "a/+/c") is False

    def test_multi_level_needs_a_segment(self):
        """Test that # does not match an exhausted topic."""
        assert topic_qualifies("a/b", "a/b/#") is False


class TestAnyQualifies:
    """Tests for any_qualifies()."""

    def test_any(self):
        """Test matching against several patterns."""
        assert any_qualifies("a/b/3", ["a/b/7", "a/b/3"]) is True
        assert any_qualifies("a/b/4", ["a/b/7", "a/b/3"]) is False
        assert any_qualifies("a/b/4", []) is False
