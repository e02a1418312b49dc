"""Tests for the message model and clock helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from chat_context.clock import Clock, FixedClock, SystemClock, age_in_hours, hours_between
from chat_context.messages import Message, Role, sort_by_sequence


class TestMessage:
    """Tests for Message."""

    def test_frozen(self, make_message) -> None:
        """Test that messages are immutable."""
        message = make_message(1)
        with pytest.raises(AttributeError):
            message.content = "changed"

    def test_role_accepts_enum_and_string(self) -> None:
        """Test that string roles compare equal to enum roles."""
        message = Message(id=1, role="system", content="x", sequence_number=1)

        assert message.role == Role.SYSTEM
        assert message.is_system is True

    def test_to_dict(self, make_message) -> None:
        """Test the dictionary form."""
        message = make_message(1, Role.ASSISTANT, "hello", hours_ago=1)

        data = message.to_dict()

        assert data["role"] == "assistant"
        assert data["content"] == "hello"
        assert data["created_at"] == "2024-06-01T11:00:00+00:00"
        assert data["token_count"] == 10

    def test_sort_by_sequence(self, make_message) -> None:
        """Test canonical ordering."""
        messages = [make_message(3), make_message(1), make_message(2)]
        assert [m.sequence_number for m in sort_by_sequence(messages)] == [1, 2, 3]


class TestClock:
    """Tests for clock helpers."""

    def test_protocol(self) -> None:
        """Test that both clocks satisfy the Clock protocol."""
        assert isinstance(SystemClock(), Clock)
        assert isinstance(FixedClock(datetime(2024, 1, 1)), Clock)

    def test_naive_times_are_utc(self) -> None:
        """Test that naive datetimes are read as UTC."""
        clock = FixedClock(datetime(2024, 1, 1, 12))

        assert clock.now().tzinfo is timezone.utc
        assert age_in_hours(clock, datetime(2024, 1, 1, 10)) == pytest.approx(2.0)

    def test_age_unknown(self, clock: FixedClock) -> None:
        """Test that a missing timestamp has no age."""
        assert age_in_hours(clock, None) is None

    def test_future_timestamps_have_zero_age(self, clock: FixedClock) -> None:
        """Test that clock skew never yields a negative age."""
        assert age_in_hours(clock, clock.now() + timedelta(hours=1)) == 0.0

    def test_hours_between(self) -> None:
        """Test the absolute difference in hours."""
        earlier = datetime(2024, 1, 1, tzinfo=timezone.utc)
        later = earlier + timedelta(hours=30)

        assert hours_between(later, earlier) == pytest.approx(30.0)
        assert hours_between(earlier, later) == pytest.approx(30.0)
