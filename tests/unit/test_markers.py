"""Tests for preservation markers."""

from __future__ import annotations

import pytest

from chat_context.context.markers import (
    DEFAULT_REASON,
    Marker,
    MarkerEngine,
    MarkerSet,
    filter_by_markers,
)
from chat_context.messages import Role


@pytest.fixture
def engine(clock) -> MarkerEngine:
    """Provide a MarkerEngine with a frozen clock."""
    return MarkerEngine(clock)


class TestMark:
    """Tests for MarkerEngine.mark()."""

    def test_important_error_message(self, engine: MarkerEngine, make_message) -> None:
        """Test the reminder-about-an-error scenario."""
        message = make_message(1, Role.USER.value, "Remember, the API returns a 404 error")

        markers = engine.mark(message)

        assert Marker.IMPORTANT_CONTENT in markers
        assert Marker.ERROR_OR_PROBLEM in markers
        assert Marker.QUESTION not in markers
        assert Marker.CODE_CONTENT not in markers

    def test_system_message(self, engine: MarkerEngine, make_message) -> None:
        """Test that system-role messages get the system marker."""
        message = make_message(1, Role.SYSTEM.value, "You are terse.")
        assert Marker.SYSTEM_MESSAGE in engine.mark(message)

    def test_question(self, engine: MarkerEngine, make_message) -> None:
        """Test question detection by mark and by question word."""
        assert Marker.QUESTION in engine.mark(make_message(1, content="Is it done?"))
        assert Marker.QUESTION in engine.mark(make_message(2, content="Tell me how it works"))

    def test_code(self, engine: MarkerEngine, make_message) -> None:
        """Test code detection for fences, inline code and keywords."""
        assert Marker.CODE_CONTENT in engine.mark(make_message(1, content="```\nx = 1\n```"))
        assert Marker.CODE_CONTENT in engine.mark(make_message(2, content="call `run()` now"))
        assert Marker.CODE_CONTENT in engine.mark(make_message(3, content="This function sorts"))

    def test_detailed_content(self, engine: MarkerEngine, make_message) -> None:
        """Test that long messages are marked as detailed."""
        assert Marker.DETAILED_CONTENT in engine.mark(make_message(1, content="word " * 101))
        assert Marker.DETAILED_CONTENT not in engine.mark(make_message(2, content="short"))

    def test_recent_uses_clock(self, engine: MarkerEngine, make_message) -> None:
        """Test that recency is judged against the injected clock."""
        assert Marker.RECENT in engine.mark(make_message(1, hours_ago=23))
        assert Marker.RECENT not in engine.mark(make_message(2, hours_ago=25))
        assert Marker.RECENT not in engine.mark(make_message(3))

    def test_preference_and_reference(self, engine: MarkerEngine, make_message) -> None:
        """Test preference and backward-reference detection."""
        markers = engine.mark(make_message(1, content="As you said earlier, I prefer tea"))
        assert Marker.USER_PREFERENCE in markers
        assert Marker.CONTEXT_REFERENCE in markers

    def test_keywords_anchor_at_word_start(self, engine: MarkerEngine, make_message) -> None:
        """Test that keywords do not match inside other words."""
        assert Marker.IMPORTANT_CONTENT not in engine.mark(make_message(1, content="a monkey"))
        assert Marker.ERROR_OR_PROBLEM in engine.mark(make_message(2, content="it failed"))


class TestPriorityScore:
    """Tests for MarkerEngine.priority_score()."""

    def test_sums_weights(self, engine: MarkerEngine) -> None:
        """Test that known marker weights are summed."""
        score = engine.priority_score({Marker.IMPORTANT_CONTENT, Marker.ERROR_OR_PROBLEM})
        assert score == pytest.approx(1.7)

    def test_capped(self, engine: MarkerEngine) -> None:
        """Test that the score never exceeds 2.0."""
        assert engine.priority_score(set(Marker)) == 2.0

    def test_unknown_tags(self, engine: MarkerEngine) -> None:
        """Test that unknown tags count 0.1 each."""
        assert engine.priority_score({"custom", "other"}) == pytest.approx(0.2)

    def test_string_and_enum_tags_are_the_same(self, engine: MarkerEngine) -> None:
        """Test that a tag given as string and enum is counted once."""
        assert engine.priority_score([Marker.QUESTION, "question"]) == pytest.approx(0.4)

    def test_empty(self, engine: MarkerEngine) -> None:
        """Test that no markers score zero."""
        assert engine.priority_score(set()) == 0.0


class TestReason:
    """Tests for MarkerEngine.reason()."""

    def test_scenario_contains_both_clauses(self, engine: MarkerEngine, make_message) -> None:
        """Test that the reason names both important content and the error."""
        marker_set = engine.marker_set(
            make_message(1, Role.USER.value, "Remember, the API returns a 404 error")
        )

        assert marker_set.reason == "Contains important keywords, Error or problem description"
        assert marker_set.priority_score == pytest.approx(1.7)

    def test_fixed_order(self, engine: MarkerEngine) -> None:
        """Test that clause order does not depend on input order."""
        first = engine.reason([Marker.QUESTION, Marker.SYSTEM_MESSAGE])
        second = engine.reason([Marker.SYSTEM_MESSAGE, Marker.QUESTION])
        assert first == second == "System instruction, Question"

    def test_empty_is_general(self, engine: MarkerEngine) -> None:
        """Test the default reason for an empty marker set."""
        assert engine.reason(set()) == DEFAULT_REASON == "General preservation"


class TestMarkerSet:
    """Tests for MarkerSet."""

    def test_extra_markers_are_included(self, engine: MarkerEngine, make_message) -> None:
        """Test that flow markers passed as extra join the set."""
        marker_set = engine.marker_set(make_message(1, content="ok"), [Marker.TOPIC_CHANGE])

        assert marker_set.has("topic_change")
        assert marker_set.priority_score == pytest.approx(0.2)

    def test_to_dict(self) -> None:
        """Test the dictionary form."""
        marker_set = MarkerSet(
            markers=frozenset({Marker.QUESTION, Marker.CODE_CONTENT}),
            priority_score=1.0,
            reason="Contains code, Question",
        )

        assert marker_set.to_dict() == {
            "markers": ["code_content", "question"],
            "priority_score": 1.0,
            "reason": "Contains code, Question",
        }


class TestFilterByMarkers:
    """Tests for filter_by_markers()."""

    def test_required_and_min_priority(self, engine: MarkerEngine, make_message) -> None:
        """Test filtering on required markers and a priority floor."""
        messages = [
            make_message(1, content="What is this?"),
            make_message(2, content="Important: the build failed"),
            make_message(3, content="ok"),
        ]
        marker_sets = {m.id: engine.marker_set(m) for m in messages}

        assert filter_by_markers(messages, marker_sets, required=[Marker.QUESTION]) == [
            messages[0]
        ]
        assert filter_by_markers(messages, marker_sets, min_priority=1.0) == [messages[1]]

    def test_missing_marker_set_is_dropped(self, engine: MarkerEngine, make_message) -> None:
        """Test that messages without a marker set are excluded."""
        message = make_message(1)
        assert filter_by_markers([message], {}) == []
