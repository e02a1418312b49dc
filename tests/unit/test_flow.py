"""Tests for conversational flow analysis."""

from __future__ import annotations

import pytest

from chat_context.context.flow import FlowAnalyzer, flow_score
from chat_context.context.markers import Marker
from chat_context.messages import Role


@pytest.fixture
def analyzer() -> FlowAnalyzer:
    """Provide a FlowAnalyzer instance."""
    return FlowAnalyzer()


@pytest.fixture
def dialogue(make_message) -> list:
    """Provide a short dialogue with a follow-up and a topic change."""
    return [
        make_message(1, Role.USER.value, "Hello there, can you help?"),
        make_message(2, Role.ASSISTANT.value, "Sure."),
        make_message(3, Role.USER.value, "Also, what about tests?"),
        make_message(4, Role.ASSISTANT.value, "Use pytest."),
        make_message(5, Role.USER.value, "By the way, is it raining?"),
    ]


class TestAnalyze:
    """Tests for FlowAnalyzer.analyze()."""

    def test_question_answer_pairs(self, analyzer: FlowAnalyzer, dialogue: list) -> None:
        """Test that adjacent user/assistant messages form pairs."""
        flow = analyzer.analyze(dialogue)

        assert Marker.QUESTION_IN_PAIR in flow["m1"]
        assert Marker.ANSWER_IN_PAIR in flow["m2"]
        assert Marker.QUESTION_IN_PAIR in flow["m3"]
        assert Marker.ANSWER_IN_PAIR in flow["m4"]
        assert Marker.QUESTION_IN_PAIR not in flow["m5"]

    def test_follow_up_requires_earlier_user_turn(
        self, analyzer: FlowAnalyzer, dialogue: list, make_message
    ) -> None:
        """Test follow-up detection only after a previous user turn."""
        flow = analyzer.analyze(dialogue)
        assert Marker.FOLLOW_UP_QUESTION in flow["m3"]

        alone = analyzer.analyze([make_message(1, Role.USER.value, "Also, one more thing")])
        assert Marker.FOLLOW_UP_QUESTION not in alone["m1"]

    def test_first_message_starts_conversation(self, analyzer: FlowAnalyzer, dialogue: list) -> None:
        """Test that the first message is a conversation starter."""
        flow = analyzer.analyze(dialogue)

        assert Marker.CONVERSATION_STARTER in flow["m1"]
        assert Marker.CONVERSATION_STARTER not in flow["m2"]

    def test_long_gap_restarts_conversation(self, analyzer: FlowAnalyzer, make_message) -> None:
        """Test that a gap over 24 hours marks a restart."""
        messages = [
            make_message(1, Role.USER.value, "first", hours_ago=50),
            make_message(2, Role.ASSISTANT.value, "reply", hours_ago=49),
            make_message(3, Role.USER.value, "back again", hours_ago=1),
        ]
        flow = analyzer.analyze(messages)

        assert Marker.CONVERSATION_STARTER not in flow["m2"]
        assert Marker.CONVERSATION_STARTER in flow["m3"]

    def test_greeting_restarts_conversation(self, analyzer: FlowAnalyzer, make_message) -> None:
        """Test that a greeting opener marks a restart."""
        messages = [
            make_message(1, Role.USER.value, "question"),
            make_message(2, Role.USER.value, "Good morning!"),
        ]
        assert Marker.CONVERSATION_STARTER in analyzer.analyze(messages)["m2"]

    def test_topic_change(self, analyzer: FlowAnalyzer, dialogue: list) -> None:
        """Test that pivot phrases mark a topic change."""
        flow = analyzer.analyze(dialogue)

        assert Marker.TOPIC_CHANGE in flow["m5"]
        assert Marker.TOPIC_CHANGE not in flow["m3"]

    def test_input_order_does_not_matter(self, analyzer: FlowAnalyzer, dialogue: list) -> None:
        """Test that messages are ordered by sequence number first."""
        assert analyzer.analyze(list(reversed(dialogue))) == analyzer.analyze(dialogue)

    def test_empty(self, analyzer: FlowAnalyzer) -> None:
        """Test that an empty conversation has no flow markers."""
        assert analyzer.analyze([]) == {}


class TestFlowScores:
    """Tests for flow score contributions."""

    def test_weights(self) -> None:
        """Test the per-marker flow weights."""
        assert flow_score(frozenset({Marker.QUESTION_IN_PAIR})) == pytest.approx(0.2)
        assert flow_score(frozenset({Marker.ANSWER_IN_PAIR})) == pytest.approx(0.15)
        assert flow_score(
            frozenset({Marker.QUESTION_IN_PAIR, Marker.FOLLOW_UP_QUESTION})
        ) == pytest.approx(0.3)

    def test_unscored_markers(self) -> None:
        """Test that markers without a flow weight contribute nothing."""
        assert flow_score(frozenset({Marker.TOPIC_CHANGE, Marker.CONVERSATION_STARTER})) == 0.0

    def test_flow_scores_per_message(self, analyzer: FlowAnalyzer, dialogue: list) -> None:
        """Test flow scores keyed by message id."""
        scores = analyzer.flow_scores(dialogue)

        assert scores["m3"] == pytest.approx(0.3)
        assert scores["m4"] == pytest.approx(0.15)
        assert scores["m5"] == 0.0
