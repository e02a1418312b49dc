"""Tests for search-based relevance retrieval."""

from __future__ import annotations

import logging

import pytest

from chat_context.context.relevance import (
    RelevanceResult,
    RelevanceRetriever,
    ScoredMessage,
    extract_search_terms,
)
from chat_context.messages import Role


class TestExtractSearchTerms:
    """Tests for extract_search_terms()."""

    def test_what_was_my(self) -> None:
        """Test the backward-reference pattern."""
        assert extract_search_terms("What was my favorite color?") == [["favorite", "color"]]

    def test_remember_when(self) -> None:
        """Test that overlapping patterns yield one group."""
        assert extract_search_terms("Remember when we discussed deployment?") == [["deployment"]]

    def test_tell_me_more(self) -> None:
        """Test the expansion request pattern."""
        assert extract_search_terms("Tell me more about async generators") == [
            ["async", "generators"]
        ]

    def test_quoted_terms(self) -> None:
        """Test that quoted literals form a group."""
        assert extract_search_terms('Find the "connection pool" settings') == [
            ["connection", "pool"]
        ]

    def test_fallback_salient_words(self) -> None:
        """Test the fallback when no pattern matches."""
        assert extract_search_terms("Kubernetes deployment strategies explained simply") == [
            ["kubernetes", "deployment", "strategies"]
        ]

    def test_nothing_to_search(self) -> None:
        """Test that short messages yield no term groups."""
        assert extract_search_terms("ok") == []


class TestFindRelevantContext:
    """Tests for RelevanceRetriever.find_relevant_context()."""

    def test_favorite_color_scenario(
        self, clock, search_factory, favorite_color_history, favorite_color_query
    ) -> None:
        """Test that the preference statement is retrieved with high relevance."""
        retriever = RelevanceRetriever(search_factory(favorite_color_history), clock)

        result = retriever.find_relevant_context("conv-1", favorite_color_query)

        assert result.search_performed is True
        assert result.search_terms == [["favorite", "color"]]
        assert [m.id for m in result.relevant_messages] == ["m1"]
        assert result.relevance_scores["m1"] >= 0.7

    def test_query_message_is_skipped(
        self, clock, search_factory, favorite_color_history, favorite_color_query
    ) -> None:
        """Test that the current message never counts as relevant to itself."""
        client = search_factory([*favorite_color_history, favorite_color_query])
        retriever = RelevanceRetriever(client, clock)

        result = retriever.find_relevant_context("conv-1", favorite_color_query)

        assert favorite_color_query.id not in result.relevance_scores

    def test_threshold_filters(
        self, clock, search_factory, favorite_color_history, favorite_color_query
    ) -> None:
        """Test that candidates below the threshold are dropped."""
        retriever = RelevanceRetriever(search_factory(favorite_color_history), clock)

        result = retriever.find_relevant_context(
            "conv-1", favorite_color_query, threshold=1.0
        )
        assert result.total_found == 1

        none_found = retriever.find_relevant_context(
            "conv-1", favorite_color_query, threshold=1.0, search_limit=0
        )
        assert none_found.total_found == 0

    def test_sorted_by_relevance(self, clock, search_factory, make_message) -> None:
        """Test that results are ordered most relevant first."""
        history = [
            make_message(1, Role.ASSISTANT.value, "the deploy script is in ci"),
            make_message(2, Role.USER.value, "my deploy script fails"),
        ]
        query = make_message(3, Role.USER.value, "Tell me more about deploy script")
        retriever = RelevanceRetriever(search_factory(history), clock)

        result = retriever.find_relevant_context("conv-1", query, threshold=0.0)

        assert [m.id for m in result.relevant_messages] == ["m2", "m1"]

    def test_without_search_client(self, clock, favorite_color_query) -> None:
        """Test that no search is performed without a collaborator."""
        result = RelevanceRetriever(None, clock).find_relevant_context(
            "conv-1", favorite_color_query
        )

        assert result.search_performed is False
        assert result.messages == []
        assert result.search_terms == [["favorite", "color"]]

    def test_no_terms_skips_search(self, clock, search_factory, make_message) -> None:
        """Test that the search collaborator is not called without terms."""
        client = search_factory([])
        result = RelevanceRetriever(client, clock).find_relevant_context(
            "conv-1", make_message(1, content="ok")
        )

        assert client.queries == []
        assert result.search_performed is False

    def test_search_failure_degrades(
        self, clock, failing_search, favorite_color_query, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that a failing collaborator yields an empty result and a warning."""
        retriever = RelevanceRetriever(failing_search, clock)

        with caplog.at_level(logging.WARNING, logger="chat_context.context.relevance"):
            result = retriever.find_relevant_context("conv-1", favorite_color_query)

        assert failing_search.calls == 1
        assert result.search_performed is False
        assert result.messages == []
        assert "Search failed" in caplog.text


class TestRelevance:
    """Tests for RelevanceRetriever.relevance()."""

    def test_components(self, clock, make_message) -> None:
        """Test term ratio, phrase, role and length contributions."""
        retriever = RelevanceRetriever(None, clock)
        query = make_message(10, Role.USER.value, "what was my favorite color")

        partial = make_message(1, Role.ASSISTANT.value, "color theory")
        assert retriever.relevance(partial, query, ["favorite", "color"]) == pytest.approx(0.35)

        long_user = make_message(2, Role.USER.value, "favorite color " + "x" * 200)
        assert retriever.relevance(long_user, query, ["favorite", "color"]) == pytest.approx(1.0)

    def test_both_questions_bonus(self, clock, make_message) -> None:
        """Test the bonus when both messages are user questions."""
        retriever = RelevanceRetriever(None, clock)
        query = make_message(10, Role.USER.value, "is the cache warm?")
        candidate = make_message(1, Role.USER.value, "why is the cache cold?")

        assert retriever.relevance(candidate, query, ["cache", "warm"]) == pytest.approx(0.55)


class TestRelevanceResult:
    """Tests for RelevanceResult."""

    def test_statistics(self, make_message) -> None:
        """Test the summary statistics."""
        result = RelevanceResult(
            messages=[
                ScoredMessage(make_message(1), 0.9),
                ScoredMessage(make_message(2), 0.7),
            ],
            search_terms=[["deploy", "script"], ["ci"]],
            search_performed=True,
        )

        stats = result.statistics()

        assert stats["relevant_messages_found"] == 2
        assert stats["search_terms_count"] == 3
        assert stats["avg_relevance_score"] == pytest.approx(0.8)
        assert stats["max_relevance_score"] == 0.9
        assert stats["min_relevance_score"] == 0.7

    def test_empty_statistics(self) -> None:
        """Test statistics of an empty result."""
        stats = RelevanceResult().statistics()

        assert stats["relevant_messages_found"] == 0
        assert stats["avg_relevance_score"] == 0.0
