"""
Unit tests for the estimator module.
Tests similarity scoring, confidence and time estimates.
"""

import pytest
from datetime import datetime, timedelta, timezone

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from src.core.models import Item, HistoricalCompletion
from src.planning.estimator import (
    SimilarityEstimator,
    SimilarityScore,
    MATCH_EXACT,
    MATCH_PROJECT,
    MATCH_KEYWORDS,
    MATCH_NONE,
    NO_HISTORY_REASON,
    SOURCE_DEFAULT,
    tokenize_description,
    keyword_similarity,
    recency_factor,
    score_completion,
    calculate_confidence,
    build_estimate_reason,
    fallback_estimate,
)


NOW = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)


def completion(description, project="", priority="", actual=1.0, days_ago=1, uid=None):
    return HistoricalCompletion(
        id=uid or description,
        description=description,
        project=project,
        priority=priority,
        estimated_hours=actual,
        actual_hours=actual,
        completed_at=NOW - timedelta(days=days_ago),
    )


class TestTokenization:
    """Tests for keyword extraction."""

    def test_drops_stop_words_short_words_and_punctuation(self):
        words = tokenize_description("Write the API docs, for v2!")
        assert words == ["write", "api", "docs"]

    def test_short_word_length_counts_utf8_bytes(self):
        # "çà" is two characters but four bytes
        assert tokenize_description("çà va") == ["çà"]

    def test_keyword_similarity_is_jaccard(self):
        # {write, quarterly, report} vs {review, quarterly, report}: 2 / 4
        assert keyword_similarity("Write quarterly report", "Review quarterly report") == pytest.approx(0.5)

    def test_keyword_similarity_empty(self):
        assert keyword_similarity("a an", "write report") == 0.0


class TestRecencyFactor:
    """Tests for recency decay."""

    @pytest.mark.parametrize("days_ago,expected", [
        (1, 1.0), (29, 1.0), (30, 0.8), (89, 0.8), (90, 0.6), (179, 0.6), (180, 0.4), (400, 0.4),
    ])
    def test_decay_bands(self, days_ago, expected):
        assert recency_factor(NOW - timedelta(days=days_ago), NOW) == expected

    def test_missing_timestamp_treated_as_old(self):
        assert recency_factor(None, NOW) == 0.4


class TestScoreCompletion:
    """Tests for per-completion similarity scoring."""

    def test_exact_match_short_circuits(self):
        """Exact description match scores exactly 1.0 even when old and off-project."""
        item = Item(id="t", description="Write Report", project="work", priority="H")
        old = completion("write report", project="", priority="L", days_ago=500)

        score = score_completion(item, old, NOW)

        assert score.score == 1.0
        assert score.match_type == MATCH_EXACT

    def test_project_priority_and_keywords(self):
        item = Item(id="t", description="Write quarterly report", project="work", priority="M")
        past = completion("Review quarterly report", project="work", priority="M", days_ago=5)

        score = score_completion(item, past, NOW)

        assert score.score == pytest.approx(0.5 + 0.1 + 0.4 * 0.5)
        assert score.match_type == MATCH_PROJECT

    def test_keywords_only(self):
        item = Item(id="t", description="Write quarterly report")
        past = completion("Review quarterly report", days_ago=5)

        score = score_completion(item, past, NOW)

        assert score.score == pytest.approx(0.2)
        assert score.match_type == MATCH_KEYWORDS

    def test_recency_applied(self):
        item = Item(id="t", description="Fix login bug", project="web")
        past = completion("Deploy staging", project="web", days_ago=100)

        score = score_completion(item, past, NOW)

        assert score.score == pytest.approx(0.5 * 0.6)

    def test_nothing_in_common(self):
        item = Item(id="t", description="Plan vacation")
        past = completion("Fix login bug", days_ago=1)

        score = score_completion(item, past, NOW)

        assert score.score == 0.0
        assert score.match_type == MATCH_NONE


class TestConfidence:
    """Tests for confidence calculation."""

    def test_no_matches(self):
        assert calculate_confidence([]) == 0.0

    def test_single_exact_match(self):
        match = SimilarityScore(completion=completion("x"), score=1.0, match_type=MATCH_EXACT)
        # 0.3 * 1/5 + 0.4 + 0.3 * 1.0
        assert calculate_confidence([match]) == pytest.approx(0.76)

    def test_clamped_to_one(self):
        matches = [
            SimilarityScore(completion=completion(f"x{i}"), score=1.0, match_type=MATCH_EXACT)
            for i in range(10)
        ]
        assert calculate_confidence(matches) == 1.0


class TestEstimateReason:
    """Tests for reason text."""

    def test_describes_match_kinds_and_count(self):
        matches = [
            SimilarityScore(completion=completion("a"), score=1.0, match_type=MATCH_EXACT),
            SimilarityScore(completion=completion("b"), score=0.5, match_type=MATCH_PROJECT),
            SimilarityScore(completion=completion("c"), score=0.5, match_type=MATCH_PROJECT),
        ]
        assert build_estimate_reason(matches) == "Exact matches and same project from three similar tasks"

    def test_large_counts_use_digits(self):
        matches = [
            SimilarityScore(completion=completion(str(i)), score=0.2, match_type=MATCH_KEYWORDS)
            for i in range(7)
        ]
        assert build_estimate_reason(matches) == "Similar keywords from 7 similar tasks"


class TestSimilarityEstimator:
    """Tests for SimilarityEstimator.estimate()."""

    def test_no_history(self):
        """No history gives a zero estimate with zero confidence."""
        estimate = SimilarityEstimator().estimate(Item(id="t", description="Anything"), [], NOW)

        assert estimate.hours == 0.0
        assert estimate.reason == NO_HISTORY_REASON
        assert estimate.confidence == 0.0

    def test_no_similar_history(self):
        history = [completion("Fix login bug", actual=3.0)]

        estimate = SimilarityEstimator().estimate(Item(id="t", description="Plan vacation"), history, NOW)

        assert estimate.hours == 0.0
        assert estimate.reason == NO_HISTORY_REASON

    def test_weighted_mean_with_buffer(self):
        item = Item(id="t", description="Write report", project="work")
        history = [
            completion("Write report", project="work", actual=2.0),       # exact, score 1.0
            completion("Deploy service", project="work", actual=4.0),     # project only, score 0.5
        ]

        estimate = SimilarityEstimator().estimate(item, history, NOW)

        expected = (2.0 * 1.0 + 4.0 * 0.5) / 1.5 * 1.15
        assert estimate.hours == pytest.approx(expected)
        assert estimate.reason.endswith("(with 15% buffer)")
        assert len(estimate.matches) == 2
        assert estimate.matches[0].match_type == MATCH_EXACT

    def test_ignores_unusable_and_other_projects(self):
        item = Item(id="t", description="Write report", project="work")
        history = [
            completion("Write report", project="home", actual=9.0),
            HistoricalCompletion(id="z", description="Write report", project="work", actual_hours=0.0),
            completion("Write report", project="", actual=1.0),
        ]

        estimate = SimilarityEstimator().estimate(item, history, NOW)

        assert len(estimate.matches) == 1
        assert estimate.hours == pytest.approx(1.15)

    def test_keeps_top_matches(self):
        item = Item(id="t", description="Write report", project="work")
        history = [completion("Write report", project="work", uid=f"h{i}") for i in range(15)]

        estimator = SimilarityEstimator(max_matches=10)

        assert len(estimator.find_similar(item, history, NOW)) == 10

    def test_ties_keep_history_order(self):
        item = Item(id="t", description="Write report")
        history = [completion("write report", uid="newer"), completion("WRITE REPORT", uid="older")]

        matches = SimilarityEstimator().find_similar(item, history, NOW)

        assert [m.completion.id for m in matches] == ["newer", "older"]


class TestFallbackEstimate:
    """Tests for priority-based default estimates."""

    @pytest.mark.parametrize("priority,hours", [("H", 3.0), ("M", 2.0), ("L", 1.0), ("", 2.0)])
    def test_fallback_by_priority(self, priority, hours):
        estimate = fallback_estimate(Item(id="t", priority=priority))

        assert estimate.hours == hours
        assert estimate.confidence == 0.0
        assert estimate.source == SOURCE_DEFAULT
