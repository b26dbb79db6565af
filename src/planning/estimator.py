"""
Similarity-based time estimation for the planning engine.

Ranks historical completions by how closely they resemble an item and
derives a duration estimate and confidence from the best matches.

Similarity per completion (first rule that applies wins):
    exact description match (case-insensitive): 1.0
    otherwise: (0.5 project + 0.1 priority + 0.4 * keyword_jaccard) * recency

Estimate:
    hours = weighted mean of actual hours (weights = similarity) * 1.15
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set

from src.core.models import Item, HistoricalCompletion, ensure_utc


logger = logging.getLogger(__name__)

MATCH_EXACT = "exact"
MATCH_PROJECT = "project"
MATCH_KEYWORDS = "keywords"
MATCH_NONE = "none"

SOURCE_HISTORICAL = "historical"
SOURCE_DEFAULT = "default"

NO_HISTORY_REASON = "No historical data available"

PROJECT_WEIGHT = 0.5
PRIORITY_WEIGHT = 0.1
KEYWORD_WEIGHT = 0.4

ESTIMATE_BUFFER = 0.15
MAX_MATCHES = 10

# (max age in days, multiplier); anything older gets OLD_ENTRY_DECAY
RECENCY_DECAY = (
    (30.0, 1.0),
    (90.0, 0.8),
    (180.0, 0.6),
)
OLD_ENTRY_DECAY = 0.4

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or",
    "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as",
    "is", "was", "are", "were", "been",
})

TOKEN_PUNCTUATION = ".,!?;:\"'()-[]{}/*"

FALLBACK_ESTIMATES = {
    "H": (3.0, "High priority task estimate"),
    "M": (2.0, "Medium priority task estimate"),
    "L": (1.0, "Low priority task estimate"),
    "": (2.0, "Default task estimate"),
}

COUNT_WORDS = {1: "one", 2: "two", 3: "three", 4: "four", 5: "five"}


@dataclass
class SimilarityScore:
    """How closely a historical completion resembles an item."""
    completion: HistoricalCompletion
    score: float
    match_type: str = MATCH_NONE


@dataclass
class Estimate:
    """Time estimate with its explanation and confidence (0.0-1.0)."""
    hours: float
    reason: str
    confidence: float = 0.0
    source: str = SOURCE_HISTORICAL
    matches: List[SimilarityScore] = field(default_factory=list)


def tokenize_description(description: str) -> List[str]:
    """
    Split a description into lowercase keywords, dropping short and stop words.

    A word is short when its UTF-8 encoding is two bytes or fewer.
    """
    words = []
    for word in description.lower().split():
        word = word.strip(TOKEN_PUNCTUATION)
        if len(word.encode("utf-8")) > 2 and word not in STOP_WORDS:
            words.append(word)
    return words


def keyword_similarity(first: str, second: str) -> float:
    """Jaccard similarity of the keyword sets of two descriptions."""
    words1: Set[str] = set(tokenize_description(first))
    words2: Set[str] = set(tokenize_description(second))

    if not words1 or not words2:
        return 0.0

    union = words1 | words2
    return len(words1 & words2) / len(union)


def recency_factor(completed_at: Optional[datetime], now: datetime) -> float:
    """Decay multiplier for older completions."""
    if completed_at is None:
        return OLD_ENTRY_DECAY

    age_days = (ensure_utc(now) - ensure_utc(completed_at)).total_seconds() / 86400.0
    for max_days, factor in RECENCY_DECAY:
        if age_days < max_days:
            return factor
    return OLD_ENTRY_DECAY


def score_completion(
    item: Item,
    completion: HistoricalCompletion,
    now: Optional[datetime] = None
) -> SimilarityScore:
    """
    Score one historical completion against an item.

    Args:
        item: Item being estimated
        completion: Candidate historical completion
        now: Current datetime for recency decay (defaults to utcnow)

    Returns:
        SimilarityScore; an exact description match always scores 1.0
    """
    if now is None:
        now = datetime.now(timezone.utc)

    # Exact match short-circuits every other factor, recency included
    if item.description.lower() == completion.description.lower():
        return SimilarityScore(completion=completion, score=1.0, match_type=MATCH_EXACT)

    score = 0.0
    match_type = MATCH_NONE

    if item.project and item.project == completion.project:
        score += PROJECT_WEIGHT
        match_type = MATCH_PROJECT

    if item.priority and item.priority == completion.priority:
        score += PRIORITY_WEIGHT

    keywords = keyword_similarity(item.description, completion.description)
    if keywords > 0:
        score += keywords * KEYWORD_WEIGHT
        if match_type == MATCH_NONE:
            match_type = MATCH_KEYWORDS

    score *= recency_factor(completion.completed_at, now)

    return SimilarityScore(completion=completion, score=score, match_type=match_type)


def calculate_confidence(matches: List[SimilarityScore]) -> float:
    """
    Confidence (0.0-1.0) in an estimate built from the given matches.

    More matches, stronger match types and higher average similarity all
    raise confidence.
    """
    if not matches:
        return 0.0

    confidence = min(len(matches) / 5.0, 1.0) * 0.3

    match_types = {match.match_type for match in matches}
    if MATCH_EXACT in match_types:
        confidence += 0.4
    elif MATCH_PROJECT in match_types:
        confidence += 0.3
    elif MATCH_KEYWORDS in match_types:
        confidence += 0.2

    average = sum(match.score for match in matches) / len(matches)
    confidence += average * 0.3

    return max(0.0, min(1.0, confidence))


def build_estimate_reason(matches: List[SimilarityScore]) -> str:
    """Human-readable summary of the matches behind an estimate."""
    match_types = {match.match_type for match in matches}
    parts = []
    if MATCH_EXACT in match_types:
        parts.append("exact matches")
    if MATCH_PROJECT in match_types:
        parts.append("same project")
    if MATCH_KEYWORDS in match_types:
        parts.append("similar keywords")

    description = " and ".join(parts) if parts else "similar characteristics"
    count = len(matches)
    count_text = COUNT_WORDS.get(count, str(count))
    noun = "task" if count == 1 else "tasks"
    return f"{description.capitalize()} from {count_text} similar {noun}"


def fallback_estimate(item: Item) -> Estimate:
    """Priority-keyed default used when completion history cannot be read."""
    hours, reason = FALLBACK_ESTIMATES.get(item.priority, FALLBACK_ESTIMATES[""])
    return Estimate(hours=hours, reason=reason, confidence=0.0, source=SOURCE_DEFAULT)


class SimilarityEstimator:
    """
    Estimates item duration from similar historical completions.

    Narrows history to usable candidates, scores them, keeps the best
    matches and returns a buffered, similarity-weighted mean.
    """

    def __init__(self, max_matches: int = MAX_MATCHES, buffer: float = ESTIMATE_BUFFER):
        """
        Initialize estimator.

        Args:
            max_matches: Number of best matches that contribute to an estimate
            buffer: Fractional buffer added on top of the weighted mean
        """
        self.max_matches = max_matches
        self.buffer = buffer

    def candidates(
        self,
        item: Item,
        history: Iterable[HistoricalCompletion]
    ) -> List[HistoricalCompletion]:
        """Usable completions from the item's project or with no project."""
        return [
            completion for completion in history
            if completion.is_usable()
            and (not item.project or completion.project in (item.project, ""))
        ]

    def find_similar(
        self,
        item: Item,
        history: Iterable[HistoricalCompletion],
        now: Optional[datetime] = None
    ) -> List[SimilarityScore]:
        """
        Rank candidate completions by similarity.

        Returns:
            Up to max_matches scores above zero, highest first
        """
        if now is None:
            now = datetime.now(timezone.utc)

        scores = [
            score_completion(item, completion, now)
            for completion in self.candidates(item, history)
        ]
        scores = [score for score in scores if score.score > 0]

        # Stable sort keeps store order (newest first) among equal scores
        scores.sort(key=lambda s: s.score, reverse=True)
        return scores[:self.max_matches]

    def estimate(
        self,
        item: Item,
        history: Iterable[HistoricalCompletion],
        now: Optional[datetime] = None
    ) -> Estimate:
        """
        Estimate an item's duration from historical completions.

        Args:
            item: Item to estimate
            history: Historical completions to compare against
            now: Current datetime for recency decay

        Returns:
            Estimate; zero hours with "No historical data available" when
            nothing similar exists
        """
        matches = self.find_similar(item, history, now)

        if not matches:
            logger.debug("No similar completions for %r", item.description)
            return Estimate(hours=0.0, reason=NO_HISTORY_REASON, confidence=0.0)

        total_weight = sum(match.score for match in matches)
        weighted_sum = sum(match.completion.actual_hours * match.score for match in matches)
        hours = weighted_sum / total_weight * (1.0 + self.buffer)

        reason = build_estimate_reason(matches)
        reason += f" (with {self.buffer * 100:.0f}% buffer)"

        confidence = calculate_confidence(matches)
        logger.debug(
            "Estimated %r at %.2fh from %d matches (confidence %.2f)",
            item.description, hours, len(matches), confidence
        )

        return Estimate(
            hours=hours,
            reason=reason,
            confidence=confidence,
            source=SOURCE_HISTORICAL,
            matches=matches,
        )
