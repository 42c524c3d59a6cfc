"""
Gap Prioritizer.

Ranks knowledge gaps and bounds how many are surfaced to the student at
once. Each gap gets a 0-100 score:

    clinical risk        0-40   dangerous or safety-relevant content
    foundational concept 0-30   things later material builds on
    recent confusion     0-20   the student struggled in the last few turns
    high yield           0-10   commonly examined material

Selection keeps up to 3 critical gaps, fills to at most 4 with important
gaps, and adds one minor gap only when fewer than 3 were selected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from loguru import logger

from carson.core.models import Gap, GapAnalysis, GapSeverity, Message
from carson.dialogue.detectors import is_struggling

RISK_KEYWORDS = (
    "danger", "life-threatening", "rupture", "hemorrhage", "bleeding", "shock", "sepsis",
    "death", "mortality", "emergency", "urgent", "contraindicat", "misconception",
    "unsafe", "toxicity", "overdose", "missed diagnosis", "delay", "instability",
)
FOUNDATIONAL_KEYWORDS = (
    "fundamental", "core", "basic", "foundation", "mechanism", "pathophysiology",
    "definition", "concept", "anatomy", "physiology", "principle", "understanding",
)
HIGH_YIELD_KEYWORDS = (
    "risk factor", "first-line", "classic", "presentation", "diagnos", "treatment",
    "management", "most common", "hallmark", "red flag",
)

RISK_POINTS, RISK_CAP = 20, 40
FOUNDATIONAL_POINTS, FOUNDATIONAL_CAP = 15, 30
HIGH_YIELD_POINTS, HIGH_YIELD_CAP = 5, 10
CONFUSION_POINTS, CONFUSION_OVERLAP_POINTS, CONFUSION_CAP = 5, 5, 20

MAX_CRITICAL = 3
MAX_WITH_IMPORTANT = 4
MINOR_ONLY_BELOW = 3

STOPWORDS = frozenset({
    "the", "and", "for", "with", "that", "this", "from", "need", "needs", "could",
    "more", "some", "about", "into", "their", "they", "what", "when", "which",
})


@dataclass(frozen=True)
class PrioritizedGap:
    """A gap with its priority score and how it was earned."""
    description: str
    severity: GapSeverity
    score: int
    breakdown: dict[str, int] = field(default_factory=dict)


def _keyword_hits(text: str, keywords: Iterable[str]) -> int:
    return sum(1 for keyword in keywords if keyword in text)


def _significant_words(text: str) -> set[str]:
    return {word for word in re.findall(r"[a-z][a-z\-]+", text) if len(word) >= 4 and word not in STOPWORDS}


def confusion_score(description: str, history: Sequence[Message], window: int = 6) -> int:
    """
    Points for confusion the student showed in the last ``window`` turns.

    Each struggling student turn is worth 5 points, plus 5 more if it shares
    a significant word with the gap.
    """
    gap_words = _significant_words(description.lower())
    points = 0

    for message in list(history)[-window:]:
        if message.role != "user" or not is_struggling(message.content):
            continue
        points += CONFUSION_POINTS
        if gap_words & _significant_words(message.content.lower()):
            points += CONFUSION_OVERLAP_POINTS

    return min(points, CONFUSION_CAP)


def score_gap(gap: Gap, history: Sequence[Message] = (), window: int = 6) -> PrioritizedGap:
    """Score a single gap on the 0-100 scale."""
    text = gap.description.lower()
    breakdown = {
        "risk": min(_keyword_hits(text, RISK_KEYWORDS) * RISK_POINTS, RISK_CAP),
        "foundational": min(_keyword_hits(text, FOUNDATIONAL_KEYWORDS) * FOUNDATIONAL_POINTS, FOUNDATIONAL_CAP),
        "confusion": confusion_score(gap.description, history, window),
        "high_yield": min(_keyword_hits(text, HIGH_YIELD_KEYWORDS) * HIGH_YIELD_POINTS, HIGH_YIELD_CAP),
    }
    return PrioritizedGap(
        description=gap.description,
        severity=gap.severity,
        score=sum(breakdown.values()),
        breakdown=breakdown,
    )


def prioritize_gaps(
    gaps: Iterable[Gap],
    history: Sequence[Message] = (),
    window: int = 6,
) -> list[PrioritizedGap]:
    """
    Rank gaps and select the few worth surfacing now.

    Args:
        gaps: Severity-tagged gaps, any number
        history: Conversation so far, newest last
        window: How many recent turns count as recent confusion

    Returns:
        At most 4 gaps (never more than 5), critical first, each bucket by
        descending score
    """
    seen: set[str] = set()
    by_severity: dict[GapSeverity, list[PrioritizedGap]] = {severity: [] for severity in GapSeverity}

    for gap in gaps:
        key = gap.description.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        by_severity[gap.severity].append(score_gap(gap, history, window))

    for bucket in by_severity.values():
        bucket.sort(key=lambda item: item.score, reverse=True)

    selected = by_severity[GapSeverity.CRITICAL][:MAX_CRITICAL]
    selected += by_severity[GapSeverity.IMPORTANT][:max(0, MAX_WITH_IMPORTANT - len(selected))]
    if len(selected) < MINOR_ONLY_BELOW:
        selected += by_severity[GapSeverity.MINOR][:1]

    logger.debug(f"Surfacing {len(selected)} of {len(seen)} gaps")
    return selected


def prioritize_analysis(
    analysis: GapAnalysis,
    history: Sequence[Message] = (),
    window: int = 6,
) -> list[PrioritizedGap]:
    """Prioritize every gap in a GapAnalysis."""
    return prioritize_gaps(analysis.gaps(), history, window)
