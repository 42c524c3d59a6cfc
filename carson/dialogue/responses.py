"""
Short display strings describing each tutoring decision.

These are not the tutor's prose (an external generator writes that); they
are the one-line reasoning the rendering layer shows alongside the next
action, e.g. in a debug panel or as a fallback reply.
"""

from __future__ import annotations

import random

from carson.core.models import AnswerQuality, AssessmentPhase, NextAction

PHASE_LINES: dict[AssessmentPhase, list[str]] = {
    AssessmentPhase.INITIAL_ASSESSMENT: [
        "Let's see where you are with {subtopic}. Walk me through what you know.",
        "Good starting point for {subtopic}. Let me map out what to focus on.",
    ],
    AssessmentPhase.TARGETED_REMEDIATION: [
        "Let's dig into {focus} within {subtopic}.",
        "Next, I want to tighten up {focus}.",
    ],
    AssessmentPhase.APPLICATION: [
        "Let's apply {subtopic} to a patient case.",
        "Time to use {subtopic} clinically. Here's a scenario.",
    ],
    AssessmentPhase.GAP_ACKNOWLEDGMENT: [
        "We won't cover every detail of {subtopic} today: {focus}. Worth reviewing later.",
        "A few finer points of {subtopic} are worth a look on your own: {focus}.",
    ],
}

EXPLAIN_LINES = [
    "No problem. Let me explain {subtopic} step by step.",
    "Let's slow down and go through {subtopic} together.",
]

CUE_LINES = [
    "Here's a hint about {subtopic}: think about {focus}.",
]

CHECK_LINES = [
    "Let's check that {subtopic} landed. Can you say it back in your own words?",
]

COMPLETE_LINES = [
    "That wraps up {subtopic}. On to {next}.",
    "Nice - {subtopic} is done. Next up: {next}.",
]

SPECIFIC_GAP_LINE = " Missing so far: {gaps}."


def compose_reasoning(
    next_action: NextAction,
    phase: AssessmentPhase | None,
    quality: AnswerQuality | None,
    subtopic: str,
    next_subtopic: str | None = None,
    focus: str | None = None,
    specific_gaps: str | None = None,
    rng: random.Random | None = None,
) -> str:
    """Pick the display line for a decision."""
    rng = rng or random.Random()
    values = {
        "subtopic": subtopic,
        "next": next_subtopic or "the next topic",
        "focus": focus or "the key concepts",
    }

    if next_action == NextAction.COMPLETE_SUBTOPIC:
        line = rng.choice(COMPLETE_LINES)
    elif next_action == NextAction.EXPLAIN:
        line = rng.choice(EXPLAIN_LINES)
    elif next_action == NextAction.GIVE_CUE:
        line = rng.choice(CUE_LINES)
    elif next_action == NextAction.CHECK_UNDERSTANDING:
        line = rng.choice(CHECK_LINES)
    elif phase in PHASE_LINES:
        line = rng.choice(PHASE_LINES[phase])
    else:
        line = rng.choice(PHASE_LINES[AssessmentPhase.INITIAL_ASSESSMENT])

    text = line.format(**values)
    if specific_gaps and quality == AnswerQuality.PARTIAL:
        text += SPECIFIC_GAP_LINE.format(gaps=specific_gaps.rstrip("."))
    return text
