"""
Subtopic requirement policy.

Derives the question budget for a subtopic from its title. Knowledge-style
subtopics (mechanisms, definitions) get a smaller budget and skip the
clinical application question; everything else is tested in application.
"""

from __future__ import annotations

from carson.core.models import SubtopicRequirements

KNOWLEDGE_MARKERS = ("pathophysio", "mechanism", "definition")
CLINICAL_MARKERS = ("management", "treatment", "diagnos", "presentation")

DEFAULT_REQUIREMENTS = SubtopicRequirements(
    max_questions=8,
    min_questions_for_mastery=3,
    must_test_application=True,
)


def requirements_for(subtopic_title: str, topic: str = "") -> SubtopicRequirements:
    """
    Compute requirements for a subtopic.

    Args:
        subtopic_title: Subtopic title, matched case-insensitively
        topic: Parent topic (currently unused by the policy)

    Returns:
        SubtopicRequirements for the subtopic
    """
    title = (subtopic_title or "").lower()

    if any(marker in title for marker in KNOWLEDGE_MARKERS):
        return SubtopicRequirements(
            max_questions=6,
            min_questions_for_mastery=2,
            must_test_application=False,
        )

    if any(marker in title for marker in CLINICAL_MARKERS):
        return SubtopicRequirements(
            max_questions=8,
            min_questions_for_mastery=3,
            must_test_application=True,
        )

    return DEFAULT_REQUIREMENTS
