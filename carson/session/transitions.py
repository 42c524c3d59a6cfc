"""
Session / Transition Manager.

Turns an AssessmentResult into partial session updates: per-turn counters,
the merged triaging delta, and the move to the next subtopic when the
current one completes. Also renders the short transition and celebration
lines shown between subtopics.
"""

from __future__ import annotations

import random
from dataclasses import replace

from loguru import logger

from carson.core.models import (
    AnswerQuality,
    AssessmentResult,
    MasteryStatus,
    NextAction,
    Session,
    SessionUpdate,
    Subtopic,
    SubtopicState,
    TriagingStatus,
)

TRANSITION_TEMPLATES: dict[str, list[str]] = {
    "positive": [
        "Excellent! You've got a solid grasp of {current}. Let's now explore {next}. Are you ready?",
        "Great work on {current}! I can see you understand it well. Now let's dive into {next}. Shall we?",
        "You've mastered {current} beautifully! Time to move on to {next}. Ready for the next challenge?",
        "Perfect understanding of {current}! Let's build on that knowledge with {next}. Are you up for it?",
    ],
    "encouraging": [
        "That's much better! You've worked through {current} really well. Let's now tackle {next}. Ready?",
        "Great progress on {current}! You stuck with it and got there. Now let's explore {next}. Shall we continue?",
        "Well done pushing through {current}! Your persistence paid off. Time for {next}. Are you ready?",
        "Nice work on {current}! I can see the concepts are clicking now. Let's move on to {next}. Shall we?",
    ],
}

CELEBRATIONS = [
    "Congratulations! You've successfully worked through {topic}. Your understanding across all the key areas is impressive.",
    "Fantastic achievement! You've worked through every aspect of {topic} with dedication and skill.",
    "Excellent work! You've demonstrated comprehensive understanding of {topic}. Well done!",
    "Outstanding! You've conquered {topic} and should feel proud of your progress and persistence.",
]

NEXT_STATE: dict[NextAction, SubtopicState] = {
    NextAction.CONTINUE_CONVERSATION: SubtopicState.ASSESSING,
    NextAction.GIVE_CUE: SubtopicState.ASSESSING,
    NextAction.EXPLAIN: SubtopicState.EXPLAINING,
    NextAction.CHECK_UNDERSTANDING: SubtopicState.CHECKING,
    NextAction.COMPLETE_SUBTOPIC: SubtopicState.COMPLETE,
}


def update_session_after_assessment(session: Session, result: AssessmentResult) -> SessionUpdate:
    """
    Counter and triaging updates for one graded turn.

    Turns that were handled as non-learning interactions change nothing.
    """
    if not result.was_assessed:
        return SessionUpdate()

    is_correct = result.quality.is_correct
    index = session.clamped_index
    subtopic = session.current_subtopic

    update = SessionUpdate(
        questions_asked_in_current_subtopic=session.questions_asked_in_current_subtopic + 1,
        correct_answers_in_current_subtopic=session.correct_answers_in_current_subtopic + int(is_correct),
        subtopic_state=NEXT_STATE[result.next_action],
    )
    if subtopic is None:
        return update

    status = subtopic.triaging_status
    if result.status_update is not None:
        status = status.merge(result.status_update)

    needs_explanation = result.quality in (AnswerQuality.INCORRECT, AnswerQuality.CONFUSED)
    updated = replace(
        subtopic,
        questions_asked=subtopic.questions_asked + 1,
        correct_answers=subtopic.correct_answers + int(is_correct),
        needs_explanation=subtopic.needs_explanation or needs_explanation,
        status=_mastery_from_quality(subtopic.status, result.quality),
        triaging_status=status,
    )
    return replace(update, subtopics=session.with_subtopic(index, updated))


def _mastery_from_quality(current: MasteryStatus, quality: AnswerQuality) -> MasteryStatus:
    if current == MasteryStatus.UNDERSTOOD:
        return current
    if quality.is_correct:
        return MasteryStatus.SHAKY
    if quality == AnswerQuality.PARTIAL:
        return MasteryStatus.SHAKY if current == MasteryStatus.SHAKY else MasteryStatus.GAP
    return MasteryStatus.GAP


def transition_to_next_subtopic(session: Session, completed_index: int) -> SessionUpdate:
    """
    Mark a subtopic understood and move to the next one.

    The next subtopic starts from a fresh TriagingStatus and zeroed counters.
    Conversation history is kept for retention questions.
    """
    if not session.subtopics:
        logger.warning("Transition requested on a session with no subtopics")
        return SessionUpdate(is_complete=True)

    completed_index = min(max(completed_index, 0), len(session.subtopics) - 1)
    completed = replace(session.subtopics[completed_index], status=MasteryStatus.UNDERSTOOD)
    subtopics = session.with_subtopic(completed_index, completed)
    next_index = completed_index + 1

    if next_index >= len(subtopics):
        logger.info(f"Session {session.session_id[:8]} complete: all {len(subtopics)} subtopics done")
        return SessionUpdate(
            subtopics=subtopics,
            is_complete=True,
            subtopic_state=SubtopicState.COMPLETE,
        )

    fresh = replace(
        subtopics[next_index],
        triaging_status=TriagingStatus.initial(),
        questions_asked=0,
        correct_answers=0,
        needs_explanation=False,
        status=MasteryStatus.UNASSESSED,
    )
    subtopics = subtopics[:next_index] + (fresh,) + subtopics[next_index + 1:]

    logger.info(f"Advancing to subtopic {next_index + 1}/{len(subtopics)}: {fresh.title}")
    return SessionUpdate(
        subtopics=subtopics,
        current_subtopic_index=next_index,
        questions_asked_in_current_subtopic=0,
        correct_answers_in_current_subtopic=0,
        subtopic_state=SubtopicState.ASSESSING,
    )


def assess_performance(subtopic: Subtopic) -> str:
    """Summarize how a subtopic went: excellent, good or struggled."""
    if subtopic.needs_explanation:
        return "struggled"
    if subtopic.correct_answers >= 3 and subtopic.questions_asked <= 3:
        return "excellent"
    return "good"


def transition_message(session: Session, completed_index: int, rng: random.Random) -> str:
    """Line shown when leaving a subtopic (or the whole topic)."""
    if completed_index + 1 >= len(session.subtopics):
        return celebration_message(session.topic, rng)

    current = session.subtopics[completed_index]
    upcoming = session.subtopics[completed_index + 1]
    bank = "encouraging" if assess_performance(current) == "struggled" else "positive"
    return rng.choice(TRANSITION_TEMPLATES[bank]).format(current=current.title, next=upcoming.title)


def celebration_message(topic: str, rng: random.Random) -> str:
    return rng.choice(CELEBRATIONS).format(topic=topic)
