"""
Unit tests for session transitions and retention questions.
"""

import random
from dataclasses import replace

import pytest

from carson.core.models import (
    AnswerQuality,
    AssessmentPhase,
    AssessmentResult,
    GapAnalysis,
    InteractionType,
    MasteryStatus,
    NextAction,
    Session,
    SubtopicState,
    TriagingStatus,
    TriagingStatusDelta,
)
from carson.session.retention import RetentionPolicy, RetentionTest
from carson.session.transitions import (
    assess_performance,
    celebration_message,
    transition_message,
    transition_to_next_subtopic,
    update_session_after_assessment,
)


def _graded(quality, next_action=NextAction.CONTINUE_CONVERSATION, delta=None):
    return AssessmentResult(
        quality=quality,
        next_action=next_action,
        reasoning="line",
        phase=AssessmentPhase.INITIAL_ASSESSMENT,
        status_update=delta,
    )


class TestUpdateSessionAfterAssessment:
    """Tests for per-turn counter updates."""

    def test_correct_answer_counts(self, ectopic_session):
        delta = TriagingStatusDelta(
            questions_used=1,
            has_initial_assessment=True,
            gap_analysis=GapAnalysis(critical_gaps=("Misses rupture risk",)),
        )

        update = update_session_after_assessment(ectopic_session, _graded(AnswerQuality.GOOD, delta=delta))
        session = ectopic_session.apply(update)

        subtopic = session.subtopics[0]
        assert session.questions_asked_in_current_subtopic == 1
        assert session.correct_answers_in_current_subtopic == 1
        assert subtopic.questions_asked == 1
        assert subtopic.correct_answers == 1
        assert subtopic.status == MasteryStatus.SHAKY
        assert subtopic.triaging_status.has_initial_assessment is True
        assert subtopic.triaging_status.questions_used == 1
        assert session.subtopic_state == SubtopicState.ASSESSING

    def test_confused_answer_needs_explanation(self, ectopic_session):
        update = update_session_after_assessment(
            ectopic_session, _graded(AnswerQuality.CONFUSED, NextAction.EXPLAIN),
        )
        session = ectopic_session.apply(update)

        assert session.correct_answers_in_current_subtopic == 0
        assert session.subtopics[0].needs_explanation is True
        assert session.subtopics[0].status == MasteryStatus.GAP
        assert session.subtopic_state == SubtopicState.EXPLAINING

    def test_non_learning_turn_changes_nothing(self, ectopic_session):
        result = AssessmentResult(
            quality=None,
            next_action=NextAction.CONTINUE_CONVERSATION,
            reasoning="I'm Carson",
            interaction_type=InteractionType.PERSONAL_CASUAL,
        )

        update = update_session_after_assessment(ectopic_session, result)

        assert update.changed_fields() == {}

    def test_other_subtopics_untouched(self, ectopic_session):
        update = update_session_after_assessment(ectopic_session, _graded(AnswerQuality.GOOD))
        session = ectopic_session.apply(update)

        assert session.subtopics[1:] == ectopic_session.subtopics[1:]


class TestTransitionToNextSubtopic:
    """Tests for moving between subtopics."""

    def test_advance(self, ectopic_session):
        worked = replace(
            ectopic_session.subtopics[1],
            triaging_status=TriagingStatus(questions_used=4, has_initial_assessment=True),
        )
        session = replace(
            ectopic_session,
            subtopics=ectopic_session.with_subtopic(1, worked),
            questions_asked_in_current_subtopic=5,
        )

        session = session.apply(transition_to_next_subtopic(session, 0))

        assert session.current_subtopic_index == 1
        assert session.subtopics[0].status == MasteryStatus.UNDERSTOOD
        assert session.subtopics[1].triaging_status == TriagingStatus.initial()
        assert session.questions_asked_in_current_subtopic == 0
        assert session.is_complete is False

    def test_last_subtopic_completes_session(self, ectopic_session):
        session = replace(ectopic_session, current_subtopic_index=2)

        session = session.apply(transition_to_next_subtopic(session, 2))

        assert session.is_complete is True
        assert session.subtopics[2].status == MasteryStatus.UNDERSTOOD
        assert session.current_subtopic_index == 2

    def test_no_subtopics(self):
        session = Session(topic="AKI")

        assert session.apply(transition_to_next_subtopic(session, 0)).is_complete is True


class TestMessages:
    """Tests for transition and celebration lines."""

    def test_transition_names_both_subtopics(self, ectopic_session, rng):
        line = transition_message(ectopic_session, 0, rng)

        assert "Risk Factors" in line
        assert "Clinical Presentation" in line

    def test_last_subtopic_celebrates(self, ectopic_session, rng):
        line = transition_message(ectopic_session, 2, rng)

        assert "Ectopic Pregnancy" in line

    def test_celebration(self, rng):
        assert "AKI" in celebration_message("AKI", rng)

    def test_assess_performance(self, ectopic_session):
        subtopic = ectopic_session.subtopics[0]

        assert assess_performance(replace(subtopic, needs_explanation=True)) == "struggled"
        assert assess_performance(replace(subtopic, correct_answers=3, questions_asked=3)) == "excellent"
        assert assess_performance(replace(subtopic, correct_answers=2, questions_asked=5)) == "good"


@pytest.fixture
def four_subtopic_session():
    session = Session.create("Acute Kidney Injury", ["Pathophysiology", "Causes", "Diagnosis", "Management"])
    learned = replace(session.subtopics[0], status=MasteryStatus.UNDERSTOOD)
    return replace(session, subtopics=session.with_subtopic(0, learned), current_subtopic_index=3)


class TestRetentionPolicy:
    """Tests for retention question decisions."""

    def test_eligible_subtopic(self, four_subtopic_session):
        policy = RetentionPolicy(random.Random(1), probability=1.0, interval=3)

        test = policy.should_test(four_subtopic_session)

        assert test is not None
        assert test.subtopic_index == 0
        assert test.question_type == "retention"

    def test_not_on_interval(self, four_subtopic_session):
        policy = RetentionPolicy(random.Random(1), probability=1.0, interval=3)

        assert policy.should_test(replace(four_subtopic_session, current_subtopic_index=2)) is None

    def test_never_on_first_subtopic(self, four_subtopic_session):
        policy = RetentionPolicy(random.Random(1), probability=1.0, interval=1)

        assert policy.should_test(replace(four_subtopic_session, current_subtopic_index=0)) is None

    def test_probability_zero(self, four_subtopic_session):
        policy = RetentionPolicy(random.Random(1), probability=0.0, interval=3)

        assert policy.should_test(four_subtopic_session) is None

    def test_nothing_learned_yet(self):
        session = replace(Session.create("AKI", ["A", "B", "C", "D"]), current_subtopic_index=3)
        policy = RetentionPolicy(random.Random(1), probability=1.0, interval=3)

        assert policy.should_test(session) is None

    def test_question_connects_subtopics(self, four_subtopic_session):
        policy = RetentionPolicy(random.Random(1))

        question = policy.question_for(RetentionTest(subtopic_index=0), four_subtopic_session)

        assert "Pathophysiology" in question
        assert "Management" in question
