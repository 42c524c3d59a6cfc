"""
Unit tests for the core data model.
"""

from dataclasses import FrozenInstanceError

import pytest

from carson.core.models import (
    AnswerQuality,
    AssessmentPhase,
    AssessmentResult,
    GapAnalysis,
    Message,
    NextAction,
    Session,
    SessionUpdate,
    TriagingStatus,
    TriagingStatusDelta,
)

ANALYSIS = GapAnalysis(
    critical_gaps=("Misses rupture risk",),
    important_gaps=("Risk factors incomplete",),
    minor_gaps=("Rare implantation sites",),
)


class TestTriagingStatusMerge:
    """Tests for merging a turn's delta."""

    def test_merge_is_idempotent(self):
        delta = TriagingStatusDelta(
            questions_used=2,
            has_initial_assessment=True,
            gap_analysis=ANALYSIS,
            addressed_gaps=("Misses rupture risk",),
        )
        once = TriagingStatus.initial().merge(delta)

        assert once.merge(delta) == once

    def test_addressed_gaps_keep_order_and_stay_unique(self):
        status = TriagingStatus(gap_analysis=ANALYSIS, addressed_gaps=("Risk factors incomplete",))

        merged = status.merge(TriagingStatusDelta(
            questions_used=3,
            addressed_gaps=("Misses rupture risk", "Risk factors incomplete"),
        ))

        assert merged.addressed_gaps == ("Risk factors incomplete", "Misses rupture risk")

    def test_addressed_gaps_limited_to_critical_and_important(self):
        status = TriagingStatus(gap_analysis=ANALYSIS)

        merged = status.merge(TriagingStatusDelta(
            questions_used=1,
            addressed_gaps=("Rare implantation sites", "Not a known gap"),
        ))

        assert merged.addressed_gaps == ()

    def test_questions_used_never_decreases(self):
        status = TriagingStatus(questions_used=5)

        assert status.merge(TriagingStatusDelta(questions_used=3)).questions_used == 5

    def test_flags_never_switch_off(self):
        status = TriagingStatus(has_initial_assessment=True, has_tested_application=True)

        merged = status.merge(TriagingStatusDelta(questions_used=1))

        assert merged.has_initial_assessment is True
        assert merged.has_tested_application is True

    def test_gap_analysis_kept_when_delta_has_none(self):
        status = TriagingStatus(gap_analysis=ANALYSIS)

        assert status.merge(TriagingStatusDelta(questions_used=1)).gap_analysis == ANALYSIS

    def test_status_is_immutable(self):
        status = TriagingStatus.initial()

        with pytest.raises(FrozenInstanceError):
            status.questions_used = 3


class TestGapAnalysis:
    """Tests for GapAnalysis."""

    def test_from_dict_coerces_bad_fields(self):
        analysis = GapAnalysis.from_dict({
            "criticalGaps": "oops",
            "importantGaps": ["  Risk factors  ", "", None],
        })

        assert analysis.critical_gaps == ()
        assert analysis.important_gaps == ("Risk factors",)
        assert analysis.minor_gaps == ()

    def test_to_dict(self):
        assert ANALYSIS.to_dict()["criticalGaps"] == ["Misses rupture risk"]

    def test_gaps_flattened_most_severe_first(self):
        assert [g.description for g in ANALYSIS.gaps()] == [
            "Misses rupture risk",
            "Risk factors incomplete",
            "Rare implantation sites",
        ]


class TestSession:
    """Tests for Session values."""

    def test_create(self):
        session = Session.create("AKI", ["Pathophysiology", "Diagnosis"], session_id="s-1")

        assert session.session_id == "s-1"
        assert [s.title for s in session.subtopics] == ["Pathophysiology", "Diagnosis"]
        assert session.current_subtopic.title == "Pathophysiology"
        assert session.subtopics[0].triaging_status == TriagingStatus.initial()

    @pytest.mark.parametrize("index,expected", [(-1, 0), (0, 0), (1, 1), (9, 1)])
    def test_clamped_index(self, index, expected):
        session = Session(topic="AKI", subtopics=Session.create("AKI", ["A", "B"]).subtopics, current_subtopic_index=index)

        assert session.clamped_index == expected
        assert session.index_in_range is (index == expected)

    def test_no_subtopics(self):
        session = Session(topic="AKI")

        assert session.current_subtopic is None
        assert session.clamped_index == 0

    def test_last_tutor_message(self):
        session = Session(topic="AKI").with_message(Message.assistant("What is prerenal AKI?"))
        session = session.with_message(Message.user("low perfusion"))

        assert session.last_tutor_message == "What is prerenal AKI?"
        assert Session(topic="AKI").last_tutor_message == ""

    def test_apply_changes_only_given_fields(self):
        session = Session.create("AKI", ["A"])

        updated = session.apply(SessionUpdate(questions_asked_in_current_subtopic=2))

        assert updated.questions_asked_in_current_subtopic == 2
        assert updated.subtopics == session.subtopics
        assert session.questions_asked_in_current_subtopic == 0

    def test_empty_update_changes_nothing(self):
        session = Session.create("AKI", ["A"])

        assert session.apply(SessionUpdate()) == session


class TestAssessmentResult:
    """Tests for AssessmentResult."""

    def test_to_dict_uses_enum_values(self):
        result = AssessmentResult(
            quality=AnswerQuality.GOOD,
            next_action=NextAction.CONTINUE_CONVERSATION,
            reasoning="ok",
            phase=AssessmentPhase.APPLICATION,
        )

        data = result.to_dict()

        assert data["quality"] == "good"
        assert data["next_action"] == "continue_conversation"
        assert data["phase"] == "application"
        assert data["completion_reason"] is None

    def test_was_assessed(self):
        result = AssessmentResult(quality=None, next_action=NextAction.CONTINUE_CONVERSATION, reasoning="hi")

        assert result.was_assessed is False

    @pytest.mark.parametrize("quality,correct", [
        (AnswerQuality.EXCELLENT, True),
        (AnswerQuality.GOOD, True),
        (AnswerQuality.PARTIAL, False),
        (AnswerQuality.INCORRECT, False),
        (AnswerQuality.CONFUSED, False),
    ])
    def test_is_correct(self, quality, correct):
        assert quality.is_correct is correct
