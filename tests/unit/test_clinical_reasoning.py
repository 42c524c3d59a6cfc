"""
Unit tests for the clinical reasoning scorer and decision lines.
"""

import random

import pytest

from carson.assessment.clinical_reasoning import (
    category_weight,
    reasoning_context,
    score_clinical_reasoning,
    sophistication_level,
    specialty_context,
)
from carson.core.models import AnswerQuality, AssessmentPhase, NextAction
from carson.dialogue.responses import compose_reasoning


class TestContexts:
    """Tests for subtopic and topic context detection."""

    @pytest.mark.parametrize("title,expected", [
        ("Differential Diagnosis", "diagnostic_reasoning"),
        ("Management", "therapeutic_reasoning"),
        ("Risk Factors", "risk_assessment"),
        ("Pathophysiology", "pathophysiology_reasoning"),
        ("Research Evidence", "evidence_based"),
        ("Overview", "diagnostic_reasoning"),
    ])
    def test_reasoning_context(self, title, expected):
        assert reasoning_context(title) == expected

    @pytest.mark.parametrize("topic,expected", [
        ("Coronary Artery Disease", "cardiology"),
        ("Ectopic Pregnancy", "obstetrics"),
        ("Acute Kidney Injury", "emergency"),
        ("Gout", "general"),
    ])
    def test_specialty_context(self, topic, expected):
        assert specialty_context(topic) == expected

    def test_unknown_category_weight(self):
        assert category_weight("evidence_based", "no_such_context") == 0.1


class TestScoreClinicalReasoning:
    """Tests for score_clinical_reasoning."""

    def test_diagnostic_language(self):
        answer = (
            "We must rule out ectopic pregnancy first; the differential diagnosis includes "
            "a ruptured ovarian cyst, and a transvaginal ultrasound with beta-hcg is consistent with the workup."
        )

        score = score_clinical_reasoning(answer, "Diagnosis", "Ectopic Pregnancy")

        assert score.reasoning_type == "diagnostic_reasoning"
        assert 0 < score.score <= 1
        assert "diagnostic_reasoning:rule out" in score.evidence
        assert "specialty:transvaginal ultrasound" in score.evidence
        assert "Shows diagnostic reasoning" in score.clinical_thinking

    def test_empty_answer(self):
        score = score_clinical_reasoning("", "Diagnosis", "Ectopic Pregnancy")

        assert score.score == 0
        assert score.sophistication_level == "novice"
        assert "Focus on clinical reasoning fundamentals" in score.recommendations
        assert "Incorporate more clinical thinking language" in score.recommendations

    def test_overconfidence_cancels_credit(self):
        hedged = score_clinical_reasoning("consider the workup", "Diagnosis", "Gout")
        overconfident = score_clinical_reasoning(
            "consider the workup, it is obviously and clearly always gout", "Diagnosis", "Gout",
        )

        assert overconfident.score < hedged.score

    def test_score_is_capped(self):
        answer = " ".join([
            "differential diagnosis rule out consider workup investigate assess for",
            "clinical presentation red flags most likely less likely must exclude",
            "mechanism pathway cascade feedback loop compensation decompensation",
            "research shows meta-analysis systematic review evidence suggests",
            "correlates with associated with consistent with sensitivity specificity",
        ])

        assert score_clinical_reasoning(answer, "Diagnosis", "Gout").score <= 1.0

    def test_sophistication_levels(self):
        assert sophistication_level(0.8, 3, 150) == "advanced"
        assert sophistication_level(0.5, 2, 40) == "intermediate"
        assert sophistication_level(0.8, 1, 150) == "novice"


class TestComposeReasoning:
    """Tests for the one-line decision reasoning."""

    def test_complete_names_next_subtopic(self):
        line = compose_reasoning(
            NextAction.COMPLETE_SUBTOPIC, AssessmentPhase.COMPLETE, AnswerQuality.GOOD,
            "Risk Factors", next_subtopic="Diagnosis", rng=random.Random(1),
        )

        assert "Risk Factors" in line
        assert "Diagnosis" in line

    def test_partial_lists_specific_gaps(self):
        line = compose_reasoning(
            NextAction.CONTINUE_CONVERSATION, AssessmentPhase.TARGETED_REMEDIATION, AnswerQuality.PARTIAL,
            "Risk Factors", focus="prior ectopic pregnancy", specific_gaps="Missing IVF.",
            rng=random.Random(1),
        )

        assert "prior ectopic pregnancy" in line
        assert line.endswith("Missing so far: Missing IVF.")

    def test_seeded_choice_is_reproducible(self):
        def line():
            return compose_reasoning(
                NextAction.CONTINUE_CONVERSATION, AssessmentPhase.APPLICATION, AnswerQuality.GOOD,
                "Management", rng=random.Random(9),
            )

        assert line() == line()
